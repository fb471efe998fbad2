"""Share API routes: creation, completion and removal."""

from fastapi import APIRouter, Response, status

from shareserver.repositories.share_repository import Share
from shareserver.schemas.shares import CreateShareRequest, ShareFileResponse, ShareResponse
from shareserver.services.config_service import ConfigService
from shareserver.services.quota import remaining_share_size, share_size_limits
from shareserver.services.share_service import ShareService

router = APIRouter(prefix="/shares", tags=["Shares"])


def to_share_response(share: Share) -> ShareResponse:
    default_max_size = ConfigService().get("share.maxSize")
    return ShareResponse(
        id=share.share_id,
        upload_locked=share.upload_locked,
        max_share_size=min(share_size_limits(share, default_max_size)),
        remaining_share_size=remaining_share_size(share, default_max_size),
        files=[
            ShareFileResponse(id=f.file_id, name=f.name, size=f.size)
            for f in share.files
        ],
    )


@router.post("", response_model=ShareResponse, status_code=status.HTTP_201_CREATED)
async def create_share(request: CreateShareRequest):
    """
    Create an empty share that accepts uploads.

    Raises:
        - 400: Invalid or duplicate share id
        - 404: Reverse share not found
    """
    share = ShareService().create(
        share_id=request.id,
        reverse_share_id=request.reverse_share_id,
        max_share_size=request.max_share_size,
    )
    return to_share_response(share)


@router.get("/{share_id}", response_model=ShareResponse)
async def get_share(share_id: str):
    """
    Get a share with its completed files.

    Raises:
        - 404: Share not found
    """
    return to_share_response(ShareService().get(share_id))


@router.post("/{share_id}/complete", response_model=ShareResponse, status_code=status.HTTP_202_ACCEPTED)
async def complete_share(share_id: str):
    """
    Lock a share so no further chunks are accepted.

    Raises:
        - 400: Share already completed or has no files
        - 404: Share not found
    """
    return to_share_response(ShareService().complete(share_id))


@router.delete("/{share_id}/complete", response_model=ShareResponse)
async def revert_complete(share_id: str):
    """
    Reopen a completed share for uploads.

    Raises:
        - 404: Share not found
    """
    return to_share_response(ShareService().revert_complete(share_id))


@router.delete("/{share_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_share(share_id: str):
    """
    Delete a share, its file records and every artifact on disk.

    Raises:
        - 404: Share not found
        - 500: Share directory could not be purged
    """
    await ShareService().remove(share_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
