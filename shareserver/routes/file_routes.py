"""File API routes: chunked upload, download and removal."""

from typing import Optional
from urllib.parse import quote

from fastapi import APIRouter, Query, Request, Response, status
from fastapi.responses import StreamingResponse

from shareserver.exceptions import InvalidChunkError
from shareserver.schemas.common import ErrorResponse, UnexpectedChunkErrorResponse
from shareserver.schemas.shares import UploadChunkResponse
from shareserver.services.config_service import ConfigService
from shareserver.services.file_service import FileService

router = APIRouter(prefix="/shares/{share_id}/files", tags=["Files"])


def max_chunk_body_length(chunk_size: int) -> int:
    """Length of the base64 text of one full chunk, padding included."""
    return 4 * -(-chunk_size // 3)


async def read_chunk_body(request: Request, chunk_size: int) -> bytes:
    """
    Read the request body, giving up as soon as it outgrows one chunk.

    Raises:
        InvalidChunkError: Body is longer than a base64 encoded full chunk
    """
    limit = max_chunk_body_length(chunk_size)
    body = bytearray()
    async for piece in request.stream():
        body.extend(piece)
        if len(body) > limit:
            raise InvalidChunkError(f"Chunk payload exceeds {limit} base64 characters")
    return bytes(body)


@router.post(
    "",
    response_model=UploadChunkResponse,
    responses={
        400: {"model": UnexpectedChunkErrorResponse},
        404: {"model": ErrorResponse},
        413: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def upload_chunk(
    share_id: str,
    request: Request,
    name: str = Query(..., min_length=1),
    chunk_index: int = Query(..., alias="chunkIndex"),
    total_chunks: int = Query(..., alias="totalChunks"),
    file_id: Optional[str] = Query(None, alias="id"),
):
    """
    Upload one chunk of a file.

    Parameters:
        - body: base64 encoded chunk bytes
        - name: Original file name
        - chunkIndex: 0-based index of this chunk
        - totalChunks: Number of chunks of the file
        - id: Client-chosen file UUID, sent with every chunk (generated if omitted on chunk 0)

    Returns:
        - id: File id to send with the following chunks
        - completed: True once the last chunk has been stored

    Raises:
        - 400: Share completed, malformed chunk, or unexpected chunk index
               (body carries expected_chunk_index)
        - 404: Share not found
        - 413: Share size limit exceeded
        - 500: Storage failure, safe to retry the same chunk
    """
    body = await read_chunk_body(request, ConfigService().get("share.chunkSize"))
    try:
        data = body.decode("ascii")
    except UnicodeDecodeError:
        raise InvalidChunkError("Chunk payload must be base64 text")

    result = await FileService().create(
        share_id=share_id,
        data=data,
        chunk_index=chunk_index,
        total_chunks=total_chunks,
        file_name=name,
        file_id=file_id,
    )

    return UploadChunkResponse(
        id=result.file_id,
        name=result.name,
        completed=result.completed,
        bytes_received=result.bytes_received,
    )


@router.get("/zip")
async def download_archive(share_id: str):
    """
    Download every file of a completed share as one zip archive.

    Raises:
        - 404: Share not found, or share not completed yet
    """
    size, stream = await FileService().get_archive(share_id)

    return StreamingResponse(
        stream,
        media_type="application/zip",
        headers={
            "Content-Disposition": f"attachment; filename*=UTF-8''{quote(share_id)}.zip",
            "Content-Length": str(size),
        }
    )


@router.get("/{file_id}")
async def download_file(share_id: str, file_id: str):
    """
    Download a completed file.

    Raises:
        - 404: File not found in this share
        - 500: File artifact unreadable
    """
    metadata, stream = await FileService().get(share_id, file_id)

    return StreamingResponse(
        stream,
        media_type=metadata.mime_type,
        headers={
            "Content-Disposition": f"attachment; filename*=UTF-8''{quote(metadata.name)}",
            "Content-Length": str(metadata.size),
        }
    )


@router.delete("/{file_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_file(share_id: str, file_id: str):
    """
    Delete a completed file.

    Raises:
        - 404: File not found in this share
    """
    await FileService().remove(share_id, file_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
