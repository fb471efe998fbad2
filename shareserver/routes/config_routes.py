"""Public configuration routes."""

from fastapi import APIRouter

from shareserver.schemas.common import PublicConfigResponse
from shareserver.services.config_service import ConfigService

router = APIRouter(prefix="/configs", tags=["Config"])


@router.get("", response_model=PublicConfigResponse)
async def get_public_config():
    """
    Settings a client needs to split files into chunks.
    """
    config_service = ConfigService()
    return PublicConfigResponse(
        chunk_size=config_service.get("share.chunkSize"),
        max_share_size=config_service.get("share.maxSize"),
    )
