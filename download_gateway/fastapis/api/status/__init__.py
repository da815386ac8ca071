"""
/status endpoint.
"""
from download_gateway import meta_config
from download_gateway.fastapis.tagged_api_router import TaggedAPIRouter
from download_gateway.models.status import StatusResponse

router = TaggedAPIRouter(prefix="/status", tag="Status")


@router.get("", response_model=StatusResponse)
async def get_status() -> StatusResponse:
    """
    Liveness check for the download gateway.

    **Authentication**: None required (public endpoint).
    """
    return StatusResponse(status="ok", version=meta_config.VERSION)
