"""
Global FastAPI dependencies.
"""
from typing import Annotated

from fastapi import Depends, Request

from download_gateway.models.gateway import DownloadGateway
from download_gateway.utils.http_exceptions import raise_internal_error


async def get_gateway(request: Request) -> DownloadGateway:
    """The process-wide gateway built in the application lifespan."""
    gateway = getattr(request.app.state, "gateway", None)
    if gateway is None:
        raise_internal_error("Download service is not initialized")
    return gateway


GatewayDep = Annotated[DownloadGateway, Depends(get_gateway)]
