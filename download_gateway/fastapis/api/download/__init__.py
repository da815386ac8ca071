"""
/download endpoint for direct downloads by storage path.
"""
from fastapi import Request, Response

from download_gateway import meta_config
from download_gateway.fastapis.deps import GatewayDep
from download_gateway.fastapis.tagged_api_router import TaggedAPIRouter, error_responses
from download_gateway.models.download import DirectDownloadBody
from download_gateway.models.exceptions import DownloadError
from download_gateway.utils.disconnect import run_until_disconnected
from download_gateway.utils.http_exceptions import raise_for_download_error

router = TaggedAPIRouter(prefix="/download", tag="Download")


@router.post(
    "",
    response_class=Response,
    responses={200: {"content": {"application/octet-stream": {}}}, **error_responses(400, 404, 500, 502, 504)},
)
async def direct_download(request: Request, gateway: GatewayDep, body: DirectDownloadBody | None = None) -> Response:
    """
    Download a stored object by its storage path.

    **Authentication**: The caller's session authorizes the path upstream of this service.

    **Request Body**:
    - `storagePath`: Object path inside the storage bucket

    **Response** (200 OK): the raw bytes with `Content-Type`, `Content-Length`
    and `Content-Disposition: attachment`.

    **Error Responses** (`{"error": "..."}`):
    - 400 Bad Request: `storagePath` missing or empty
    - 404 Not Found: no object at that path
    - 502 Bad Gateway / 504 Gateway Timeout: storage kept failing after retries
    - 500 Internal Server Error: any other failure
    """
    try:
        result = await run_until_disconnected(
            request,
            gateway.direct_download(body.storage_path if body else None),
            poll_interval=meta_config.DISCONNECT_POLL_INTERVAL,
        )
    except DownloadError as e:
        raise_for_download_error(e)
    return Response(
        content=result.body,
        status_code=result.status_code,
        headers=result.headers,
        media_type=result.media_type,
    )
