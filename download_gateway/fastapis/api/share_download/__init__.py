"""
/share-download endpoint for public, optionally password-protected share links.
"""
from typing import Annotated

from fastapi import Path, Query, Request, Response

from download_gateway import meta_config
from download_gateway.fastapis.deps import GatewayDep
from download_gateway.fastapis.tagged_api_router import TaggedAPIRouter, error_responses
from download_gateway.models.exceptions import DownloadError
from download_gateway.models.field_types import FileIdStr
from download_gateway.utils.disconnect import run_until_disconnected
from download_gateway.utils.http_exceptions import raise_for_download_error

router = TaggedAPIRouter(prefix="/share-download", tag="Share download")


@router.get(
    "/{file_id}",
    response_class=Response,
    responses={200: {"content": {"application/octet-stream": {}}}, **error_responses(400, 401, 403, 404, 500, 502, 504)},
)
async def share_download(
    file_id: Annotated[FileIdStr, Path(description="Metadata id of the shared file")],
    request: Request,
    gateway: GatewayDep,
    password: Annotated[str | None, Query(max_length=1024, description="Share password, if the link has one")] = None,
) -> Response:
    """
    Download a shared file through its public share link.

    **Authentication**: None. Access is governed by the file's share flag and optional password.

    **Response** (200 OK): the raw bytes with `Content-Type`,
    `Content-Disposition: attachment; filename="<name>"` and cache suppression headers,
    so a bookmarked link always re-checks authorization.

    **Error Responses** (`{"error": "..."}`):
    - 400 Bad Request: invalid file id
    - 401 Unauthorized: wrong or missing password
    - 403 Forbidden: the file is not shared
    - 404 Not Found: no such file
    - 502 Bad Gateway / 504 Gateway Timeout: storage kept failing after retries
    - 500 Internal Server Error: malformed file record or any other failure
    """
    try:
        result = await run_until_disconnected(
            request,
            gateway.shared_download(file_id, password),
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
