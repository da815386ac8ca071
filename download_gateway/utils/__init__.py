"""
Download gateway utilities.
"""
from .aiohttp_client_session_mixin import AioHttpClientSessionClassVarMixin
from .disconnect import ClientDisconnectedError, run_until_disconnected
from .http_exceptions import (
    raise_bad_request,
    raise_for_download_error,
    raise_internal_error,
)
