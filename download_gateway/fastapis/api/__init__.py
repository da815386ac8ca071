"""
Download gateway routes aggregation.
"""
from download_gateway.fastapis.tagged_api_router import TaggedAPIRouter

from .download import router as download_router
from .share_download import router as share_download_router
from .status import router as status_router

router = TaggedAPIRouter()
router.include_router(download_router)
router.include_router(share_download_router)
router.include_router(status_router)
