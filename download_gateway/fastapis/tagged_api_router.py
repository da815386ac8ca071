"""
TaggedAPIRouter: tag concatenation and shared error documentation for routers.
"""
from typing import Any, Sequence

from fastapi import APIRouter, Depends

from download_gateway.models.download import ErrorBody


def error_responses(*status_codes: int) -> dict[int | str, dict[str, Any]]:
    """OpenAPI ``responses`` entries documenting the ``{"error": ...}`` body."""
    return {code: {"model": ErrorBody} for code in status_codes}


class TaggedAPIRouter(APIRouter):
    """APIRouter whose tag is the concatenation of its parents' tags."""

    def __init__(
            self,
            *,
            prefix: str = '',
            tag: str | None = None,
            dependencies: Sequence[Depends] | None = None,
            **kwargs,
    ) -> None:
        if tag is not None:
            self._tag_segment: str = tag if tag.startswith("/") else f"/{tag}"
        else:
            self._tag_segment = prefix
        self._full_tag: str = self._tag_segment

        super().__init__(
            prefix=prefix,
            tags=[self._tag_segment] if self._tag_segment else None,
            dependencies=dependencies,
            **kwargs,
        )

    def include_router(self, router: APIRouter, **kwargs) -> None:
        if isinstance(router, TaggedAPIRouter):
            router._full_tag = self._full_tag + router._tag_segment
            if router.tags:
                router.tags = [router._full_tag]
        super().include_router(router, **kwargs)
