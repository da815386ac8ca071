"""
Share-link authorization.
"""
from enum import StrEnum

from .base import FrozenModelBase
from .descriptor import FileDescriptor
from .download import DownloadMode, DownloadRequest
from .passwords import verify_share_password


class DenyReason(StrEnum):
    NOT_SHARED = "not_shared"
    BAD_PASSWORD = "bad_password"


class AccessDecision(FrozenModelBase):
    """Outcome of an authorization check."""
    allowed: bool
    reason: DenyReason | None = None

    @classmethod
    def allow(cls) -> "AccessDecision":
        return cls(allowed=True)

    @classmethod
    def deny(cls, reason: DenyReason) -> "AccessDecision":
        return cls(allowed=False, reason=reason)


class AccessAuthorizer:
    """
    Stateless decision function for share-link requests.

    Rules, first match wins:
    1. shared request for a file that is not shared -> deny (not shared)
    2. file has a password hash and the request has no matching password -> deny (bad password)
    3. otherwise -> allow

    Direct requests skip both rules; their storage path is trusted because the
    caller's own session authorized it.

    Password verification is CPU bound, so async callers should run
    `authorize` in a worker thread.
    """

    def authorize(self, descriptor: FileDescriptor, request: DownloadRequest) -> AccessDecision:
        if request.mode is DownloadMode.DIRECT:
            return AccessDecision.allow()

        if not descriptor.shared:
            return AccessDecision.deny(DenyReason.NOT_SHARED)

        if descriptor.share_password_hash is not None:
            if not request.supplied_password:
                return AccessDecision.deny(DenyReason.BAD_PASSWORD)
            if not verify_share_password(request.supplied_password, descriptor.share_password_hash):
                return AccessDecision.deny(DenyReason.BAD_PASSWORD)

        return AccessDecision.allow()
