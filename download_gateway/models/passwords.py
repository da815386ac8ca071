"""
Share password hashing.

Share passwords are stored as bcrypt hashes (``$2b$<rounds>$<salt+digest>``).
`bcrypt.checkpw` does the comparison in constant time.
"""
import re

import bcrypt

BCRYPT_HASH_PATTERN = re.compile(r"\$2[aby]\$([0-9]{2})\$[./A-Za-z0-9]{53}")
BCRYPT_MIN_ROUNDS = 4
BCRYPT_MAX_ROUNDS = 31
# bcrypt only looks at the first 72 bytes; newer releases refuse longer input
BCRYPT_MAX_PASSWORD_BYTES = 72


def hash_share_password(password: str, rounds: int = 12) -> str:
    """
    Hashes a share password for storage in a file descriptor.

    Raises ValueError for passwords bcrypt cannot hash (longer than 72 bytes).
    """
    encoded = password.encode("utf-8")
    if len(encoded) > BCRYPT_MAX_PASSWORD_BYTES:
        raise ValueError(f"Share passwords are limited to {BCRYPT_MAX_PASSWORD_BYTES} bytes")
    return bcrypt.hashpw(encoded, bcrypt.gensalt(rounds=rounds)).decode("ascii")


def is_share_password_hash(encoded: str) -> bool:
    """True when ``encoded`` is a bcrypt hash that `verify_share_password` accepts."""
    match = BCRYPT_HASH_PATTERN.fullmatch(encoded)
    return match is not None and BCRYPT_MIN_ROUNDS <= int(match.group(1)) <= BCRYPT_MAX_ROUNDS


def verify_share_password(password: str, encoded: str) -> bool:
    """Checks a supplied password against a stored bcrypt hash."""
    candidate = password.encode("utf-8")
    # Such a password could never have been hashed, so it cannot match
    if len(candidate) > BCRYPT_MAX_PASSWORD_BYTES:
        return False
    return bcrypt.checkpw(candidate, encoded.encode("ascii"))
