"""API key codec and bearer-token helpers.

API keys have two stored forms. The bcrypt hash is the credential of record
and is only ever checked with ``verify_api_key``. The SHA-256 lookup digest
is deterministic so it can sit behind a unique index; matching it only
narrows the search to one candidate row and proves nothing on its own.
"""

from __future__ import annotations

import hashlib
import re
import secrets
from datetime import UTC, datetime, timedelta

import bcrypt
from jose import JWTError, jwt

from swip_api.core.settings import settings

API_KEY_PREFIX = "swip_key_"
API_KEY_BYTES = 32  # 64 hex characters
API_KEY_PREVIEW_LENGTH = 10
BCRYPT_MAX_BYTES = 72

_API_KEY_BODY = re.compile(r"^[0-9a-f]{%d}$" % (API_KEY_BYTES * 2), re.IGNORECASE)


def generate_api_key() -> str:
    """Return a new secret in the form ``swip_key_<64 hex chars>``."""
    return f"{API_KEY_PREFIX}{secrets.token_hex(API_KEY_BYTES)}"


def _bcrypt_input(api_key: str) -> bytes:
    # bcrypt only consumes the first 72 bytes; full keys are 73.
    return api_key.encode("utf-8")[:BCRYPT_MAX_BYTES]


def hash_api_key(api_key: str, rounds: int | None = None) -> str:
    """Return a salted bcrypt hash of the key."""
    salt = bcrypt.gensalt(rounds=rounds or settings.bcrypt_rounds)
    return bcrypt.hashpw(_bcrypt_input(api_key), salt).decode("ascii")


def verify_api_key(api_key: str, key_hash: str) -> bool:
    """Check a presented key against a stored bcrypt hash.

    Malformed hashes verify as False rather than raising.
    """
    try:
        return bcrypt.checkpw(_bcrypt_input(api_key), key_hash.encode("ascii"))
    except (ValueError, UnicodeEncodeError):
        return False


def create_lookup_hash(api_key: str) -> str:
    """Return the SHA-256 hex digest used as the index key for a secret."""
    return hashlib.sha256(api_key.encode("utf-8")).hexdigest()


def get_api_key_preview(api_key: str) -> str:
    """Return a display-safe prefix of the key."""
    return api_key[:API_KEY_PREVIEW_LENGTH] + "..."


def is_valid_api_key_format(api_key: str) -> bool:
    """Return True if the key has the expected prefix, length and hex body."""
    if not api_key.startswith(API_KEY_PREFIX):
        return False
    return bool(_API_KEY_BODY.match(api_key[len(API_KEY_PREFIX):]))


def create_access_token(subject: str, extra_claims: dict[str, str] | None = None) -> str:
    """Create a JWT access token for a developer-portal user."""
    to_encode: dict[str, object] = {"sub": subject}
    if extra_claims:
        to_encode.update(extra_claims)
    expire = datetime.now(UTC) + timedelta(minutes=settings.access_token_expire_minutes)
    to_encode["exp"] = expire
    encoded_jwt: str = jwt.encode(
        to_encode,
        settings.secret_key,
        algorithm=settings.jwt_algorithm,
    )
    return encoded_jwt


def decode_access_token(token: str) -> str | None:
    """Return the token subject, or None if the token is invalid or expired."""
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None
    subject = payload.get("sub")
    return str(subject) if subject else None
