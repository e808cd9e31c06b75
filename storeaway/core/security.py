"""Verification of identity-provider access tokens.

Sign-up, sign-in and sign-out happen at the external identity provider. It
issues HS256 JWTs signed with a secret shared with this service; we only
decode them into an ``Identity``.
"""

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

from jose import JWTError, jwt

from storeaway.config import settings
from storeaway.core.exceptions import AuthenticationError

# Legacy role names used by the original front end
ROLE_ALIASES = {
    "buyer": "client",
    "seller": "host",
    "client": "client",
    "host": "host",
}


@dataclass(frozen=True)
class Identity:
    """Current caller as asserted by the identity provider."""

    user_id: str
    email: str | None
    display_name: str | None
    role: str

    @property
    def is_host(self) -> bool:
        return self.role == "host"


def normalize_role(raw: str | None) -> str:
    """Map a provider role claim onto ``client`` or ``host``."""
    return ROLE_ALIASES.get((raw or "").lower(), "client")


def verify_token(token: str) -> dict[str, Any]:
    """Verify and decode an identity-provider JWT."""
    try:
        return jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
            audience=settings.jwt_audience,
        )
    except JWTError as e:
        raise AuthenticationError(f"Token validation failed: {str(e)}")


def identity_from_claims(payload: dict[str, Any]) -> Identity:
    """Build an ``Identity`` from decoded token claims."""
    user_id = payload.get("sub")
    if not user_id:
        raise AuthenticationError("Invalid token payload")

    metadata = payload.get("user_metadata") or {}
    return Identity(
        user_id=str(user_id),
        email=payload.get("email"),
        display_name=metadata.get("name") or metadata.get("full_name"),
        role=normalize_role(metadata.get("role")),
    )


def create_access_token(
    user_id: str,
    email: str,
    name: str,
    role: str = "client",
    expires_delta: timedelta | None = None,
) -> str:
    """Mint a token shaped like the identity provider's.

    Used by development scripts and tests; production tokens come from the
    provider itself.
    """
    expire = datetime.now(UTC) + (
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )
    to_encode = {
        "sub": user_id,
        "email": email,
        "aud": settings.jwt_audience,
        "exp": expire,
        "user_metadata": {"name": name, "role": role},
    }
    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)
