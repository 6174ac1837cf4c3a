"""
dropkey_core.credentials
------------------------
Bearer credentials minted after a successful challenge/response.

A credential is an HS256 JWT asserting the identity id (``sub``) and its
public key. It is issued and parsed at the boundary only; the core services
never see it.
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional
import logging
import secrets

import jwt

from .constants import CREDENTIAL_ALGORITHM, DEFAULT_CREDENTIAL_ISSUER, DEFAULT_CREDENTIAL_TTL_SECONDS
from .errors import DropKeyError, ErrorKind
from .logger import get_logger
from .storage import IdentityRecord
from .utils import is_blank, utc_now


@dataclass(frozen=True)
class Claims:
    user_id: str
    public_key: str
    expires_at: datetime


class CredentialIssuer:
    def __init__(
        self,
        secret: str,
        ttl_seconds: int = DEFAULT_CREDENTIAL_TTL_SECONDS,
        issuer: str = DEFAULT_CREDENTIAL_ISSUER,
        clock: Callable[[], datetime] = utc_now,
        logger: Optional[logging.Logger] = None,
    ):
        if is_blank(secret):
            raise ValueError("credential secret is required")
        self.secret = secret
        self.ttl = timedelta(seconds=ttl_seconds)
        self.issuer = issuer
        self.clock = clock
        self.log = logger or get_logger("DropKey.Credentials")

    def issue(self, identity: IdentityRecord) -> str:
        now = self.clock().replace(microsecond=0)
        payload = {
            "sub": identity.id,
            "public_key": identity.public_key,
            "iat": int(now.timestamp()),
            "exp": int((now + self.ttl).timestamp()),
            "iss": self.issuer,
            "jti": secrets.token_urlsafe(16),
        }
        return jwt.encode(payload, self.secret, algorithm=CREDENTIAL_ALGORITHM)

    def parse(self, token: str) -> Claims:
        """
        Validate signature, issuer and expiry of ``token``.

        Expiry is checked against this issuer's clock rather than PyJWT's
        wall clock so both sides of the check agree.
        """
        if is_blank(token):
            raise DropKeyError(ErrorKind.UNAUTHORIZED, "credential required")
        try:
            payload = jwt.decode(
                token,
                self.secret,
                algorithms=[CREDENTIAL_ALGORITHM],
                issuer=self.issuer,
                options={
                    "require": ["sub", "exp", "iss"],
                    "verify_exp": False,
                    "verify_iat": False,
                },
            )
        except jwt.InvalidIssuerError as e:
            raise DropKeyError(ErrorKind.UNAUTHORIZED, "invalid credential issuer") from e
        except jwt.InvalidTokenError as e:
            self.log.warning({"event": "credential_rejected", "reason": type(e).__name__})
            raise DropKeyError(ErrorKind.UNAUTHORIZED, "invalid credential") from e

        expires_at = datetime.fromtimestamp(int(payload["exp"]), tz=timezone.utc)
        if expires_at <= self.clock():
            raise DropKeyError(ErrorKind.UNAUTHORIZED, "credential expired")

        public_key = payload.get("public_key")
        if not isinstance(public_key, str) or is_blank(public_key):
            raise DropKeyError(ErrorKind.UNAUTHORIZED, "credential has no public key")
        return Claims(user_id=payload["sub"], public_key=public_key, expires_at=expires_at)

    @staticmethod
    def from_header(authorization: Optional[str]) -> str:
        """Extract the token from an ``Authorization: Bearer <token>`` value."""
        if is_blank(authorization):
            raise DropKeyError(ErrorKind.UNAUTHORIZED, "authorization header required")
        parts = authorization.split(" ")
        if len(parts) != 2 or parts[0].lower() != "bearer" or not parts[1]:
            raise DropKeyError(ErrorKind.UNAUTHORIZED, "invalid authorization header format")
        return parts[1]
