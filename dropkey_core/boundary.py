"""
dropkey_core.boundary
---------------------
Transport-facing gateway over the core services.

The gateway is the only layer that knows about bearer credentials and
status codes. It:

- mints a credential after a successful challenge/response
- checks that the credential's public key equals the public key named in
  a write request (the core services do not)
- maps every ErrorKind to a status code and an opaque error body
- serialises records with UTC ISO-8601 timestamps

It is framework-agnostic: request bodies are plain dicts and every call
returns a Response.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Union
import logging

from .auth import Authenticator
from .config import Settings
from .credentials import Claims, CredentialIssuer
from .crypto import Validator, compute_pubkey_fingerprint
from .errors import DropKeyError, ErrorClass, ErrorKind
from .identity import IdentityRegistry
from .logger import get_logger
from .pastes import ContentStore
from .storage import StorageProvider, load_storage_provider

Body = Union[Dict[str, Any], list]

_CLASS_STATUS = {
    ErrorClass.VALIDATION: 400,
    ErrorClass.ABSENT: 404,
    ErrorClass.CRYPTO: 400,
    ErrorClass.CONFLICT: 409,
    ErrorClass.STORAGE: 500,
    ErrorClass.AUTH: 401,
}

_KIND_STATUS = {
    ErrorKind.EXPIRED: 410,
    ErrorKind.OWNER_NOT_FOUND: 401,
}


def status_for(kind: ErrorKind) -> int:
    return _KIND_STATUS.get(kind, _CLASS_STATUS[kind.error_class])


@dataclass
class Response:
    status: int
    body: Body = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


class Gateway:
    def __init__(
        self,
        registry: IdentityRegistry,
        authenticator: Authenticator,
        pastes: ContentStore,
        credentials: CredentialIssuer,
        base_url: str,
        logger: Optional[logging.Logger] = None,
    ):
        self.registry = registry
        self.authenticator = authenticator
        self.pastes = pastes
        self.credentials = credentials
        self.base_url = base_url.rstrip("/")
        self.log = logger or get_logger("DropKey.Gateway")

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------
    def _error(self, err: DropKeyError, status: Optional[int] = None) -> Response:
        status = status or status_for(err.kind)
        if err.fatal:
            status = 500
        if status >= 500:
            self.log.error({"event": "request_failed", "reason": err.kind.value, **err.context})
            return Response(500, {"error": "internal_error", "message": "internal server error"})
        return Response(status, err.to_dict())

    @staticmethod
    def _field(body: Mapping[str, Any], name: str) -> Any:
        if not isinstance(body, Mapping):
            raise DropKeyError(ErrorKind.VALIDATION_ERROR, "request body must be a JSON object")
        return body.get(name)

    def _caller(self, authorization: Optional[str]) -> Claims:
        return self.credentials.parse(CredentialIssuer.from_header(authorization))

    def _require_owner(self, claims: Claims, public_key: Any) -> None:
        if claims.public_key != public_key:
            self.log.warning({
                "event": "owner_mismatch",
                "user_id": claims.user_id,
                "key_fpr": compute_pubkey_fingerprint(public_key if isinstance(public_key, str) else None),
            })
            raise DropKeyError(ErrorKind.UNAUTHORIZED, "unauthorized access")

    def share_url(self, paste_id: str, public_key: str) -> str:
        return f"{self.base_url}/paste/{paste_id}#{public_key}"

    # ------------------------------------------------------------------
    # users
    # ------------------------------------------------------------------
    def register(self, body: Mapping[str, Any]) -> Response:
        try:
            user_id = self.registry.register(self._field(body, "public_key"))
        except DropKeyError as e:
            return self._error(e)
        return Response(201, {"id": user_id})

    def authenticate(self, body: Mapping[str, Any]) -> Response:
        try:
            result = self.authenticator.authenticate(
                self._field(body, "id"),
                self._field(body, "signature"),
                self._field(body, "challenge"),
            )
        except DropKeyError as e:
            # a bad signature here is a failed login, not a bad request
            if e.kind is ErrorKind.INVALID_SIGNATURE:
                return self._error(e, 401)
            return self._error(e)
        token = self.credentials.issue(result.identity)
        return Response(200, {"message": "Authentication successful", "token": token})

    def get_user(self, user_id: str) -> Response:
        try:
            rec = self.registry.get_by_id(user_id)
        except DropKeyError as e:
            return self._error(e)
        return Response(200, rec.to_dict())

    def get_user_by_public_key(self, public_key: str) -> Response:
        try:
            rec = self.registry.get_by_public_key(public_key)
        except DropKeyError as e:
            if e.kind in (ErrorKind.EMPTY_PUBLIC_KEY, ErrorKind.INVALID_PUBLIC_KEY, ErrorKind.NOT_FOUND):
                # one outcome for malformed and absent keys: no existence oracle
                self.log.info({"event": "user_lookup_miss", "reason": e.kind.value})
                return self._error(DropKeyError(ErrorKind.NOT_FOUND, "user not found"))
            return self._error(e)
        return Response(200, rec.to_dict())

    # ------------------------------------------------------------------
    # pastes
    # ------------------------------------------------------------------
    def create_paste(self, authorization: Optional[str], body: Mapping[str, Any]) -> Response:
        try:
            claims = self._caller(authorization)
            public_key = self._field(body, "public_key")
            self._require_owner(claims, public_key)
            paste_id = self.pastes.create(
                self._field(body, "ciphertext"),
                self._field(body, "signature"),
                public_key,
                self._field(body, "expires_in"),
            )
        except DropKeyError as e:
            return self._error(e)
        return Response(201, {"id": paste_id, "url": self.share_url(paste_id, public_key)})

    def get_paste(self, paste_id: str) -> Response:
        try:
            rec = self.pastes.get_by_id(paste_id)
        except DropKeyError as e:
            return self._error(e)
        return Response(200, rec.to_dict())

    def update_paste(self, authorization: Optional[str], paste_id: str, body: Mapping[str, Any]) -> Response:
        try:
            claims = self._caller(authorization)
            public_key = self._field(body, "public_key")
            self._require_owner(claims, public_key)
            self.pastes.update(
                paste_id,
                self._field(body, "ciphertext"),
                self._field(body, "signature"),
                public_key,
            )
        except DropKeyError as e:
            return self._error(e)
        return Response(200, {"message": "paste updated"})

    def list_pastes(self, public_key: str) -> Response:
        try:
            pastes = self.pastes.get_by_public_key(public_key)
        except DropKeyError as e:
            return self._error(e)
        return Response(200, [p.to_dict() for p in pastes])


def build_gateway(settings: Settings, storage: Optional[StorageProvider] = None, clock=None) -> Gateway:
    """Wire storage, validator, registry, authenticator, store and issuer."""
    log_kw = {"level": settings.log_level, "to_file": settings.log_file}
    storage = storage or load_storage_provider(settings.storage_config())
    validator = Validator(get_logger("DropKey.Validator", **log_kw))
    registry = IdentityRegistry(storage, validator, logger=get_logger("DropKey.Registry", **log_kw))
    authenticator = Authenticator(registry, validator, logger=get_logger("DropKey.Auth", **log_kw))

    clock_kw = {"clock": clock} if clock else {}
    pastes = ContentStore(
        storage, registry, validator,
        max_ttl_seconds=settings.max_ttl_seconds,
        logger=get_logger("DropKey.Pastes", **log_kw),
        **clock_kw,
    )
    credentials = CredentialIssuer(
        settings.credential_secret,
        ttl_seconds=settings.credential_ttl_seconds,
        issuer=settings.credential_issuer,
        logger=get_logger("DropKey.Credentials", **log_kw),
        **clock_kw,
    )
    return Gateway(
        registry, authenticator, pastes, credentials,
        base_url=settings.base_url,
        logger=get_logger("DropKey.Gateway", **log_kw),
    )
