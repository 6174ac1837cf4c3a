"""
DropKey Core Package
====================
Server-side core for a paste service that stores client-encrypted content
and authenticates writers by Ed25519 key possession. No passwords and no
server-held user secrets.

Provides:
- Validator: key/signature decoding and Ed25519 verification
- IdentityRegistry: public-key identities with unique keys
- Authenticator: stateless challenge/response
- ContentStore: signed, time-bounded pastes with lazy expiry
- Gateway: transport-facing boundary (bearer credentials, status mapping)
- Pluggable storage (SQLite default, in-memory)
"""

from .auth import AuthResult, AuthState, Authenticator
from .boundary import Gateway, Response, build_gateway, status_for
from .config import Settings
from .credentials import Claims, CredentialIssuer
from .crypto import Validator
from .errors import DropKeyError, ErrorClass, ErrorKind
from .identity import IdentityRegistry
from .pastes import ContentStore

__version__ = "0.1.0"

__all__ = [
    "AuthResult",
    "AuthState",
    "Authenticator",
    "Claims",
    "ContentStore",
    "CredentialIssuer",
    "DropKeyError",
    "ErrorClass",
    "ErrorKind",
    "Gateway",
    "IdentityRegistry",
    "Response",
    "Settings",
    "Validator",
    "build_gateway",
    "status_for",
]
