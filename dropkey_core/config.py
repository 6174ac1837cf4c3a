"""
dropkey_core.config
-------------------
Runtime settings. This is the only place (together with the storage
factory) that reads the environment; components receive their settings
through constructors.

Environment variables (all optional except the credential secret when a
Gateway is built):

    DROPKEY_STORAGE_PROVIDER   sqlite | memory           (sqlite)
    DROPKEY_DB_PATH            SQLite file path          (db/dropkey.db)
    DROPKEY_MAX_TTL_SECONDS    paste lifetime horizon    (604800)
    DROPKEY_CREDENTIAL_SECRET  HS256 secret for bearer credentials
    DROPKEY_CREDENTIAL_TTL     credential lifetime, s    (86400)
    DROPKEY_CREDENTIAL_ISSUER  iss claim                 (dropkey)
    DROPKEY_BASE_URL           share URL prefix
    DROPKEY_LOG_LEVEL          logging level name        (INFO)
    DROPKEY_LOG_FILE           optional log file
"""

from __future__ import annotations
from dataclasses import dataclass, fields
from typing import Any, Dict, Mapping, Optional
import os

from .constants import (
    DEFAULT_BASE_URL, DEFAULT_CREDENTIAL_ISSUER, DEFAULT_CREDENTIAL_TTL_SECONDS,
    DEFAULT_DB_PATH, ENV_PREFIX, MAX_TTL_SECONDS,
)

_ENV_NAMES = {
    "storage_provider": "STORAGE_PROVIDER",
    "sqlite_path": "DB_PATH",
    "max_ttl_seconds": "MAX_TTL_SECONDS",
    "credential_secret": "CREDENTIAL_SECRET",
    "credential_ttl_seconds": "CREDENTIAL_TTL",
    "credential_issuer": "CREDENTIAL_ISSUER",
    "base_url": "BASE_URL",
    "log_level": "LOG_LEVEL",
    "log_file": "LOG_FILE",
}


@dataclass
class Settings:
    storage_provider: str = "sqlite"
    sqlite_path: str = DEFAULT_DB_PATH
    max_ttl_seconds: int = MAX_TTL_SECONDS
    credential_secret: Optional[str] = None
    credential_ttl_seconds: int = DEFAULT_CREDENTIAL_TTL_SECONDS
    credential_issuer: str = DEFAULT_CREDENTIAL_ISSUER
    base_url: str = DEFAULT_BASE_URL
    log_level: str = "INFO"
    log_file: Optional[str] = None

    def __post_init__(self):
        for f in fields(self):
            if f.type in ("int", int):
                value = getattr(self, f.name)
                try:
                    value = int(value)
                except (TypeError, ValueError) as e:
                    raise ValueError(f"{f.name} must be an integer, got {value!r}") from e
                if value <= 0:
                    raise ValueError(f"{f.name} must be positive, got {value}")
                setattr(self, f.name, value)
        if self.max_ttl_seconds > MAX_TTL_SECONDS:
            raise ValueError(
                f"max_ttl_seconds may not exceed {MAX_TTL_SECONDS}, got {self.max_ttl_seconds}"
            )
        if self.storage_provider not in ("sqlite", "memory"):
            raise ValueError(f"Unknown storage provider: {self.storage_provider}")
        self.base_url = self.base_url.rstrip("/")

    @classmethod
    def from_dict(cls, cfg: Mapping[str, Any]) -> "Settings":
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in cfg.items() if k in known and v is not None})

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        environ = os.environ if environ is None else environ
        cfg = {}
        for attr, suffix in _ENV_NAMES.items():
            value = environ.get(ENV_PREFIX + suffix)
            if value not in (None, ""):
                cfg[attr] = value
        return cls.from_dict(cfg)

    def storage_config(self) -> Dict[str, Any]:
        return {"provider": self.storage_provider, "sqlite_path": self.sqlite_path}
