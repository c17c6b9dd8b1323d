"""Centralized configuration loading.

Environment variables (and a local .env file) are read once; the rest of the
app asks for a Settings object through get_settings().
"""

import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv

load_dotenv()

_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir, os.pardir))


def _read_secret(value_var: str, file_var: str) -> Optional[str]:
    """Return the secret from `value_var`, or the contents of the file named by `file_var`."""
    value = os.getenv(value_var)
    if value:
        return value.strip()
    path = os.getenv(file_var)
    if path and os.path.isfile(path):
        with open(path, "r") as f:
            return f.read().strip() or None
    return None


@dataclass
class Settings:
    # store
    db_path: str = field(
        default_factory=lambda: os.getenv(
            "DB_PATH", os.path.join(_ROOT, "data", "dashboard.sqlite")
        )
    )
    session_ttl_seconds: int = field(
        default_factory=lambda: int(os.getenv("SESSION_TTL_SECONDS", "3600"))
    )
    oauth_base_url: str = field(
        default_factory=lambda: os.getenv(
            "OAUTH_BASE_URL", "http://localhost:3005/auth/v1"
        )
    )

    # assistant
    gemini_api_key: Optional[str] = field(
        default_factory=lambda: _read_secret("GEMINI_API_KEY", "GEMINI_API_KEY_FILE")
    )
    chat_model: str = field(
        default_factory=lambda: os.getenv("CHAT_MODEL", "gemini-2.5-flash")
    )

    # web serving
    serve_host: str = field(default_factory=lambda: os.getenv("SERVE_HOST", "0.0.0.0"))
    serve_port: int = field(
        default_factory=lambda: int(os.getenv("SERVE_PORT", "3005"))
    )
    public_host: str = field(
        default_factory=lambda: os.getenv("PUBLIC_HOST", "localhost")
    )
    tls_cert_file: str = field(
        default_factory=lambda: os.getenv("TLS_CERT_FILE", "cert_ajc.crt")
    )
    tls_key_file: str = field(
        default_factory=lambda: os.getenv("TLS_KEY_FILE", "cert_ajc.key")
    )

    # logging
    log_file: Optional[str] = field(default_factory=lambda: os.getenv("LOG_FILE"))

    @property
    def tls_available(self) -> bool:
        return os.path.isfile(self.tls_cert_file) and os.path.isfile(
            self.tls_key_file
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
