from __future__ import annotations

import os
from typing import Mapping, Optional

from pydantic import BaseModel, ConfigDict

DEFAULT_PORT = 8080
DEFAULT_H3_COLOR = "33, 119, 218"  # blue
# DEFAULT_H3_COLOR = "63, 177, 12"  # green
# DEFAULT_H3_COLOR = "248, 52, 0"  # red

ECS_METADATA_ENV = "ECS_CONTAINER_METADATA_URI_V4"
IMDS_BASE_URL = "http://169.254.169.254"
METADATA_TIMEOUT = 1.0
TOKEN_TTL_SECONDS = 120

TIMEZONE = "Asia/Tokyo"

USAGE = """Usage:
\t<command> <port>"""


class Settings(BaseModel):
    """Startup configuration. Immutable once the server is running."""

    model_config = ConfigDict(frozen=True)

    h3_color: str = DEFAULT_H3_COLOR
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if environ is None else environ
        return cls(
            h3_color=env.get("H3_COLOR", DEFAULT_H3_COLOR),
            log_level=env.get("LOG_LEVEL", "INFO"),
        )


def parse_port(value: Optional[str]) -> int:
    """Return ``value`` as a TCP port, or ``DEFAULT_PORT`` if it is not one."""
    if not value or not value.isascii() or not value.isdigit():
        return DEFAULT_PORT
    port = int(value)
    if port > 65535:
        return DEFAULT_PORT
    return port
