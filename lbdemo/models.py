from __future__ import annotations

import threading
from dataclasses import dataclass, field

from pydantic import BaseModel, ConfigDict

from .config import DEFAULT_H3_COLOR


# === Process-wide state shared by all request handlers ===


@dataclass
class AppState:
    """Mutable state for one server process.

    Only the request counter changes after startup; the accent color is
    fixed when the app is created. Cached lookups live on their own
    components (see ``addresses`` and ``metadata``).
    """

    h3_color: str = DEFAULT_H3_COLOR
    counter: int = 0
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def next_count(self) -> int:
        """Increment the request counter and return the new value."""
        with self._lock:
            self.counter += 1
            return self.counter


# === Per-request view model ===


class PageViewModel(BaseModel):
    model_config = ConfigDict(frozen=True)

    time: str
    counter: int
    name: str = ""
    private_ips: str = ""
    aws_az: str = ""
    h3_color: str = ""
