"""Per-category line buffers for client diagnostics.

Components never print; they are handed a ``LogManager`` (or a callback
from ``logger()``) and the shell shows a category on ``/log``.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from typing import Callable, Deque, Dict, Optional

CATEGORIES = ("events", "errors", "debug", "traffic")


@dataclass
class LogManager:
    """Bounded line buffers keyed by category (events, errors, debug, traffic)."""

    max_lines: int = 2000
    buffers: Dict[str, Deque[str]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        for category in CATEGORIES:
            self.buffers.setdefault(category, deque(maxlen=self.max_lines))

    def add(self, category: str, message: str) -> None:
        if category not in self.buffers:
            self.buffers[category] = deque(maxlen=self.max_lines)
        # max_lines counts lines, not calls
        self.buffers[category].extend(message.splitlines() or [message])

    def text(self, category: str, last: Optional[int] = None) -> str:
        lines = list(self.buffers.get(category, ()))
        if last is not None:
            lines = lines[-last:] if last > 0 else []
        return "\n".join(lines)

    def logger(self, category: str) -> Callable[[str], None]:
        """Callback bound to one category, for ``debug_logger=`` style hooks."""
        def log(message: str) -> None:
            self.add(category, message)
        return log
