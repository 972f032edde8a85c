"""Execution context passed to every import run."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable

from quickstart_images.config import Settings


@dataclass
class ExecutionContext:
    """Context provided to the orchestrator during a run.

    Attributes:
        settings: Resolved configuration for this run.
        on_progress: Callback to report progress. Called with (fraction, message)
                     where fraction is 0.0-1.0.
    """

    settings: Settings = field(default_factory=Settings)
    on_progress: Callable[[float, str], None] = field(default=lambda f, m: None)

    def progress(self, fraction: float, message: str) -> None:
        """Report progress. Convenience wrapper around on_progress."""
        self.on_progress(max(0.0, min(1.0, fraction)), message)
