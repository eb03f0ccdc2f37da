# scrollsource/core/base_stage.py
from __future__ import annotations

from abc import ABC
from typing import Any


class Stage(ABC):  # noqa: B024
    """
    Minimal lifecycle base for all pipeline stages.
    Subclasses override open()/close() if they need resources (clients, cursors, etc.).
    """

    def open(self, split: Any = None) -> None:  # noqa: B027
        """Per-run init for one unit of work. Called once before records are pulled."""
        pass

    def close(self) -> None:  # noqa: B027
        """Per-run teardown. Called once after work finishes (success or failure)."""
        pass


__all__ = ["Stage"]
