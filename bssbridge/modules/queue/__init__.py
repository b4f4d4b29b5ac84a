"""
Queue Module - Black Box Interface

Purpose: Hold pending commands between producer and polling consumer
Interface: submit(), poll(), complete(), status(), sweep(), clear()
Hidden: Ordering structure, cooldown table, locking, expiration logic

Can be replaced with a persistent store without touching the API layer.
"""

from .queue import (
    Command,
    CommandQueue,
    CompleteResult,
    PollResult,
    QueueErrorKind,
    QueueStatus,
    SubmitResult,
    wall_clock_ms,
)
from .sweeper import QueueSweeper

__all__ = [
    "Command",
    "CommandQueue",
    "CompleteResult",
    "PollResult",
    "QueueErrorKind",
    "QueueStatus",
    "QueueSweeper",
    "SubmitResult",
    "wall_clock_ms",
]
