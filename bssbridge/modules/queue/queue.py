import logging
import threading
import time
import uuid
from collections import OrderedDict
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Optional

from bssbridge.config.provider import QueueConfig

logger = logging.getLogger(__name__)

Clock = Callable[[], int]


def wall_clock_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return time.time_ns() // 1_000_000


class QueueErrorKind(str, Enum):
    """Failure kinds reported by the queue engine."""

    DUPLICATE_COMMAND = "DUPLICATE_COMMAND"
    QUEUE_FULL = "QUEUE_FULL"
    COMMAND_NOT_FOUND = "COMMAND_NOT_FOUND"


@dataclass(frozen=True)
class Command:
    """A pending command. Never updated in place."""

    id: str
    type: str
    player: str
    client_timestamp: int
    created_at: int
    expires_at: int
    attempts: int = 0

    def to_polled(self) -> dict:
        """Consumer-facing snapshot returned by poll."""
        return {
            "id": self.id,
            "type": self.type,
            "player": self.player,
            "timestamp": self.client_timestamp,
            "attempts": self.attempts,
        }


@dataclass
class SubmitResult:
    success: bool
    command_id: Optional[str] = None
    queue_position: Optional[int] = None
    error: Optional[QueueErrorKind] = None
    message: Optional[str] = None


@dataclass
class PollResult:
    has_command: bool
    command: Optional[Command] = None


@dataclass
class CompleteResult:
    success: bool
    removed: bool
    command_id: str
    message: Optional[str] = None
    error: Optional[QueueErrorKind] = None


@dataclass
class QueueStatus:
    queue_size: int
    max_queue_size: int
    cooldown_count: int
    oldest_command_age_ms: int


class CommandQueue:
    """
    In-memory FIFO command queue with duplicate suppression and expiration.

    All state is guarded by a single lock; every public method runs as one
    atomic step relative to every other, including the sweep that poll and
    status perform before reading.
    """

    def __init__(self, config: Optional[QueueConfig] = None, clock: Optional[Clock] = None):
        """
        Initialize queue engine.

        Args:
            config: Queue tuning (capacity, expiration and cooldown windows)
            clock: Zero-argument callable returning epoch milliseconds
        """
        self.config = config or QueueConfig()
        self._clock = clock or wall_clock_ms
        self._lock = threading.Lock()

        # Arrival order is the iteration order of this mapping.
        self._commands: "OrderedDict[str, Command]" = OrderedDict()
        self._cooldowns: Dict[str, int] = {}

    @property
    def max_queue_size(self) -> int:
        return self.config.max_queue_size

    def __len__(self) -> int:
        with self._lock:
            return len(self._commands)

    def submit(self, type: str, player: str, client_timestamp: int) -> SubmitResult:
        """
        Add a command to the queue.

        Args:
            type: Command type, already validated by the caller
            player: Sanitized player identifier
            client_timestamp: Caller-supplied timestamp, passed through

        Returns:
            SubmitResult with the new command id and its 1-based position

        Logic:
        1. Reject if the player is still inside the cooldown window
        2. Reject if the queue is at capacity
        3. Insert and (re)start the player's cooldown
        """
        with self._lock:
            now = self._clock()

            if self._is_duplicate(player, now):
                logger.warning(f"Duplicate command rejected for player {player}")
                return SubmitResult(
                    success=False,
                    error=QueueErrorKind.DUPLICATE_COMMAND,
                    message=f"Command for player {player} already exists within cooldown period",
                )

            if len(self._commands) >= self.config.max_queue_size:
                logger.warning(f"Queue full ({self.config.max_queue_size}), rejecting command for {player}")
                return SubmitResult(
                    success=False,
                    error=QueueErrorKind.QUEUE_FULL,
                    message=f"Queue is full (max {self.config.max_queue_size} commands)",
                )

            command = Command(
                id=str(uuid.uuid4()),
                type=type,
                player=player,
                client_timestamp=client_timestamp,
                created_at=now,
                expires_at=now + self.config.command_expiration_ms,
            )
            self._commands[command.id] = command
            self._cooldowns[player] = now

            position = len(self._commands)
            logger.info(f"Queued {type} command {command.id} for {player} at position {position}")

            return SubmitResult(success=True, command_id=command.id, queue_position=position)

    def poll(self, device_id: Optional[str] = None) -> PollResult:
        """
        Return the oldest pending command without removing it.

        The same command is returned on every poll until it is completed or
        expires. device_id is only used for logging.
        """
        with self._lock:
            self._sweep_locked()

            if not self._commands:
                return PollResult(has_command=False)

            command = next(iter(self._commands.values()))
            if device_id:
                logger.debug(f"Device {device_id} polled command {command.id}")

            return PollResult(has_command=True, command=command)

    def complete(self, command_id: str, success: bool, error: Optional[str] = None) -> CompleteResult:
        """
        Acknowledge a command and remove it from the queue.

        Completing an unknown or already removed id is not an error: the
        result reports success with removed=False.

        Args:
            command_id: Command identifier
            success: Whether the consumer executed the command
            error: Optional consumer error message, logged only

        Returns:
            CompleteResult
        """
        with self._lock:
            command = self._commands.pop(command_id, None)

            if command is None:
                logger.debug(f"Completion for unknown command {command_id}")
                return CompleteResult(
                    success=True,
                    removed=False,
                    command_id=command_id,
                    message="Command already completed or not found",
                    error=QueueErrorKind.COMMAND_NOT_FOUND,
                )

            # A failed command keeps its cooldown so it is not re-issued straight away.
            if success:
                self._cooldowns.pop(command.player, None)
                logger.info(f"Command {command_id} ({command.type} {command.player}) completed")
            else:
                logger.info(f"Command {command_id} ({command.type} {command.player}) failed: {error}")

            return CompleteResult(success=True, removed=True, command_id=command_id)

    def status(self) -> QueueStatus:
        """Sweep, then report queue occupancy and the oldest command's age."""
        with self._lock:
            self._sweep_locked()
            now = self._clock()

            oldest_age = 0
            if self._commands:
                oldest = next(iter(self._commands.values()))
                oldest_age = now - oldest.created_at

            return QueueStatus(
                queue_size=len(self._commands),
                max_queue_size=self.config.max_queue_size,
                cooldown_count=len(self._cooldowns),
                oldest_command_age_ms=oldest_age,
            )

    def sweep(self) -> int:
        """
        Remove expired commands and stale cooldown entries.

        Returns:
            Number of commands that expired
        """
        with self._lock:
            return self._sweep_locked()

    def clear(self) -> int:
        """
        Drop all pending commands and cooldowns.

        Used for environment resets between test runs or deployments.

        Returns:
            Number of commands dropped
        """
        with self._lock:
            count = len(self._commands)
            self._commands.clear()
            self._cooldowns.clear()

        logger.info(f"Queue cleared ({count} commands dropped)")
        return count

    def _is_duplicate(self, player: str, now: int) -> bool:
        last = self._cooldowns.get(player)
        if last is None:
            return False
        return (now - last) < self.config.duplicate_cooldown_ms

    def _sweep_locked(self) -> int:
        """Sweep body; caller must hold the lock."""
        now = self._clock()

        expired = [cmd for cmd in self._commands.values() if now >= cmd.expires_at]
        for command in expired:
            del self._commands[command.id]
            # An expired command must not keep blocking its player.
            self._cooldowns.pop(command.player, None)
            logger.info(f"Command {command.id} for {command.player} expired")

        active_players = {cmd.player for cmd in self._commands.values()}
        stale = [
            player
            for player, ts in self._cooldowns.items()
            if (now - ts) > self.config.duplicate_cooldown_ms and player not in active_players
        ]
        for player in stale:
            del self._cooldowns[player]

        return len(expired)
