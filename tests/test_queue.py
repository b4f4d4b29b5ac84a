import threading

import pytest

from bssbridge.config.provider import QueueConfig
from bssbridge.modules.queue import CommandQueue, QueueErrorKind


def test_submit_returns_id_and_position(command_queue):
    """Test submitting a command returns an id and 1-based position"""
    result = command_queue.submit("kick", "Alice", 1000)

    assert result.success is True
    assert result.queue_position == 1
    assert len(result.command_id) == 36
    assert result.error is None

    second = command_queue.submit("ban", "Bob", 1001)
    assert second.queue_position == 2
    assert second.command_id != result.command_id


def test_duplicate_within_cooldown_rejected(command_queue, clock):
    """Test a second command for the same player inside the cooldown fails"""
    command_queue.submit("kick", "Alice", 1000)

    clock.advance(59_999)
    result = command_queue.submit("ban", "Alice", 1001)

    assert result.success is False
    assert result.error == QueueErrorKind.DUPLICATE_COMMAND
    assert "Alice" in result.message
    assert len(command_queue) == 1


def test_duplicate_after_cooldown_accepted(command_queue, clock):
    """Test the same player may submit again once the cooldown has elapsed"""
    first = command_queue.submit("kick", "Alice", 1000)

    clock.advance(60_000)
    second = command_queue.submit("kick", "Alice", 1001)

    assert second.success is True
    assert second.command_id != first.command_id
    assert len(command_queue) == 2


def test_queue_full(command_queue):
    """Test the (N+1)-th submission fails when the queue holds N commands"""
    for i in range(3):
        assert command_queue.submit("kick", f"Player{i}", 1000 + i).success

    result = command_queue.submit("kick", "Overflow", 2000)

    assert result.success is False
    assert result.error == QueueErrorKind.QUEUE_FULL
    assert "max 3" in result.message


def test_queue_full_accepts_after_removal(command_queue):
    """Test a slot frees up once a pending command is completed"""
    ids = [command_queue.submit("kick", f"Player{i}", 1000).command_id for i in range(3)]
    assert command_queue.submit("kick", "Overflow", 2000).error == QueueErrorKind.QUEUE_FULL

    command_queue.complete(ids[0], True)

    result = command_queue.submit("kick", "Overflow", 2001)
    assert result.success is True
    assert result.queue_position == 3


def test_duplicate_checked_before_capacity(command_queue):
    """Test a full queue still reports duplicates for a player in cooldown"""
    for i in range(3):
        command_queue.submit("kick", f"Player{i}", 1000)

    result = command_queue.submit("ban", "Player0", 2000)

    assert result.error == QueueErrorKind.DUPLICATE_COMMAND


def test_failed_submit_has_no_side_effects(command_queue, clock):
    """Test rejected submissions don't touch the store or the cooldown table"""
    for i in range(3):
        command_queue.submit("kick", f"Player{i}", 1000)
    before = command_queue.status()

    command_queue.submit("kick", "Newcomer", 2000)
    command_queue.submit("kick", "Player1", 2000)

    after = command_queue.status()
    assert after.queue_size == before.queue_size
    assert after.cooldown_count == before.cooldown_count


def test_poll_empty(command_queue):
    """Test polling an empty queue"""
    result = command_queue.poll()

    assert result.has_command is False
    assert result.command is None


def test_poll_returns_oldest_and_is_stable(command_queue):
    """Test repeated polls return the same oldest command without removing it"""
    first = command_queue.submit("kick", "Alice", 1000)
    command_queue.submit("ban", "Bob", 1001)

    polls = [command_queue.poll(device_id="phone-1") for _ in range(3)]

    assert {p.command.id for p in polls} == {first.command_id}
    assert len(command_queue) == 2
    assert polls[0].command.to_polled() == {
        "id": first.command_id,
        "type": "kick",
        "player": "Alice",
        "timestamp": 1000,
        "attempts": 0,
    }


def test_fifo_order(clock):
    """Test N poll+complete cycles return commands in submission order"""
    queue = CommandQueue(QueueConfig(max_queue_size=20), clock=clock)
    submitted = []
    for i in range(10):
        submitted.append(queue.submit("kick", f"Player{i}", 1000 + i).command_id)
        clock.advance(1)

    delivered = []
    while True:
        result = queue.poll()
        if not result.has_command:
            break
        delivered.append(result.command.id)
        queue.complete(result.command.id, True)

    assert delivered == submitted


def test_complete_success_clears_cooldown(command_queue):
    """Test successful completion lets the player be targeted again at once"""
    result = command_queue.submit("kick", "Alice", 1000)

    completed = command_queue.complete(result.command_id, True)

    assert completed.success is True
    assert completed.removed is True
    assert command_queue.status().cooldown_count == 0
    assert command_queue.submit("ban", "Alice", 1001).success is True


def test_complete_failure_keeps_cooldown(command_queue, clock):
    """Test failed completion leaves the cooldown running"""
    result = command_queue.submit("kick", "Alice", 1000)

    completed = command_queue.complete(result.command_id, False, error="player not found")

    assert completed.removed is True
    assert len(command_queue) == 0
    assert command_queue.submit("kick", "Alice", 1001).error == QueueErrorKind.DUPLICATE_COMMAND

    clock.advance(60_000)
    assert command_queue.submit("kick", "Alice", 1002).success is True


def test_complete_is_idempotent(command_queue):
    """Test completing the same id twice only removes it once"""
    result = command_queue.submit("kick", "Alice", 1000)

    first = command_queue.complete(result.command_id, True)
    second = command_queue.complete(result.command_id, True)

    assert first.removed is True
    assert second.success is True
    assert second.removed is False
    assert second.error == QueueErrorKind.COMMAND_NOT_FOUND
    assert second.message == "Command already completed or not found"


def test_complete_unknown_id(command_queue):
    """Test completing an id that never existed is not an error"""
    result = command_queue.complete("does-not-exist", False)

    assert result.success is True
    assert result.removed is False
    assert result.command_id == "does-not-exist"


def test_expiration_boundary(command_queue, clock):
    """Test a command is visible until createdAt + expiration and gone at it"""
    command_queue.submit("kick", "Alice", 1000)

    clock.advance(299_999)
    assert command_queue.poll().has_command is True
    assert command_queue.status().queue_size == 1

    clock.advance(1)
    assert command_queue.poll().has_command is False
    assert command_queue.status().queue_size == 0


def test_expiration_clears_cooldown(clock):
    """Test an expired command no longer blocks its player"""
    queue = CommandQueue(
        QueueConfig(command_expiration_ms=1_000, duplicate_cooldown_ms=60_000), clock=clock
    )
    queue.submit("kick", "Alice", 1000)

    clock.advance(1_000)
    assert queue.sweep() == 1
    assert queue.status().cooldown_count == 0

    assert queue.submit("kick", "Alice", 1001).success is True


def test_sweep_collects_stale_cooldowns(command_queue, clock):
    """Test cooldowns older than the window without a command are dropped"""
    result = command_queue.submit("kick", "Alice", 1000)
    command_queue.complete(result.command_id, False)
    assert command_queue.status().cooldown_count == 1

    clock.advance(60_000)
    assert command_queue.status().cooldown_count == 1

    clock.advance(1)
    assert command_queue.status().cooldown_count == 0


def test_sweep_keeps_cooldown_of_pending_command(command_queue, clock):
    """Test a stale-aged cooldown survives while its command is still pending"""
    command_queue.submit("kick", "Alice", 1000)

    clock.advance(120_000)
    status = command_queue.status()

    assert status.queue_size == 1
    assert status.cooldown_count == 1


def test_status(command_queue, clock):
    """Test status reports sizes and the oldest command's age"""
    empty = command_queue.status()
    assert empty.queue_size == 0
    assert empty.max_queue_size == 3
    assert empty.cooldown_count == 0
    assert empty.oldest_command_age_ms == 0

    command_queue.submit("kick", "Alice", 1000)
    clock.advance(5_000)
    command_queue.submit("ban", "Bob", 1001)
    clock.advance(2_500)

    status = command_queue.status()
    assert status.queue_size == 2
    assert status.cooldown_count == 2
    assert status.oldest_command_age_ms == 7_500


def test_clear(command_queue):
    """Test clear drops commands and cooldowns"""
    command_queue.submit("kick", "Alice", 1000)
    command_queue.submit("ban", "Bob", 1001)

    assert command_queue.clear() == 2

    status = command_queue.status()
    assert status.queue_size == 0
    assert status.cooldown_count == 0
    assert command_queue.submit("kick", "Alice", 1002).success is True


def test_example_walkthrough(command_queue):
    """Test the kick-Alice scenario end to end"""
    submitted = command_queue.submit("kick", "Alice", 1000)
    assert submitted.queue_position == 1

    assert command_queue.submit("kick", "Alice", 1001).error == QueueErrorKind.DUPLICATE_COMMAND

    polled = command_queue.poll()
    assert polled.command.id == submitted.command_id

    assert command_queue.complete(submitted.command_id, True).removed is True
    assert command_queue.poll().has_command is False


def test_default_config():
    """Test the documented defaults"""
    queue = CommandQueue()

    assert queue.config.max_queue_size == 50
    assert queue.config.command_expiration_ms == 300_000
    assert queue.config.duplicate_cooldown_ms == 60_000


@pytest.mark.slow
def test_concurrent_submissions_same_player(clock):
    """Test concurrent submissions for one player accept exactly one"""
    queue = CommandQueue(QueueConfig(max_queue_size=100), clock=clock)
    results = []
    barrier = threading.Barrier(20)

    def worker():
        barrier.wait()
        results.append(queue.submit("kick", "Alice", 1000))

    threads = [threading.Thread(target=worker) for _ in range(20)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    accepted = [r for r in results if r.success]
    assert len(accepted) == 1
    assert len(queue) == 1


@pytest.mark.slow
def test_concurrent_submissions_respect_capacity(clock):
    """Test concurrent submissions never overfill the queue"""
    queue = CommandQueue(QueueConfig(max_queue_size=5), clock=clock)
    results = []
    lock = threading.Lock()

    def worker(i):
        result = queue.submit("kick", f"Player{i}", 1000)
        with lock:
            results.append(result)

    threads = [threading.Thread(target=worker, args=(i,)) for i in range(30)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(queue) == 5
    assert sum(1 for r in results if r.success) == 5
    assert len({r.command_id for r in results if r.success}) == 5
