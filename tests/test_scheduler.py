import pytest

from redcircuit.backend.scheduler import TickPriority, TickScheduler


def test_priorities_order_highest_first():
    scheduler = TickScheduler()
    scheduler.schedule_tick("normal", 1, TickPriority.NORMAL)
    scheduler.schedule_tick("high", 1, TickPriority.HIGH)
    scheduler.schedule_tick("higher", 1, TickPriority.HIGHER)
    scheduler.schedule_tick("highest", 1, TickPriority.HIGHEST)
    assert scheduler.next_tick() == ["highest", "higher", "high", "normal"]


def test_next_tick_returns_nodes_in_priority_order():
    scheduler = TickScheduler()
    scheduler.schedule_tick(1, 1, TickPriority.NORMAL)
    scheduler.schedule_tick(2, 1, TickPriority.HIGHEST)
    scheduler.schedule_tick(3, 1, TickPriority.HIGH)
    scheduler.schedule_tick(4, 1, TickPriority.HIGHER)
    scheduler.schedule_tick(5, 1, TickPriority.HIGHEST)
    assert scheduler.next_tick() == [2, 5, 4, 3, 1]


def test_delayed_tick_fires_on_the_right_tick():
    scheduler = TickScheduler()
    scheduler.schedule_tick(9, 3, TickPriority.NORMAL)
    assert scheduler.next_tick() == []
    assert scheduler.next_tick() == []
    assert scheduler.next_tick() == [9]
    assert scheduler.next_tick() == []


def test_queue_is_emptied_after_firing():
    scheduler = TickScheduler()
    scheduler.schedule_tick(7, 1, TickPriority.NORMAL)
    assert scheduler.next_tick() == [7]
    for _ in range(TickScheduler.NUM_QUEUES):
        assert scheduler.next_tick() == []


def test_delay_of_sixteen_wraps_round_the_ring():
    scheduler = TickScheduler()
    scheduler.schedule_tick(8, TickScheduler.NUM_QUEUES, TickPriority.NORMAL)
    fired = [scheduler.next_tick() for _ in range(TickScheduler.NUM_QUEUES)]
    assert fired[-1] == [8]
    assert all(ticks == [] for ticks in fired[:-1])


def test_drain_reports_remaining_delay():
    scheduler = TickScheduler()
    scheduler.schedule_tick(1, 4, TickPriority.HIGH)
    scheduler.next_tick()
    assert scheduler.drain() == [(1, 3, TickPriority.HIGH)]


def test_drain_clears_everything():
    scheduler = TickScheduler()
    scheduler.schedule_tick(1, 2, TickPriority.NORMAL)
    scheduler.schedule_tick(2, 5, TickPriority.HIGHEST)
    drained = scheduler.drain()
    assert sorted(node for node, _, _ in drained) == [1, 2]
    assert scheduler.drain() == []
    for _ in range(TickScheduler.NUM_QUEUES):
        assert scheduler.next_tick() == []


@pytest.mark.parametrize("delay", range(1, 16))
def test_drain_delay_matches_scheduled_delay(delay):
    scheduler = TickScheduler()
    for _ in range(5):
        scheduler.next_tick()
    scheduler.schedule_tick(3, delay, TickPriority.NORMAL)
    assert scheduler.drain() == [(3, delay, TickPriority.NORMAL)]


def test_negative_delay_is_rejected():
    scheduler = TickScheduler()
    with pytest.raises(ValueError):
        scheduler.schedule_tick(0, -1, TickPriority.NORMAL)