import pytest

from wwkit.semaphores import Semaphore, SemaphoreRegistry


class FakeClock:
    def __init__(self) -> None:
        self.now = 0

    def __call__(self) -> int:
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def woken():
    return []


@pytest.fixture
def registry(clock, woken):
    return SemaphoreRegistry(clock, woken.append)


def test_ids_are_sequential_from_zero(registry):
    assert [registry.create(0), registry.create(1), registry.create(2)] == [0, 1, 2]
    assert 1 in registry
    assert 3 not in registry


def test_get_returns_initial_count(registry):
    sid = registry.create(5)
    semaphore = registry.get(sid)
    assert semaphore.count == 5
    assert semaphore.waiting == []
    assert semaphore.privileged is False


def test_get_missing_raises(registry):
    with pytest.raises(KeyError):
        registry.get(42)


def test_wait_takes_available_units(registry):
    sid = registry.create(2)
    assert registry.wait(sid, 10) is True
    assert registry.wait(sid, 11) is True
    assert registry.get(sid).count == 0
    assert registry.wait(sid, 12) is False
    assert registry.get(sid).waiting == [12]


def test_wait_missing_raises(registry):
    with pytest.raises(KeyError):
        registry.wait(7, 1)


def test_signal_without_waiters_increments(registry, woken):
    sid = registry.create(0)
    assert registry.signal(sid) is True
    assert registry.signal(sid, 3) is True
    assert registry.get(sid).count == 4
    assert woken == []


def test_signal_wakes_most_recent_waiter_first(registry, woken):
    sid = registry.create(0)
    for pid in (1, 2, 3):
        assert registry.wait(sid, pid) is False
    assert registry.signal(sid) is True
    assert woken == [3]
    assert registry.get(sid).waiting == [1, 2]
    assert registry.get(sid).count == 0


def test_signal_surplus_goes_to_count(registry, woken):
    sid = registry.create(0)
    registry.wait(sid, 1)
    registry.wait(sid, 2)
    registry.signal(sid, 5)
    assert woken == [2, 1]
    assert registry.get(sid).waiting == []
    assert registry.get(sid).count == 3


def test_signal_saturated_returns_false(registry):
    sid = registry.create((1 << 64) - 1)
    assert registry.signal(sid) is False
    assert registry.get(sid).count == (1 << 64) - 1


def test_signal_missing_raises(registry):
    with pytest.raises(KeyError):
        registry.signal(3)


def test_delete_removes(registry):
    sid = registry.create(0)
    registry.delete(sid)
    assert sid not in registry
    with pytest.raises(KeyError):
        registry.delete(sid)


def test_delete_with_waiters_fails(registry):
    sid = registry.create(0)
    registry.wait(sid, 4)
    with pytest.raises(RuntimeError):
        registry.delete(sid)
    assert sid in registry


def test_deleted_ids_are_not_reused(registry):
    first = registry.create(0)
    registry.delete(first)
    assert registry.create(0) != first


def test_signal_after_fires_when_due(registry, clock, woken):
    sid = registry.create(0)
    registry.wait(sid, 9)
    clock.now = 100
    registry.signal_after(sid, 50)
    clock.now = 149
    assert registry.fire_expired() == []
    assert woken == []
    clock.now = 150
    assert registry.fire_expired() == [sid]
    assert woken == [9]
    assert registry.fire_expired() == []


def test_alarms_fire_in_expiration_order(registry, clock):
    a = registry.create(0)
    b = registry.create(0)
    c = registry.create(0)
    registry.signal_after(a, 30)
    registry.signal_after(b, 10)
    registry.signal_after(c, 20)
    clock.now = 1000
    assert registry.fire_expired() == [b, c, a]
    assert [registry.get(s).count for s in (a, b, c)] == [1, 1, 1]


def test_alarm_for_deleted_semaphore_is_dropped(registry, clock):
    sid = registry.create(0)
    registry.signal_after(sid, 5)
    registry.delete(sid)
    clock.now = 10
    assert registry.fire_expired() == []


def test_signal_after_missing_raises(registry):
    with pytest.raises(KeyError):
        registry.signal_after(0, 10)


def test_semaphore_defaults_are_independent():
    first = Semaphore()
    second = Semaphore()
    first.waiting.append(1)
    assert second.waiting == []
    assert first.count == 0