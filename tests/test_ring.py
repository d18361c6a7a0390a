import pytest

from wwkit.ring import CycleQueue


def test_fifo_order():
    queue = CycleQueue(4)
    for item in "abc":
        queue.push(item)
    assert [queue.pop() for _ in range(3)] == ["a", "b", "c"]
    assert len(queue) == 0


def test_full_and_overflow():
    queue = CycleQueue(2)
    queue.push(1)
    assert not queue.full()
    queue.push(2)
    assert queue.full()
    with pytest.raises(IndexError):
        queue.push(3)
    with pytest.raises(IndexError):
        queue.push_front(3)
    assert queue.items() == [1, 2]


def test_empty_operations_raise():
    queue = CycleQueue(3)
    with pytest.raises(IndexError):
        queue.pop()
    with pytest.raises(IndexError):
        queue.pop_back()
    with pytest.raises(IndexError):
        queue.front()


def test_zero_capacity_is_always_full():
    queue = CycleQueue(0)
    assert queue.full()
    with pytest.raises(IndexError):
        queue.push("x")


def test_negative_capacity_rejected():
    with pytest.raises(ValueError):
        CycleQueue(-1)


def test_push_front_and_pop_back():
    queue = CycleQueue(4)
    queue.push(2)
    queue.push_front(1)
    queue.push(3)
    assert queue.items() == [1, 2, 3]
    assert queue.front() == 1
    assert queue.pop_back() == 3
    assert queue.items() == [1, 2]


def test_wrap_around_keeps_order():
    queue = CycleQueue(3)
    for value in range(3):
        queue.push(value)
    for step in range(3, 10):
        assert queue.pop() == step - 3
        queue.push(step)
        assert queue.items() == list(range(step - 2, step + 1))
    assert len(queue) == 3


def test_front_does_not_remove():
    queue = CycleQueue(2)
    queue.push("only")
    assert queue.front() == "only"
    assert len(queue) == 1
    assert queue.pop() == "only"


def test_clear_resets():
    queue = CycleQueue(3)
    queue.push(1)
    queue.push(2)
    queue.clear()
    assert len(queue) == 0
    assert queue.items() == []
    queue.push(5)
    assert queue.items() == [5]


def test_deque_mixed_usage_invariant():
    queue = CycleQueue(5)
    reference = []
    operations = [("push", 1), ("push_front", 0), ("push", 2), ("pop", None),
                  ("pop_back", None), ("push_front", 7), ("push", 8)]
    for name, arg in operations:
        if name == "push":
            queue.push(arg)
            reference.append(arg)
        elif name == "push_front":
            queue.push_front(arg)
            reference.insert(0, arg)
        elif name == "pop":
            assert queue.pop() == reference.pop(0)
        else:
            assert queue.pop_back() == reference.pop()
        assert queue.items() == reference
        assert len(queue) == len(reference)