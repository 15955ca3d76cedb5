"""Tests for update id tracking."""

from avatar_elite.services.updates import RecentUpdates


def test_repeated_update_is_rejected() -> None:
    updates = RecentUpdates()

    assert updates.accept(1)
    assert updates.accept(2)
    assert not updates.accept(1)


def test_oldest_ids_are_forgotten_past_capacity() -> None:
    updates = RecentUpdates(capacity=2)
    for update_id in (1, 2, 3):
        updates.accept(update_id)

    assert len(updates) == 2
    assert updates.accept(1)
    assert not updates.accept(3)
