"""Tests for decode ticket ordering and cancellation."""

from image_edit_dialog.loader import DecodeTracker


def test_tokens_strictly_increase():
    tracker = DecodeTracker()
    tokens = [tracker.issue(b"x").token for _ in range(5)]
    assert tokens == sorted(set(tokens))


def test_only_latest_ticket_settles():
    tracker = DecodeTracker()
    first = tracker.issue(b"a", "undo")
    second = tracker.issue(b"b", "undo")
    assert tracker.settle(first.token) is None
    settled = tracker.settle(second.token)
    assert settled == second
    assert not tracker.pending


def test_ticket_settles_once():
    tracker = DecodeTracker()
    ticket = tracker.issue(b"a")
    assert tracker.settle(ticket.token) is ticket
    assert tracker.settle(ticket.token) is None


def test_invalidate_makes_outstanding_ticket_stale():
    tracker = DecodeTracker()
    ticket = tracker.issue(b"a")
    tracker.invalidate()
    assert not tracker.is_current(ticket.token)
    assert tracker.settle(ticket.token) is None
    # A new ticket after invalidation never reuses the old token
    assert tracker.issue(b"b").token > ticket.token
