"""Tests for the truncate-then-append undo history."""

import pytest

from image_edit_dialog.history import History


def test_empty_history():
    history = History()
    assert len(history) == 0
    assert history.index == -1
    assert history.current is None
    assert history.undo() is None
    assert not history.can_undo


def test_reset_seeds_single_entry():
    history = History()
    history.commit(b"x")
    history.reset(b"a")
    assert len(history) == 1
    assert history.index == 0
    assert history.current == b"a"
    assert not history.can_undo


def test_commit_and_undo():
    history = History()
    history.reset(b"a")
    history.commit(b"b")
    history.commit(b"c")
    assert history.index == 2
    assert history.undo() == b"b"
    assert history.undo() == b"a"
    assert history.undo() is None
    assert history.index == 0


def test_commit_after_undo_truncates():
    history = History()
    history.reset(b"a")
    history.commit(b"b")
    history.commit(b"c")
    history.undo()
    history.undo()
    history.commit(b"d")
    assert len(history) == 2
    assert history.current == b"d"
    assert not history.can_redo
    assert history.undo() == b"a"


def test_redo_walks_forward_until_next_commit():
    history = History()
    history.reset(b"a")
    history.commit(b"b")
    history.undo()
    assert history.can_redo
    assert history.redo() == b"b"
    assert history.redo() is None


def test_seek_moves_to_existing_entry():
    history = History()
    history.reset(b"a")
    history.commit(b"b")
    history.commit(b"c")
    history.undo()
    history.undo()
    assert history.seek(2) == b"c"
    assert history.index == 2
    assert not history.can_redo


def test_seek_out_of_range():
    history = History()
    history.reset(b"a")
    with pytest.raises(IndexError):
        history.seek(1)
    assert history.index == 0
