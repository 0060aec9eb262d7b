"""Tests for selection module."""

import pytest
from totpwatch.errors import SelectionOutOfRange
from totpwatch.persistence import JsonIndexStore, MemoryIndexStore
from totpwatch.selection import SelectionState


def test_next_wraps_to_first():
    """Test next() at the last index returns to 0."""
    selection = SelectionState(3, active_index=2)
    assert selection.next() is True
    assert selection.active_index == 0


def test_previous_wraps_to_last():
    """Test previous() at index 0 goes to the last index."""
    selection = SelectionState(3)
    assert selection.previous() is True
    assert selection.active_index == 2


def test_single_credential_stays_put():
    """Test navigation with one credential always lands on 0."""
    selection = SelectionState(1)
    assert selection.next() is False
    assert selection.active_index == 0
    assert selection.previous() is False
    assert selection.active_index == 0


def test_set_index():
    """Test selecting an index directly."""
    selection = SelectionState(3)
    assert selection.set_index(2) is True
    assert selection.active_index == 2
    assert selection.set_index(2) is False


def test_set_index_out_of_range_leaves_state():
    """Test invalid requests are rejected without changing the index."""
    selection = SelectionState(3, active_index=1)

    with pytest.raises(SelectionOutOfRange):
        selection.set_index(3)
    with pytest.raises(SelectionOutOfRange):
        selection.set_index(-1)
    assert selection.active_index == 1


def test_invalid_construction():
    """Test the selection needs at least one credential and a valid index."""
    with pytest.raises(ValueError):
        SelectionState(0)
    with pytest.raises(SelectionOutOfRange):
        SelectionState(2, active_index=2)


def test_restore_and_save():
    """Test the selection round-trips through a store."""
    store = MemoryIndexStore()
    selection = SelectionState(4, active_index=3)
    selection.save(store)

    assert SelectionState.restore(4, store).active_index == 3


def test_restore_missing_defaults_to_zero():
    """Test an empty store starts at the first credential."""
    assert SelectionState.restore(4, MemoryIndexStore()).active_index == 0


def test_restore_out_of_range_clamps_to_zero():
    """Test an index from a larger credential set falls back to 0."""
    assert SelectionState.restore(2, MemoryIndexStore(5)).active_index == 0
    assert SelectionState.restore(2, MemoryIndexStore(-1)).active_index == 0


def test_restore_corrupt_file_defaults_to_zero(tmp_path):
    """Test a corrupt state file does not abort startup."""
    path = tmp_path / "state.json"
    path.write_text("{not json")

    assert SelectionState.restore(3, JsonIndexStore(path)).active_index == 0
