from unittest.mock import MagicMock
from tfvc_cli.core.locking import LockSelection, can_all_be_locked, can_all_be_unlocked
from tfvc_cli.models import ExtendedItemInfo

def item(name, lock="none"):
    return ExtendedItemInfo(server_item=f"$/P/{name}", lock=lock)

def test_can_all_be_locked():
    assert can_all_be_locked([item("a"), item("b")])
    assert not can_all_be_locked([item("a"), item("b", "checkin")])
    assert not can_all_be_locked([])

def test_can_all_be_unlocked():
    assert can_all_be_unlocked([item("a", "checkout"), item("b", "checkin")])
    assert not can_all_be_unlocked([item("a", "checkout"), item("b")])
    assert not can_all_be_unlocked([])

def test_initial_selection_follows_first_item():
    selection = LockSelection([item("a"), item("b", "checkin"), item("c")])
    assert selection.selected == [True, False, True]
    assert selection.can_lock
    assert not selection.can_unlock

    selection = LockSelection([item("a", "checkout"), item("b"), item("c", "checkin")])
    assert [i.server_item for i in selection.selected_items] == ["$/P/a", "$/P/c"]
    assert selection.can_unlock

def test_set_selected_notifies_listeners():
    selection = LockSelection([item("a"), item("b", "checkin")])
    listener = MagicMock()
    selection.add_listener(listener)

    selection.set_selected(1, True)

    listener.assert_called_once_with()
    assert not selection.can_lock
    assert not selection.can_unlock

    selection.remove_listener(listener)
    selection.set_selected(1, False)
    assert listener.call_count == 1

def test_empty_selection():
    selection = LockSelection([])
    assert selection.selected_items == []
    assert not selection.can_lock
    assert not selection.can_unlock
