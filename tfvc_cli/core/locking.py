from typing import Callable, List, Sequence

from tfvc_cli.models import ExtendedItemInfo, LockLevel


def _is_locked(item: ExtendedItemInfo) -> bool:
    return LockLevel.from_string(item.lock) != LockLevel.NONE


def can_all_be_locked(items: Sequence[ExtendedItemInfo]) -> bool:
    return bool(items) and not any(_is_locked(i) for i in items)


def can_all_be_unlocked(items: Sequence[ExtendedItemInfo]) -> bool:
    return bool(items) and all(_is_locked(i) for i in items)


class LockSelection:
    """
    Selectable list of items for a lock/unlock choice.

    Items like the first one start selected: when the first item is
    unlocked every unlocked item is selected, otherwise every locked item
    is. Either locking or unlocking is therefore always possible on the
    initial selection.
    """

    def __init__(self, items: Sequence[ExtendedItemInfo]):
        self.items: List[ExtendedItemInfo] = list(items)
        self.selected: List[bool] = [False] * len(self.items)
        self._listeners: List[Callable[[], None]] = []
        if self.items:
            select_locked = _is_locked(self.items[0])
            self.selected = [_is_locked(i) == select_locked for i in self.items]

    def add_listener(self, listener: Callable[[], None]) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: Callable[[], None]) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def set_selected(self, index: int, selected: bool) -> None:
        self.selected[index] = selected
        for listener in list(self._listeners):
            listener()

    @property
    def selected_items(self) -> List[ExtendedItemInfo]:
        return [item for item, chosen in zip(self.items, self.selected) if chosen]

    @property
    def can_lock(self) -> bool:
        return can_all_be_locked(self.selected_items)

    @property
    def can_unlock(self) -> bool:
        return can_all_be_unlocked(self.selected_items)
