import logging
import weakref
from typing import Any, Callable, Iterator, List, Optional, Tuple

from ChangeNotifier import ChangeNotifier


logger = logging.getLogger(__name__)

MIN_CAPACITY = 1
MAX_CAPACITY = 100
DEFAULT_CAPACITY = 20

UNNAMED_LABEL = 'Unnamed'


def clamp_capacity(capacity: int) -> int:
    if isinstance(capacity, bool) or not isinstance(capacity, int):
        raise TypeError(f'Capacity must be an int, got {type(capacity).__name__}')
    return max(MIN_CAPACITY, min(capacity, MAX_CAPACITY))


class HistoryEntry:
    """
    One recorded visit. Holds a weak reference to the visited object so the history
    never extends its lifetime.

    An entry is valid while the referenced object is alive. "Alive" means the weak
    reference still resolves and, when a liveness predicate is given, the predicate
    accepts the object (host systems may destroy an object while Python still holds it).
    """
    __slots__ = ('__ref', '__is_alive')

    def __init__(self, obj: Any, is_alive: Optional[Callable[[Any], bool]] = None):
        # TypeError for objects without weak reference support (int, str, dict...)
        self.__ref = weakref.ref(obj)
        self.__is_alive = is_alive

    @property
    def target(self) -> Any or None:
        obj = self.__ref()
        if obj is None:
            return None
        if self.__is_alive is not None and not self.__is_alive(obj):
            return None
        return obj

    @property
    def is_valid(self) -> bool:
        return self.target is not None

    def refers_to(self, obj: Any) -> bool:
        target = self.target
        return target is not None and target is obj

    def __repr__(self):
        target = self.target
        return f'<HistoryEntry {target!r}>' if target is not None else '<HistoryEntry (stale)>'


class HistoryTracker:
    """
    Bounded, branch-truncating navigation history over weakly referenced objects.

    The tracker keeps a sequence of visited objects and a cursor, enabling browser-like
    backward/forward navigation. Recording a visit while the cursor is not at the tail
    discards the "future" branch. Objects are owned elsewhere and may disappear at any
    time; such entries are stale and get pruned lazily whenever the history is read.

    Attributes:
        capacity (int): Maximum number of entries, clamped to [1, 100]. Oldest entries
            are evicted when exceeded.
        cursor (int): Index of the current entry, -1 when the history is empty.
        notifier (ChangeNotifier): Broadcasts `history_changed` after every mutation.
            Observers implement `on_history_changed(tracker)`.

    Methods:
        record_visit(obj):
            Prunes stale entries, ignores a re-visit of the current object, truncates
            the future branch, appends `obj` and evicts the oldest entries beyond capacity.

        navigate_backward() / navigate_forward():
            Prunes stale entries, then moves the cursor by one step and returns the object
            there. Returns `None` at either end of the history.

        select_index(index):
            Moves the cursor to `index` and returns the object there, `None` if invalid.

        delete_current():
            Removes the entry under the cursor. The cursor stays at the same index,
            clamped to the new bounds.

        clear():
            Drops every entry.

        prune_stale():
            Removes entries whose object no longer exists.

    Invalid requests (navigating past either end, deleting from an empty history) are
    silent no-ops that report "not performed" through their return values.

    Example:
        tracker = HistoryTracker(capacity=3)
        tracker.record_visit(page_a)
        tracker.record_visit(page_b)
        tracker.navigate_backward()     # Returns page_a
        tracker.record_visit(page_c)    # Discards page_b
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY,
                 is_alive: Optional[Callable[[Any], bool]] = None,
                 notifier: Optional[ChangeNotifier] = None):
        self.__capacity = clamp_capacity(capacity)
        self.__is_alive = is_alive
        self.__sequence: List[HistoryEntry] = []
        self.__cursor = -1
        self.notifier = notifier if notifier is not None else ChangeNotifier()

    # ------------------------------------------------------------------------------------------------------------------

    @property
    def capacity(self) -> int:
        return self.__capacity

    @capacity.setter
    def capacity(self, capacity: int):
        self.set_capacity(capacity)

    @property
    def cursor(self) -> int:
        return self.__cursor

    def get_capacity(self) -> int:
        return self.__capacity

    def set_capacity(self, capacity: int):
        capacity = clamp_capacity(capacity)
        if capacity == self.__capacity:
            return
        self.__capacity = capacity
        if self.__evict_overflow():
            self.__notify_changed()

    def get_cursor(self) -> int:
        return self.__cursor

    def is_valid_index(self, index: int) -> bool:
        return 0 <= index < len(self.__sequence)

    def get_entries(self) -> List[Any]:
        """Live objects in visit order. Stale entries are pruned first."""
        self.prune_stale()
        targets = [entry.target for entry in self.__sequence]
        return [target for target in targets if target is not None]

    def current(self) -> Any or None:
        if not self.is_valid_index(self.__cursor):
            return None
        return self.__sequence[self.__cursor].target

    def describe_entries(self) -> List[Tuple[int, str, bool]]:
        """
        Rows for a history list: (index, label, is_current).
        The label is the object's `name` attribute, "Unnamed" if it has none.
        """
        rows = []
        for index, obj in enumerate(self.get_entries()):
            label = getattr(obj, 'name', None) or UNNAMED_LABEL
            rows.append((index, str(label), index == self.__cursor))
        return rows

    def can_navigate_backward(self) -> bool:
        return self.is_valid_index(self.__cursor - 1)

    def can_navigate_forward(self) -> bool:
        return self.is_valid_index(self.__cursor + 1)

    def can_delete(self) -> bool:
        return self.is_valid_index(self.__cursor)

    def can_clear(self) -> bool:
        return len(self.__sequence) > 0

    def __len__(self) -> int:
        return len(self.__sequence)

    def __iter__(self) -> Iterator[Any]:
        return iter(self.get_entries())

    # ------------------------------------------------------------------------------------------------------------------

    def record_visit(self, obj: Any) -> bool:
        if obj is None:
            return False

        changed = self.prune_stale(notify=False) > 0

        if not self.is_valid_index(self.__cursor):
            self.__cursor = len(self.__sequence) - 1

        # Re-visit of the current object. Also stops the feedback loop when navigation
        #   refocuses the external selection and the selection change comes back here.
        if self.is_valid_index(self.__cursor) and self.__sequence[self.__cursor].refers_to(obj):
            if changed:
                self.__notify_changed()
            return changed

        try:
            entry = HistoryEntry(obj, self.__is_alive)
        except TypeError:
            logger.warning(f'Visit ignored, {type(obj).__name__} object cannot be weakly referenced')
            if changed:
                self.__notify_changed()
            return False

        # Visiting from the middle of the history destroys the forward branch.
        #
        # Exp: sequence = [A, B, C, D], cursor = 1 (B).
        #      Visiting E gives [A, B, E] with cursor = 2.
        #
        if self.__cursor < len(self.__sequence) - 1:
            discarded = len(self.__sequence) - self.__cursor - 1
            del self.__sequence[self.__cursor + 1:]
            logger.debug(f'Truncated {discarded} forward entries')

        self.__sequence.append(entry)
        self.__cursor = len(self.__sequence) - 1
        self.__evict_overflow()

        logger.debug(f'Visit recorded: {obj!r}, cursor {self.__cursor}/{len(self.__sequence)}')
        self.__notify_changed()
        return True

    def navigate_backward(self) -> Any or None:
        self.prune_stale()
        return self.__move_to(self.__cursor - 1)

    def navigate_forward(self) -> Any or None:
        self.prune_stale()
        return self.__move_to(self.__cursor + 1)

    def select_index(self, index: int) -> Any or None:
        """Index into the pruned sequence, as listed by get_entries() / describe_entries()."""
        self.prune_stale()
        return self.__move_to(index)

    def delete_current(self) -> bool:
        if not self.is_valid_index(self.__cursor):
            return False

        removed = self.__sequence.pop(self.__cursor)
        if self.__sequence:
            self.__cursor = max(0, min(self.__cursor, len(self.__sequence) - 1))
        else:
            self.__cursor = -1

        logger.debug(f'Deleted {removed!r}, cursor now {self.__cursor}')
        self.__notify_changed()
        return True

    def clear(self):
        had_entries = bool(self.__sequence) or self.__cursor != -1
        self.__sequence = []
        self.__cursor = -1
        if had_entries:
            self.__notify_changed()

    def prune_stale(self, notify: bool = True) -> int:
        if not self.__sequence:
            return 0

        kept = []
        removed_before = 0
        current_removed = False
        for i, entry in enumerate(self.__sequence):
            if entry.is_valid:
                kept.append(entry)
                continue
            if i < self.__cursor:
                removed_before += 1
            elif i == self.__cursor:
                current_removed = True

        removed = len(self.__sequence) - len(kept)
        if removed == 0:
            return 0

        self.__sequence = kept
        if not kept:
            self.__cursor = -1
        elif current_removed:
            self.__cursor = len(kept) - 1
        else:
            self.__cursor = max(0, min(self.__cursor - removed_before, len(kept) - 1))

        logger.debug(f'Pruned {removed} stale entries, cursor now {self.__cursor}')
        if notify:
            self.__notify_changed()
        return removed

    # ------------------------------------------------------------------------------------------------------------------

    def __move_to(self, index: int) -> Any or None:
        if not self.is_valid_index(index):
            return None
        target = self.__sequence[index].target
        if target is None:
            # Collected right after pruning, only possible with cyclic garbage collection
            return None
        if index != self.__cursor:
            self.__cursor = index
            self.__notify_changed()
        return target

    def __evict_overflow(self) -> int:
        evicted = 0
        while len(self.__sequence) > self.__capacity:
            self.__sequence.pop(0)
            self.__cursor = max(0, self.__cursor - 1)
            evicted += 1
        if evicted:
            logger.debug(f'Evicted {evicted} oldest entries, capacity {self.__capacity}')
        return evicted

    def __notify_changed(self):
        self.notifier.notify_history_changed(self)
