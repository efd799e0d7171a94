import logging
import traceback
from typing import Any, Callable, Optional

from ChangeNotifier import ChangeNotifier
from HistoryTracker import HistoryTracker
from TrackerConfig import TrackerConfig


logger = logging.getLogger(__name__)


class ActiveSelection:
    """
    The external "active selection" as seen by the tracker.

    `select()` is the only way to change it. Selecting the object that is already
    active does nothing and emits nothing, which is what keeps programmatic
    navigation from looping back into the history as a new visit.

    Observers implement `on_selection_changed(obj)`.
    """

    def __init__(self, notifier: Optional[ChangeNotifier] = None):
        self.__active = None
        self.notifier = notifier if notifier is not None else ChangeNotifier()

    @property
    def active_object(self) -> Any or None:
        return self.__active

    def select(self, obj: Any) -> bool:
        if obj is self.__active:
            return False
        self.__active = obj
        self.notifier.notify_selection_changed(obj)
        return True


class SelectionTracker:
    """
    Wires a HistoryTracker to an ActiveSelection.

    - Every genuine selection change is recorded as a visit.
    - Navigation (back, forward, list click, delete) moves the cursor first and then
      refocuses the selection. The echoed selection change finds the cursor already on
      the target and leaves the history untouched.
    - `reveal` is called with the refocused object so the shell can bring its container
      view forward. It is only called when the selection really changed.

    The history is an explicit instance. Pass the same `tracker` to several
    SelectionTracker objects to share one history between shells.

    Lifecycle: `open()` subscribes, `close()` clears the history and unsubscribes.
    The object also works as a context manager.
    """

    def __init__(self, selection: ActiveSelection,
                 tracker: Optional[HistoryTracker] = None,
                 config: Optional[TrackerConfig] = None,
                 reveal: Optional[Callable[[Any], None]] = None):
        self.selection = selection
        self.reveal = reveal

        if tracker is None:
            self.config = config if config is not None else TrackerConfig()
            self.tracker = HistoryTracker(self.config.max_history_count)
        elif config is None:
            # A shared history keeps its own capacity
            self.tracker = tracker
            self.config = TrackerConfig(max_history_count=tracker.capacity)
        else:
            self.tracker = tracker
            self.apply_config(config)

    @property
    def is_open(self) -> bool:
        return self.selection.notifier.has_observer(self)

    def open(self):
        if self.is_open:
            return
        self.selection.notifier.add_observer(self)
        logger.debug('Selection tracker opened')

    def close(self):
        if not self.is_open:
            return
        self.tracker.clear()
        self.selection.notifier.remove_observer(self)
        logger.debug('Selection tracker closed')

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    def apply_config(self, config: TrackerConfig):
        self.config = config
        self.tracker.set_capacity(config.max_history_count)

    # ------------------------------------------------------------------------------------------------------------------

    def on_selection_changed(self, obj: Any):
        if obj is None:
            return
        self.tracker.record_visit(obj)

    def focus_external_selection(self, obj: Any) -> bool:
        if obj is None or self.selection.active_object is obj:
            return False
        changed = self.selection.select(obj)
        if changed and self.reveal is not None:
            self.reveal(obj)
        return changed

    # ------------------------------------------------------------------------------------------------------------------

    def navigate_backward(self) -> Any or None:
        return self.__refocus(self.tracker.navigate_backward())

    def navigate_forward(self) -> Any or None:
        return self.__refocus(self.tracker.navigate_forward())

    def select_index(self, index: int) -> Any or None:
        return self.__refocus(self.tracker.select_index(index))

    def delete_current(self) -> bool:
        if not self.tracker.delete_current():
            return False
        self.__refocus(self.tracker.current())
        return True

    def clear(self):
        self.tracker.clear()

    def __refocus(self, obj: Any) -> Any or None:
        if obj is not None:
            self.focus_external_selection(obj)
        return obj


# ----------------------------------------------------------------------------------------------------------------------

class Asset:
    def __init__(self, name):
        self.name = name

    def __repr__(self):
        return f'Asset({self.name})'


class PrintView:
    def on_history_changed(self, tracker):
        print(' | '.join(f'[{label}]' if current else label for _, label, current in tracker.describe_entries()))


def main():
    logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')

    assets = [Asset(name) for name in ['Player', 'Camera', 'Light', 'Terrain']]
    view = PrintView()

    selection = ActiveSelection()
    with SelectionTracker(selection, config=TrackerConfig(max_history_count=3)) as tracker:
        tracker.tracker.notifier.add_observer(view)

        for asset in assets:
            selection.select(asset)     # Player is evicted

        tracker.navigate_backward()     # Light
        selection.select(assets[0])     # Terrain is truncated
        tracker.delete_current()        # Back to Light


# ----------------------------------------------------------------------------------------------------------------------

if __name__ == "__main__":
    try:
        main()
    except Exception as e:
        print('Error =>', e)
        print('Error =>', traceback.format_exc())
        exit()
    finally:
        pass
