import logging
import weakref
from typing import Optional, Callable


logger = logging.getLogger(__name__)


class ChangeNotifier:
    """
    Synchronous observer broadcast with weakly referenced, ordered observers.

    Design Intent:
    ==============
    - Notification methods (prefixed with 'notify_') are generated on attribute access
    - Observers implement the matching 'on_' handler, e.g. `notify_history_changed`
      calls `on_history_changed` on every observer that defines it
    - Observers are held by weak reference, so registering never keeps a view alive
    - Registration order is the notification order
    - An observer that raises does not stop the others; the error goes to `error_handler`

    Everything runs on the caller's thread. There is no locking: all notifications are
    expected to come from one event loop (the UI thread).

    Observers may add or remove observers while being notified. The broadcast works on
    a snapshot taken before the first handler runs.

    Example:
    --------
    ```
    class HistoryView:
        def on_history_changed(self, tracker):
            self.repaint()

    notifier = ChangeNotifier()
    view = HistoryView()
    notifier.add_observer(view)
    notifier.notify_history_changed(tracker)
    ```

    :param error_handler: Optional callable with signature (exception, observer, method_name).
                          Default: logs the error with traceback.
    """

    def __init__(self, error_handler: Optional[Callable] = None):
        self.__observers = []
        self.__cached_methods = {}
        self.error_handler = error_handler or self._default_error_handler

    def add_observer(self, observer):
        self._cleanup_dead_refs()
        if any(ref() is observer for ref in self.__observers):
            return
        self.__observers.append(weakref.ref(observer))

    def remove_observer(self, observer):
        self.__observers = [ref for ref in self.__observers
                            if ref() is not None and ref() is not observer]

    def has_observer(self, observer) -> bool:
        return any(ref() is observer for ref in self.__observers)

    def observer_count(self) -> int:
        self._cleanup_dead_refs()
        return len(self.__observers)

    def _cleanup_dead_refs(self):
        self.__observers = [ref for ref in self.__observers if ref() is not None]

    def __getattr__(self, name):
        # Private attributes missing before __init__ must not recurse into this lookup
        if name.startswith('_'):
            raise AttributeError(name)

        cached_method = self.__cached_methods.get(name, None)
        if cached_method:
            return cached_method

        if name.startswith('notify_'):
            method_name = f'on_{name[7:]}'

            def notify(*args, **kwargs):
                self._cleanup_dead_refs()
                observers = [ref() for ref in self.__observers]
                for observer in observers:
                    if observer is None:
                        continue
                    method = getattr(observer, method_name, None)
                    if not callable(method):
                        continue
                    try:
                        method(*args, **kwargs)
                    except Exception as e:
                        self.error_handler(e, observer, method_name)

            self.__cached_methods[name] = notify
            return notify

        raise AttributeError(f'Invalid method: {name}')

    def _default_error_handler(self, e, observer, method_name):
        logger.error(f'Error in {observer!r}.{method_name}: {str(e)}', exc_info=e)
