import threading


class EventSource(object):
    """
    A list of handlers that are each called when an event is fired.

    Handlers may be added and removed from any thread. Firing calls a snapshot of the
    handlers registered at the time, so a handler that unsubscribes while an event is
    being fired does not disturb delivery to the others.
    """

    def __init__(self):
        self._handlers = ()
        self._lock = threading.Lock()

    def __iadd__(self, handler):
        return self.add(handler)

    def __isub__(self, handler):
        return self.remove(handler)

    def add(self, handler):
        with self._lock:
            self._handlers = self._handlers + (handler,)
        return self

    def remove(self, handler):
        with self._lock:
            if handler in self._handlers:
                handlers = list(self._handlers)
                handlers.remove(handler)
                self._handlers = tuple(handlers)
        return self

    def clear(self):
        with self._lock:
            self._handlers = ()

    def handlers(self):
        return self._handlers

    def fire(self, *args, **kwargs):
        for handler in self._handlers:
            handler(*args, **kwargs)
