from collections import defaultdict


class EventSource:
    """
    Handlers called in the order added with each fired event. A handler may add or
    remove handlers while being notified; the change applies from the next event.
    """

    def __init__(self):
        self._handlers = []

    def add(self, handler):
        self._handlers.append(handler)
        return handler

    def remove(self, handler):
        """ removes the handler. An unknown handler is ignored. """
        if handler in self._handlers:
            self._handlers.remove(handler)

    def handlers(self):
        return tuple(self._handlers)

    def fire(self, *args, **kwargs):
        for handler in tuple(self._handlers):
            handler(*args, **kwargs)


class SignalSource:
    """
    Named signals, each with its own EventSource. A protocol client emits
    lifecycle signals ('open', 'ready', ...) and per-pin sample signals
    ('digital-read-13') through one of these.

    Handlers registered with once() are detached before they are called, so a
    handler that emits the same signal again is not re-entered.
    """

    def __init__(self):
        self._signals = defaultdict(EventSource)

    def on(self, name, handler):
        self._signals[name].add(handler)
        return handler

    def once(self, name, handler):
        """ registers a handler that is removed after its first call.
        :return: the registered wrapper, which can be passed to off() to disarm it.
        """
        def fire_once(*args, **kwargs):
            self.off(name, fire_once)
            return handler(*args, **kwargs)
        return self.on(name, fire_once)

    def off(self, name, handler):
        source = self._signals.get(name)
        if source is not None:
            source.remove(handler)
            if not source.handlers():
                del self._signals[name]

    def remove_all(self):
        self._signals.clear()

    def handlers(self, name):
        source = self._signals.get(name)
        return source.handlers() if source is not None else ()

    def names(self):
        return tuple(self._signals.keys())

    def emit(self, name, *args, **kwargs):
        source = self._signals.get(name)
        if source is not None:
            source.fire(*args, **kwargs)
