"""
Cooperative cancellation for command invocations.

Each invocation gets a CancellationContext: a fresh CancellationToken plus, in
interactive sessions, a KeyPoller that starts after a short delay and checks the
console at a fixed interval; when something was typed it consumes that input and
cancels the token. The poller is stopped when the context closes, whatever the
outcome.

Handlers run on a worker thread (coroutine handlers get their own event loop there)
while the dispatch thread waits for either the result or the cancel signal.
Cancellation is advisory: a handler that never looks at its token keeps running in
the background after the engine has reported the command as canceled.
"""
import asyncio
import inspect
import os
import select
import sys
import threading
from concurrent.futures import Future

from .faults import CanceledError
from .utils import Unset

DELAY = 0.2
INTERVAL = 0.1
JOIN_TIMEOUT = 1.0


class CancellationToken:
    """thread-safe one-shot cancel signal with callbacks."""

    def __init__(self):
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._callbacks = []

    @property
    def canceled(self):
        return self._event.is_set()

    def cancel(self):
        with self._lock:
            if self._event.is_set():
                return
            self._event.set()
            callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            callback()

    def register(self, callback, /):
        """run `callback` on cancel (immediately when already canceled)."""
        with self._lock:
            if not self._event.is_set():
                self._callbacks.append(callback)
                return
        callback()

    def raise_if_canceled(self):
        if self._event.is_set():
            raise CanceledError()

    def wait(self, timeout=None, /):
        return self._event.wait(timeout)

    def __bool__(self):
        return self.canceled

    def __repr__(self):
        return "cancellation-token(canceled=%r)" % self.canceled


def keypressed(stream=Unset, /):
    """
    consume pending console input and report whether there was any.

    on posix a whole pending line is read (the terminal is line buffered between
    prompts); on windows a single key is read.
    """
    stream = sys.stdin if stream is Unset else stream
    if os.name == "nt":
        import msvcrt
        if msvcrt.kbhit():
            msvcrt.getwch()
            return True
        return False
    try:
        readable, _, _ = select.select([stream], [], [], 0)
    except (ValueError, OSError):
        return False
    if readable:
        stream.readline()
        return True
    return False


class KeyPoller:
    """
    background check for a cancel keypress.

    waits `delay` seconds, then calls `keypress()` every `interval` seconds until it
    returns True (which cancels `token`) or until stop() is called.
    """

    def __init__(self, token, keypress, /, delay=DELAY, interval=INTERVAL):
        if not callable(keypress):
            raise TypeError("keypress source must be callable")
        self.token = token
        self.keypress = keypress
        self.delay = delay
        self.interval = interval
        self._stopped = threading.Event()
        self._thread = threading.Thread(target=self._run, name="argoshell-cancel-poller", daemon=True)

    def _run(self):
        if self._stopped.wait(self.delay):
            return
        while not self._stopped.is_set():
            if self.keypress():
                self.token.cancel()
                return
            if self._stopped.wait(self.interval):
                return

    def start(self):
        self._thread.start()
        return self

    def stop(self):
        self._stopped.set()
        if self._thread.is_alive() and self._thread is not threading.current_thread():
            self._thread.join(JOIN_TIMEOUT)

    @property
    def running(self):
        return self._thread.is_alive()


class CancellationContext:
    """
    cancellation scope of one invocation.

        with CancellationContext(keypressed) as context:
            result = execute(invocation, context.token)
    """

    def __init__(self, keypress=Unset, /, *, delay=DELAY, interval=INTERVAL):
        self.token = CancellationToken()
        self.poller = Unset if keypress is Unset else KeyPoller(self.token, keypress, delay, interval)

    def __enter__(self):
        if self.poller is not Unset:
            self.poller.start()
            self.token.register(self.poller.stop)
        return self

    def __exit__(self, *exc_info):
        if self.poller is not Unset:
            self.poller.stop()
        return False


async def _awaited(awaitable):
    return await awaitable


def execute(function, token, /):
    """
    run `function()` as a unit of work and wait for it or for `token`.

    returns the result (awaitables are run to completion on the worker's own loop),
    re-raises the handler's exception, or raises CanceledError when the token fires
    first. Ctrl-C while waiting cancels the token.
    """
    future = Future()

    def work():
        if not future.set_running_or_notify_cancel():
            return
        try:
            result = function()
            if inspect.isawaitable(result):
                result = asyncio.run(_awaited(result))
        except BaseException as exception:
            future.set_exception(exception)
        else:
            future.set_result(result)

    settled = threading.Event()
    future.add_done_callback(lambda _: settled.set())
    token.register(settled.set)

    threading.Thread(target=work, name="argoshell-invocation", daemon=True).start()

    try:
        while not settled.wait(INTERVAL):
            continue
    except KeyboardInterrupt:
        token.cancel()

    if future.done():
        return future.result()
    raise CanceledError()


__all__ = (
    "CancellationToken",
    "CancellationContext",
    "KeyPoller",
    "keypressed",
    "execute",
)
