"""
Shell Streams

Per-stage I/O for commands: subscribable output streams, a buffered
input stream and the cooperative cancellation token shared by every
stage of one command line.

Author: YSNRFD
Version: 1.0.0
"""

from dataclasses import dataclass, field
from typing import Callable, List, Optional

from pysh.logger import get_logger


StreamCallback = Callable[[str], None]


class OutputStream:
    """
    A write-only stream that fans data out to its subscribers.

    Nothing is buffered; whoever needs the data subscribes before the
    command runs.
    """

    def __init__(self):
        self._listeners: List[StreamCallback] = []

    def write(self, data: str) -> None:
        for listener in list(self._listeners):
            listener(data)

    def write_line(self, data: str = "") -> None:
        self.write(data + '\n')

    def on(self, callback: StreamCallback) -> Callable[[], None]:
        """
        Subscribe to written data.

        Returns:
            A function that removes the subscription
        """
        self._listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    def clear(self) -> None:
        """Drop all subscribers."""
        self._listeners.clear()


class InputStream:
    """A buffered input stream. ``read`` drains everything at once."""

    def __init__(self):
        self._buffer = ""

    def write(self, data: str) -> None:
        self._buffer += data

    def read(self) -> str:
        data = self._buffer
        self._buffer = ""
        return data

    def read_line(self) -> Optional[str]:
        """Consume one line (without its newline), or None if no full line."""
        index = self._buffer.find('\n')
        if index == -1:
            return None
        line = self._buffer[:index]
        self._buffer = self._buffer[index + 1:]
        return line

    def clear(self) -> None:
        self._buffer = ""


class CancellationToken:
    """
    Cooperative cancellation flag.

    Once cancelled it stays cancelled. Long-running commands must poll
    ``is_cancelled`` themselves; nothing is interrupted from outside.
    """

    def __init__(self):
        self._cancelled = False
        self._listeners: List[Callable[[], None]] = []
        self._logger = get_logger('streams')

    def cancel(self) -> None:
        if self._cancelled:
            return
        self._cancelled = True
        listeners = list(self._listeners)
        self._listeners.clear()
        for callback in listeners:
            self._notify(callback)

    def is_cancelled(self) -> bool:
        return self._cancelled

    def on_cancel(self, callback: Callable[[], None]) -> Callable[[], None]:
        """
        Run ``callback`` on cancellation (immediately if already cancelled).

        Returns:
            A function that removes the listener
        """
        if self._cancelled:
            self._notify(callback)
            return lambda: None

        self._listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    def _notify(self, callback: Callable[[], None]) -> None:
        # A failing listener must not stop the remaining ones
        try:
            callback()
        except Exception as e:
            self._logger.exception("Cancellation listener failed", exc=e)


@dataclass
class IOStreams:
    """The streams handed to one command invocation."""
    stdin: InputStream = field(default_factory=InputStream)
    stdout: OutputStream = field(default_factory=OutputStream)
    stderr: OutputStream = field(default_factory=OutputStream)
    cancel_token: Optional[CancellationToken] = None

    def is_cancelled(self) -> bool:
        return self.cancel_token is not None and self.cancel_token.is_cancelled()


def create_io_streams(cancel_token: Optional[CancellationToken] = None) -> IOStreams:
    """Create a fresh set of streams, optionally bound to a token."""
    return IOStreams(cancel_token=cancel_token)
