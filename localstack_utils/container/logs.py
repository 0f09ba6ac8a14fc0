import logging
import re
import threading
import time
from typing import Iterator, Optional, Pattern, Union

from localstack_utils.exceptions import ContainerNotReadyError, NotReadyReason
from localstack_utils.utils.container_utils.container_client import CancellableStream
from localstack_utils.utils.functions import call_safe
from localstack_utils.utils.strings import to_bytes, to_str

LOG = logging.getLogger(__name__)

# how often the watcher thread checks the cancel event and the deadline
WATCHER_INTERVAL = 0.1


def iter_lines(stream: CancellableStream) -> Iterator[str]:
    """
    Reassembles the lines of a log stream. The chunks of a docker log stream do not align with lines: a chunk
    can contain several lines, or only part of one.
    """
    buffer = b""
    for chunk in stream:
        buffer += to_bytes(chunk)
        *lines, buffer = buffer.split(b"\n")
        for line in lines:
            yield to_str(line.rstrip(b"\r"), errors="replace")
    if buffer:
        yield to_str(buffer.rstrip(b"\r"), errors="replace")


class _StreamWatcher(threading.Thread):
    """Closes the stream once the deadline passed or the cancel event is set, which unblocks the reader."""

    def __init__(
        self,
        stream: CancellableStream,
        deadline: Optional[float],
        cancel_event: Optional[threading.Event],
    ):
        super().__init__(name="localstack-log-watcher", daemon=True)
        self.stream = stream
        self.deadline = deadline
        self.cancel_event = cancel_event
        self.finished = threading.Event()
        self.reason: Optional[NotReadyReason] = None

    def run(self):
        while not self.finished.wait(WATCHER_INTERVAL):
            if self.cancel_event is not None and self.cancel_event.is_set():
                self.reason = NotReadyReason.CANCELLED
            elif self.deadline is not None and time.monotonic() >= self.deadline:
                self.reason = NotReadyReason.TIMEOUT
            else:
                continue
            LOG.debug("Closing log stream: %s", self.reason.value)
            call_safe(self.stream.close)
            return

    def stop(self):
        self.finished.set()
        if self.is_alive():
            self.join()


def wait_for_log_token(
    stream: CancellableStream,
    pattern: Union[str, Pattern],
    timeout: Optional[float] = None,
    cancel_event: Optional[threading.Event] = None,
) -> str:
    """
    Consumes the given log stream until a line matches the pattern.

    :param stream: the log stream of the container, closed when this function returns
    :param pattern: the pattern to search for in each line
    :param timeout: seconds to wait at most, ``None`` waits until the stream ends
    :param cancel_event: aborts the wait when set
    :return: the first matching line
    :raises ContainerNotReadyError: if no line matched, ``reason`` tells why
    """
    if isinstance(pattern, str):
        pattern = re.compile(pattern)

    if cancel_event is not None and cancel_event.is_set():
        call_safe(stream.close)
        raise ContainerNotReadyError(NotReadyReason.CANCELLED)
    if timeout is not None and timeout <= 0:
        call_safe(stream.close)
        raise ContainerNotReadyError(NotReadyReason.TIMEOUT)

    watcher = None
    if timeout is not None or cancel_event is not None:
        deadline = time.monotonic() + timeout if timeout is not None else None
        watcher = _StreamWatcher(stream, deadline, cancel_event)
        watcher.start()

    try:
        try:
            for line in iter_lines(stream):
                if pattern.search(line):
                    LOG.debug("Found log token in line: %s", line)
                    return line
        except Exception as e:
            # reading from a stream that was closed by the watcher may raise, depending on the transport
            if watcher and watcher.reason:
                raise ContainerNotReadyError(watcher.reason) from e
            raise

        if watcher:
            # the stream might have ended because the watcher closed it
            watcher.stop()
            if watcher.reason:
                raise ContainerNotReadyError(watcher.reason)
        raise ContainerNotReadyError(NotReadyReason.STREAM_CLOSED)
    finally:
        if watcher:
            watcher.stop()
        call_safe(stream.close)
