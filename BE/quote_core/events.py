# BE/quote_core/events.py
"""
Event source
────────────
A background thread turns blocking input polling into a FIFO stream of
immutable events for exactly one consumer:

    poller.poll(tick) → KeyEvent / ResizeEvent   (input arrived in time)
                      → None                    (timeout: emit TickEvent)
                      → raises                  (treated as a timeout)

The consumer closes its `Receiver` to stop the producer, explicitly or by
dropping it; the next failed `send` ends the thread, so shutdown takes at
most one tick interval. There is no other stop flag.

Nothing in here touches dashboard state: events are plain frozen values.
"""

from __future__ import annotations

import queue
import threading
import time
from dataclasses import dataclass
from typing import Optional, Protocol, Tuple, Union

from .utils.logging import get_logger

log = get_logger(__name__)


# ────────────────────────────────────────────────────────────
# Events
# ────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class KeyEvent:
    """A key press. ``key`` is one character or a named key ('up', 'enter', 'esc', ...)."""

    key: str
    ctrl: bool = False


@dataclass(frozen=True)
class ResizeEvent:
    width: int
    height: int


@dataclass(frozen=True)
class TickEvent:
    pass


Event = Union[KeyEvent, ResizeEvent, TickEvent]


class InputPoller(Protocol):
    def poll(self, timeout: float) -> Optional[Event]:
        """Block up to ``timeout`` seconds; return an input event or None."""
        ...


# ────────────────────────────────────────────────────────────
# Channel
# ────────────────────────────────────────────────────────────

class ChannelClosed(Exception):
    """The other end of the channel is gone."""


_HANGUP = object()


class _Channel:
    def __init__(self) -> None:
        self.queue: "queue.SimpleQueue[object]" = queue.SimpleQueue()
        self.receiver_closed = threading.Event()
        self.sender_closed = threading.Event()


class Sender:
    def __init__(self, chan: _Channel) -> None:
        self._chan = chan

    def send(self, event: Event) -> None:
        """Queue an event; never blocks. Raises `ChannelClosed` once the receiver is closed."""
        if self._chan.receiver_closed.is_set():
            raise ChannelClosed("receiver closed")
        self._chan.queue.put(event)

    def wait_receiver_closed(self, timeout: float) -> bool:
        return self._chan.receiver_closed.wait(timeout)

    def close(self) -> None:
        if not self._chan.sender_closed.is_set():
            self._chan.sender_closed.set()
            self._chan.queue.put(_HANGUP)


class Receiver:
    def __init__(self, chan: _Channel) -> None:
        self._chan = chan

    @property
    def closed(self) -> bool:
        return self._chan.receiver_closed.is_set()

    def recv(self, timeout: Optional[float] = None) -> Event:
        """
        Next event in send order.

        Raises `ChannelClosed` if this receiver was closed or the sender hung
        up and everything it sent has been drained; `queue.Empty` on timeout.
        """
        if self.closed:
            raise ChannelClosed("receiver closed")
        item = self._chan.queue.get(timeout=timeout)
        if item is _HANGUP:
            # keep the marker for any later recv() call
            self._chan.queue.put(_HANGUP)
            raise ChannelClosed("sender hung up")
        return item  # type: ignore[return-value]

    def close(self) -> None:
        self._chan.receiver_closed.set()

    def __enter__(self) -> "Receiver":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __del__(self) -> None:
        self.close()


def channel() -> Tuple[Sender, Receiver]:
    """Unbounded single-producer / single-consumer FIFO."""
    chan = _Channel()
    return Sender(chan), Receiver(chan)


# ────────────────────────────────────────────────────────────
# Event source
# ────────────────────────────────────────────────────────────

class EventSource:
    """
    Usage:
        source = EventSource(poller, tick_interval=5.0)
        with source.receiver as rx:
            event = rx.recv()
            ...
    """

    def __init__(self, poller: InputPoller, tick_interval: float, *, start: bool = True) -> None:
        if tick_interval <= 0:
            raise ValueError(f"tick_interval must be positive, got {tick_interval}")
        self.tick_interval = float(tick_interval)
        self._poller = poller
        self._tx, self.receiver = channel()
        # The thread gets only the sending end. Dropping the last reference to
        # the source (and so its receiver) closes the channel and stops it.
        self._thread = threading.Thread(
            target=_produce, args=(self._tx, poller, self.tick_interval), name="event-source", daemon=True
        )
        if start:
            self.start()

    def start(self) -> None:
        self._thread.start()

    @property
    def alive(self) -> bool:
        return self._thread.is_alive()

    def join(self, timeout: Optional[float] = None) -> None:
        self._thread.join(timeout)

    def next(self) -> Event:
        return self.receiver.recv()

    def close(self) -> None:
        self.receiver.close()

    def _poll_once(self) -> Event:
        return _poll_once(self._poller, self.tick_interval, self._tx)


def _poll_once(poller: InputPoller, tick_interval: float, tx: Sender) -> Event:
    started = time.monotonic()
    try:
        event = poller.poll(tick_interval)
    except Exception as e:
        # Transient input-layer failure: behave exactly like a timeout.
        log.debug("Input poll failed (%s: %s); treating as timeout", type(e).__name__, e)
        remaining = tick_interval - (time.monotonic() - started)
        if remaining > 0:
            tx.wait_receiver_closed(remaining)
        event = None
    return TickEvent() if event is None else event


def _produce(tx: Sender, poller: InputPoller, tick_interval: float) -> None:
    try:
        while True:
            event = _poll_once(poller, tick_interval, tx)
            try:
                tx.send(event)
            except ChannelClosed:
                break
    finally:
        tx.close()
        log.debug("Event source stopped")
