"""SSDP search session: timed M-SEARCH broadcasts plus a background reader.

Usage:
    session = SearchSession.create(SessionConfiguration(search_target="upnp:rootdevice"))
    session.observer = observer      # held weakly, keep your own reference
    session.start()
    session.wait(session.configuration.search_timeout)
    session.stop()

The observer gets ``on_response(response)`` once per distinct device and
``on_stopped(error)`` exactly once, after ``stop()`` (error is None) or when a
transport fault aborts the search (error is a ``SearchAborted``).
"""

import logging
import socket
import threading
import time
import weakref
from dataclasses import dataclass

from ssdpsearch.constants import (
    SSDP_HOST, SSDP_ALL, Port, SessionState,
    DEFAULT_MAXIMUM_WAIT_RESPONSE_TIME, DEFAULT_SEARCH_TIMEOUT,
)
from ssdpsearch.errors import AddressResolutionError, SearchAborted
from ssdpsearch.protocol.message import build_search_message
from ssdpsearch.protocol.response import SearchResponse, parse_search_response
from ssdpsearch.transport import SocketFactory

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionConfiguration:
    host: str = SSDP_HOST
    port: int = int(Port.SSDP)
    search_target: str = SSDP_ALL
    maximum_wait_response_time: float = DEFAULT_MAXIMUM_WAIT_RESPONSE_TIME
    search_timeout: float = DEFAULT_SEARCH_TIMEOUT
    auto_stop: bool = False  # also stop listening once search_timeout elapses

    def __post_init__(self):
        if self.maximum_wait_response_time <= 0:
            raise ValueError(
                f"maximum_wait_response_time must be positive: {self.maximum_wait_response_time}")
        if self.search_timeout <= 0:
            raise ValueError(f"search_timeout must be positive: {self.search_timeout}")
        if self.search_timeout < self.maximum_wait_response_time:
            logger.warning("search_timeout %.1fs is shorter than maximum_wait_response_time "
                           "%.1fs, only one M-SEARCH will be sent",
                           self.search_timeout, self.maximum_wait_response_time)

    @property
    def broadcast_count(self) -> int:
        """Number of M-SEARCH writes: one at start, then one per wait period
        up to ``search_timeout - maximum_wait_response_time``."""
        window = self.search_timeout - self.maximum_wait_response_time
        if window <= 0:
            return 1
        return int(window / self.maximum_wait_response_time + 1e-9) + 1


class SearchSessionObserver:
    """Base observer with no-op callbacks. Subclassing is optional."""

    def on_response(self, response: SearchResponse) -> None:
        pass

    def on_stopped(self, error: SearchAborted | None) -> None:
        pass


class _BroadcastSchedule:
    """Background thread calling ``tick`` now and then every ``interval``
    seconds, ``count`` times in total, until cancelled."""

    def __init__(self, tick, interval: float, count: int):
        self._tick = tick
        self._interval = interval
        self._count = count
        self._cancelled = threading.Event()
        self._thread: threading.Thread | None = None

    def start(self):
        self._thread = threading.Thread(target=self._run, name="ssdp-broadcast", daemon=True)
        self._thread.start()

    def cancel(self):
        self._cancelled.set()

    def _run(self):
        started = time.monotonic()
        for i in range(self._count):
            delay = started + i * self._interval - time.monotonic()
            if self._cancelled.wait(max(0.0, delay)):
                return
            self._tick()
        logger.debug("Final M-SEARCH sent, broadcasting finished")


class SearchSession:
    """One SSDP search: owns the transport, the broadcast schedule, the reader
    thread and the set of responses already reported."""

    def __init__(self, configuration: SessionConfiguration, transport):
        self.configuration = configuration
        self._transport = transport
        self._message = build_search_message(
            configuration.host, configuration.port,
            configuration.search_target, configuration.maximum_wait_response_time,
        )
        # guards _state, _responded and the delivery hand-off; never held across I/O or callbacks
        self._lock = threading.Lock()
        self._state = SessionState.IDLE
        self._responded: list[SearchResponse] = []
        self._observer_ref: weakref.ref | None = None
        self._broadcast: _BroadcastSchedule | None = None
        self._auto_stop: threading.Timer | None = None
        self._reader: threading.Thread | None = None
        self._stopped = threading.Event()
        self._delivering = False
        self._pending_stop: tuple | None = None  # (error,) deferred until delivery returns

    @classmethod
    def create(cls, configuration: SessionConfiguration | None = None,
               socket_factory: SocketFactory | None = None) -> "SearchSession | None":
        """Build a session on a fresh UDP transport. None if no socket could be made."""
        configuration = configuration or SessionConfiguration()
        factory = socket_factory or SocketFactory()
        transport = factory.create_udp_socket(configuration.host, configuration.port)
        if transport is None:
            return None
        return cls(configuration, transport)

    # --- observer ---

    @property
    def observer(self):
        return self._observer_ref() if self._observer_ref is not None else None

    @observer.setter
    def observer(self, observer):
        self._observer_ref = weakref.ref(observer) if observer is not None else None

    # --- lifecycle ---

    def start(self):
        """Start listening and broadcasting. Only the first call does anything."""
        cfg = self.configuration
        with self._lock:
            if self._state is not SessionState.IDLE:
                return
            self._state = SessionState.LISTENING
            logger.info("Starting SSDP search for %s on %s:%d", cfg.search_target, cfg.host, cfg.port)
            self._reader = threading.Thread(target=self._read_loop, name="ssdp-reader", daemon=True)
            self._broadcast = _BroadcastSchedule(
                self._write, cfg.maximum_wait_response_time, cfg.broadcast_count)
            self._reader.start()
            self._broadcast.start()
            if cfg.auto_stop:
                self._auto_stop = threading.Timer(cfg.search_timeout, self.stop)
                self._auto_stop.daemon = True
                self._auto_stop.start()

    def stop(self):
        """Stop the search and close the transport. Safe to call repeatedly."""
        self._teardown(None)

    def wait(self, timeout: float | None = None) -> bool:
        """Block until the session has stopped. Returns False on timeout."""
        return self._stopped.wait(timeout)

    @property
    def state(self) -> SessionState:
        with self._lock:
            return self._state

    @property
    def responses(self) -> list[SearchResponse]:
        """Responses reported so far, in arrival order."""
        with self._lock:
            return list(self._responded)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.stop()

    # --- write ---

    def _write(self):
        cfg = self.configuration
        if self.state is not SessionState.LISTENING:
            return
        address = self._transport.resolve_address(cfg.host, cfg.port)
        if address is None:
            self._teardown(AddressResolutionError(cfg.host, cfg.port))
            return
        error = None
        with self._lock:
            # teardown flips state under this lock before closing, so no send hits a closed socket
            if self._state is not SessionState.LISTENING:
                return
            try:
                logger.debug("Writing M-SEARCH to %s", address)
                self._transport.send(self._message, address)
            except OSError as e:
                error = e
        if error is not None:
            self._teardown(error)

    # --- read ---

    def _read_loop(self):
        while self.state is SessionState.LISTENING:
            try:
                data, addr = self._transport.receive()
            except socket.timeout:
                continue
            except OSError as e:
                if not self._teardown(e):
                    logger.debug("Receive failed after stop: %s", e)
                return
            self._handle_datagram(data, addr)

    def _handle_datagram(self, data: bytes, addr):
        try:
            response = parse_search_response(data)
        except ValueError as e:
            logger.debug("Dropping datagram from %s: %s", addr, e)
            return
        target = self.configuration.search_target
        if target != SSDP_ALL and not response.matches(target):
            logger.debug("Dropping %s from %s: does not match %s",
                         response.search_target, addr, target)
            return
        with self._lock:
            if self._state is not SessionState.LISTENING or response in self._responded:
                return
            self._responded.append(response)
            self._delivering = True
        logger.info("Found %s at %s", response.unique_service_name, response.location)
        try:
            self._notify("on_response", response)
        finally:
            with self._lock:
                self._delivering = False
                pending, self._pending_stop = self._pending_stop, None
            if pending is not None:
                self._notify("on_stopped", pending[0])
                self._stopped.set()

    def _notify(self, callback: str, arg):
        observer = self.observer
        if observer is None:
            return
        try:
            getattr(observer, callback)(arg)
        except Exception:
            logger.exception("Observer %s failed", callback)

    # --- teardown ---

    def _teardown(self, error: BaseException | None) -> bool:
        """Move to STOPPED and notify the observer once. False if already stopped.

        If a response is being delivered, ``on_stopped`` is handed to the
        reader thread and fires after that callback returns.
        """
        aborted = SearchAborted(error) if error is not None else None
        with self._lock:
            if self._state is not SessionState.LISTENING:
                return False
            self._state = SessionState.STOPPED
            deferred = self._delivering
            if deferred:
                self._pending_stop = (aborted,)
        if self._broadcast is not None:
            self._broadcast.cancel()
        if self._auto_stop is not None:
            self._auto_stop.cancel()
        try:
            self._transport.close()
        except OSError as e:
            logger.warning("Error closing transport: %s", e)

        if error is None:
            logger.info("SSDP search session stopped, %d responses", len(self.responses))
        else:
            logger.error("SSDP search aborted: %s", error)
        if not deferred:
            self._notify("on_stopped", aborted)
            self._stopped.set()
        return True
