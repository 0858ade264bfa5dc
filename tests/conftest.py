"""Test doubles for the UDP transport and socket factory."""

import errno
import queue
import socket
import threading
import time

import pytest

from ssdpsearch.session import SearchSession, SessionConfiguration


def make_response(st="upnp:rootdevice", usn="uuid:1234::upnp:rootdevice",
                  location="http://192.168.1.10:8080/desc.xml", server="Linux/5.10 UPnP/1.0 test/1.0",
                  extra=()) -> bytes:
    """Build an M-SEARCH reply datagram."""
    lines = [
        "HTTP/1.1 200 OK",
        "CACHE-CONTROL: max-age=1800",
        "EXT:",
        f"LOCATION: {location}",
        f"SERVER: {server}",
        f"ST: {st}",
        f"USN: {usn}",
        *extra,
    ]
    return ("\r\n".join(lines) + "\r\n\r\n").encode()


def wait_for(predicate, timeout: float = 1.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


class MockTransport:
    """In-memory transport. Queued datagrams (or exceptions) come out of receive()."""

    def __init__(self, address=("239.255.255.250", 1900)):
        self.address = address
        self.sent: list[tuple[bytes, tuple, float]] = []
        self.send_error: Exception | None = None
        self.close_count = 0
        self._inbox: queue.Queue = queue.Queue()
        self._closed = threading.Event()

    def feed(self, data: bytes, addr=("192.168.1.10", 1900)):
        self._inbox.put((data, addr))

    def fail(self, error: Exception):
        self._inbox.put(error)

    def resolve_address(self, host, port):
        return self.address

    def send(self, message, address):
        if self.send_error is not None:
            raise self.send_error
        self.sent.append((message, address, time.monotonic()))

    def receive(self):
        if self._closed.is_set():
            raise OSError(errno.EBADF, "Bad file descriptor")
        try:
            item = self._inbox.get(timeout=0.02)
        except queue.Empty:
            raise socket.timeout("timed out")
        if isinstance(item, BaseException):
            raise item
        return item

    def close(self):
        self.close_count += 1
        self._closed.set()


class MockSocketFactory:
    def __init__(self, transport=None):
        self.transport = transport
        self.calls: list[tuple[str, int]] = []

    def create_udp_socket(self, host, port):
        self.calls.append((host, port))
        return self.transport


class RecordingObserver:
    def __init__(self):
        self.responses = []
        self.stops = []
        self.stopped = threading.Event()

    def on_response(self, response):
        self.responses.append(response)

    def on_stopped(self, error):
        self.stops.append(error)
        self.stopped.set()


@pytest.fixture
def transport():
    return MockTransport()


@pytest.fixture
def observer():
    return RecordingObserver()


@pytest.fixture
def make_session(transport, observer):
    """Build sessions on the mock transport; all are stopped at teardown."""
    sessions = []

    def _make(**kwargs):
        kwargs.setdefault("maximum_wait_response_time", 0.1)
        kwargs.setdefault("search_timeout", 0.3)
        session = SearchSession(SessionConfiguration(**kwargs), transport)
        session.observer = observer
        sessions.append(session)
        return session

    yield _make
    for s in sessions:
        s.stop()
