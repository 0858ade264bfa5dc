"""UDP transport for SSDP search: one datagram socket plus its factory."""

import logging
import socket

from ssdpsearch.constants import MULTICAST_TTL, RECV_BUF_SIZE, RECV_POLL_INTERVAL

logger = logging.getLogger(__name__)


class UDPTransport:
    """Datagram socket that sends search requests and receives unicast replies.

    ``receive()`` blocks for at most ``poll_interval`` seconds and raises
    ``socket.timeout`` when nothing arrived, so a reader thread can re-check
    its own state between waits. ``close()`` may be called from any thread.
    """

    def __init__(self, sock: socket.socket, buf_size: int = RECV_BUF_SIZE,
                 poll_interval: float = RECV_POLL_INTERVAL):
        self._sock = sock
        self._sock.settimeout(poll_interval)
        self._buf_size = buf_size
        self._closed = False

    @staticmethod
    def resolve_address(host: str, port: int) -> tuple | None:
        """Resolve host:port to an IPv4 datagram address, or None."""
        try:
            infos = socket.getaddrinfo(host, port, socket.AF_INET, socket.SOCK_DGRAM)
        except (socket.gaierror, UnicodeError, OverflowError):
            return None
        if not infos:
            return None
        return infos[0][4]

    def send(self, message: bytes, address: tuple) -> None:
        self._sock.sendto(message, address)

    def receive(self) -> tuple[bytes, tuple]:
        """Block until a datagram arrives or the poll interval elapses."""
        return self._sock.recvfrom(self._buf_size)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        # shutdown() wakes a thread blocked in recvfrom() on most platforms
        try:
            self._sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass
        self._sock.close()

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def local_address(self) -> tuple:
        return self._sock.getsockname()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()


class SocketFactory:
    """Create the UDP transport a search session runs on."""

    def __init__(self, interface: str = "0.0.0.0", ttl: int = MULTICAST_TTL,
                 poll_interval: float = RECV_POLL_INTERVAL):
        self.interface = interface
        self.ttl = ttl
        self.poll_interval = poll_interval

    def create_udp_socket(self, host: str, port: int) -> UDPTransport | None:
        """Return a bound transport for searching host:port, or None if the
        platform refuses to allocate one."""
        try:
            sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM, socket.IPPROTO_UDP)
        except OSError as e:
            logger.error("Cannot create UDP socket: %s", e)
            return None
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.setsockopt(socket.IPPROTO_IP, socket.IP_MULTICAST_TTL, self.ttl)
            sock.bind((self.interface, 0))
        except OSError as e:
            logger.error("Cannot bind UDP socket on %s for %s:%d: %s",
                         self.interface, host, port, e)
            sock.close()
            return None
        logger.debug("Bound UDP socket %s for %s:%d", sock.getsockname(), host, port)
        return UDPTransport(sock, poll_interval=self.poll_interval)
