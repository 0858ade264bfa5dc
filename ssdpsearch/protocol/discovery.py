"""Blocking SSDP discovery on top of SearchSession."""

from ssdpsearch.constants import (
    SSDP_HOST, SSDP_ALL, Port,
    DEFAULT_MAXIMUM_WAIT_RESPONSE_TIME, DEFAULT_SEARCH_TIMEOUT,
)
from ssdpsearch.protocol.response import SearchResponse
from ssdpsearch.session import SearchSession, SearchSessionObserver, SessionConfiguration
from ssdpsearch.transport import SocketFactory


class _Collector(SearchSessionObserver):
    def __init__(self, on_response=None):
        self.responses: list[SearchResponse] = []
        self.error = None
        self._on_response = on_response

    def on_response(self, response):
        self.responses.append(response)
        if self._on_response is not None:
            self._on_response(response)

    def on_stopped(self, error):
        self.error = error


def discover(search_target: str = SSDP_ALL, timeout: float = DEFAULT_SEARCH_TIMEOUT,
             mx: float = DEFAULT_MAXIMUM_WAIT_RESPONSE_TIME, host: str = SSDP_HOST,
             port: int = Port.SSDP, socket_factory: SocketFactory | None = None,
             on_response=None) -> list[SearchResponse]:
    """Search for *timeout* seconds and return every distinct response.

    Args:
        search_target: ST to search for, ``ssdp:all`` for everything
        timeout: overall search window in seconds
        mx: seconds a device may wait before replying; M-SEARCH is repeated
            this often
        on_response: optional callable invoked with each response as it arrives

    Raises:
        RuntimeError: no UDP socket could be created
        SearchAborted: a send or receive failed during the search
    """
    config = SessionConfiguration(
        host=host, port=int(port), search_target=search_target,
        maximum_wait_response_time=mx, search_timeout=timeout,
    )
    session = SearchSession.create(config, socket_factory)
    if session is None:
        raise RuntimeError("Could not create a UDP socket for SSDP search")

    collector = _Collector(on_response)
    session.observer = collector
    session.start()
    try:
        session.wait(timeout)
    finally:
        session.stop()

    if collector.error is not None:
        raise collector.error
    return collector.responses
