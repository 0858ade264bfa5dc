"""SSDP M-SEARCH request encoding."""

from ssdpsearch.constants import SEARCH_METHOD, SSDP_DISCOVER


def build_search_message(host: str, port: int, search_target: str,
                         maximum_wait_response_time: float) -> bytes:
    """Build an M-SEARCH datagram. Every line ends in CRLF, blank line last."""
    lines = [
        SEARCH_METHOD,
        f"HOST: {host}:{port}",
        f"MAN: {SSDP_DISCOVER}",
        f"ST: {search_target}",
        f"MX: {int(maximum_wait_response_time)}",
    ]
    return ("\r\n".join(lines) + "\r\n\r\n").encode("utf-8")
