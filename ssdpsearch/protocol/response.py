"""SSDP search response parsing."""

import re
from dataclasses import dataclass, field

from ssdpsearch.constants import OK_STATUS_LINE

_MAX_AGE_RE = re.compile(r"max-age\s*=\s*(\d+)", re.IGNORECASE)


@dataclass(frozen=True)
class SearchResponse:
    """One device's reply to an M-SEARCH.

    Two responses describe the same device when location, server, search
    target and USN all match. ``max_age`` and ``other_headers`` change between
    replies (DATE, CACHE-CONTROL) and are left out of the comparison.
    """
    search_target: str
    unique_service_name: str
    location: str
    server: str | None = None
    max_age: int | None = field(default=None, compare=False)
    other_headers: dict[str, str] = field(default_factory=dict, compare=False)

    def matches(self, search_target: str) -> bool:
        return search_target in self.search_target


def parse_headers(lines: list[str]) -> dict[str, str]:
    """Parse ``Name: value`` lines up to the first blank one, keyed by lower-cased name."""
    headers = {}
    for line in lines:
        if not line.strip():
            break
        name, sep, value = line.partition(":")
        if not sep or not name.strip():
            raise ValueError(f"Malformed header line: {line!r}")
        headers[name.strip().lower()] = value.strip()
    return headers


def parse_search_response(raw: bytes) -> SearchResponse:
    """Parse an M-SEARCH reply datagram. Raises ValueError if it is not one."""
    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise ValueError(f"Response is not UTF-8: {e}") from e
    lines = text.splitlines()
    status = lines[0].strip() if lines else ""
    if not status:
        raise ValueError("Empty response")
    if status.upper() != OK_STATUS_LINE:
        raise ValueError(f"Unexpected status line: {status!r}")

    headers = parse_headers(lines[1:])
    missing = [h for h in ("st", "usn", "location") if not headers.get(h)]
    if missing:
        raise ValueError(f"Missing required headers: {', '.join(missing)}")

    max_age = None
    cache_control = headers.get("cache-control")
    if cache_control:
        m = _MAX_AGE_RE.search(cache_control)
        if m:
            max_age = int(m.group(1))

    known = {"st", "usn", "location", "server", "cache-control"}
    return SearchResponse(
        search_target=headers["st"],
        unique_service_name=headers["usn"],
        location=headers["location"],
        server=headers.get("server"),
        max_age=max_age,
        other_headers={k: v for k, v in headers.items() if k not in known},
    )
