"""Command line SSDP search.

Usage::

    python -m ssdpsearch.cli -t upnp:rootdevice --timeout 6 --mx 2
"""

import argparse
import logging
import sys

from ssdpsearch.constants import (
    SSDP_HOST, SSDP_ALL, Port,
    DEFAULT_MAXIMUM_WAIT_RESPONSE_TIME, DEFAULT_SEARCH_TIMEOUT,
)
from ssdpsearch.errors import SearchAborted
from ssdpsearch.protocol.discovery import discover


def _print_response(response) -> None:
    print(f"{response.search_target}  {response.unique_service_name}  {response.location}")


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(description="Search the local network for SSDP devices")
    p.add_argument("-t", "--search-target", default=SSDP_ALL,
                   help=f"ST to search for (default: {SSDP_ALL})")
    p.add_argument("--mx", type=float, default=DEFAULT_MAXIMUM_WAIT_RESPONSE_TIME,
                   help="max response wait, also the re-broadcast period in seconds")
    p.add_argument("--timeout", type=float, default=DEFAULT_SEARCH_TIMEOUT,
                   help="overall search time in seconds")
    p.add_argument("--host", default=SSDP_HOST,
                   help=f"multicast address (default: {SSDP_HOST})")
    p.add_argument("--port", type=int, default=int(Port.SSDP))
    p.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    args = p.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        responses = discover(
            search_target=args.search_target,
            timeout=args.timeout,
            mx=args.mx,
            host=args.host,
            port=args.port,
            on_response=_print_response,
        )
    except (RuntimeError, SearchAborted) as e:
        print(f"search failed: {e}", file=sys.stderr)
        return 1
    except ValueError as e:
        p.error(str(e))
    print(f"done, {len(responses)} devices found")
    return 0


if __name__ == "__main__":
    sys.exit(main())
