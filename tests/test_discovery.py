"""Tests for the blocking discover() helper and the command line."""

import errno
import socket
import threading

import pytest

from conftest import MockSocketFactory, make_response
from ssdpsearch import cli
from ssdpsearch.errors import SearchAborted
from ssdpsearch.protocol.discovery import discover
from ssdpsearch.protocol.response import parse_search_response
from ssdpsearch.transport import SocketFactory


class TestDiscover:
    def test_collects_distinct_responses(self, transport):
        transport.feed(make_response(usn="uuid:a"))
        transport.feed(make_response(usn="uuid:a"))
        transport.feed(make_response(usn="uuid:b"))
        seen = []
        found = discover(timeout=0.2, mx=0.1, socket_factory=MockSocketFactory(transport),
                         on_response=seen.append)
        assert [r.unique_service_name for r in found] == ["uuid:a", "uuid:b"]
        assert seen == found
        assert transport.close_count == 1
        assert len(transport.sent) == 2

    def test_filters_by_target(self, transport):
        transport.feed(make_response(st="upnp:rootdevice", usn="uuid:a"))
        transport.feed(make_response(st="urn:dial-multiscreen-org:service:dial:1", usn="uuid:b"))
        found = discover("urn:dial-multiscreen-org:service:dial:1", timeout=0.2, mx=0.1,
                         socket_factory=MockSocketFactory(transport))
        assert [r.unique_service_name for r in found] == ["uuid:b"]

    def test_no_socket_raises(self):
        with pytest.raises(RuntimeError, match="UDP socket"):
            discover(timeout=0.1, mx=0.1, socket_factory=MockSocketFactory(None))

    def test_abort_raises(self, transport):
        transport.fail(OSError(errno.ENETDOWN, "Network is down"))
        with pytest.raises(SearchAborted):
            discover(timeout=1.0, mx=0.1, socket_factory=MockSocketFactory(transport))


class TestLoopback:
    def test_device_on_loopback_is_found(self):
        device = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        device.bind(("127.0.0.1", 0))
        device.settimeout(1.0)
        port = device.getsockname()[1]
        requests = []

        def respond():
            # answer every M-SEARCH with the same reply
            while True:
                try:
                    data, addr = device.recvfrom(1024)
                except OSError:
                    return
                requests.append(data)
                device.sendto(make_response(usn="uuid:loopback"), addr)

        t = threading.Thread(target=respond, daemon=True)
        t.start()
        try:
            found = discover(timeout=0.4, mx=0.1, host="127.0.0.1", port=port,
                             socket_factory=SocketFactory(interface="127.0.0.1", poll_interval=0.05))
        finally:
            device.close()
        assert len(requests) >= 2
        assert requests[0].startswith(b"M-SEARCH * HTTP/1.1\r\n")
        assert f"HOST: 127.0.0.1:{port}".encode() in requests[0]
        assert [r.unique_service_name for r in found] == ["uuid:loopback"]


class TestCli:
    def test_prints_devices(self, monkeypatch, capsys):
        calls = {}

        def fake_discover(**kwargs):
            calls.update(kwargs)
            resp = parse_search_response(make_response(usn="uuid:cli"))
            kwargs["on_response"](resp)
            return [resp]

        monkeypatch.setattr(cli, "discover", fake_discover)
        assert cli.main(["-t", "upnp:rootdevice", "--timeout", "2", "--mx", "1"]) == 0
        out = capsys.readouterr().out
        assert "uuid:cli" in out
        assert "done, 1 devices found" in out
        assert calls["search_target"] == "upnp:rootdevice"
        assert calls["timeout"] == 2.0
        assert calls["mx"] == 1.0
        assert calls["port"] == 1900

    def test_abort_exits_nonzero(self, monkeypatch, capsys):
        def fake_discover(**kwargs):
            raise SearchAborted(OSError(errno.ENETDOWN, "Network is down"))

        monkeypatch.setattr(cli, "discover", fake_discover)
        assert cli.main([]) == 1
        assert "search failed" in capsys.readouterr().err

    def test_bad_timeout_is_usage_error(self, capsys):
        with pytest.raises(SystemExit) as exc:
            cli.main(["--timeout", "0"])
        assert exc.value.code == 2
