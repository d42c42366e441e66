"""End-to-end peers and the command line entry points."""

import socket
import threading

import pytest

from streamchat import client, peer, server
from streamchat.common.errors import TransportError
from streamchat.common.net import accept_one, connect_to, open_listener, parse_port
from streamchat.common.protocol import LcgParams, SessionParams
from streamchat.handshake import KeyExchangeResult
from streamchat.peer import run_peer
from streamchat.session import INPUT_CLOSED, PEER_CLOSED, Role


def feed(*items):
    it = iter(items)
    return lambda: next(it, "")


def test_listener_and_connector_over_tcp(capsys):
    params = SessionParams()
    results = {}

    with open_listener("127.0.0.1", 0) as listener:
        port = listener.getsockname()[1]

        def connector():
            conn = connect_to("127.0.0.1", port)
            with conn:
                results["connector"] = run_peer(
                    conn, Role.CONNECTOR, params, peer_label="SERVER", read_line=feed("pong\n")
                )

        t = threading.Thread(target=connector)
        t.start()
        conn, _ = accept_one(listener)
        with conn:
            results["listener"] = run_peer(
                conn, Role.LISTENER, params, peer_label="CLIENT", read_line=feed("ping\n", "bye\n")
            )
        t.join(timeout=5)

    out = capsys.readouterr().out
    assert "[SERVER] ping" in out
    assert "[CLIENT] pong" in out
    assert "[SERVER] bye" in out
    assert out.count("[VERIFY] Session fingerprint:") == 2
    assert results["connector"].reason == INPUT_CLOSED
    assert results["listener"].reason == PEER_CLOSED


def test_verbose_prints_traces(capsys):
    left, right = socket.socketpair()
    params = SessionParams()

    def other():
        with right:
            run_peer(right, Role.CONNECTOR, params, peer_label="SERVER", read_line=feed())

    t = threading.Thread(target=other)
    t.start()
    with left:
        run_peer(left, Role.LISTENER, params, peer_label="CLIENT", verbose=True, read_line=feed("hi\n"))
    t.join(timeout=5)

    out = capsys.readouterr().out
    assert "[ENCRYPT]" in out
    assert 'Plain: [104, 105] ("hi")' in out
    assert "[STREAM] Seed:" in out


def test_parse_addr():
    assert client.parse_addr("example.org:9000") == ("example.org", 9000)
    assert client.parse_addr("[::1]:8080") == ("::1", 8080)
    with pytest.raises(ValueError):
        client.parse_addr("host:port")
    with pytest.raises(ValueError):
        client.parse_addr(":8080")


def test_parse_addr_bare_host_uses_env_port(monkeypatch):
    monkeypatch.setenv("CHAT_PORT", "7000")
    assert client.parse_addr("localhost") == ("localhost", 7000)


def test_default_args(monkeypatch):
    for name in ("CHAT_HOST", "CHAT_PORT", "CHAT_BIND_HOST"):
        monkeypatch.delenv(name, raising=False)
    assert client.parse_args([]).addr == "127.0.0.1:8080"
    args = server.parse_args([])
    assert (args.bind, args.port, args.verbose) == ("0.0.0.0", "8080", False)
    assert server.parse_args(["9090", "-v"]).port == "9090"


def test_env_args(monkeypatch):
    monkeypatch.setenv("CHAT_HOST", "10.0.0.5")
    monkeypatch.setenv("CHAT_PORT", "4444")
    assert client.parse_args([]).addr == "10.0.0.5:4444"
    assert server.parse_args([]).port == "4444"


def test_client_connect_refused(capsys):
    probe = socket.socket()
    probe.bind(("127.0.0.1", 0))
    port = probe.getsockname()[1]
    probe.close()

    assert client.main([f"127.0.0.1:{port}"]) == 1
    assert "[ERROR] cannot connect" in capsys.readouterr().out


def test_client_rejects_bad_params(monkeypatch, capsys):
    monkeypatch.setenv("CHAT_DH_G", "1")
    assert client.main(["127.0.0.1:1"]) == 1
    assert "[ERROR]" in capsys.readouterr().out


def test_server_bind_failure(capsys):
    with open_listener("127.0.0.1", 0) as taken:
        port = taken.getsockname()[1]
        # SO_REUSEADDR does not allow two listeners on one port.
        assert server.main(["--bind", "127.0.0.1", str(port)]) == 1
    assert "[ERROR] cannot listen" in capsys.readouterr().out


def test_server_port_out_of_range(capsys):
    assert server.main(["--bind", "127.0.0.1", "70000"]) == 1
    assert "[ERROR] port out of range" in capsys.readouterr().out


def test_server_bad_env_port(monkeypatch, capsys):
    monkeypatch.setenv("CHAT_PORT", "abc")
    assert server.main([]) == 1
    assert "[ERROR] invalid port" in capsys.readouterr().out


def test_client_port_out_of_range(capsys):
    assert client.main(["127.0.0.1:70000"]) == 1
    assert "[ERROR] port out of range" in capsys.readouterr().out


def test_open_listener_rejects_huge_port():
    with pytest.raises(TransportError, match="cannot listen"):
        open_listener("127.0.0.1", 70000)


@pytest.mark.parametrize("value,expected", [("0", 0), ("8080", 8080), (65535, 65535)])
def test_parse_port(value, expected):
    assert parse_port(value) == expected


@pytest.mark.parametrize("value", ["-1", "65536", "http", "", None])
def test_parse_port_rejects(value):
    with pytest.raises(ValueError):
        parse_port(value)


def test_reader_closed_when_session_cannot_start(monkeypatch):
    left, right = socket.socketpair()
    handles = []

    def fake_exchange(conn, dh):
        return KeyExchangeResult(public_key=2, peer_public_key=2, shared_secret=1 << 52, seed=1 << 20)

    def recording_split(conn):
        reader, writer = conn.dup(), conn
        handles.append(reader)
        return reader, writer

    monkeypatch.setattr(peer, "exchange_keys", fake_exchange)
    monkeypatch.setattr(peer, "split_handles", recording_split)
    # 2^20 does not fit a 16-bit generator state.
    params = SessionParams(lcg=LcgParams(a=75, c=74, m=1 << 16))

    with left, right:
        with pytest.raises(ValueError):
            run_peer(left, Role.LISTENER, params, peer_label="CLIENT", read_line=feed())
    assert handles[0].fileno() == -1
