"""Unit tests for the probe command line."""

import json
import os
import re
from functools import partial
from pathlib import Path
from unittest.mock import patch

import httpx
import pytest

from etcd_probe.cli import build_parser, main
from etcd_probe.client import EtcdClient
from etcd_probe.errors import EtcdConnectionError


@pytest.fixture(autouse=True)
def clean_environment():
    with patch.dict(os.environ, {}, clear=True):
        yield


def run_cli(argv, factory):
    with patch("etcd_probe.evaluator.EtcdClient", factory):
        return main(argv)


class TestUsage:

    def test_no_command_prints_usage(self, capsys):
        exit_code = main([])

        assert exit_code == 3
        assert "usage:" in capsys.readouterr().out

    def test_unknown_flag(self, capsys, fake_client_factory):
        factory = fake_client_factory()

        with pytest.raises(SystemExit) as exc:
            run_cli(["alpr", "--bogus"], factory)

        assert exc.value.code == 1
        assert "unrecognized arguments: --bogus" in capsys.readouterr().err
        assert factory.created == []

    def test_unknown_command(self, capsys):
        with pytest.raises(SystemExit) as exc:
            main(["defrag"])

        assert exc.value.code == 1

    def test_invalid_bool_value(self, fake_client_factory):
        factory = fake_client_factory()

        with pytest.raises(SystemExit) as exc:
            run_cli(["health", "--insecure-transport=maybe"], factory)

        assert exc.value.code == 1
        assert factory.created == []

    def test_flags_parse(self):
        args = build_parser().parse_args([
            "alpr",
            "--endpoint", "10.0.0.1:2379",
            "--insecure-transport=false",
            "--insecure-skip-tls-verify",
            "-w", "0.2",
            "-c", "0.8",
            "--total", "3",
        ])

        assert args.command == "alpr"
        assert args.endpoints == "10.0.0.1:2379"
        assert args.insecure_transport is False
        assert args.insecure_skip_tls_verify is True
        assert args.warning == "0.2"
        assert args.critical == "0.8"
        assert args.total == 3

    def test_unset_flags_left_off_namespace(self):
        args = build_parser().parse_args(["health"])

        assert not hasattr(args, "endpoints")
        assert not hasattr(args, "insecure_transport")
        assert not hasattr(args, "warning")


class TestAlprCommand:

    def test_ok(self, capsys, fake_client_factory):
        exit_code = run_cli(["alpr"], fake_client_factory(latency=0.05))

        assert exit_code == 0
        assert capsys.readouterr().out == "OK - Average Latency Per Request: 0.05 secs\n"

    def test_warning(self, capsys, fake_client_factory):
        exit_code = run_cli(["alpr"], fake_client_factory(latency=0.5))

        assert exit_code == 1
        assert capsys.readouterr().out == "WARNING - Average Latency Per Request: 0.5 secs\n"

    def test_thresholds_from_flags(self, capsys, fake_client_factory):
        exit_code = run_cli(["alpr", "-w", "0.01", "--critical", "0.03"], fake_client_factory(latency=0.05))

        assert exit_code == 2
        assert capsys.readouterr().out.startswith("CRITICAL - ")

    def test_bad_threshold_is_unknown_without_network(self, capsys, fake_client_factory):
        factory = fake_client_factory()

        exit_code = run_cli(["alpr", "-w", "fast"], factory)

        assert exit_code == 3
        out = capsys.readouterr().out
        assert out.startswith("UNKNOWN - invalid warning threshold")
        assert out.count("\n") == 1
        assert factory.created == []

    def test_connection_settings_reach_client(self, fake_client_factory):
        factory = fake_client_factory()

        run_cli([
            "alpr",
            "--endpoints", "10.0.0.1:2379,10.0.0.2:2379",
            "--user", "root",
            "--password", "s3cret",
            "--dial-timeout", "1",
        ], factory)

        config = factory.created[0].config
        assert config.endpoints == ["10.0.0.1:2379", "10.0.0.2:2379"]
        assert config.user == "root"
        assert config.password == "s3cret"
        assert config.dial_timeout == 1.0

    def test_environment_fallback(self, fake_client_factory):
        factory = fake_client_factory()

        with patch.dict(os.environ, {"ETCDCTL_ENDPOINTS": "10.0.0.7:2379", "ETCDCTL_INSECURE_TRANSPORT": "false"}):
            run_cli(["alpr", "--endpoint", "10.0.0.8:2379"], factory)

        config = factory.created[0].config
        assert config.endpoints == ["10.0.0.8:2379"]
        assert config.insecure_transport is False

    def test_defaults(self, fake_client_factory):
        factory = fake_client_factory()

        run_cli(["alpr"], factory)

        client = factory.created[0]
        assert client.config.endpoints == ["127.0.0.1:2379"]
        assert client.config.insecure_transport is True
        assert client.config.insecure_skip_tls_verify is False
        assert client.calls == [("measure_latency", "dummy", 1)]

    def test_total_flag(self, fake_client_factory):
        factory = fake_client_factory()

        run_cli(["alpr", "--total", "10"], factory)

        assert factory.created[0].calls == [("measure_latency", "dummy", 10)]

    def test_invalid_environment_is_unknown(self, capsys, fake_client_factory):
        factory = fake_client_factory()

        with patch.dict(os.environ, {"ETCDCTL_COMMAND_TIMEOUT": "later"}):
            exit_code = run_cli(["alpr"], factory)

        assert exit_code == 3
        assert capsys.readouterr().out.startswith("UNKNOWN - invalid connection settings")
        assert factory.created == []

    def test_env_file(self, tmp_path: Path, fake_client_factory):
        env_file = tmp_path / "probe.env"
        env_file.write_text("ETCDCTL_ENDPOINTS=10.1.1.1:2379\n")
        factory = fake_client_factory()

        run_cli(["alpr", "--env-file", str(env_file)], factory)

        assert factory.created[0].config.endpoints == ["10.1.1.1:2379"]

    def test_missing_env_file(self, capsys, fake_client_factory):
        exit_code = run_cli(["alpr", "--env-file", "/nonexistent/probe.env"], fake_client_factory())

        assert exit_code == 3
        assert "env file not found" in capsys.readouterr().out


class TestHealthCommand:

    def test_healthy(self, capsys, fake_client_factory):
        exit_code = run_cli(["health"], fake_client_factory(members=[True, True]))

        assert exit_code == 0
        assert capsys.readouterr().out == "OK - ETCD state: healthy\n"

    def test_client_failure(self, capsys, fake_client_factory):
        factory = fake_client_factory(error=EtcdConnectionError("connection refused"))

        exit_code = run_cli(["health"], factory)

        captured = capsys.readouterr()
        assert exit_code == 2
        assert captured.out == "CRITICAL - ETCD state: unhealthy\n"
        assert "connection refused" not in captured.out

    def test_partial_health(self, capsys, fake_client_factory):
        exit_code = run_cli(["health", "-v"], fake_client_factory(members=[True, False, True]))

        captured = capsys.readouterr()
        assert exit_code == 2
        assert captured.out == "CRITICAL - ETCD state: unhealthy\n"


class TestGatewayRoundTrip:
    """Commands driven through the real EtcdClient against a mock gateway."""

    RANGE_OK = {"header": {"cluster_id": "1", "member_id": "2", "revision": "1", "raft_term": "2"}}

    def gateway(self, refuse_hosts=()):
        requests = []

        def handler(request):
            requests.append(request)
            if request.url.host in refuse_hosts:
                raise httpx.ConnectError("connection refused", request=request)
            if request.url.path.endswith("/auth/authenticate"):
                return httpx.Response(200, json={"header": {}, "token": "tok.123"})
            return httpx.Response(200, json=self.RANGE_OK)

        return partial(EtcdClient, transport=httpx.MockTransport(handler)), requests

    def test_alpr(self, capsys):
        factory, requests = self.gateway()

        exit_code = run_cli(["alpr", "--user", "root:s3cret", "-c", "60", "-w", "30"], factory)

        out = capsys.readouterr().out
        assert exit_code == 0
        assert re.fullmatch(r"OK - Average Latency Per Request: \d+\.\d+ secs\n", out)
        assert [request.url.path for request in requests] == ["/v3/auth/authenticate", "/v3/kv/range"]
        assert json.loads(requests[0].content) == {"name": "root", "password": "s3cret"}
        assert requests[1].headers["authorization"] == "tok.123"

    def test_health_all_members(self, capsys):
        factory, requests = self.gateway()

        exit_code = run_cli(["health", "--endpoints", "10.0.0.1:2379,10.0.0.2:2379"], factory)

        assert exit_code == 0
        assert capsys.readouterr().out == "OK - ETCD state: healthy\n"
        assert [str(request.url) for request in requests] == [
            "http://10.0.0.1:2379/v3/kv/range",
            "http://10.0.0.2:2379/v3/kv/range",
        ]

    def test_health_unreachable_member(self, capsys):
        factory, _ = self.gateway(refuse_hosts=("10.0.0.2",))

        exit_code = run_cli(["health", "--endpoints", "10.0.0.1:2379,10.0.0.2:2379"], factory)

        captured = capsys.readouterr()
        assert exit_code == 2
        assert captured.out == "CRITICAL - ETCD state: unhealthy\n"
        assert "connection refused" not in captured.out
