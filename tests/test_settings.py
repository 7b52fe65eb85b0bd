"""Tests for configuration loading and the command-line entry point."""

import sys
from pathlib import Path

import pytest
from pydantic import ValidationError

sys.path.insert(0, str(Path(__file__).parent.parent))

from gobgp_exporter import APP_NAME, __version__
from gobgp_exporter.collectors.families import TableType
from gobgp_exporter.main import build_parser, load_settings, main
from gobgp_exporter.models import ExporterSettings


class TestExporterSettings:

    def test_defaults(self):
        s = ExporterSettings()
        assert s.listen_address == ":9474"
        assert s.listen_host == "0.0.0.0"
        assert s.listen_port == 9474
        assert s.metrics_path == "/metrics"
        assert s.server_address == "127.0.0.1:50051"
        assert s.timeout == 2
        assert s.poll_interval == 15
        assert s.auth_token == "anonymous"
        assert s.enabled_table_types() == [TableType.GLOBAL, TableType.LOCAL]
        assert len(s.enabled_families()) == 14
        assert not s.tls.enabled

    def test_listen_host(self):
        assert ExporterSettings(listen_address="127.0.0.1:9000").listen_host == "127.0.0.1"
        assert ExporterSettings(listen_address="[::1]:9000").listen_host == "::1"

    def test_families_normalized(self):
        s = ExporterSettings(address_families=["IPv4", "EVPN"], table_types=["GLOBAL"])
        assert s.address_families == ["ipv4", "evpn"]
        assert s.table_types == ["global"]

    @pytest.mark.parametrize("field,value", [
        ("address_families", ["ipx"]),
        ("table_types", ["adj_in"]),
        ("metrics_path", "metrics"),
        ("log_level", "verbose"),
        ("timeout", 0),
        ("poll_interval", -1),
        ("listen_address", "9474"),
    ])
    def test_invalid(self, field, value):
        with pytest.raises(ValidationError):
            ExporterSettings(**{field: value})

    def test_empty_auth_token_rejected(self):
        with pytest.raises(ValidationError, match="must not be empty"):
            ExporterSettings(auth_token="")

    def test_tls_requires_cert_and_key(self):
        with pytest.raises(ValidationError, match="must set both"):
            ExporterSettings(tls={"enabled": True, "client_cert_path": "client.pem"})

    def test_from_yaml(self, tmp_path: Path):
        path = tmp_path / "exporter.yml"
        path.write_text(
            "server_address: 192.0.2.1:50051\n"
            "poll_interval: 30\n"
            "address_families: [ipv4, ipv6]\n"
            "tls:\n"
            "  enabled: true\n"
            "  ca_path: /etc/gobgp/ca.pem\n"
        )
        s = ExporterSettings.from_yaml(path)
        assert s.server_address == "192.0.2.1:50051"
        assert s.poll_interval == 30
        assert s.address_families == ["ipv4", "ipv6"]
        assert s.tls.enabled
        assert s.tls.ca_path == "/etc/gobgp/ca.pem"

    def test_overrides_win_over_yaml(self, tmp_path: Path):
        path = tmp_path / "exporter.yml"
        path.write_text("poll_interval: 30\ntls:\n  ca_path: ca.pem\n")
        s = ExporterSettings.from_yaml(path, poll_interval=5, tls={"server_name": "gobgp.example.com"})
        assert s.poll_interval == 5
        assert s.tls.ca_path == "ca.pem"
        assert s.tls.server_name == "gobgp.example.com"

    def test_yaml_must_be_mapping(self, tmp_path: Path):
        path = tmp_path / "exporter.yml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ValueError, match="mapping"):
            ExporterSettings.from_yaml(path)


class TestCommandLine:

    def test_flags(self):
        args = build_parser().parse_args([
            "--gobgp.address", "10.0.0.1:50051",
            "--gobgp.poll-interval", "60",
            "--web.telemetry-path", "/probe",
            "--gobgp.tls", "--gobgp.tls-server-name", "gobgp.example.com",
        ])
        s = load_settings(args)
        assert s.server_address == "10.0.0.1:50051"
        assert s.poll_interval == 60
        assert s.metrics_path == "/probe"
        assert s.tls.enabled
        assert s.tls.server_name == "gobgp.example.com"
        assert s.timeout == 2

    def test_flags_override_config_file(self, tmp_path: Path):
        path = tmp_path / "exporter.yml"
        path.write_text("auth_token: from-file\ntimeout: 7\n")
        args = build_parser().parse_args(["--config", str(path), "--auth.token", "from-flag"])
        s = load_settings(args)
        assert s.auth_token == "from-flag"
        assert s.timeout == 7

    def test_version(self, capsys):
        assert main(["--version"]) == 0
        assert capsys.readouterr().out.strip() == f"{APP_NAME} {__version__}"

    def test_metrics_table(self, capsys):
        assert main(["--metrics"]) == 0
        assert "`gobgp_router_up`" in capsys.readouterr().out

    def test_invalid_config_exits_1(self, capsys):
        assert main(["--log.level", "verbose"]) == 1
        assert "invalid configuration" in capsys.readouterr().err

    def test_invalid_address_exits_1(self):
        assert main(["--gobgp.address", "localaddress:50051"]) == 1

    def test_empty_auth_token_exits_1(self, capsys):
        assert main(["--auth.token", ""]) == 1
        assert "auth token must not be empty" in capsys.readouterr().err

    def test_missing_ca_file_exits_1(self, tmp_path: Path):
        missing = tmp_path / "missing-ca.pem"
        assert main(["--gobgp.tls", "--gobgp.tls-ca", str(missing)]) == 1

    def test_non_pem_ca_file_exits_1(self, tmp_path: Path):
        ca = tmp_path / "ca.pem"
        ca.write_text("not a certificate\n")
        assert main(["--gobgp.tls", "--gobgp.tls-ca", str(ca)]) == 1
