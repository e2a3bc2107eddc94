"""Tests for the CLI entry point."""

import json
from unittest.mock import patch

import pytest
import yaml

from elasticache_sd.cli import apply_overrides, build_parser, main
from elasticache_sd.config import AppConfig
from elasticache_sd.discovery.models import TargetGroup
from elasticache_sd.exceptions import ConfigError, IdentityResolutionError, ProviderError


@pytest.fixture(autouse=True)
def _no_signal_handlers(monkeypatch):
    monkeypatch.setattr("elasticache_sd.cli._install_signal_handlers", lambda stop: None)


class TestCLI:
    def test_validate_defaults(self):
        assert main(["--validate"]) == 0

    def test_validate_valid_config(self, tmp_path):
        config_path = tmp_path / "config.yaml"
        config_path.write_text(yaml.dump({"discovery": {"refresh_interval_seconds": 60}}))
        assert main(["--validate", "-c", str(config_path)]) == 0

    def test_validate_invalid_config(self, tmp_path):
        config_path = tmp_path / "config.yaml"
        config_path.write_text(yaml.dump({"logging": {"format": "xml"}}))
        assert main(["--validate", "-c", str(config_path)]) == 1

    def test_missing_config_file(self):
        assert main(["-c", "/nonexistent/config.yaml", "--validate"]) == 1

    def test_invalid_refresh_interval_flag(self):
        assert main(["--validate", "--refresh.interval", "0"]) == 1

    def test_once_writes_output(self, tmp_path):
        output = tmp_path / "sd.json"
        group = TargetGroup(
            source="redis-a0001",
            targets=[{"__address__": "10.0.0.1:6379"}],
            labels={"__address__": "10.0.0.1:6379"},
        )
        with patch("elasticache_sd.cli.AWSProvider") as MockProvider, \
                patch("elasticache_sd.cli.ElastiCacheDiscovery") as MockDiscovery:
            MockDiscovery.return_value.refresh.return_value = [group]
            result = main(["--once", "--output.file", str(output)])

        assert result == 0
        MockProvider.assert_called_once()
        assert json.loads(output.read_text()) == [
            {"targets": ["10.0.0.1:6379"], "labels": {"__address__": "10.0.0.1:6379"}},
        ]

    def test_once_listing_failure(self, tmp_path):
        with patch("elasticache_sd.cli.AWSProvider"), \
                patch("elasticache_sd.cli.ElastiCacheDiscovery") as MockDiscovery:
            MockDiscovery.return_value.refresh.side_effect = ProviderError("throttled")
            assert main(["--once", "--output.file", str(tmp_path / "sd.json")]) == 1

    def test_identity_failure_is_fatal(self, tmp_path):
        with patch("elasticache_sd.cli.AWSProvider"), \
                patch("elasticache_sd.cli.ElastiCacheDiscovery") as MockDiscovery:
            MockDiscovery.side_effect = IdentityResolutionError("no credentials")
            assert main(["--output.file", str(tmp_path / "sd.json")]) == 1

    def test_run_uses_adapter(self, tmp_path):
        with patch("elasticache_sd.cli.AWSProvider"), \
                patch("elasticache_sd.cli.ElastiCacheDiscovery"), \
                patch("elasticache_sd.cli.FileSDAdapter") as MockAdapter:
            assert main(["--refresh.interval", "15"]) == 0
        MockAdapter.return_value.run.assert_called_once()


class TestApplyOverrides:
    def test_flags_override_config(self):
        args = build_parser().parse_args(["--output.file", "/tmp/x.json", "--refresh.interval", "30"])
        config = apply_overrides(AppConfig(), args)
        assert config.output.file == "/tmp/x.json"
        assert config.discovery.refresh_interval_seconds == 30

    def test_no_flags_keeps_config(self):
        args = build_parser().parse_args([])
        assert apply_overrides(AppConfig(), args) == AppConfig()

    def test_invalid_override_raises(self):
        args = build_parser().parse_args(["--refresh.interval", "-5"])
        with pytest.raises(ConfigError):
            apply_overrides(AppConfig(), args)

    def test_discovery_receives_config(self):
        with patch("elasticache_sd.cli.AWSProvider"), \
                patch("elasticache_sd.cli.ElastiCacheDiscovery") as MockDiscovery, \
                patch("elasticache_sd.cli.FileSDAdapter") as MockAdapter:
            main(["--refresh.interval", "42", "--output.file", "out.json"])
        args, kwargs = MockDiscovery.call_args
        assert args[1].refresh_interval_seconds == 42
        MockAdapter.assert_called_once_with(MockDiscovery.return_value, "out.json", "ELASTICACHESD")


class TestCLIErrors:
    @pytest.mark.parametrize("data", [
        {"resolver": {"retry_delay_seconds": "5"}},
        {"logging": {"level": 10}},
    ])
    def test_badly_typed_config_exits_1(self, tmp_path, capsys, data):
        config_path = tmp_path / "config.yaml"
        config_path.write_text(yaml.dump(data))
        assert main(["-c", str(config_path), "--validate"]) == 1
        assert "Configuration error:" in capsys.readouterr().err

    def test_session_failure_exits_1(self, tmp_path):
        with patch("elasticache_sd.cli.AWSProvider") as MockProvider:
            MockProvider.side_effect = ProviderError("profile not found", operation="Session")
            assert main(["--output.file", str(tmp_path / "sd.json")]) == 1
