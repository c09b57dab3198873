"""
Tests for the natcal home directory and config file.
"""

import tomllib

import pytest
from dateutil import tz

from natcal.natcal_env import NatcalConfig, NatcalEnvironment, render_config
from natcal.shared import log_msg, timedelta_str_to_seconds


@pytest.mark.unit
class TestHome:
    def test_env_var(self, natcal_home):
        assert NatcalEnvironment().home == natcal_home

    def test_xdg(self, monkeypatch, tmp_path):
        monkeypatch.delenv("NATCAL_HOME", raising=False)
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
        assert NatcalEnvironment().home == tmp_path / "xdg" / "natcal"


@pytest.mark.unit
class TestConfig:
    def test_created_with_defaults(self, natcal_home):
        env = NatcalEnvironment()
        config = env.config
        assert config == NatcalConfig()
        assert env.config_path.exists()
        data = tomllib.loads(env.config_path.read_text())
        assert data["durations"]["reminder"] == "15m"

    def test_messages_go_to_stderr(self, natcal_home, capsys):
        NatcalEnvironment().load_config()
        captured = capsys.readouterr()
        assert captured.out == ""
        assert "Created new config file" in captured.err

    def test_template_is_valid_toml(self):
        data = tomllib.loads(render_config(NatcalConfig()))
        assert NatcalConfig.model_validate(data) == NatcalConfig()

    def test_user_values_kept(self, natcal_home):
        natcal_home.mkdir(parents=True)
        (natcal_home / "config.toml").write_text(
            '[parse]\ntimezone = "Europe/Madrid"\n\n[durations]\nevent = "45m"\n'
        )
        env = NatcalEnvironment()
        assert env.config.parse.timezone == "Europe/Madrid"
        assert env.durations()["event"] == "45m"
        assert env.durations()["task"] == "30m"
        # missing defaults are written back
        assert 'reminder = "15m"' in env.config_path.read_text()
        assert env.zone() == tz.gettz("Europe/Madrid")

    def test_invalid_file_falls_back(self, natcal_home):
        natcal_home.mkdir(parents=True)
        (natcal_home / "config.toml").write_text('[durations]\nevent = "soon"\n')
        assert NatcalEnvironment().config == NatcalConfig()

    def test_unknown_zone(self, natcal_home):
        natcal_home.mkdir(parents=True)
        (natcal_home / "config.toml").write_text('[parse]\ntimezone = "Mars/Olympus"\n')
        with pytest.raises(ValueError):
            NatcalEnvironment().zone()


@pytest.mark.unit
class TestShared:
    def test_timedelta_str(self):
        assert timedelta_str_to_seconds("1h30m") == (True, 5400)
        assert timedelta_str_to_seconds("2w") == (True, 1209600)
        ok, msg = timedelta_str_to_seconds("soon")
        assert not ok
        assert "soon" in msg

    def test_log_msg_writes_under_home(self, natcal_home):
        log_msg("something happened")
        (log_file,) = (natcal_home / "logs").glob("log_*.md")
        text = log_file.read_text()
        assert "something happened" in text
        assert "test_log_msg_writes_under_home" in text
