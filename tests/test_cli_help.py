import importlib

import pytest
from click.testing import CliRunner


@pytest.fixture
def cli_main():
    import natcal.cli.main as cli_main

    return importlib.reload(cli_main)


@pytest.mark.unit
def test_help_does_not_require_config(monkeypatch, tmp_path, cli_main):
    home = tmp_path / "home"
    xdg = tmp_path / "xdg"

    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(xdg))
    monkeypatch.delenv("NATCAL_HOME", raising=False)

    runner = CliRunner()
    result = runner.invoke(cli_main.cli, ["--help"])

    assert result.exit_code == 0
    assert "Usage:" in result.output
    assert not (xdg / "natcal" / "config.toml").exists()


@pytest.mark.unit
def test_parse_shows_fields(natcal_home, cli_main):
    runner = CliRunner()
    result = runner.invoke(
        cli_main.cli,
        [
            "parse",
            "--at",
            "2024-03-15 12:00",
            "--tz",
            "UTC",
            "%done @block Fly tomorrow at 9",
        ],
    )

    assert result.exit_code == 0, result.output
    assert "Fly" in result.output
    assert "block" in result.output
    assert "@block %done Fly at 16/03/24 09:00-10:00" in result.output
    assert (natcal_home / "config.toml").exists()


@pytest.mark.unit
def test_parse_ical(cli_main):
    runner = CliRunner()
    result = runner.invoke(
        cli_main.cli,
        ["parse", "--ical", "--at", "2024-03-15 12:00", "--tz", "UTC", "lunch today at 13"],
    )

    assert result.exit_code == 0, result.output
    assert "BEGIN:VEVENT" in result.output
    assert "DTSTART:20240315T130000Z" in result.output


@pytest.mark.unit
def test_check_rejects_missing_date(cli_main):
    runner = CliRunner()
    result = runner.invoke(cli_main.cli, ["check", "--tz", "UTC", "meeting at invalid time"])

    assert result.exit_code == 1
    assert "Invalid entry" in result.output


@pytest.mark.unit
def test_next_occurrence(cli_main):
    runner = CliRunner()
    result = runner.invoke(
        cli_main.cli,
        [
            "next",
            "--at",
            "2024-03-15 12:00",
            "--tz",
            "UTC",
            "standup today at 9 every weekday",
        ],
    )

    assert result.exit_code == 0, result.output
    assert "Mon 2024-03-18 09:00" in result.output


@pytest.mark.unit
def test_unknown_timezone(cli_main):
    runner = CliRunner()
    result = runner.invoke(cli_main.cli, ["parse", "--tz", "Mars/Olympus", "lunch today"])

    assert result.exit_code != 0


@pytest.mark.unit
def test_subcommand_help_does_not_create_config(natcal_home, cli_main):
    runner = CliRunner()
    result = runner.invoke(cli_main.cli, ["parse", "--help"])

    assert result.exit_code == 0, result.output
    assert "--ical" in result.output
    assert not (natcal_home / "config.toml").exists()


@pytest.mark.unit
def test_first_run_ical_output_is_clean(natcal_home, cli_main):
    runner = CliRunner()
    result = runner.invoke(
        cli_main.cli,
        ["parse", "--ical", "--at", "2024-03-15 12:00", "--tz", "UTC", "lunch today at 13"],
    )

    assert result.exit_code == 0, result.output
    assert (natcal_home / "config.toml").exists()
    assert result.stdout.startswith("BEGIN:VCALENDAR")
    assert "Created new config file" in result.stderr
