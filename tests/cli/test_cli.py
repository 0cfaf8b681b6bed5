"""Tests for the shelly-sim command line interface."""

import json

import pytest
from click.testing import CliRunner

from shellysim.cli.simulator import cli


@pytest.fixture
def runner():
    return CliRunner()


class TestDevicesCommand:
    """Tests for 'shelly-sim devices'."""

    def test_json_output(self, runner, fleet_path):
        """Test --json lists devices with their components."""
        result = runner.invoke(cli, ["devices", "-f", str(fleet_path), "--json"], obj={})

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert [entry["name"] for entry in data] == [
            "Kitchen Light",
            "Living Room Dimmer",
            "Garage Relay",
            "Hallway",
        ]
        assert data[0]["components"] == ["input:0", "script:1", "switch:0"]
        assert data[3]["components"] == []

    def test_table_output(self, runner, fleet_path):
        """Test the table output names every device."""
        result = runner.invoke(cli, ["devices", "-f", str(fleet_path)], obj={})

        assert result.exit_code == 0
        assert "Fixture Devices" in result.output
        assert "Total: 4 device(s)" in result.output

    def test_missing_file(self, runner, tmp_path):
        """Test a missing fixture is a usage error."""
        result = runner.invoke(cli, ["devices", "-f", str(tmp_path / "absent.yaml")], obj={})
        assert result.exit_code == 2


class TestValidateCommand:
    """Tests for 'shelly-sim validate'."""

    def test_valid(self, runner, fleet_path):
        """Test the sample fleet validates."""
        result = runner.invoke(cli, ["validate", "-f", str(fleet_path)], obj={})

        assert result.exit_code == 0
        assert "Fixture OK" in result.output
        assert "1 legacy, 3 current" in result.output

    def test_invalid(self, runner, tmp_path):
        """Test a malformed fixture exits with status 1."""
        path = tmp_path / "bad.yaml"
        path.write_text("config:\n  devices: {}\n")

        result = runner.invoke(cli, ["validate", "-f", str(path)], obj={})

        assert result.exit_code == 1
        assert "Fixture error" in result.output

    def test_duplicate_names_warned(self, runner, tmp_path):
        """Test duplicate device names are reported."""
        path = tmp_path / "dup.yaml"
        path.write_text("config:\n  devices:\n    - name: Plug\n    - name: plug\n")

        result = runner.invoke(cli, ["validate", "-f", str(path)], obj={})

        assert result.exit_code == 0
        assert "duplicate device name 'plug'" in result.output


class TestServeCommand:
    """Tests for 'shelly-sim serve' argument handling."""

    def test_requires_fixture(self, runner, monkeypatch):
        """Test serve refuses to start without a fixture."""
        monkeypatch.delenv("SHELLY_SIM_FIXTURES", raising=False)
        result = runner.invoke(cli, ["serve"], obj={})

        assert result.exit_code == 1
        assert "no fixture given" in result.output

    def test_invalid_config_file(self, runner, fleet_path, tmp_path):
        """Test unknown config keys are reported."""
        config = tmp_path / "sim.yaml"
        config.write_text("simulator:\n  colour: blue\n")

        result = runner.invoke(cli, ["serve", "-f", str(fleet_path), "-c", str(config)], obj={})

        assert result.exit_code == 1
        assert "Configuration error" in result.output
