"""Unit tests for the assetcal command line."""

import json
from datetime import date

import pytest

from assetcal.cli import load_assets, main_entry, render_month
from assetcal.cli.parser import create_parser, parse_weekdays
from assetcal.exceptions import ValidationError

ASSETS_YAML = """\
assets:
  - id: F1
    name: Desk
    type: Furniture
    manager: J. Smith
  - id: F2
    name: Chair
    type: Furniture
    manager: J. Smith
  - id: S1
    name: Voyager
    type: Spaceship
"""


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch, tmp_path):
    monkeypatch.setenv("ASSETCAL_CONFIG_DIR", str(tmp_path / "config"))
    monkeypatch.setenv("ASSETCAL_DATA_DIR", str(tmp_path / "data"))


@pytest.fixture
def assets_file(tmp_path):
    path = tmp_path / "assets.yaml"
    path.write_text(ASSETS_YAML, encoding="utf-8")
    return path


class TestRenderMonth:
    """Tests for the text month grid."""

    def test_march_2025(self):
        lines = render_month(date(2025, 3, 15)).splitlines()

        assert lines[0].strip() == "March 2025"
        assert lines[1] == "Su Mo Tu We Th Fr Sa"
        assert len(lines) == 8
        assert lines[2] == " ".join([" ."] * 6 + [" 1"])
        assert lines[7] == " ".join(["30", "31"] + [" ."] * 5)


class TestParser:
    """Tests for argument parsing."""

    def test_weekday_list(self):
        assert parse_weekdays("1,3") == [1, 3]

    def test_count_and_until_are_exclusive(self):
        with pytest.raises(SystemExit):
            create_parser().parse_args(
                [
                    "expand",
                    "--start",
                    "2025-01-01",
                    "--frequency",
                    "daily",
                    "--count",
                    "2",
                    "--until",
                    "2025-02-01",
                ]
            )

    def test_command_required(self):
        with pytest.raises(SystemExit):
            create_parser().parse_args([])


class TestCommands:
    """Tests for running subcommands through main_entry."""

    def test_grid(self, capsys):
        assert main_entry(["grid", "--month", "2025-03-15"]) == 0

        assert "March 2025" in capsys.readouterr().out

    def test_expand(self, capsys):
        exit_code = main_entry(
            [
                "expand",
                "--start",
                "2025-01-01T09:00",
                "--frequency",
                "weekly",
                "--days",
                "1,3",
                "--count",
                "4",
            ]
        )

        lines = capsys.readouterr().out.splitlines()
        assert exit_code == 0
        assert lines[0] == "2025-01-01T09:00:00  2025-01-01T10:00:00"
        assert [line[:10] for line in lines] == [
            "2025-01-01",
            "2025-01-06",
            "2025-01-08",
            "2025-01-13",
        ]

    def test_expand_reports_hard_cap(self, capsys):
        main_entry(
            ["--quiet", "expand", "--start", "2025-01-01", "--frequency", "daily", "--cap", "3"]
        )

        captured = capsys.readouterr()
        assert len(captured.out.splitlines()) == 3
        assert "Stopped at hard cap after 3 occurrences" in captured.err

    def test_schedule_csv(self, capsys, assets_file):
        """Schedules are exported and conflicts and fallbacks reported."""
        exit_code = main_entry(
            [
                "--quiet",
                "schedule",
                str(assets_file),
                "--start",
                "2025-03-10",
                "--count",
                "1",
                "--format",
                "csv",
            ]
        )

        captured = capsys.readouterr()
        lines = captured.out.splitlines()
        assert exit_code == 0
        assert lines[0].startswith("Title,Description,Start")
        assert len(lines) == 4
        assert "Conflict on 2025-03-10 for J. Smith: 2 inspections" in captured.err
        assert "Asset S1: unrecognized type" in captured.err

    def test_schedule_to_file(self, tmp_path, assets_file):
        output = tmp_path / "out.json"

        exit_code = main_entry(
            [
                "-q",
                "schedule",
                str(assets_file),
                "--start",
                "2025-03-10",
                "--count",
                "1",
                "--format",
                "json",
                "--output",
                str(output),
            ]
        )

        events = json.loads(output.read_text(encoding="utf-8"))
        assert exit_code == 0
        assert [e["start"][:10] for e in events] == ["2025-03-10", "2025-03-10", "2025-03-11"]

    def test_schedule_numeric_asset_ids(self, capsys, tmp_path):
        """YAML asset ids parsed as integers are scheduled normally."""
        path = tmp_path / "numbered.yaml"
        path.write_text("- id: 17\n  name: Van\n  type: Vehicle\n", encoding="utf-8")

        exit_code = main_entry(
            ["-q", "schedule", str(path), "--start", "2025-03-10", "--count", "1", "--format=json"]
        )

        events = json.loads(capsys.readouterr().out)
        assert exit_code == 0
        assert {e["asset_id"] for e in events} == {"17"}

    def test_schedule_malformed_asset(self, capsys, tmp_path):
        """Assets missing required fields fail with exit code 1, not a traceback."""
        path = tmp_path / "broken.yaml"
        path.write_text("- name: Van\n", encoding="utf-8")

        assert main_entry(["-q", "schedule", str(path)]) == 1
        assert "Error:" in capsys.readouterr().err

    def test_schedule_missing_file(self, capsys, tmp_path):
        exit_code = main_entry(["-q", "schedule", str(tmp_path / "missing.yaml")])

        assert exit_code == 1
        assert "Error:" in capsys.readouterr().err


class TestLoadAssets:
    """Tests for reading asset files."""

    def test_yaml_mapping(self, assets_file):
        assert [a["id"] for a in load_assets(assets_file)] == ["F1", "F2", "S1"]

    def test_json_list(self, tmp_path):
        path = tmp_path / "assets.json"
        path.write_text(json.dumps([{"id": "A1", "name": "Maple House"}]), encoding="utf-8")

        assert load_assets(path) == [{"id": "A1", "name": "Maple House"}]

    def test_rejects_non_list(self, tmp_path):
        path = tmp_path / "assets.yaml"
        path.write_text("assets: 3\n", encoding="utf-8")

        with pytest.raises(ValidationError):
            load_assets(path)
