"""Tests for the command-line interface."""

from __future__ import annotations

import json
import math

import pytest

from indoorsim.cli import build_config, format_table, main, parse_args
from indoorsim.corpora.office_floor import create_floor_plan

SMALL_RUN = [
    "--objects", "5",
    "--particles", "8",
    "--duration", "30",
    "--timestamps", "1",
    "--trials", "5",
    "--query-time-min", "10",
    "--window-sizes", "0.1,0.5",
    "--seed", "1",
]


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("INDOORSIM_SEED", raising=False)


class TestArguments:
    """Tests for argument parsing and config overrides."""

    def test_unset_options_are_none(self) -> None:
        args = parse_args([])

        assert args.objects is None
        assert args.window_sizes is None
        assert args.json is False

    def test_overrides_applied(self) -> None:
        config = build_config(parse_args(SMALL_RUN))

        assert config.num_object == 5
        assert config.num_particle == 8
        assert config.duration == 30
        assert config.num_timestamp == 1
        assert config.num_test_per_timestamp == 5
        assert config.query_time_min == 10.0
        assert config.window_sizes == [0.1, 0.5]
        assert config.seed == 1

    def test_version(self, capsys) -> None:
        with pytest.raises(SystemExit) as exc:
            parse_args(["--version"])

        assert exc.value.code == 0
        assert "0.1.0" in capsys.readouterr().out


class TestFormatTable:
    """Tests for the text table."""

    def test_one_row_per_window_size(self) -> None:
        results = {
            "window_sizes": [0.01, 0.1],
            "recall": [[0.5, 0.1], [0.75, 0.2]],
            "precision": [[0.25, 0.0], [math.nan, math.nan]],
            "f1": [[0.3, 0.05], [0.6, 0.1]],
        }

        lines = format_table(results).splitlines()

        assert len(lines) == 4
        assert "recall" in lines[0]
        assert lines[2].lstrip().startswith("0.01")
        assert "nan" in lines[3]


class TestMain:
    """End-to-end runs through main()."""

    def test_json_output(self, capsys) -> None:
        assert main([*SMALL_RUN, "--json"]) == 0

        results = json.loads(capsys.readouterr().out)
        assert results["window_sizes"] == [0.1, 0.5]
        for metric in ("recall", "precision", "f1"):
            assert len(results[metric]) == 2
            for mean, std in results[metric]:
                assert math.isnan(mean) or 0.0 <= mean <= 1.0
                assert math.isnan(std) or std >= 0.0

    def test_table_output(self, capsys) -> None:
        assert main(SMALL_RUN) == 0

        assert "window" in capsys.readouterr().out

    def test_floorplan_file(self, tmp_path, capsys) -> None:
        path = tmp_path / "office.json"
        path.write_text(create_floor_plan(rooms_per_side=2).model_dump_json(), encoding="utf-8")

        assert main([*SMALL_RUN, "--floorplan", str(path), "--json"]) == 0
        assert "f1" in json.loads(capsys.readouterr().out)

    def test_missing_floorplan(self, tmp_path, capsys) -> None:
        assert main([*SMALL_RUN, "--floorplan", str(tmp_path / "nope.json")]) == 2

        assert "error:" in capsys.readouterr().err

    def test_invalid_config(self, capsys) -> None:
        """Settings rejected by validation exit with status 2."""
        assert main(["--duration", "10", "--query-time-min", "20"]) == 2

        assert "query_time_min" in capsys.readouterr().err

    def test_floorplan_without_regions(self, tmp_path, capsys) -> None:
        """A plan with nowhere to draw windows is rejected before simulating."""
        plan = create_floor_plan(rooms_per_side=2).model_dump()
        plan["regions"] = []
        path = tmp_path / "no_regions.json"
        path.write_text(json.dumps(plan), encoding="utf-8")

        assert main([*SMALL_RUN, "--floorplan", str(path)]) == 2
        assert "regions" in capsys.readouterr().err

    def test_degenerate_floorplan(self, tmp_path, capsys) -> None:
        """Coincident nodes give a zero-length passage and exit with status 2."""
        plan = {
            "nodes": [{"id": 0, "x": 0.0, "y": 0.0}, {"id": 1, "x": 0.0, "y": 0.0}],
            "passages": [{"a": 0, "b": 1}],
            "regions": [{"name": "hall", "kind": "hall", "xmin": -10, "ymin": -10, "xmax": 10, "ymax": 10}],
        }
        path = tmp_path / "degenerate.json"
        path.write_text(json.dumps(plan), encoding="utf-8")

        assert main([*SMALL_RUN, "--floorplan", str(path)]) == 2
        assert "non-positive weight" in capsys.readouterr().err
