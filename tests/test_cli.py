import json
import runpy
import sys
from pathlib import Path

import pytest

from clockwork.__main__ import build_parser, load_config, main


def test_help_succeeds(capsys):
    with pytest.raises(SystemExit) as exc:
        main(["--help"])
    assert exc.value.code == 0
    assert "Discrete-time rotation simulator" in capsys.readouterr().out


@pytest.mark.filterwarnings("ignore::RuntimeWarning")
def test_runs_as_package_module(capsys, monkeypatch):
    monkeypatch.setattr(sys, "argv", ["clockwork", "-r", "empty", "-d", "10"])
    with pytest.raises(SystemExit) as exc:
        runpy.run_module("clockwork", run_name="__main__")
    assert exc.value.code == 0
    assert "Rotation: empty" in capsys.readouterr().out


def test_run_prints_summary(capsys):
    assert main(["-r", "Eager-Hit", "-d", "3000"]) == 0
    out = capsys.readouterr().out
    assert "Simulating eager-hit for +00:30.00" in out
    assert "Rotation: eager-hit" in out


def test_unknown_rotation_is_rejected_by_parser():
    with pytest.raises(SystemExit) as exc:
        main(["-r", "fire-spam"])
    assert exc.value.code == 2


def test_missing_config_file(capsys, tmp_path):
    assert main(["--config", str(tmp_path / "missing.json")]) == 2
    assert "ERROR: invalid configuration" in capsys.readouterr().err


def test_negative_duration(capsys):
    assert main(["-d", "-5"]) == 2
    assert "duration must be non-negative" in capsys.readouterr().err


def test_rotation_with_unknown_action_fails_cleanly(capsys, tmp_path):
    path = tmp_path / "rotation.json"
    path.write_text(json.dumps({"name": "bad", "actions": ["fireball"]}), encoding="utf-8")
    assert main(["--rotation-file", str(path), "-d", "10"]) == 2
    assert "fireball" in capsys.readouterr().err


def test_cli_flags_override_config_file(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(
        json.dumps({"rotation": "empty", "duration": 100, "starting_mp": 50}),
        encoding="utf-8",
    )
    args = build_parser().parse_args(["--config", str(path), "-d", "700", "-v"])
    config = load_config(args)
    assert config.rotation == "empty"
    assert config.duration == 700
    assert config.starting_mp == 50
    assert config.verbose


def test_compare(capsys):
    assert main(["--compare", "-d", "1000"]) == 0
    out = capsys.readouterr().out
    for name in ("empty", "hit-recharge", "eager-hit"):
        assert f"Rotation: {name}" in out


def test_compare_with_too_little_mp_fails_cleanly(capsys):
    assert main(["--compare", "--mp", "500", "-d", "1000"]) == 2
    assert "ERROR" in capsys.readouterr().err


def test_compare_uses_catalog_file(capsys, tmp_path):
    path = tmp_path / "catalog.json"
    path.write_text(
        json.dumps(
            {
                "actions": {
                    "hit": {"cast_time": 150, "recast_time": 250, "animation_lock": 10},
                    "recharge": {"cast_time": 250, "recast_time": 250},
                }
            }
        ),
        encoding="utf-8",
    )
    assert main(["--compare", "--catalog", str(path), "--mp", "0", "-d", "1000"]) == 0
    out = capsys.readouterr().out
    assert "Rotation: eager-hit" in out


def test_compare_with_malformed_catalog(capsys, tmp_path):
    path = tmp_path / "catalog.json"
    path.write_text(json.dumps({"actions": {"hit": 5}}), encoding="utf-8")
    assert main(["--compare", "--catalog", str(path)]) == 2
    assert "'hit'" in capsys.readouterr().err


def test_compare_rejects_rotation_file(capsys):
    repo_root = Path(__file__).resolve().parents[1]
    rotation_file = str(repo_root / "rotations" / "double_hit.json")
    assert main(["--compare", "--rotation-file", rotation_file]) == 2
    assert "rotation file" in capsys.readouterr().err


def test_malformed_catalog_file(capsys, tmp_path):
    path = tmp_path / "catalog.json"
    path.write_text(json.dumps({"actions": {"hit": [150]}}), encoding="utf-8")
    assert main(["--catalog", str(path), "-d", "10"]) == 2
    assert "'hit'" in capsys.readouterr().err


@pytest.mark.parametrize(
    "settings", [{"simulation": [1]}, {"duration": None}, {"starting_mp": "lots"}]
)
def test_malformed_config_file(capsys, tmp_path, settings):
    path = tmp_path / "config.json"
    path.write_text(json.dumps(settings), encoding="utf-8")
    assert main(["--config", str(path)]) == 2
    assert "ERROR: invalid configuration" in capsys.readouterr().err


def test_sample_files(capsys):
    repo_root = Path(__file__).resolve().parents[1]
    argv = [
        "--catalog",
        str(repo_root / "catalogs" / "with_surge.json"),
        "--rotation-file",
        str(repo_root / "rotations" / "double_hit.json"),
        "-d",
        "2000",
    ]
    assert main(argv) == 0
    assert "Rotation: double-hit" in capsys.readouterr().out
