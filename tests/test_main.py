from __future__ import annotations

import io
import json

from conftest import SQUAT_CLEAN, build_landmarks
from posturai.main import iter_frames, main, replay
from posturai.utils.config import RuntimeConfig
from posturai.utils.structures import Mode


def _jsonl(frames):
    return "\n".join(json.dumps(f) for f in frames) + "\n"


def test_iter_frames_skips_bad_lines():
    clean = build_landmarks(SQUAT_CLEAN)
    text = _jsonl([clean]) + "not json\n\n" + json.dumps({"landmarks": clean}) + "\n" + json.dumps({"x": 1}) + "\n"
    assert len(list(iter_frames(io.StringIO(text)))) == 2


def test_replay_summarises_session():
    clean = build_landmarks(SQUAT_CLEAN)
    bad = build_landmarks(dict(SQUAT_CLEAN, left_knee=(0.6, 0.7)))
    frames = [bad] * 3 + [clean] * 7 + [clean[:3]]
    summary = replay(iter(frames), Mode.SQUAT, RuntimeConfig())
    assert summary.stats.total_frames == 10
    assert summary.stats.violating_frames == 3
    assert summary.stats.accuracy_percent == 70
    assert summary.duration_seconds == 1
    assert summary.metadata["skipped_frames"] == 1


def test_main_prints_summary(tmp_path, capsys):
    frames_path = tmp_path / "frames.jsonl"
    frames_path.write_text(_jsonl([build_landmarks(SQUAT_CLEAN)] * 4), encoding="utf-8")
    main(["--mode", "squat", "--input", str(frames_path), "--runtime-config", str(tmp_path / "missing.yaml"), "--fps", "2"])
    summary = json.loads(capsys.readouterr().out)
    assert summary["mode"] == "squat"
    assert summary["stats"]["total_frames"] == 4
    assert summary["duration_seconds"] == 2


def test_runtime_config_from_yaml(tmp_path):
    from posturai.utils.config import load_runtime_config

    path = tmp_path / "runtime.yaml"
    path.write_text("engine:\n  assumed_fps: 30\nlogging:\n  level: debug\n", encoding="utf-8")
    cfg = load_runtime_config(path)
    assert cfg.assumed_fps == 30.0
    assert cfg.log_level == "DEBUG"
