from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Iterator, List, Optional, TextIO

from loguru import logger

from posturai.server.logging_utils import configure_logging
from posturai.server.session import PostureSession
from posturai.utils.config import DEFAULT_RUNTIME_CONFIG, RuntimeConfig, load_runtime_config
from posturai.utils.structures import Mode, SessionSummary, Violation


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Replay a recorded keypoint stream through the posture rules")
    parser.add_argument("--mode", type=str, required=True, choices=[m.value for m in Mode], help="Rule set to apply")
    parser.add_argument("--input", type=Path, default=None, help="JSON-lines file of frames (stdin when omitted)")
    parser.add_argument("--runtime-config", type=Path, default=DEFAULT_RUNTIME_CONFIG, help="Runtime configuration")
    parser.add_argument("--fps", type=float, default=None, help="Override the assumed frame rate used for duration")
    parser.add_argument("--verbose", action="store_true", help="Print every violation as it is raised")
    return parser.parse_args(argv)


def iter_frames(stream: TextIO) -> Iterator[Any]:
    """Yield landmark lists from a JSON-lines stream.

    Each line is either a bare list of landmarks or an object with a
    ``landmarks`` key; undecodable lines are logged and skipped.
    """
    for line_no, line in enumerate(stream, start=1):
        line = line.strip()
        if not line:
            continue
        try:
            payload = json.loads(line)
        except json.JSONDecodeError as exc:
            logger.warning("Line {} is not valid JSON: {}", line_no, exc)
            continue
        if isinstance(payload, dict):
            payload = payload.get("landmarks")
        if not isinstance(payload, list):
            logger.warning("Line {} has no landmark list; skipping", line_no)
            continue
        yield payload


def replay(frames: Iterator[Any], mode: Mode, runtime_cfg: RuntimeConfig, verbose: bool = False) -> SessionSummary:
    session = PostureSession(mode, assumed_fps=runtime_cfg.assumed_fps)
    if verbose:

        def _print_violation(violation: Violation) -> None:
            print(f"[{violation.severity.value}] {violation.type}: {violation.message}")

        session.add_listener(_print_violation)
    session.start()
    skipped = 0
    for landmarks in frames:
        if session.process(landmarks) is None:
            skipped += 1
    summary = session.end()
    summary.metadata["skipped_frames"] = skipped
    return summary


def main(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)
    runtime_cfg = load_runtime_config(args.runtime_config)
    if args.fps is not None:
        runtime_cfg.engine["assumed_fps"] = args.fps
    configure_logging(runtime_cfg.log_level, enqueue=False)
    mode = Mode(args.mode)
    if args.input is None:
        summary = replay(iter_frames(sys.stdin), mode, runtime_cfg, args.verbose)
    else:
        with open(args.input, "r", encoding="utf-8") as f:
            summary = replay(iter_frames(f), mode, runtime_cfg, args.verbose)
    print(json.dumps(summary.to_dict(), indent=2))


if __name__ == "__main__":
    main()
