from __future__ import annotations

import math

from posturai.utils.structures import SessionStats


def accuracy_percent(total_frames: int, violating_frames: int) -> int:
    if total_frames <= 0:
        return 100
    # Half-up rounding; the built-in round() would send 0.5 to the even neighbour.
    return int(math.floor(100 * (total_frames - violating_frames) / total_frames + 0.5))


class SessionAccumulator:
    """Running frame/violation counts for one session.

    Not thread-safe: a session is fed by a single stream, and hosts that deliver
    frames in parallel must serialize calls to :meth:`record`.
    """

    def __init__(self) -> None:
        self._total_frames = 0
        self._violating_frames = 0

    @property
    def stats(self) -> SessionStats:
        return SessionStats(
            total_frames=self._total_frames,
            violating_frames=self._violating_frames,
            accuracy_percent=accuracy_percent(self._total_frames, self._violating_frames),
        )

    def record(self, had_violation: bool) -> SessionStats:
        self._total_frames += 1
        if had_violation:
            self._violating_frames += 1
        return self.stats

    def reset(self) -> None:
        self._total_frames = 0
        self._violating_frames = 0
