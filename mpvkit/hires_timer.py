"""High-resolution timer policy and performance-counter conversion."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Callable, Mapping, Optional

_ATOI = re.compile(r"\s*([+-]?\d+)")


def _atoi(text: str) -> int:
    match = _ATOI.match(text)
    return int(match.group(1)) if match else 0


@dataclass
class HiresTimerPolicy:
    """Decides when to request a finer system timer resolution for a wait.

    begin_period and end_period perform the actual resolution requests;
    begin_period returns whether the request succeeded. When they are None,
    requests are taken to succeed and releases need no action.
    """

    hires_max: int = 50
    hires_res: int = 1
    permanent_resolution: int = 0
    begin_period: Optional[Callable[[int], bool]] = field(default=None, repr=False)
    end_period: Optional[Callable[[int], None]] = field(default=None, repr=False)

    @classmethod
    def from_environ(cls, environ: Mapping[str, str], is_windows10: bool) -> HiresTimerPolicy:
        """Build the policy from MPV_HRT_MAX, MPV_HRT_RES and MPV_HRT."""
        policy = cls()
        value = environ.get("MPV_HRT_MAX")
        if value is not None:
            hmax = _atoi(value)
            if 1 <= hmax <= 1000:
                policy.hires_max = hmax
        value = environ.get("MPV_HRT_RES")
        if value is not None:
            res = _atoi(value)
            if 1 <= res <= 15:
                policy.hires_res = res
        mode = environ.get("MPV_HRT")
        if mode is None or mode == "auto":
            mode = "perwait" if is_windows10 else "always"
        if mode == "perwait":
            pass
        elif mode == "never":
            policy.hires_max = 0
        else:
            # "always" or an unknown value: one permanent request.
            policy.hires_max = 0
            policy.permanent_resolution = policy.hires_res
        return policy

    def start(self, wait_ms: int) -> int:
        """Return the resolution in ms requested for this wait, or 0 if none."""
        if not 0 < wait_ms <= self.hires_max:
            return 0
        if self.begin_period is None or self.begin_period(self.hires_res):
            return self.hires_res
        return 0

    def end(self, res_ms: int) -> None:
        """Release what start() returned; call it with that value unconditionally."""
        if res_ms > 0 and self.end_period is not None:
            self.end_period(res_ms)


def qpc_to_us(count: int, freq: int) -> int:
    """Convert a performance-counter value at freq ticks/second to microseconds."""
    if freq <= 0:
        raise ValueError(f"counter frequency must be positive: {freq}")
    return count // freq * 1_000_000 + count % freq * 1_000_000 // freq