from __future__ import annotations

from typing import Iterable

from .model import Break, Shift, ShiftDurations


def raw_duration(shift: Shift, now: int) -> int:
    end = shift.end_time if shift.end_time is not None else now
    return end - shift.start_time


def break_duration(brk: Break, now: int) -> int:
    end = brk.end_time if brk.end_time is not None else now
    return end - brk.start_time


def total_break_seconds(breaks: Iterable[Break], now: int) -> int:
    """Open breaks count their running time."""
    return sum(break_duration(b, now) for b in breaks)


def shift_durations(shift: Shift, breaks: Iterable[Break], now: int) -> ShiftDurations:
    # Breaks may outlast an adjusted shift; effective time floors at zero.
    raw = raw_duration(shift, now)
    paused = total_break_seconds(breaks, now)
    return ShiftDurations(raw_seconds=raw, break_seconds=paused, effective_seconds=max(0, raw - paused))
