"""Helpers that write decision log fixtures to disk."""
from __future__ import annotations

from datetime import datetime, timedelta
from pathlib import Path
from typing import Sequence

BASE_TIME = datetime(2014, 9, 9, 11, 6, 12)
INTERVAL_MS = 250  # 4 Hz

DELIVERY_FRACTIONS = [0.0, 0.02, 0.15, 0.3, 0.08, 0.0, 0.45, 0.12]
SUBFOLDER_FRACTIONS = [0.05, 0.6, 0.2]


def log_entry_time(timestamp: datetime) -> str:
    """A <LogEntryTime> line in the service's format, e.g. 09-Sep-2014 11:06:12.250"""
    millis = timestamp.microsecond // 1000
    return f"    <LogEntryTime>{timestamp.strftime('%d-%b-%Y %H:%M:%S')}.{millis:03d}</LogEntryTime>"


def decision_line(fraction: float, flag: int = 1, total: int = 1000, voxels_out: int | None = None) -> str:
    if voxels_out is None:
        voxels_out = round(fraction * total)
    return (
        f"    <LogEntryMessage>MRTC deformROI target out decision = {flag}: voxels out {voxels_out}, "
        f"total = {total}, tgt out fraction = {fraction}</LogEntryMessage>"
    )


def timestamps(count: int, start: datetime = BASE_TIME, interval_ms: int = INTERVAL_MS) -> list[datetime]:
    return [start + timedelta(milliseconds=interval_ms * idx) for idx in range(count)]


def log_lines(fractions: Sequence[float], start: datetime = BASE_TIME, interval_ms: int = INTERVAL_MS) -> list[str]:
    """The lines of a decision log with one entry per fraction, plus unrelated service chatter."""
    lines = ['<?xml version="1.0" encoding="utf-8"?>', "<LogEntries>"]
    for stamp, fraction in zip(timestamps(len(fractions), start, interval_ms), fractions):
        lines += [
            "  <LogEntry>",
            "    <LogEntrySource>VrSvcDPWinService</LogEntrySource>",
            log_entry_time(stamp),
            decision_line(fraction),
            "  </LogEntry>",
        ]
    lines.append("</LogEntries>")
    return lines


def write_lines(path: Path, lines: Sequence[str]) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("\n".join(lines) + "\n")
    return path


def write_decision_log(
    path: Path, fractions: Sequence[float], start: datetime = BASE_TIME, interval_ms: int = INTERVAL_MS
) -> Path:
    """Write a decision log holding one decision per fraction, 250ms apart by default."""
    return write_lines(path, log_lines(fractions, start, interval_ms))
