"""Line parsing of gating decision logs.

A decision log is a text (loosely XML) file written by the gating service. Two kinds of lines matter::

    <LogEntryTime>09-Sep-2014 11:06:12.250</LogEntryTime>
    ... MRTC deformROI target out decision = 1: voxels out 12, total = 480, tgt out fraction = 0.025 ...

A decision line only counts when the line *immediately* before it carries the ``<LogEntryTime>`` tag;
no other adjacency is recognized.
"""
from __future__ import annotations

import re
from collections.abc import Iterable, Iterator
from datetime import datetime, timedelta
from typing import Callable, NamedTuple

from . import settings
from .core.utilities import to_datetime

DECISION_PATTERN = re.compile(
    r"MRTC deformROI target out decision = ([0-9]+): voxels out ([0-9]+), "
    r"total = ([0-9]+), tgt out fraction = ([0-9\.]+)"
)
TIMESTAMP_PATTERN = re.compile(r"<LogEntryTime>(.+)</LogEntryTime>")

# slices of the captured timestamp text
DATETIME_SLICE = slice(0, 20)
MILLISECOND_SLICE = slice(21, 24)


class DecisionFields(NamedTuple):
    """The numeric payload of a decision line."""

    decision_flag: int
    voxels_out: int
    total_voxels: int
    fraction_out: float


class DecisionRecord(NamedTuple):
    """One gating decision, paired with the time it was logged.

    Being a named tuple, a record is also the plain 5-tuple
    ``(timestamp, decision_flag, voxels_out, total_voxels, fraction_out)``.
    """

    timestamp: datetime
    decision_flag: int
    voxels_out: int
    total_voxels: int
    fraction_out: float

    @classmethod
    def from_fields(cls, timestamp: datetime, fields: DecisionFields) -> DecisionRecord:
        return cls(timestamp, *fields)


def parse_decision_line(line: str) -> DecisionFields | None:
    """Extract the decision payload from a log line.

    Parameters
    ----------
    line : str
        A single line of a decision log.

    Returns
    -------
    DecisionFields or None
        None if the line is not a decision line.

    Raises
    ------
    MalformedLogEntryError
        If the line is a decision line but its numbers cannot be read or are inconsistent
        (more voxels out than total, fraction outside 0-1).
    """
    match = DECISION_PATTERN.search(line)
    if match is None:
        return None
    flag, voxels_out, total, fraction = match.groups()
    try:
        fields = DecisionFields(int(flag), int(voxels_out), int(total), float(fraction))
    except ValueError as e:
        raise MalformedLogEntryError(f"Unreadable decision values: {e}") from e
    if fields.voxels_out > fields.total_voxels:
        raise MalformedLogEntryError(
            f"Voxels out ({fields.voxels_out}) exceeds total voxels ({fields.total_voxels})"
        )
    if not 0 <= fields.fraction_out <= 1:
        raise MalformedLogEntryError(
            f"Fraction out ({fields.fraction_out}) is not between 0 and 1"
        )
    return fields


def parse_log_entry_time(line: str) -> datetime | None:
    """Extract the timestamp of a ``<LogEntryTime>`` line.

    The first 20 characters of the tag text are the date and time of day; characters
    22-24 are the zero-padded milliseconds. A tag without the millisecond field is
    taken to be on the whole second.

    Returns
    -------
    datetime or None
        None if the line has no ``<LogEntryTime>`` tag.

    Raises
    ------
    MalformedLogEntryError
        If the tag is present but the date-time or milliseconds cannot be read.
    """
    match = TIMESTAMP_PATTERN.search(line)
    if match is None:
        return None
    text = match.group(1)
    try:
        stamp = to_datetime(text[DATETIME_SLICE], settings.LOG_TIME_FORMATS)
    except ValueError as e:
        raise MalformedLogEntryError(str(e)) from e
    millis = text[MILLISECOND_SLICE]
    if not millis:
        return stamp
    if not millis.isdigit():
        raise MalformedLogEntryError(f"Unreadable milliseconds '{millis}' in '{text}'")
    return stamp + timedelta(milliseconds=int(millis))


def scan_lines(
    lines: Iterable[str], on_drop: Callable[[int, str], None] | None = None
) -> Iterator[DecisionRecord]:
    """Yield a record for every decision line preceded by a timestamp line.

    The scanner keeps exactly one line of lookback. Decision lines without a timestamp
    right above them, or with unreadable values, are skipped and scanning continues.

    Parameters
    ----------
    lines : iterable of str
        The lines of one log file, in file order.
    on_drop : callable, optional
        Called as ``on_drop(line_number, reason)`` for every dropped decision line.
        Line numbers start at 1.
    """
    previous = ""
    for line_number, line in enumerate(lines, start=1):
        try:
            fields = parse_decision_line(line)
            if fields is not None:
                timestamp = parse_log_entry_time(previous)
                if timestamp is None:
                    raise MalformedLogEntryError(
                        "No <LogEntryTime> on the preceding line"
                    )
                yield DecisionRecord.from_fields(timestamp, fields)
        except MalformedLogEntryError as e:
            if on_drop is not None:
                on_drop(line_number, str(e))
        previous = line


class MalformedLogEntryError(ValueError):
    """Decision log error. Indicates that a decision line could not be paired with a timestamp
    or that its values could not be read. Only the one entry is affected."""

    pass
