"""
The decision log module reads the gating decision logs written during an MR-guided treatment delivery and
estimates how the delivery would have behaved for different gating boundaries.

Every decision reports the fraction of the deformed target that fell outside the boundary. From the sequence of
decisions pygating computes, for each integer ROI threshold from 0 to 100%:

* **Duty cycle** - the percent of decisions with a fraction out at or below the threshold, i.e. the share of
  the delivery the beam would be on.
* **Beam shutter transition rate** - the number of beam on-to-off transitions per minute that would occur
  (with a zero second wait time) if the beam were gated at that threshold.

Features:

* **Walk a whole log directory** - Point at the folder holding the service logs; sub-folders are searched too.
* **Restrict to a treatment window** - Pass the delivery start and end times to only use those decisions.
* **Load from ZIP** - Zipped log folders can be analyzed directly.
* **Plot, CSV, JSON** - Plot the duty cycle and transition rate together, or export the data.
"""
from __future__ import annotations

import csv
import logging
import warnings
from collections.abc import Iterable, Sequence
from datetime import datetime
from pathlib import Path
from typing import NamedTuple

import matplotlib.pyplot as plt
import numpy as np
from pydantic import BaseModel, Field
from tqdm import tqdm

from . import settings
from .core import io
from .core.decorators import validate
from .core.utilities import ResultBase, ResultsDataMixin, to_datetime
from .core.validators import is_positive, is_threshold
from .core.warnings import capture_warnings
from .parser import DecisionRecord, scan_lines

logger = logging.getLogger("pygating")

THRESHOLDS = np.arange(settings.NUM_THRESHOLD_BINS)
SECONDS_PER_MINUTE = 60


class HistogramBin(NamedTuple):
    """One row of the threshold table. Also the plain 3-tuple
    ``(threshold_percent, cumulative_duty_cycle_percent, shutter_rate_per_minute)``."""

    threshold_percent: int
    cumulative_duty_cycle_percent: float
    shutter_rate_per_minute: float


class DroppedEntry(NamedTuple):
    """A decision line that could not be turned into a record."""

    file: str
    line_number: int
    reason: str


class HistogramBinResult(BaseModel):
    """An individual threshold bin result"""

    threshold_percent: int = Field(description="The ROI threshold in percent.")
    cumulative_duty_cycle_percent: float = Field(
        description="Percent of decisions at or below the threshold.",
        title="Duty cycle (%)",
    )
    shutter_rate_per_minute: float = Field(
        description="Estimated beam shutter transitions per minute at the threshold.",
        title="Beam shutter transition rate (per min)",
    )


class DecisionLogResult(ResultBase):
    """This class should not be called directly. It is returned by the ``results_data()`` method.

    Use the following attributes as normal class attributes."""

    directory: str = Field(description="The directory or ZIP archive the logs were read from.")
    start: datetime | None = Field(
        description="Start of the time window (inclusive). None if no window was used."
    )
    end: datetime | None = Field(
        description="End of the time window (exclusive). None if no window was used."
    )
    sampling_rate_hz: float = Field(
        description="The assumed decision sampling rate used to convert transition counts to rates."
    )
    num_decisions: int = Field(description="The number of decisions analyzed.")
    num_files_scanned: int = Field(description="The number of log files read.")
    skipped_files: list[str] = Field(
        description="Log files that could not be opened or read."
    )
    num_dropped_entries: int = Field(
        description="The number of decision lines without a readable timestamp or values."
    )
    max_fraction_out_percent: float = Field(
        description="The largest fraction out of all decisions, in percent."
    )
    histogram: list[HistogramBinResult] = Field(
        description="The duty cycle and shutter transition rate for each ROI threshold."
    )


class DecisionLogCollector:
    """Find decision logs under a directory and pull the timestamped decisions out of them.

    The record order is the order the files are visited (see :func:`~pygating.core.io.retrieve_filenames`)
    then line order within each file. It is not re-sorted by time.

    Attributes
    ----------
    files : list
        The decision log files found.
    skipped_files : list
        Files that could not be opened or read; they contribute no records.
    dropped_entries : list
        :class:`DroppedEntry` for every decision line that was skipped.
    """

    def __init__(
        self,
        directory: str | Path,
        start: str | datetime | None = None,
        end: str | datetime | None = None,
        recursive: bool = True,
    ):
        """
        Parameters
        ----------
        directory : str, Path
            The directory holding the decision logs.
        start : str, datetime, optional
            Only keep decisions at or after this time. Must be passed together with ``end``.
        end : str, datetime, optional
            Only keep decisions strictly before this time. Must be passed together with ``start``.
        recursive : bool
            Whether to search sub-directories.
        """
        if (start is None) != (end is None):
            raise UsageError("Both a start and end time must be given, or neither.")
        self.directory = str(directory)
        self.start = None if start is None else _window_bound(start)
        self.end = None if end is None else _window_bound(end)
        self.recursive = recursive
        self.files: list[str] = []
        self.skipped_files: list[str] = []
        self.dropped_entries: list[DroppedEntry] = []

    def in_window(self, timestamp: datetime) -> bool:
        """Whether a timestamp falls in the ``[start, end)`` window. Always True without a window."""
        if self.start is None:
            return True
        return self.start <= timestamp and self.end > timestamp

    def collect(self, progress_bar: bool = False) -> tuple[DecisionRecord, ...]:
        """Read every decision log and return the decisions inside the time window.

        Parameters
        ----------
        progress_bar : bool
            Whether to show a progress bar over the files.
        """
        self.files = io.retrieve_filenames(
            self.directory, io.is_decision_log, recursive=self.recursive
        )
        self.skipped_files = []
        self.dropped_entries = []
        logger.info(f"{len(self.files)} decision logs found in {self.directory}")
        records = []
        for file in tqdm(self.files, disable=not progress_bar, desc="Reading logs"):
            records.extend(self._read_file(file))
        logger.info(f"{len(records)} decisions collected")
        return tuple(records)

    def _read_file(self, file: str) -> list[DecisionRecord]:
        """Read one file. An unreadable file is recorded and yields nothing, not even dropped entries."""
        dropped = []

        def drop(line_number: int, reason: str) -> None:
            dropped.append(DroppedEntry(file, line_number, reason))

        try:
            records = [
                record
                for record in scan_lines(io.read_lines(file), on_drop=drop)
                if self.in_window(record.timestamp)
            ]
        except OSError as e:
            logger.warning(f"Skipping unreadable log {file}: {e}")
            warnings.warn(f"Decision log {file} could not be read and was skipped: {e}")
            self.skipped_files.append(file)
            return []
        for entry in dropped:
            logger.debug(f"Dropped decision at {file}:{entry.line_number}: {entry.reason}")
        self.dropped_entries.extend(dropped)
        return records


def _window_bound(value: str | datetime) -> datetime:
    bound = to_datetime(value, settings.WINDOW_TIME_FORMATS)
    if bound.tzinfo is not None:
        raise ValueError(
            f"Time window bounds must be local times without a time zone, like the log timestamps; got {bound}"
        )
    return bound


def collect_decisions(
    directory: str | Path,
    start: str | datetime | None = None,
    end: str | datetime | None = None,
    recursive: bool = True,
) -> tuple[DecisionRecord, ...]:
    """Collect the decisions of all decision logs in a directory.

    Parameters
    ----------
    directory : str, Path
        The directory holding the decision logs.
    start, end : str, datetime, optional
        The ``[start, end)`` time window. Give both or neither.
        Strings like ``'9/9/2014 11:06:12 AM'`` are accepted.
    recursive : bool
        Whether to search sub-directories.
    """
    return DecisionLogCollector(directory, start, end, recursive).collect()


def records_not_empty(records: Sequence) -> None:
    """Check there is at least one decision to aggregate"""
    if len(records) == 0:
        raise EmptyResultSetError(
            "No decisions were found; check the directory and the time window."
        )


def count_closing_transitions(open_flags: Sequence[bool]) -> int:
    """Count the open-to-closed transitions of a circular sequence of beam states.

    Each position ``i`` is compared with its successor ``(i + 1) mod N``, so the last state
    is followed by the first. Only open -> closed edges count.
    """
    flags = np.asarray(open_flags, dtype=bool)
    if flags.size == 0:
        return 0
    successors = (np.arange(flags.size) + 1) % flags.size
    return int(np.sum(flags & ~flags[successors]))


@validate(records=records_not_empty, sampling_rate_hz=is_positive)
def compute_histogram(
    records: Sequence[DecisionRecord],
    sampling_rate_hz: float = settings.SAMPLING_RATE_HZ,
) -> tuple[HistogramBin, ...]:
    """Compute the duty cycle and beam shutter transition rate for every ROI threshold (0-100%).

    Parameters
    ----------
    records : sequence of DecisionRecord
        The decisions, in delivery order. The order matters for the transition rate.
    sampling_rate_hz : float
        The rate at which decisions were made. Transition counts are converted to a per-minute
        rate as ``count * sampling_rate_hz * 60 / N``.

    Raises
    ------
    EmptyResultSetError
        If there are no records.
    """
    fractions = np.array([record.fraction_out for record in records], dtype=float) * 100
    num_decisions = fractions.size
    bins = []
    for threshold in THRESHOLDS:
        duty_cycle = np.count_nonzero(fractions <= threshold) / num_decisions * 100
        transitions = count_closing_transitions(fractions > threshold)
        rate = transitions * sampling_rate_hz * SECONDS_PER_MINUTE / num_decisions
        bins.append(HistogramBin(int(threshold), float(duty_cycle), float(rate)))
    return tuple(bins)


def parse_decision_logs(*args) -> tuple[tuple[DecisionRecord, ...], tuple[HistogramBin, ...]]:
    """Collect decisions and compute the threshold table in one call.

    Accepts either 1 argument, the log directory, or 3 arguments: the log directory,
    the treatment start time and the treatment end time.

    Examples
    --------
    >>> decisions, histogram = parse_decision_logs('./Target Decision Logs',
    ...     '9/9/2014 11:06:12 AM', '9/9/2014 12:00:00 PM')
    """
    if len(args) not in (1, 3):
        raise UsageError(
            f"Incorrect number of input arguments; expected 1 or 3, got {len(args)}."
        )
    decisions = collect_decisions(*args)
    return decisions, compute_histogram(decisions)


class DecisionLogs(ResultsDataMixin[DecisionLogResult]):
    """Analyze the gating decision logs of a directory.

    Examples
    --------
    Analyze a delivery::

        >>> logs = DecisionLogs(r'C:\\TPDS\\VrSvcDPWinService')
        >>> logs.analyze(start='9/9/2014 11:06:12 AM', end='9/9/2014 12:00:00 PM')
        >>> print(logs.results())
        >>> logs.plot_histogram()
    """

    _collector: DecisionLogCollector | None = None
    _decisions: tuple[DecisionRecord, ...] = ()
    _histogram: tuple[HistogramBin, ...] = ()
    sampling_rate_hz: float = settings.SAMPLING_RATE_HZ

    def __init__(self, directory: str | Path, recursive: bool = True):
        """
        Parameters
        ----------
        directory : str, Path
            The directory of interest. Will walk through it and read any decision logs it finds.
        recursive : bool
            Whether to walk through sub-directories.
        """
        super().__init__()
        if not Path(directory).is_dir():
            raise NotADirectoryError(f"'{directory}' is not a directory")
        self.directory = str(directory)
        self.source = self.directory
        self.recursive = recursive

    @classmethod
    def from_zip(cls, zfile: str | Path, recursive: bool = True, **analyze_kwargs):
        """Instantiate from a ZIP archive of logs. The logs are read, so the instance is analyzed on return.
        The archive is only unpacked for the duration of the call; to analyze with other settings call this again.

        Parameters
        ----------
        zfile : str
            Path to the zip archive.
        analyze_kwargs
            Passed to :meth:`analyze`.
        """
        with io.TemporaryZipDirectory(zfile) as tzd:
            logs = cls(tzd, recursive=recursive)
            logs.analyze(**analyze_kwargs)
        logs.source = str(zfile)
        return logs

    @capture_warnings
    def analyze(
        self,
        start: str | datetime | None = None,
        end: str | datetime | None = None,
        sampling_rate_hz: float = settings.SAMPLING_RATE_HZ,
        progress_bar: bool = False,
    ) -> None:
        """Read the logs and compute the duty cycle and shutter transition rate.

        Parameters
        ----------
        start : str, datetime, optional
            Delivery start time (inclusive). Must be given with ``end``.
        end : str, datetime, optional
            Delivery end time (exclusive). Must be given with ``start``.
        sampling_rate_hz : float
            The rate at which the gating decisions are made.
        progress_bar : bool
            Whether to show a progress bar while reading files.
        """
        self._collector = None
        self._decisions = ()
        self._histogram = ()
        collector = DecisionLogCollector(self.directory, start, end, self.recursive)
        decisions = collector.collect(progress_bar=progress_bar)
        self._histogram = compute_histogram(decisions, sampling_rate_hz=sampling_rate_hz)
        self._decisions = decisions
        self._collector = collector
        self.sampling_rate_hz = sampling_rate_hz

    def _check_analyzed(self) -> None:
        if self._collector is None:
            raise ValueError("The logs have not been analyzed yet. Use .analyze() first.")

    @property
    def decisions(self) -> tuple[DecisionRecord, ...]:
        """The decisions used, as ``(timestamp, decision_flag, voxels_out, total_voxels, fraction_out)``."""
        self._check_analyzed()
        return self._decisions

    @property
    def histogram(self) -> tuple[HistogramBin, ...]:
        """The 101 threshold bins, as ``(threshold_percent, duty_cycle_percent, shutter_rate_per_minute)``."""
        self._check_analyzed()
        return self._histogram

    @property
    def num_decisions(self) -> int:
        return len(self.decisions)

    @property
    def max_fraction_out(self) -> float:
        """The largest fraction out of all decisions, in percent."""
        return max(record.fraction_out for record in self.decisions) * 100

    @property
    def skipped_files(self) -> list[str]:
        self._check_analyzed()
        return list(self._collector.skipped_files)

    @property
    def dropped_entries(self) -> list[DroppedEntry]:
        self._check_analyzed()
        return list(self._collector.dropped_entries)

    @validate(threshold=is_threshold)
    def duty_cycle(self, threshold: int) -> float:
        """The duty cycle (%) if the beam were gated at the given ROI threshold (%)."""
        return self.histogram[threshold].cumulative_duty_cycle_percent

    @validate(threshold=is_threshold)
    def shutter_rate(self, threshold: int) -> float:
        """The beam shutter transitions per minute if the beam were gated at the given ROI threshold (%)."""
        return self.histogram[threshold].shutter_rate_per_minute

    def results(self, as_list: bool = False) -> str | list[str]:
        """Return the results of the analysis.

        Parameters
        ----------
        as_list : bool
            Whether to return as a list of strings vs single string. Pretty much for internal usage.
        """
        self._check_analyzed()
        results = [
            "Decision Log Analysis",
            f"Decisions analyzed: {self.num_decisions}",
            f"Log files read: {len(self._collector.files) - len(self.skipped_files)}",
            f"Log files skipped: {len(self.skipped_files)}",
            f"Decision lines dropped: {len(self.dropped_entries)}",
            f"Max fraction out (%): {self.max_fraction_out:2.1f}",
            f"Assumed sampling rate (Hz): {self.sampling_rate_hz:g}",
        ]
        if self._collector.start is not None:
            results.append(
                f"Time window: {self._collector.start} to {self._collector.end}"
            )
        for threshold in (5, 10, 20):
            results.append(
                f"Duty cycle @ {threshold}% ROI: {self.duty_cycle(threshold):2.1f}%; "
                f"shutter transitions: {self.shutter_rate(threshold):2.1f}/min"
            )
        if not as_list:
            results = "\n".join(results)
        return results

    def _generate_results_data(self) -> DecisionLogResult:
        self._check_analyzed()
        return DecisionLogResult(
            directory=self.source,
            start=self._collector.start,
            end=self._collector.end,
            sampling_rate_hz=self.sampling_rate_hz,
            num_decisions=self.num_decisions,
            num_files_scanned=len(self._collector.files) - len(self.skipped_files),
            skipped_files=self.skipped_files,
            num_dropped_entries=len(self.dropped_entries),
            max_fraction_out_percent=self.max_fraction_out,
            histogram=[HistogramBinResult(**b._asdict()) for b in self.histogram],
            warnings=self.get_captured_warnings(),
        )

    def plot_histogram(self, show: bool = True) -> tuple[plt.Figure, Iterable[plt.Axes]]:
        """Plot the duty cycle and beam shutter transition rate against the ROI threshold.

        Parameters
        ----------
        show : bool
            Whether to show the plot.
        """
        table = np.asarray(self.histogram, dtype=float)
        fig, duty_ax = plt.subplots(facecolor="white")
        rate_ax = duty_ax.twinx()
        duty_ax.plot(table[:, 0], table[:, 1], color="tab:blue")
        rate_ax.plot(table[:, 0], table[:, 2], color="tab:orange")
        duty_ax.set_title("Decision Log Analysis")
        # nothing happens above the largest fraction out
        for ax in (duty_ax, rate_ax):
            ax.set_xlim(0, max(self.max_fraction_out, 1))
        duty_ax.set_xlabel("Percent ROI (%)")
        duty_ax.set_ylabel("Duty Cycle (%)", color="tab:blue")
        rate_ax.set_ylabel("Beam Shutter Transition Rate (per min)", color="tab:orange")
        duty_ax.grid(True)
        if show:
            plt.show()
        return fig, (duty_ax, rate_ax)

    def save_histogram(self, filename: str | Path, **kwargs) -> None:
        """Save the histogram plot to a file.

        Parameters
        ----------
        filename : str
            The name of the file to save to.
        kwargs
            Passed to matplotlib's ``savefig``.
        """
        fig, _ = self.plot_histogram(show=False)
        fig.savefig(filename, **kwargs)
        plt.close(fig)

    def to_csv(self, filename: str | Path) -> str:
        """Write the threshold table to a CSV file.

        Returns
        -------
        str
            The filename of the newly created CSV file.
        """
        filename = _csv_filename(filename)
        with open(filename, mode="w", newline="") as csv_file:
            writer = csv.writer(csv_file, lineterminator="\n")
            writer.writerow(
                ("Percent ROI (%)", "Duty Cycle (%)", "Beam Shutter Transition Rate (per min)")
            )
            writer.writerows(self.histogram)
        logger.info(f"Histogram CSV written to {filename}")
        return filename

    def decisions_to_csv(self, filename: str | Path) -> str:
        """Write the decisions to a CSV file, one row per decision.

        Returns
        -------
        str
            The filename of the newly created CSV file.
        """
        filename = _csv_filename(filename)
        with open(filename, mode="w", newline="") as csv_file:
            writer = csv.writer(csv_file, lineterminator="\n")
            writer.writerow(DecisionRecord._fields)
            for record in self.decisions:
                writer.writerow(
                    (record.timestamp.isoformat(timespec="milliseconds"), *record[1:])
                )
        logger.info(f"Decisions CSV written to {filename}")
        return filename


def _csv_filename(filename: str | Path) -> str:
    filename = str(filename)
    if not filename.endswith(".csv"):
        filename += ".csv"
    return filename


class UsageError(ValueError):
    """Usage error. Indicates the wrong number of arguments, or a time window missing its start or end."""

    pass


class EmptyResultSetError(ValueError):
    """Aggregation error. Indicates that no decisions were found (or none were inside the time window),
    so no duty cycle or transition rate can be computed."""

    pass
