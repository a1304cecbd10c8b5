import sys

from pygating.version import __version__

# check python version
if sys.version_info < (3, 10):
    raise ValueError(
        "Pygating is only supported on Python 3.10+. Please update your environment."
    )

# import shortcuts
# core first
from .core import decorators, io, utilities, validators
from .decision_log import (
    DecisionLogCollector,
    DecisionLogs,
    EmptyResultSetError,
    HistogramBin,
    UsageError,
    collect_decisions,
    compute_histogram,
    parse_decision_logs,
)
from .parser import DecisionRecord, MalformedLogEntryError
