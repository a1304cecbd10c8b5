"""Pygating settings"""

# substring that marks a file as a decision log; matched against the file name only
LOG_FILE_MARKER = ".xmlLog"
# rate at which the gating subsystem reports decisions
SAMPLING_RATE_HZ = 4
# one bin per integer ROI threshold, 0-100 inclusive
NUM_THRESHOLD_BINS = 101
# formats tried, in order, on the first 20 characters of a <LogEntryTime> tag
LOG_TIME_FORMATS = (
    "%d-%b-%Y %H:%M:%S",
    "%m/%d/%Y %I:%M:%S %p",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%dT%H:%M:%S",
    "%m/%d/%Y %H:%M:%S",
)
# formats tried, in order, on the start/end strings of a time window
WINDOW_TIME_FORMATS = (
    "%m/%d/%Y %I:%M:%S %p",
    "%m/%d/%Y %H:%M:%S",
    "%d-%b-%Y %H:%M:%S",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%dT%H:%M:%S",
)


def get_log_file_marker() -> str:
    """Return the file name marker of decision logs."""
    return LOG_FILE_MARKER

