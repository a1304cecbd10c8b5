import pytest

from tests_basic.utils import (
    BASE_TIME,
    DELIVERY_FRACTIONS,
    SUBFOLDER_FRACTIONS,
    write_decision_log,
    write_lines,
)


@pytest.fixture
def decision_log_dir(tmp_path):
    """A service log folder: one log at the top, one in a sub-folder, and files to be ignored."""
    write_decision_log(tmp_path / "VrSvcDPWinService.xmlLog", DELIVERY_FRACTIONS)
    write_decision_log(
        tmp_path / "archive" / "VrSvcDPWinService.xmlLog.1",
        SUBFOLDER_FRACTIONS,
        start=BASE_TIME.replace(hour=12),
    )
    write_lines(tmp_path / "notes.txt", ["MRTC deformROI target out decision = 1: voxels out 1, total = 2, tgt out fraction = 0.5"])
    write_lines(tmp_path / "archive" / "VrSvcDPWinService.log", ["not a decision log"])
    return tmp_path
