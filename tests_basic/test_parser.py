from datetime import datetime
from unittest import TestCase

from parameterized import parameterized

from pygating.parser import (
    DecisionFields,
    DecisionRecord,
    MalformedLogEntryError,
    parse_decision_line,
    parse_log_entry_time,
    scan_lines,
)
from tests_basic.utils import decision_line, log_entry_time, log_lines, timestamps


class TestParseDecisionLine(TestCase):
    def test_decision_line(self):
        fields = parse_decision_line(decision_line(0.025, flag=3, total=480, voxels_out=12))
        self.assertEqual(fields, DecisionFields(3, 12, 480, 0.025))

    def test_pattern_found_mid_line(self):
        line = "INFO 2014 MRTC deformROI target out decision = 0: voxels out 0, total = 10, tgt out fraction = 0 trailing"
        self.assertEqual(parse_decision_line(line), DecisionFields(0, 0, 10, 0.0))

    @parameterized.expand(
        [
            ("blank", ""),
            ("timestamp", log_entry_time(datetime(2014, 9, 9))),
            ("other message", "<LogEntryMessage>Beam on</LogEntryMessage>"),
            ("negative flag", "MRTC deformROI target out decision = -1: voxels out 0, total = 10, tgt out fraction = 0"),
        ]
    )
    def test_not_a_decision_line(self, _, line):
        self.assertIsNone(parse_decision_line(line))

    @parameterized.expand(
        [
            ("two decimal points", "MRTC deformROI target out decision = 1: voxels out 1, total = 10, tgt out fraction = 0.1.2"),
            ("only a point", "MRTC deformROI target out decision = 1: voxels out 1, total = 10, tgt out fraction = ."),
            ("more out than total", "MRTC deformROI target out decision = 1: voxels out 11, total = 10, tgt out fraction = 0.5"),
            ("fraction above one", "MRTC deformROI target out decision = 1: voxels out 1, total = 10, tgt out fraction = 1.5"),
        ]
    )
    def test_malformed(self, _, line):
        with self.assertRaises(MalformedLogEntryError):
            parse_decision_line(line)

    def test_full_fraction_is_valid(self):
        fields = parse_decision_line(decision_line(1.0, total=10, voxels_out=10))
        self.assertEqual(fields.fraction_out, 1.0)


class TestParseLogEntryTime(TestCase):
    def test_milliseconds_are_added(self):
        stamp = parse_log_entry_time("<LogEntryTime>09-Sep-2014 11:06:12.250</LogEntryTime>")
        self.assertEqual(stamp, datetime(2014, 9, 9, 11, 6, 12, 250000))

    def test_twelve_hour_clock(self):
        stamp = parse_log_entry_time("<LogEntryTime>9/9/2014 01:06:12 PM 007</LogEntryTime>")
        self.assertEqual(stamp, datetime(2014, 9, 9, 13, 6, 12, 7000))

    def test_no_milliseconds_means_whole_second(self):
        stamp = parse_log_entry_time("<LogEntryTime>9/9/2014 11:06:12 AM</LogEntryTime>")
        self.assertEqual(stamp, datetime(2014, 9, 9, 11, 6, 12))

    def test_no_tag(self):
        self.assertIsNone(parse_log_entry_time("<LogEntrySource>VrSvcDPWinService</LogEntrySource>"))
        self.assertIsNone(parse_log_entry_time(""))

    @parameterized.expand(
        [
            ("bad date", "<LogEntryTime>yesterday around lunch time</LogEntryTime>"),
            ("bad milliseconds", "<LogEntryTime>09-Sep-2014 11:06:12.2x0</LogEntryTime>"),
        ]
    )
    def test_malformed(self, _, line):
        with self.assertRaises(MalformedLogEntryError):
            parse_log_entry_time(line)

    def test_roundtrip_of_fixture_format(self):
        stamp = datetime(2014, 12, 31, 23, 59, 59, 999000)
        self.assertEqual(parse_log_entry_time(log_entry_time(stamp)), stamp)


class TestScanLines(TestCase):
    def test_paired_lines(self):
        fractions = [0.1, 0.6, 0.2]
        records = list(scan_lines(log_lines(fractions)))
        self.assertEqual([r.fraction_out for r in records], fractions)
        self.assertEqual([r.timestamp for r in records], timestamps(3))
        self.assertIsInstance(records[0], DecisionRecord)
        self.assertEqual(len(records[0]), 5)

    def test_unpaired_decision_is_dropped(self):
        lines = [
            log_entry_time(datetime(2014, 9, 9, 11)),
            decision_line(0.1),
            "<LogEntrySource>VrSvcDPWinService</LogEntrySource>",
            decision_line(0.9),
        ]
        drops = []
        records = list(scan_lines(lines, on_drop=lambda num, reason: drops.append(num)))
        self.assertEqual(len(records), 1)
        self.assertEqual(records[0].fraction_out, 0.1)
        self.assertEqual(drops, [4])

    def test_timestamp_must_be_immediately_before(self):
        lines = [log_entry_time(datetime(2014, 9, 9, 11)), "", decision_line(0.1)]
        self.assertEqual(list(scan_lines(lines)), [])

    def test_decision_on_first_line(self):
        self.assertEqual(list(scan_lines([decision_line(0.1)])), [])

    def test_malformed_entry_does_not_stop_the_scan(self):
        lines = [
            log_entry_time(datetime(2014, 9, 9, 11)),
            decision_line(0.5, total=10, voxels_out=20),
            log_entry_time(datetime(2014, 9, 9, 11, 0, 1)),
            decision_line(0.3),
        ]
        reasons = []
        records = list(scan_lines(lines, on_drop=lambda num, reason: reasons.append(reason)))
        self.assertEqual([r.fraction_out for r in records], [0.3])
        self.assertEqual(len(reasons), 1)
        self.assertIn("exceeds total", reasons[0])

    def test_consecutive_decisions_share_nothing(self):
        # the second decision's previous line is the first decision, not a timestamp
        lines = [log_entry_time(datetime(2014, 9, 9, 11)), decision_line(0.1), decision_line(0.2)]
        self.assertEqual([r.fraction_out for r in scan_lines(lines)], [0.1])
