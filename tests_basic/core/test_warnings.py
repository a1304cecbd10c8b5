import warnings
from unittest import TestCase

from pygating.core.warnings import WarningCollectorMixin, capture_warnings


class Analysis(WarningCollectorMixin):
    fail = False

    @capture_warnings
    def analyze(self, *messages):
        for message in messages:
            warnings.warn(message)
        if self.fail:
            raise ValueError("nothing to analyze")
        return len(messages)

    def plot(self):
        warnings.warn("not captured")


class TestWarnings(TestCase):
    def test_warnings_are_captured(self):
        analysis = Analysis()
        with warnings.catch_warnings():
            warnings.simplefilter("ignore")
            self.assertEqual(analysis.analyze("file a skipped", "file b skipped"), 2)
        captured = analysis.get_captured_warnings()
        self.assertEqual(len(captured), 2)
        self.assertEqual(captured[0], {"message": "file a skipped", "category": "UserWarning"})

    def test_new_analysis_replaces_warnings(self):
        analysis = Analysis()
        with warnings.catch_warnings():
            warnings.simplefilter("ignore")
            analysis.analyze("first")
            analysis.analyze("second")
        self.assertEqual([w["message"] for w in analysis.get_captured_warnings()], ["second"])

    def test_failed_analysis_captures_nothing(self):
        analysis = Analysis()
        with warnings.catch_warnings():
            warnings.simplefilter("ignore")
            analysis.analyze("first")
            analysis.fail = True
            with self.assertRaises(ValueError):
                analysis.analyze("second")
        self.assertEqual(analysis.get_captured_warnings(), [])

    def test_undecorated_methods_are_not_captured(self):
        analysis = Analysis()
        with warnings.catch_warnings():
            warnings.simplefilter("ignore")
            analysis.plot()
        self.assertEqual(analysis.get_captured_warnings(), [])

    def test_clear(self):
        analysis = Analysis()
        with warnings.catch_warnings():
            warnings.simplefilter("ignore")
            analysis.analyze("file a skipped")
        analysis.clear_captured_warnings()
        self.assertEqual(analysis.get_captured_warnings(), [])
