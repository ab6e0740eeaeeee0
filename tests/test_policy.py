import io
import unittest

from lingualive.errors import ErrorCategory, ErrorTracker
from lingualive.policy import FailureSink


class ErrorTrackerTests(unittest.TestCase):
    def test_consecutive_counts_reset_on_category_change(self):
        tracker = ErrorTracker()
        self.assertEqual(tracker.register(ErrorCategory.NETWORK), (1, 1, False))
        self.assertEqual(tracker.register(ErrorCategory.NETWORK), (2, 2, False))
        self.assertEqual(tracker.register(ErrorCategory.WRITE_BACK), (1, 3, False))
        tracker.reset_consecutive()
        self.assertEqual(tracker.consecutive, 0)
        self.assertIsNone(tracker.last_category)


class FailureSinkTests(unittest.TestCase):
    def test_records_and_prints_failures(self):
        stream = io.StringIO()
        sink = FailureSink(stream=stream)

        record = sink.record(ErrorCategory.NETWORK, "Could not translate 'Hello'.", "timeout")

        self.assertIs(record.category, ErrorCategory.NETWORK)
        self.assertEqual(sink.messages(), ["Could not translate 'Hello'."])
        self.assertEqual(
            stream.getvalue(), "[lingualive] Could not translate 'Hello'. (timeout)\n"
        )

    def test_threshold_warning_is_printed_once(self):
        stream = io.StringIO()
        sink = FailureSink(stream=stream)
        for _ in range(5):
            sink.record(ErrorCategory.NETWORK, "down")

        output = stream.getvalue()
        self.assertEqual(output.count("Repeated translation failures detected"), 1)
        self.assertTrue(sink.threshold_warned)
        self.assertEqual(len(sink.records), 5)

    def test_total_limit_warning(self):
        stream = io.StringIO()
        sink = FailureSink(stream=stream)
        categories = [ErrorCategory.NETWORK, ErrorCategory.WRITE_BACK]
        for index in range(ErrorTracker.TOTAL_LIMIT):
            sink.record(categories[index % 2], "failed")
        self.assertIn("10 translation failures so far", stream.getvalue())

    def test_success_resets_consecutive_failures(self):
        sink = FailureSink(quiet=True)
        sink.record(ErrorCategory.NETWORK, "down")
        sink.record(ErrorCategory.NETWORK, "down")
        sink.record_success()
        sink.record(ErrorCategory.NETWORK, "down")
        self.assertFalse(sink.threshold_warned)

    def test_quiet_sink_prints_nothing(self):
        stream = io.StringIO()
        sink = FailureSink(stream=stream, quiet=True)
        sink.record(ErrorCategory.OTHER, "ignored")
        self.assertEqual(stream.getvalue(), "")
        self.assertEqual(len(sink.records), 1)


if __name__ == "__main__":
    unittest.main()
