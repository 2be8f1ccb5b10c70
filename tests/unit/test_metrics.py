import json
import tempfile
import unittest
from pathlib import Path

from chainabuse_monitor.core.metrics import ALERT, CYCLE, MetricsCollector


class TestMetricsCollector(unittest.TestCase):
    def setUp(self):
        self.metrics = MetricsCollector(window_seconds=60)

    def test_cycle_and_alert_counters(self):
        self.metrics.record_cycle(success=True, duration=0.25)
        self.metrics.record_cycle(success=False)
        self.metrics.record_alert(success=True)
        self.metrics.record_alert(success=False)
        self.metrics.record_alert(success=True)

        monitor = self.metrics.snapshot()["monitor"]
        self.assertEqual(monitor["cycles_ok"], 1)
        self.assertEqual(monitor["cycles_failed"], 1)
        self.assertEqual(monitor["alerts_sent"], 2)
        self.assertEqual(monitor["alerts_failed"], 1)
        self.assertEqual(monitor["last_cycle_seconds"], 0.25)
        self.assertIsNotNone(monitor["last_cycle_utc"])

    def test_totals_and_failures(self):
        self.metrics.record("activity.baseline")
        self.metrics.record_error("exception")
        self.assertEqual(self.metrics.total("activity.baseline"), 1)
        self.assertEqual(self.metrics.failures("exception"), 1)
        self.assertEqual(self.metrics.total(CYCLE), 0)
        self.assertEqual(self.metrics.failures(ALERT), 0)

    def test_gauges_and_rates_in_snapshot(self):
        self.metrics.set_gauge("store_size", 42)
        self.metrics.record(CYCLE)
        self.metrics.record(CYCLE)
        snapshot = self.metrics.snapshot()
        self.assertEqual(snapshot["gauges"], {"store_size": 42})
        self.assertEqual(snapshot["rates_per_min"][CYCLE], 2.0)

    def test_write_snapshot_appends_json_lines(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "nested" / "metrics.jsonl"
            self.metrics.write_snapshot(path)
            self.metrics.write_snapshot(path)
            lines = path.read_text(encoding="utf-8").splitlines()
        self.assertEqual(len(lines), 2)
        self.assertIn("monitor", json.loads(lines[0]))


if __name__ == "__main__":
    unittest.main()
