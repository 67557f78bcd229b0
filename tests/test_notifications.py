import os
import sys
import unittest

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
src_path = os.path.join(ROOT, "src")
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from utils.notifications import ALERT_RING_SIZE, NotificationCenter  # noqa: E402


class NotificationCenterTestCase(unittest.TestCase):
    def setUp(self):
        self.center = NotificationCenter()

    def test_notify_records_and_alerts(self):
        note = self.center.notify("success", "Saved")
        self.assertEqual(note.type, "success")
        self.assertEqual(note.message, "Saved")
        self.assertEqual(self.center.notifications, [note])
        self.assertEqual(self.center.alerts, [note])

    def test_alert_ring_keeps_newest_first(self):
        notes = [self.center.notify("info", f"n{i}") for i in range(15)]
        alerts = self.center.alerts
        self.assertEqual(len(alerts), ALERT_RING_SIZE)
        self.assertEqual(alerts[0], notes[-1])
        self.assertEqual(alerts[-1], notes[5])
        # the notification log itself is unbounded
        self.assertEqual(len(self.center.notifications), 15)

    def test_ids_are_unique(self):
        ids = {self.center.notify("info", "same").id for _ in range(50)}
        self.assertEqual(len(ids), 50)

    def test_push_alert_skips_log_and_listeners(self):
        seen = []
        self.center.subscribe(seen.append)
        note = self.center.push_alert("info", "Your order shipped")
        self.assertEqual(self.center.alerts, [note])
        self.assertEqual(self.center.notifications, [])
        self.assertEqual(seen, [])

    def test_subscribe_and_unsubscribe(self):
        seen = []
        unsubscribe = self.center.subscribe(seen.append)
        first = self.center.notify("warning", "one")
        unsubscribe()
        self.center.notify("warning", "two")
        self.assertEqual(seen, [first])

    def test_remove_notification(self):
        keep = self.center.notify("info", "keep")
        drop = self.center.notify("error", "drop")
        self.center.remove_notification(drop.id)
        self.center.remove_notification("missing")
        self.assertEqual(self.center.notifications, [keep])

    def test_clear_alerts(self):
        self.center.notify("info", "a")
        self.center.clear_alerts()
        self.assertEqual(self.center.alerts, [])
        self.assertEqual(len(self.center.notifications), 1)

    def test_unknown_type_rejected(self):
        with self.assertRaises(ValueError):
            self.center.notify("fatal", "nope")
        with self.assertRaises(ValueError):
            self.center.push_alert("debug", "nope")


if __name__ == "__main__":
    unittest.main()
