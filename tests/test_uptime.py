import unittest
import sys
import os
from dataclasses import replace
from datetime import datetime, timedelta, timezone

# Add project root to path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from itdash.core.errors import InvalidInputError, MalformedHistoryError
from itdash.core.uptime import (
    MerakiDevice,
    StatusChangeEvent,
    calculate_uptime,
    calculate_uptimes,
    compute_uptime_percentage,
    reporting_window,
)

NOW = datetime(2025, 3, 8, 0, 0, tzinfo=timezone.utc)
WINDOW_START = NOW - timedelta(days=7)

def day(n: float) -> datetime:
    """Timestamp ``n`` days into the seven-day window"""
    return WINDOW_START + timedelta(days=n)

def event(n: float, previous: str, new: str) -> StatusChangeEvent:
    return StatusChangeEvent(timestamp=day(n), previous_state=previous, new_state=new)

def device(status: str, *history: StatusChangeEvent) -> MerakiDevice:
    return MerakiDevice(serial="Q2XX-TEST-0001", status=status, name="Test AP", status_history=tuple(history))

class TestUptimeScenarios(unittest.TestCase):
    """Seven-day window ending at a fixed instant"""

    def uptime(self, dev, window_days=7):
        return calculate_uptime(dev, window_days=window_days, now=NOW).uptime_percentage

    def test_empty_history_online(self):
        self.assertEqual(self.uptime(device("online")), 100.0)

    def test_empty_history_offline(self):
        self.assertEqual(self.uptime(device("offline")), 0.0)

    def test_empty_history_other_states_count_as_down(self):
        for status in ("alerting", "dormant", "rebooting", ""):
            with self.subTest(status=status):
                self.assertEqual(self.uptime(device(status)), 0.0)

    def test_came_online_at_window_start(self):
        dev = device("online", event(0, "offline", "online"))
        self.assertEqual(self.uptime(dev), 100.0)

    def test_went_offline_mid_window(self):
        dev = device("offline", event(3.5, "online", "offline"))
        self.assertAlmostEqual(self.uptime(dev), 50.0)

    def test_online_between_two_events(self):
        dev = device("offline", event(1, "offline", "online"), event(6, "online", "offline"))
        self.assertAlmostEqual(self.uptime(dev), 500 / 7, places=6)
        self.assertAlmostEqual(self.uptime(dev), 71.43, places=2)

    def test_zero_window_rejected(self):
        with self.assertRaises(InvalidInputError) as ctx:
            calculate_uptime(device("online"), window_days=0, now=NOW)
        self.assertEqual(ctx.exception.field, "window_days")

class TestUptimeEdgeCases(unittest.TestCase):

    def test_event_at_window_start_contributes_nothing_before_it(self):
        # Starting state is online but the first segment has zero length
        dev = device("offline", event(0, "online", "offline"))
        self.assertEqual(calculate_uptime(dev, now=NOW).uptime_percentage, 0.0)

    def test_event_at_window_end(self):
        dev = device("offline", event(7, "online", "offline"))
        self.assertEqual(calculate_uptime(dev, now=NOW).uptime_percentage, 100.0)

    def test_tied_timestamps_processed_in_input_order(self):
        flap_down = device("online", event(2, "online", "offline"), event(2, "offline", "online"))
        flap_up = device("offline", event(2, "online", "online"), event(2, "online", "offline"))

        self.assertEqual(calculate_uptime(flap_down, now=NOW).uptime_percentage, 100.0)
        self.assertAlmostEqual(calculate_uptime(flap_up, now=NOW).uptime_percentage, 200 / 7)

    def test_negative_and_non_numeric_windows_rejected(self):
        for window_days in (-1, -0.5, float("nan"), float("inf"), "7", None, True):
            with self.subTest(window_days=window_days):
                with self.assertRaises(InvalidInputError):
                    calculate_uptime(device("online"), window_days=window_days, now=NOW)

    def test_fractional_window(self):
        now_minus_half_day = NOW - timedelta(hours=6)
        dev = MerakiDevice(serial="S", status="offline", status_history=(
            StatusChangeEvent(now_minus_half_day, "online", "offline"),
        ))
        self.assertAlmostEqual(calculate_uptime(dev, window_days=0.5, now=NOW).uptime_percentage, 50.0)

    def test_missing_device(self):
        with self.assertRaises(InvalidInputError) as ctx:
            calculate_uptime(None, now=NOW)
        self.assertEqual(ctx.exception.field, "device")

    def test_event_before_window_rejected(self):
        dev = device("online", StatusChangeEvent(WINDOW_START - timedelta(seconds=1), "offline", "online"))
        with self.assertRaises(MalformedHistoryError) as ctx:
            calculate_uptime(dev, now=NOW)
        self.assertEqual(ctx.exception.serial, "Q2XX-TEST-0001")
        self.assertEqual(ctx.exception.field, "status_history")

    def test_event_after_now_rejected(self):
        dev = device("online", StatusChangeEvent(NOW + timedelta(minutes=1), "offline", "online"))
        with self.assertRaises(MalformedHistoryError):
            calculate_uptime(dev, now=NOW)

    def test_unsorted_history_rejected(self):
        dev = device("offline", event(5, "online", "offline"), event(2, "offline", "online"))
        with self.assertRaises(MalformedHistoryError):
            calculate_uptime(dev, now=NOW)

    def test_chain_gap_trusts_new_state(self):
        # Second event claims it started "dormant" although the first ended "online"
        dev = device("offline", event(1, "offline", "online"), event(4, "dormant", "offline"))
        self.assertAlmostEqual(calculate_uptime(dev, now=NOW).uptime_percentage, 300 / 7)

    def test_input_device_left_untouched(self):
        dev = device("offline", event(3.5, "online", "offline"))
        result = calculate_uptime(dev, now=NOW)

        self.assertIsNone(dev.uptime_percentage)
        self.assertIsNot(result, dev)
        self.assertEqual(replace(result, uptime_percentage=None), dev)

    def test_defaults_to_current_time(self):
        before = datetime.now(timezone.utc)
        start, end = reporting_window()
        self.assertGreaterEqual(end, before)
        self.assertEqual(end - start, timedelta(days=7))

class TestUptimeProperties(unittest.TestCase):

    histories = [
        (),
        (event(0, "offline", "online"),),
        (event(1, "online", "offline"), event(2, "offline", "online"), event(2, "online", "alerting")),
        (event(0.25, "dormant", "online"), event(3, "online", "offline"), event(6.9, "offline", "online")),
        (event(6, "alerting", "online"),),
    ]

    def test_result_within_bounds(self):
        for history in self.histories:
            for status in ("online", "offline"):
                with self.subTest(history=history, status=status):
                    value = calculate_uptime(device(status, *history), now=NOW).uptime_percentage
                    self.assertGreaterEqual(value, 0.0)
                    self.assertLessEqual(value, 100.0)

    def test_idempotent(self):
        for history in self.histories:
            dev = device("online", *history)
            first = calculate_uptime(dev, now=NOW).uptime_percentage
            second = calculate_uptime(dev, now=NOW).uptime_percentage
            self.assertEqual(first, second)

    def test_coming_back_online_never_lowers_uptime(self):
        base = (event(1, "online", "offline"),)
        without = calculate_uptime(device("offline", *base), now=NOW).uptime_percentage

        for t in (1, 2.5, 6.99):
            with self.subTest(t=t):
                extended = base + (event(t, "offline", "online"),)
                with_event = calculate_uptime(device("online", *extended), now=NOW).uptime_percentage
                self.assertGreaterEqual(with_event, without)

    def test_compute_matches_device_wrapper(self):
        history = (event(1, "offline", "online"), event(6, "online", "offline"))
        direct = compute_uptime_percentage("offline", history, WINDOW_START, NOW)
        self.assertEqual(direct, calculate_uptime(device("offline", *history), now=NOW).uptime_percentage)

class TestCalculateUptimes(unittest.TestCase):

    def test_batch_isolates_bad_history(self):
        good = device("online")
        bad = MerakiDevice(serial="BAD", status="online", status_history=(
            event(5, "online", "offline"), event(1, "offline", "online"),
        ))
        batch = calculate_uptimes([good, bad], window_days=7, now=NOW)

        self.assertEqual([d.serial for d in batch.devices], ["Q2XX-TEST-0001"])
        self.assertEqual(batch.devices[0].uptime_percentage, 100.0)
        self.assertIsInstance(batch.failures["BAD"], MalformedHistoryError)

    def test_batch_rejects_missing_list(self):
        with self.assertRaises(InvalidInputError):
            calculate_uptimes(None, now=NOW)

    def test_batch_rejects_bad_window_before_computing(self):
        with self.assertRaises(InvalidInputError):
            calculate_uptimes([device("online")], window_days=0, now=NOW)

    def test_batch_shares_one_window(self):
        devices = [device("offline", event(3.5, "online", "offline")), device("online")]
        batch = calculate_uptimes(devices, now=NOW)
        self.assertEqual([d.uptime_percentage for d in batch.devices], [50.0, 100.0])

if __name__ == '__main__':
    unittest.main()
