import unittest
import sys
import os

# Add project root to path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from itdash.database.upsert import UpsertResult, upsert, upsert_each
from itdash.models.location import Location
from itdash.models.network_device import NetworkDevice
from tests.fakes import make_session_factory

class TestUpsert(unittest.TestCase):
    """Upsert-by-key against an in-memory database"""

    def setUp(self):
        self.db = make_session_factory()()

    def tearDown(self):
        self.db.close()

    def device(self, serial, uptime=100.0, status="online"):
        return {
            "meraki_device_id": serial,
            "name": serial,
            "product_type": "switch",
            "network_name": "HQ",
            "status": status,
            "uptime_percentage": uptime,
        }

    def test_insert_then_update(self):
        self.assertTrue(upsert(self.db, NetworkDevice, "meraki_device_id", self.device("S1")))
        self.db.commit()
        self.assertFalse(upsert(self.db, NetworkDevice, "meraki_device_id", self.device("S1", 42.5, "offline")))
        self.db.commit()

        rows = self.db.query(NetworkDevice).all()
        self.assertEqual(len(rows), 1)
        self.assertEqual(rows[0].uptime_percentage, 42.5)
        self.assertEqual(rows[0].status, "offline")

    def test_upsert_each_counts(self):
        upsert(self.db, NetworkDevice, "meraki_device_id", self.device("S1"))
        self.db.commit()

        result = upsert_each(self.db, NetworkDevice, "meraki_device_id",
                             ["S1", "S2", "S3"], self.device)

        self.assertEqual((result.total, result.inserted, result.updated, result.failed), (3, 2, 1, 0))
        self.assertEqual(self.db.query(NetworkDevice).count(), 3)

    def test_failing_item_skipped_rest_kept(self):
        def to_record(name):
            if name == "Bad":
                raise ValueError("no timezone")
            return {"name": name, "state": "CO", "timezone": "America/Denver"}

        result = upsert_each(self.db, Location, "name", ["Denver", "Bad", "Boulder"], to_record,
                             describe=lambda name: name)

        self.assertEqual(result.successful, 2)
        self.assertEqual(result.failed, 1)
        self.assertEqual(result.errors, ["Skipping locations record Bad: no timezone"])
        self.assertEqual(sorted(l.name for l in self.db.query(Location)), ["Boulder", "Denver"])

    def test_database_error_rolled_back(self):
        # timezone is NOT NULL
        result = upsert_each(self.db, Location, "name",
                             [{"name": "Nowhere", "state": None, "timezone": None},
                              {"name": "Tulsa", "state": "OK", "timezone": "America/Chicago"}],
                             lambda item: item, describe=lambda item: item["name"])

        self.assertEqual(result.failed, 1)
        self.assertTrue(result.errors[0].startswith("Skipping locations record Nowhere"))
        self.assertEqual([l.name for l in self.db.query(Location)], ["Tulsa"])

    def test_empty_result(self):
        result = UpsertResult()
        self.assertEqual((result.successful, result.failed), (0, 0))

if __name__ == '__main__':
    unittest.main()
