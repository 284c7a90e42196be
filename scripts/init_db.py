#!/usr/bin/env python3
"""
Create the dashboard tables, optionally with sample network devices
"""

import argparse
import os
import sys
from datetime import datetime, timedelta, timezone

from sqlalchemy.orm import sessionmaker

# Add project root to path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from itdash import models  # noqa: F401  registers every table on Base.metadata
from itdash.collectors.meraki import map_device_to_record
from itdash.core.uptime import MerakiDevice, StatusChangeEvent, calculate_uptime
from itdash.database.connection import Base, engine, init_database
from itdash.database.upsert import upsert
from itdash.models.network_device import NetworkDevice

def sample_devices(now: datetime):
    """A few devices whose histories cover the usual shapes"""
    day = timedelta(days=1)
    return [
        MerakiDevice(serial="Q2SW-0001-AAAA", status="online", name="Core Switch", product_type="switch"),
        MerakiDevice(serial="Q2AP-0002-BBBB", status="offline", name="Lobby AP", product_type="wireless",
                     status_history=(
                         StatusChangeEvent(now - 3.5 * day, "online", "offline"),
                     )),
        MerakiDevice(serial="Q2MT-0003-CCCC", status="offline", name="Server Room Sensor", product_type="sensor",
                     status_history=(
                         StatusChangeEvent(now - 6 * day, "offline", "online"),
                         StatusChangeEvent(now - 1 * day, "online", "offline"),
                     )),
        MerakiDevice(serial="Q2AP-0004-DDDD", status="alerting", name="Warehouse AP", product_type="wireless"),
    ]

def create_sample_data():
    """Insert sample network devices with computed uptime"""
    Session = sessionmaker(bind=engine)
    session = Session()
    now = datetime.now(timezone.utc)

    try:
        for device in sample_devices(now):
            device = calculate_uptime(device, window_days=7, now=now)
            upsert(session, NetworkDevice, "meraki_device_id", map_device_to_record(device))
        session.commit()
        print("✅ Sample network devices created")
    except Exception as e:
        print(f"❌ Error creating sample data: {e}")
        session.rollback()
        raise
    finally:
        session.close()

def main():
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--drop", action="store_true", help="drop existing tables first")
    parser.add_argument("--sample", action="store_true", help="insert sample network devices")
    args = parser.parse_args()

    if args.drop:
        Base.metadata.drop_all(bind=engine)
        print("🗑️  Dropped existing tables")

    init_database()
    print("✅ Tables created")

    if args.sample:
        create_sample_data()

if __name__ == "__main__":
    main()
