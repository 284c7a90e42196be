"""
Meraki network device sync endpoint
"""

from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
import structlog

from itdash.collectors.meraki import MerakiCollector, map_device_to_record
from itdash.core.config import Settings, get_settings
from itdash.core.errors import SyncError
from itdash.core.uptime import calculate_uptimes, reporting_window
from itdash.database.connection import get_database
from itdash.database.upsert import upsert_each
from itdash.models.network_device import NetworkDevice
from itdash.schemas.sync import SyncDetails, SyncFailure, SyncResponse

logger = structlog.get_logger(__name__)
router = APIRouter()

@router.post("/sync/meraki", response_model=SyncResponse, responses={500: {"model": SyncFailure}})
async def sync_meraki(
    window_days: Optional[float] = Query(None, description="Length of the trailing uptime window in days"),
    db: Session = Depends(get_database),
    cfg: Settings = Depends(get_settings),
):
    """Sync Meraki devices and their uptime over the trailing window"""

    if window_days is None:
        window_days = cfg.uptime_window_days
    # One clock reading for fetching and computing; InvalidInputError becomes a 400
    now = datetime.now(timezone.utc)
    reporting_window(window_days, now)

    try:
        async with MerakiCollector.from_settings(cfg) as meraki:
            logger.info("Fetching Meraki organization")
            org_id = await meraki.get_org_id()

            logger.info("Fetching devices", org_id=org_id)
            devices = await meraki.fetch_devices(org_id)

            logger.info("Fetching device histories", org_id=org_id, window_days=window_days)
            devices = await meraki.fetch_device_histories(org_id, devices, window_days, now)

        logger.info("Calculating device uptime", devices=len(devices))
        batch = calculate_uptimes(devices, window_days, now)

    except SyncError as e:
        logger.error("Meraki sync error", error=str(e), **e.context())
        return JSONResponse(
            status_code=500,
            content={"error": "Meraki sync failed", "message": str(e)},
        )

    result = upsert_each(
        db, NetworkDevice, "meraki_device_id", batch.devices, map_device_to_record,
        describe=lambda device: device.serial,
    )
    uptime_errors = [f"Uptime for {serial}: {error}" for serial, error in batch.failures.items()]
    result.total += len(batch.failures)

    details = SyncDetails.from_result(result)
    details.failed += len(uptime_errors)
    details.errors = uptime_errors + details.errors

    return SyncResponse.build(
        f"Synced {details.successful} of {details.total} devices",
        network_devices=details,
    )
