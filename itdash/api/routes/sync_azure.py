"""
Azure AD user and location sync endpoints
"""

from typing import Dict, List

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
import structlog

from itdash.collectors.azure import (
    AzureCollector,
    create_locations_from_users,
    map_location_to_record,
    map_user_to_record,
    user_city,
)
from itdash.core.config import Settings, get_settings
from itdash.core.errors import RecordNotFoundError, SyncError
from itdash.database.connection import get_database
from itdash.database.upsert import upsert_each
from itdash.models.location import Location
from itdash.models.user import User
from itdash.schemas.sync import SyncDetails, SyncFailure, SyncResponse

logger = structlog.get_logger(__name__)
router = APIRouter()

def _failure(job: str, error: SyncError) -> JSONResponse:
    logger.error(f"Azure {job} sync error", error=str(error), **error.context())
    return JSONResponse(
        status_code=500,
        content={"error": f"{job.capitalize()} sync failed", "message": str(error)},
    )

async def _fetch_users(cfg: Settings) -> List[dict]:
    tenants = cfg.azure_tenants()
    async with AzureCollector.from_settings(cfg) as azure:
        return await azure.fetch_all_users(tenants)

def _location_id_map(db: Session) -> Dict[str, int]:
    return {name: location_id for location_id, name in db.query(Location.id, Location.name).all()}

def _upsert_locations(db: Session, users: List[dict]) -> SyncDetails:
    locations, processing_errors = create_locations_from_users(users)
    logger.info("Syncing locations", count=len(locations))
    result = upsert_each(
        db, Location, "name", locations, map_location_to_record,
        describe=lambda location: location["name"],
    )
    return SyncDetails.from_result(result, processing_errors)

def _upsert_users(db: Session, users: List[dict], require_location: bool) -> SyncDetails:
    location_map = _location_id_map(db)

    def to_record(user: dict) -> dict:
        city = user_city(user)
        location_id = location_map.get(city) if city else None
        if require_location and location_id is None:
            raise RecordNotFoundError("Location", str(city), detail=f"required for user {user.get('displayName')}")
        return map_user_to_record(user, location_id)

    logger.info("Syncing users", count=len(users))
    result = upsert_each(
        db, User, "azure_id", users, to_record,
        describe=lambda user: user.get("displayName", user.get("id", "unknown")),
    )
    return SyncDetails.from_result(result)

@router.post("/sync/azure", response_model=SyncResponse, responses={500: {"model": SyncFailure}})
async def sync_azure(db: Session = Depends(get_database), cfg: Settings = Depends(get_settings)):
    """Sync users and the locations derived from them"""

    logger.info("Starting Azure user and location sync")
    try:
        users = await _fetch_users(cfg)
    except SyncError as e:
        return _failure("user", e)

    locations = _upsert_locations(db, users)
    users_details = _upsert_users(db, users, require_location=False)

    return SyncResponse.build(
        f"Synced {users_details.successful} users and {locations.successful} locations.",
        users=users_details,
        locations=locations,
    )

@router.post("/sync/azure/locations", response_model=SyncResponse, responses={500: {"model": SyncFailure}})
async def sync_azure_locations(db: Session = Depends(get_database), cfg: Settings = Depends(get_settings)):
    """Sync only the locations derived from users' cities"""

    logger.info("Starting Azure location sync")
    try:
        users = await _fetch_users(cfg)
    except SyncError as e:
        return _failure("location", e)

    details = _upsert_locations(db, users)
    return SyncResponse.build(
        f"Location sync completed: {details.successful} successful, {details.failed} failed",
        locations=details,
    )

@router.post("/sync/azure/users", response_model=SyncResponse, responses={500: {"model": SyncFailure}})
async def sync_azure_users(db: Session = Depends(get_database), cfg: Settings = Depends(get_settings)):
    """Sync only users; a user whose city has no stored location is skipped"""

    logger.info("Starting Azure user sync")
    try:
        users = await _fetch_users(cfg)
    except SyncError as e:
        return _failure("user", e)

    details = _upsert_users(db, users, require_location=True)
    return SyncResponse.build(
        f"User sync completed: {details.successful} successful, {details.failed} failed",
        users=details,
    )
