"""
Freshservice ticket and asset sync endpoints
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Tuple

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
import structlog

from itdash.collectors.freshservice import (
    FreshserviceCollector,
    create_agent_email_map,
    map_asset_to_record,
    map_ticket_to_record,
    requester_email,
)
from itdash.core.config import Settings, get_settings
from itdash.core.errors import RecordNotFoundError, SyncError
from itdash.database.connection import get_database
from itdash.database.upsert import upsert_each
from itdash.models.asset import Asset
from itdash.models.ticket import Ticket
from itdash.models.user import User
from itdash.schemas.sync import SyncDetails, SyncFailure, SyncResponse

logger = structlog.get_logger(__name__)
router = APIRouter()

def resolve_ticket_user_ids(db: Session, ticket: Dict[str, Any], agent_email_map: Dict[Any, str]) -> Tuple[int, Optional[int]]:
    """Local user ids of the ticket's requester and (optional) responder"""
    subject = ticket.get("subject", "unknown")

    email = requester_email(ticket)
    requester = db.query(User).filter(User.email == email).first() if email else None
    if not requester:
        raise RecordNotFoundError("Requester", str(email), detail=f"Ticket: {subject}")

    responder_id = ticket.get("responder_id")
    responder_email = agent_email_map.get(responder_id) if responder_id else None
    if not responder_email:
        return requester.id, None

    responder = db.query(User).filter(User.email == responder_email).first()
    if not responder:
        raise RecordNotFoundError("Responder", responder_email, detail=f"Ticket: {subject}")
    return requester.id, responder.id

@router.post("/sync/freshservice", response_model=SyncResponse, responses={500: {"model": SyncFailure}})
async def sync_freshservice(db: Session = Depends(get_database), cfg: Settings = Depends(get_settings)):
    """Sync recently updated tickets, linking requester and assignee to users"""

    updated_since = datetime.now(timezone.utc) - timedelta(days=cfg.freshservice_lookback_days)
    try:
        async with FreshserviceCollector.from_settings(cfg) as freshservice:
            logger.info("Fetching Freshservice agents")
            agents = await freshservice.fetch_agents()

            logger.info("Fetching Freshservice tickets", updated_since=updated_since.isoformat())
            tickets = await freshservice.fetch_tickets(updated_since)
    except SyncError as e:
        logger.error("Freshservice sync error", error=str(e), **e.context())
        return JSONResponse(
            status_code=500,
            content={"error": "Ticket sync failed", "message": str(e)},
        )

    agent_email_map = create_agent_email_map(agents)
    logger.info("Created agent email map", agents=len(agent_email_map))

    def to_record(ticket: Dict[str, Any]) -> Dict[str, Any]:
        requester_id, assignee_id = resolve_ticket_user_ids(db, ticket, agent_email_map)
        return map_ticket_to_record(ticket, requester_id, assignee_id)

    result = upsert_each(
        db, Ticket, "fs_ticket_id", tickets, to_record,
        describe=lambda ticket: ticket.get("subject", "unknown"),
    )
    details = SyncDetails.from_result(result)
    return SyncResponse.build(
        f"Synced {details.successful} of {details.total} tickets with {len(agents)} agents",
        tickets=details,
    )

@router.post("/sync/freshservice/assets", response_model=SyncResponse, responses={500: {"model": SyncFailure}})
async def sync_freshservice_assets(db: Session = Depends(get_database), cfg: Settings = Depends(get_settings)):
    """Sync every Freshservice asset"""

    try:
        async with FreshserviceCollector.from_settings(cfg) as freshservice:
            logger.info("Fetching Freshservice assets")
            assets = await freshservice.fetch_assets()
    except SyncError as e:
        logger.error("Freshservice asset sync error", error=str(e), **e.context())
        return JSONResponse(
            status_code=500,
            content={"error": "Asset sync failed", "message": str(e)},
        )

    result = upsert_each(
        db, Asset, "fs_asset_id", assets, map_asset_to_record,
        describe=lambda asset: asset.get("name", "unknown"),
    )
    details = SyncDetails.from_result(result)
    return SyncResponse.build(
        f"Synced {details.successful} of {details.total} assets",
        assets=details,
    )
