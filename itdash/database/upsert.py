"""
Upsert-by-key helpers shared by the sync jobs
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional, Type, TypeVar

import structlog
from sqlalchemy.orm import Session

logger = structlog.get_logger(__name__)

T = TypeVar("T")


@dataclass
class UpsertResult:
    """Tally of one batch of per-item upserts"""
    total: int = 0
    inserted: int = 0
    updated: int = 0
    errors: List[str] = field(default_factory=list)

    @property
    def failed(self) -> int:
        return len(self.errors)

    @property
    def successful(self) -> int:
        return self.inserted + self.updated


def upsert(db: Session, model: Type[Any], key: str, data: Dict[str, Any]) -> bool:
    """Insert ``data`` or update the row whose ``key`` column matches.

    Returns True when a new row was added. Does not commit.
    """
    existing = db.query(model).filter(getattr(model, key) == data[key]).first()
    if existing:
        for column, value in data.items():
            setattr(existing, column, value)
        return False

    db.add(model(**data))
    return True


def upsert_each(db: Session,
                model: Type[Any],
                key: str,
                items: Iterable[T],
                to_record: Callable[[T], Dict[str, Any]],
                describe: Optional[Callable[[T], str]] = None) -> UpsertResult:
    """Upsert every item in its own transaction.

    A failing item is rolled back, logged and reported in ``errors``; the
    rest of the batch carries on.
    """
    result = UpsertResult()
    for item in items:
        result.total += 1
        label = describe(item) if describe else repr(item)
        try:
            record = to_record(item)
            if upsert(db, model, key, record):
                result.inserted += 1
            else:
                result.updated += 1
            db.commit()
        except Exception as e:
            db.rollback()
            message = f"Skipping {model.__tablename__} record {label}: {e}"
            logger.error("Upsert failed", table=model.__tablename__, record=label, error=str(e))
            result.errors.append(message)

    logger.info("Upsert complete",
                table=model.__tablename__,
                inserted=result.inserted,
                updated=result.updated,
                failed=result.failed)
    return result
