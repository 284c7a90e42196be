"""
Device uptime reconstruction

Rebuilds how long a device spent ``online`` inside a trailing reporting
window from its chronological availability change history, and expresses
it as a percentage of the window.
"""

import math
import numbers
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import structlog

from itdash.core.errors import InvalidInputError, MalformedHistoryError, SyncError

logger = structlog.get_logger(__name__)

ONLINE = "online"
DEFAULT_WINDOW_DAYS = 7


@dataclass(frozen=True)
class StatusChangeEvent:
    """A single recorded transition between two device states"""
    timestamp: datetime
    previous_state: str
    new_state: str


@dataclass(frozen=True)
class MerakiDevice:
    """Device snapshot held for the duration of one sync run"""
    serial: str
    status: str
    name: str = ""
    product_type: str = ""
    network_name: Optional[str] = None
    status_history: Tuple[StatusChangeEvent, ...] = ()
    uptime_percentage: Optional[float] = None

    @property
    def is_online(self) -> bool:
        return self.status == ONLINE


@dataclass
class UptimeBatch:
    """Result of computing uptime for many devices"""
    devices: List[MerakiDevice] = field(default_factory=list)
    failures: Dict[str, SyncError] = field(default_factory=dict)


def reporting_window(window_days=DEFAULT_WINDOW_DAYS, now: Optional[datetime] = None) -> Tuple[datetime, datetime]:
    """Return ``(window_start, window_end)`` for a trailing window ending at ``now``.

    Raises InvalidInputError if ``window_days`` is not a positive, finite number.
    """
    if isinstance(window_days, bool) or not isinstance(window_days, numbers.Real):
        raise InvalidInputError(f"window_days must be a number, got {window_days!r}", field="window_days")
    if not math.isfinite(window_days) or window_days <= 0:
        raise InvalidInputError(f"window_days must be positive, got {window_days!r}", field="window_days")

    window_end = now if now is not None else datetime.now(timezone.utc)
    return window_end - timedelta(days=window_days), window_end


def _check_history(serial: Optional[str], history: Sequence[StatusChangeEvent],
                   window_start: datetime, window_end: datetime) -> None:
    previous = None
    for index, event in enumerate(history):
        if event.timestamp < window_start or event.timestamp > window_end:
            raise MalformedHistoryError(
                f"event {index} at {event.timestamp.isoformat()} is outside the reporting window "
                f"[{window_start.isoformat()}, {window_end.isoformat()}]",
                serial=serial,
                field="status_history",
            )
        if previous is not None:
            if event.timestamp < previous.timestamp:
                raise MalformedHistoryError(
                    f"event {index} at {event.timestamp.isoformat()} precedes event {index - 1}",
                    serial=serial,
                    field="status_history",
                )
            if event.previous_state != previous.new_state:
                # Gap in the transition chain; new_state of the earlier event wins
                logger.warning("Status history chain gap",
                               serial=serial,
                               index=index,
                               expected=previous.new_state,
                               found=event.previous_state)
        previous = event


def compute_uptime_percentage(status: str,
                              history: Sequence[StatusChangeEvent],
                              window_start: datetime,
                              window_end: datetime,
                              serial: Optional[str] = None) -> float:
    """Percentage of ``[window_start, window_end]`` spent online.

    ``history`` must be ascending by timestamp and lie inside the window.
    With no history the device is assumed to have held ``status`` for the
    whole window; otherwise the first event's ``previous_state`` is the
    state at ``window_start``.
    """
    window = window_end - window_start
    if window <= timedelta(0):
        raise InvalidInputError("reporting window has no duration", serial=serial, field="window_days")

    _check_history(serial, history, window_start, window_end)

    segment_start = window_start
    segment_status = history[0].previous_state if history else status
    online = timedelta(0)

    for event in history:
        if segment_status == ONLINE:
            online += event.timestamp - segment_start
        segment_start = event.timestamp
        segment_status = event.new_state

    if segment_status == ONLINE:
        online += window_end - segment_start

    percentage = online / window * 100
    if percentage < 0 or percentage > 100:
        logger.warning("Uptime outside [0, 100], clamping", serial=serial, uptime=percentage)
        percentage = min(100.0, max(0.0, percentage))
    return percentage


def calculate_uptime(device: Optional[MerakiDevice],
                     window_days=DEFAULT_WINDOW_DAYS,
                     now: Optional[datetime] = None) -> MerakiDevice:
    """Return a copy of ``device`` with ``uptime_percentage`` filled in"""
    if device is None:
        raise InvalidInputError("No device given for calculating uptime.", field="device")

    window_start, window_end = reporting_window(window_days, now)
    percentage = compute_uptime_percentage(
        device.status, device.status_history, window_start, window_end, serial=device.serial
    )
    return replace(device, uptime_percentage=percentage)


def calculate_uptimes(devices: Optional[Iterable[MerakiDevice]],
                      window_days=DEFAULT_WINDOW_DAYS,
                      now: Optional[datetime] = None) -> UptimeBatch:
    """Compute uptime for every device against one shared window.

    A device whose history is rejected lands in ``failures`` keyed by serial;
    the others are still computed. A bad window fails the whole batch.
    """
    if devices is None:
        raise InvalidInputError("No devices found for calculating uptimes.", field="devices")

    window_start, window_end = reporting_window(window_days, now)
    batch = UptimeBatch()

    for device in devices:
        if device is None:
            raise InvalidInputError("No device given for calculating uptime.", field="device")
        try:
            percentage = compute_uptime_percentage(
                device.status, device.status_history, window_start, window_end, serial=device.serial
            )
        except InvalidInputError as e:
            logger.error("Uptime calculation failed", serial=device.serial, error=str(e))
            batch.failures[device.serial] = e
            continue
        batch.devices.append(replace(device, uptime_percentage=percentage))

    logger.info("Uptimes calculated",
                computed=len(batch.devices),
                failed=len(batch.failures),
                window_start=window_start.isoformat(),
                window_end=window_end.isoformat())
    return batch
