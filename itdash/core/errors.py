"""
Exception types raised by the sync jobs

Callers branch on the exception class; the attributes carry the context
(device serial, offending field, remote status) for logging and responses.
"""

from typing import Optional


class SyncError(Exception):
    """Base class for every error raised by this package"""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def context(self) -> dict:
        return {}


class InvalidInputError(SyncError):
    """Caller supplied something unusable (missing device, bad window)"""

    def __init__(self, message: str, serial: Optional[str] = None, field: Optional[str] = None):
        super().__init__(message)
        self.serial = serial
        self.field = field

    def context(self) -> dict:
        return {"serial": self.serial, "field": self.field}


class MalformedHistoryError(InvalidInputError):
    """Status history breaks the ordering or window contract"""


class ConfigurationError(SyncError):
    """Required setting is missing"""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field

    def context(self) -> dict:
        return {"field": self.field}


class ExternalServiceError(SyncError):
    """A platform API answered with an error or an unusable payload"""

    def __init__(self, service: str, message: str, status: Optional[int] = None, body: Optional[str] = None):
        detail = f"{service} error: {status} - {message}" if status is not None else f"{service} error: {message}"
        super().__init__(detail)
        self.service = service
        self.status = status
        self.body = body

    def context(self) -> dict:
        return {"service": self.service, "status": self.status}


class MappingError(SyncError):
    """A platform record could not be transformed into a local row"""

    def __init__(self, record: str, message: str):
        super().__init__(f"Mapping failed for {record}: {message}")
        self.record = record

    def context(self) -> dict:
        return {"record": self.record}


class RecordNotFoundError(SyncError):
    """A referenced local row does not exist yet"""

    def __init__(self, entity: str, key: str, detail: Optional[str] = None):
        message = f"{entity} not found in the database: {key}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)
        self.entity = entity
        self.key = key

    def context(self) -> dict:
        return {"entity": self.entity, "key": self.key}
