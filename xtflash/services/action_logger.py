"""
Action log persistence.

Every write is its own short transaction. Datastore failures come back as
RecoverableError and a warning; they never fail the operation being logged.
"""

import logging
from typing import Iterable

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from ..core.database import Database, DbResult, Ok, RecoverableError
from ..flash.sequencer import FlashResult
from ..models import ActionLogEntry, DeviceSnapshot
from ..utils.tools import DeviceInfo

logger = logging.getLogger(__name__)


def fit_column(column, value: str) -> str:
    """Truncate value to the declared length of a String column"""
    value = value or ""
    length = getattr(column.type, "length", None)
    if length and len(value) > length:
        return value[: length - 3] + "..."
    return value


def _action_entry(device_name: str, action: str, result: str) -> ActionLogEntry:
    columns = ActionLogEntry.__table__.c
    return ActionLogEntry(
        device_name=fit_column(columns.device_name, device_name),
        action=fit_column(columns.action, action),
        result=fit_column(columns.result, result),
    )


class ActionLogger:
    def __init__(self, db: Database):
        self.db = db

    def log_action(self, device_name: str, action: str, result: str) -> DbResult:
        """Record one operator action and its outcome"""
        entry = _action_entry(device_name, action, result)
        return self._insert(entry, f"{action} -> {result}")

    def log_flash_results(self, device_name: str, results: Iterable[FlashResult]) -> DbResult:
        """Record each partition attempt of a flash run, in order"""
        entries = [
            _action_entry(device_name, f"flash:{r.partition}", "success" if r.succeeded else "failed")
            for r in results
        ]
        if not entries:
            return Ok(0)
        return self._insert_all(entries, f"{len(entries)} flash result(s)")

    def save_device_info(self, info: DeviceInfo) -> DbResult:
        """Insert a device property snapshot"""
        columns = DeviceSnapshot.__table__.c
        snapshot = DeviceSnapshot(
            **{name: fit_column(columns[name], value) for name, value in info.as_dict().items()}
        )
        return self._insert(snapshot, f"device info for {info.serial}")

    def recent_actions(self, limit: int = 10) -> DbResult:
        """Most recent action log rows, newest first"""
        try:
            with self.db.session() as session:
                rows = session.scalars(
                    select(ActionLogEntry)
                    .order_by(ActionLogEntry.created_at.desc(), ActionLogEntry.id.desc())
                    .limit(limit)
                ).all()
            return Ok(list(rows))
        except SQLAlchemyError as e:
            logger.warning(f"Could not read action log: {e}")
            return RecoverableError(f"Could not read action log: {e}")

    def _insert(self, row, description: str) -> DbResult:
        return self._insert_all([row], description)

    def _insert_all(self, rows, description: str) -> DbResult:
        try:
            with self.db.session() as session:
                with session.begin():
                    session.add_all(rows)
            logger.debug(f"Logged {description}")
            return Ok(len(rows))
        except SQLAlchemyError as e:
            logger.warning(f"Could not log {description}: {e}")
            return RecoverableError(f"Could not log {description}: {e}")
