"""Datastore tables"""

from sqlalchemy import Column, DateTime, Integer, String, func

from .core.database import Base


class DeviceSnapshot(Base):
    """Device properties captured by a detection run (insert-only)"""

    __tablename__ = "device_info"

    id = Column(Integer, primary_key=True, autoincrement=True)
    serial = Column(String(64), nullable=False)
    model = Column(String(128), nullable=False, default="")
    brand = Column(String(128), nullable=False, default="")
    device = Column(String(128), nullable=False, default="")
    android_version = Column(String(32), nullable=False, default="")
    sdk_version = Column(String(16), nullable=False, default="")
    created_at = Column(DateTime, nullable=False, server_default=func.now())


class ActionLogEntry(Base):
    """One operator action and its outcome"""

    __tablename__ = "action_log"

    id = Column(Integer, primary_key=True, autoincrement=True)
    device_name = Column(String(128), nullable=False, default="")
    action = Column(String(64), nullable=False)
    result = Column(String(255), nullable=False)
    created_at = Column(DateTime, nullable=False, server_default=func.now())

    def __repr__(self) -> str:
        return f"<ActionLogEntry {self.action} {self.device_name!r} -> {self.result}>"
