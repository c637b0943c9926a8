from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.schema import Column, UniqueConstraint
from sqlalchemy.types import JSON, DateTime, String, Uuid
from uuid import uuid4
from datetime import datetime


class Base(DeclarativeBase):
    pass


class RoundProgress(Base):
    """One storage slot: a player's round for a (day, language, genre)."""

    __tablename__ = "round_progress"
    __table_args__ = (UniqueConstraint("player_id", "storage_key"),)

    round_progress_id = Column(Uuid, primary_key=True, default=uuid4)
    player_id = Column(String(64), nullable=False, index=True)
    storage_key = Column(String(64), nullable=False)  # dlm_daily_{lang}_{genre}_{n}
    payload = Column(JSON, nullable=False)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)
