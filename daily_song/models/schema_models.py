from pydantic import BaseModel
from typing import Any
from uuid import UUID
from datetime import datetime


class RoundProgressSchema(BaseModel):
    round_progress_id: UUID
    player_id: str
    storage_key: str
    payload: Any
    updated_at: datetime

    class Config:
        from_attributes = True
