"""DB service layer for round progress.

- Routers should not touch DB sessions directly; they call this module.
- This layer owns session boundaries and turns stored records into rounds.
"""

import logging
from asyncio import Lock
from contextlib import asynccontextmanager
from datetime import datetime, timedelta
from typing import Any, AsyncIterator, Dict, Optional, Tuple

from daily_song.crud import DeleteData, ReadData, UpdateData
from daily_song.db import Session
from daily_song.domain.round_rules import restore_round, start_round, to_stored
from daily_song.models.dc_models import RoundStateModel

ROUND_RETENTION_DAYS = 365


class SlotLocks:
    """One lock per (player, storage key).

    Held from load to save, so requests on the same slot run one after another.
    """

    def __init__(self):
        self.locks: Dict[Tuple[str, str], Lock] = {}
        self.holders: Dict[Tuple[str, str], int] = {}  # tasks holding or waiting

    @asynccontextmanager
    async def hold(self, player_id: str, storage_key: str) -> AsyncIterator[None]:
        slot = (player_id, storage_key)
        lock = self.locks.setdefault(slot, Lock())
        self.holders[slot] = self.holders.get(slot, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self.holders[slot] -= 1
            if not self.holders[slot]:
                del self.holders[slot]
                del self.locks[slot]


async def read_round_payload(player_id: str, storage_key: str) -> Optional[Any]:
    async with Session() as session:
        progress = await ReadData.read_round_progress(player_id, storage_key, session)
    return progress.payload if progress else None


async def load_round(player_id: str, storage_key: str, answer_id: int) -> RoundStateModel:
    """Restore the stored round for this answer, or start a fresh one.

    A slot written for another answer (the playlist changed) or with a broken
    shape is ignored and will be overwritten on the next save.
    """
    payload = await read_round_payload(player_id, storage_key)
    if payload is not None:
        state = restore_round(payload, answer_id)
        if state is not None:
            return state
        logging.info(f"Stale round in {storage_key} for player {player_id}, starting fresh")
    return start_round(answer_id)


async def save_round(player_id: str, storage_key: str, state: RoundStateModel) -> None:
    async with Session() as session:
        success = await UpdateData.upsert_round_progress(
            player_id, storage_key, to_stored(state), session
        )
    if not success:
        raise RuntimeError("Failed to store round progress")


async def delete_round(player_id: str, storage_key: str) -> None:
    async with Session() as session:
        await DeleteData.delete_round_progress(player_id, storage_key, session)


async def list_player_keys(player_id: str) -> list[str]:
    async with Session() as session:
        return await ReadData.read_player_keys(player_id, session)


async def delete_stale_rounds(retention_days: int = ROUND_RETENTION_DAYS) -> None:
    before = datetime.now() - timedelta(days=retention_days)
    async with Session() as session:
        deleted = await DeleteData.delete_stale_round_progress(before, session)
    logging.info(f"Deleted {deleted} round(s) older than {retention_days} days")
