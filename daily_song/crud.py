from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete
from datetime import datetime
import logging

from daily_song.models.schema_models import RoundProgressSchema
from daily_song.models.schemas import RoundProgress


class ReadData:
    @staticmethod
    async def read_round_progress(
        player_id: str, storage_key: str, session: AsyncSession
    ) -> RoundProgressSchema | None:
        """Read one storage slot

        Args:
            player_id (str): Identifies the player's browser
            storage_key (str): dlm_daily_{lang}_{genre}_{n}

        Returns:
            RoundProgressSchema | None: The slot, or None if nothing was stored
        """
        stmt = select(RoundProgress).where(
            RoundProgress.player_id == player_id,
            RoundProgress.storage_key == storage_key,
        )
        result = await session.execute(stmt)
        row = result.scalars().first()
        if row is None:
            return None
        return RoundProgressSchema.model_validate(row)

    @staticmethod
    async def read_player_keys(player_id: str, session: AsyncSession) -> list[str]:
        stmt = (
            select(RoundProgress.storage_key)
            .where(RoundProgress.player_id == player_id)
            .order_by(RoundProgress.storage_key)
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())


class UpdateData:
    @staticmethod
    async def upsert_round_progress(
        player_id: str, storage_key: str, payload: dict, session: AsyncSession
    ) -> bool:
        """Create or overwrite a storage slot

        Args:
            player_id (str): Identifies the player's browser
            storage_key (str): dlm_daily_{lang}_{genre}_{n}
            payload (dict): Serialized round state

        Returns:
            bool: True if the slot was written
        """
        try:
            stmt = select(RoundProgress).where(
                RoundProgress.player_id == player_id,
                RoundProgress.storage_key == storage_key,
            )
            result = await session.execute(stmt)
            row = result.scalars().first()
            if row is None:
                session.add(
                    RoundProgress(
                        player_id=player_id, storage_key=storage_key, payload=payload
                    )
                )
            else:
                row.payload = payload
                row.updated_at = datetime.now()
            await session.commit()
            return True
        except SQLAlchemyError as e:
            logging.error(f"Failed to store round progress {storage_key}: {e}")
            await session.rollback()
            return False


class DeleteData:
    @staticmethod
    async def delete_round_progress(
        player_id: str, storage_key: str, session: AsyncSession
    ) -> None:
        stmt = delete(RoundProgress).where(
            RoundProgress.player_id == player_id,
            RoundProgress.storage_key == storage_key,
        )
        await session.execute(stmt)
        await session.commit()

    @staticmethod
    async def delete_stale_round_progress(before: datetime, session: AsyncSession) -> int:
        """Delete slots not touched since `before`. Returns the number of deleted rows."""
        stmt = delete(RoundProgress).where(RoundProgress.updated_at < before)
        result = await session.execute(stmt)
        await session.commit()
        return result.rowcount
