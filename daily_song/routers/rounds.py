import logging
from typing import Callable, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from daily_song.dependencies import get_daily_service, get_round_locks
from daily_song.domain import round_rules
from daily_song.domain.day_resolver import clamp_day
from daily_song.models.dc_models import (
    AttemptSlotModel,
    DailyModel,
    GuessModel,
    HintModel,
    RoundStateModel,
    RoundViewModel,
)
from daily_song.routers.restapi import parse_genre, parse_lang
from daily_song.services import round_db
from daily_song.services.daily_service import DailyService
from daily_song.services.round_db import SlotLocks

round_router = APIRouter(prefix="/api/round")


class RoundTarget:
    """Query parameters identifying one storage slot."""

    def __init__(
        self,
        player_id: str = Query(..., min_length=1, max_length=64),
        n: Optional[str] = None,
        lang: Optional[str] = None,
        genre: Optional[str] = None,
    ):
        if (lang or "").lower() == "all":
            # A round belongs to one language slot; the merged pool has none.
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail="Rounds are played in one language: use lang=fr or lang=en",
            )
        self.player_id = player_id
        self.n = n
        self.lang = parse_lang(lang)
        self.genre = parse_genre(genre)


async def resolve_daily(target: RoundTarget, daily_service: DailyService) -> DailyModel:
    day = clamp_day(target.n, daily_service.today())
    daily = await daily_service.resolve(day, target.lang, target.genre)
    if daily is None:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="No tracks available",
        )
    return daily


def build_view(
    daily: DailyModel, target: RoundTarget, state: RoundStateModel, daily_service: DailyService
) -> RoundViewModel:
    """Everything the client needs to draw the round

    Args:
        daily (DailyModel): The resolved song of the day
        target (RoundTarget): Slot parameters
        state (RoundStateModel): Current round state

    Returns:
        RoundViewModel: State plus hints, attempt verdicts and snippet length
    """
    settings = daily_service.settings
    answer = daily.song
    limit = round_rules.snippet_limit(
        settings.snippet_seconds, state.snippet_index, settings.track_length
    )
    unlocked, _ = round_rules.snippet_progress(
        settings.snippet_seconds, state.snippet_index, settings.track_length, 0.0
    )
    return RoundViewModel(
        n=daily.n,
        lang=target.lang,
        genre=target.genre,
        date=daily.date,
        state=state,
        attempt_slots=[
            AttemptSlotModel(text=text, verdict=verdict)
            for text, verdict in round_rules.attempt_slots(state, answer)
        ],
        hints=[
            HintModel(label=label, value=value)
            for label, value in round_rules.hints_for(answer, state.reveal_index, target.lang)
        ],
        snippet_seconds=limit,
        snippet_label=round_rules.format_snippet(limit),
        snippet_fraction=unlocked,
        track_length=settings.track_length,
        answer=answer if round_rules.is_finished(state) else None,
    )


async def apply_action(
    target: RoundTarget,
    daily_service: DailyService,
    locks: SlotLocks,
    action: Callable[[RoundStateModel, DailyModel], RoundStateModel],
) -> RoundViewModel:
    daily = await resolve_daily(target, daily_service)
    key = round_rules.storage_key(daily.n, target.lang, target.genre)
    async with locks.hold(target.player_id, key):
        state = await round_db.load_round(target.player_id, key, daily.song.id)
        next_state = action(state, daily)
        if next_state is not state:
            try:
                await round_db.save_round(target.player_id, key, next_state)
            except RuntimeError as e:
                logging.error(f"Round for {key} not saved: {e}")
                raise HTTPException(
                    status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e)
                ) from e
    return build_view(daily, target, next_state, daily_service)


class RoundAPI:
    @staticmethod
    @round_router.get("", response_model=RoundViewModel)
    async def get_round(
        target: RoundTarget = Depends(),
        daily_service: DailyService = Depends(get_daily_service),
        locks: SlotLocks = Depends(get_round_locks),
    ) -> RoundViewModel:
        return await apply_action(target, daily_service, locks, lambda state, daily: state)

    @staticmethod
    @round_router.post("/guess", response_model=RoundViewModel)
    async def guess(
        guess: GuessModel,
        target: RoundTarget = Depends(),
        daily_service: DailyService = Depends(get_daily_service),
        locks: SlotLocks = Depends(get_round_locks),
    ) -> RoundViewModel:
        return await apply_action(
            target,
            daily_service,
            locks,
            lambda state, daily: round_rules.submit_guess(
                state, guess.title, guess.artist, daily.song
            ),
        )

    @staticmethod
    @round_router.post("/skip", response_model=RoundViewModel)
    async def skip(
        target: RoundTarget = Depends(),
        daily_service: DailyService = Depends(get_daily_service),
        locks: SlotLocks = Depends(get_round_locks),
    ) -> RoundViewModel:
        return await apply_action(
            target, daily_service, locks, lambda state, daily: round_rules.skip(state, target.lang)
        )

    @staticmethod
    @round_router.post("/forfeit", response_model=RoundViewModel)
    async def forfeit(
        target: RoundTarget = Depends(),
        daily_service: DailyService = Depends(get_daily_service),
        locks: SlotLocks = Depends(get_round_locks),
    ) -> RoundViewModel:
        return await apply_action(
            target, daily_service, locks, lambda state, daily: round_rules.forfeit(state)
        )

    @staticmethod
    @round_router.post("/reset", response_model=RoundViewModel)
    async def reset(
        target: RoundTarget = Depends(),
        daily_service: DailyService = Depends(get_daily_service),
        locks: SlotLocks = Depends(get_round_locks),
    ) -> RoundViewModel:
        return await apply_action(
            target, daily_service, locks, lambda state, daily: round_rules.reset(state)
        )

    @staticmethod
    @round_router.delete("", status_code=status.HTTP_204_NO_CONTENT)
    async def delete_round(
        target: RoundTarget = Depends(),
        daily_service: DailyService = Depends(get_daily_service),
        locks: SlotLocks = Depends(get_round_locks),
    ) -> None:
        day = clamp_day(target.n, daily_service.today())
        key = round_rules.storage_key(day, target.lang, target.genre)
        async with locks.hold(target.player_id, key):
            await round_db.delete_round(target.player_id, key)

    @staticmethod
    @round_router.get("/keys", response_model=List[str])
    async def list_keys(
        player_id: str = Query(..., min_length=1, max_length=64),
    ) -> List[str]:
        return await round_db.list_player_keys(player_id)
