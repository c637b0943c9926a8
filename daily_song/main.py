from apscheduler.schedulers.asyncio import AsyncIOScheduler
import logging
from datetime import datetime
from typing import Callable, Optional
from fastapi import FastAPI
from contextlib import asynccontextmanager

from daily_song.cache import PlaylistCache
from daily_song.catalog_client import DeezerClient
from daily_song.create_engine import engine
from daily_song.load_settings import GameSettings, load_game_settings, log_level
from daily_song.models.schemas import Base
from daily_song.routers import restapi, rounds, site
from daily_song.services import round_db
from daily_song.services.daily_service import DailyService, utc_now

logging.basicConfig(level=getattr(logging, log_level, logging.INFO))


def create_app(
    settings: Optional[GameSettings] = None,
    catalog: Optional[DeezerClient] = None,
    clock: Callable[[], datetime] = utc_now,
    start_scheduler: bool = True,
) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Build the per-process services and the tables.
        This function is called to start the server.
        """
        game_settings = settings or load_game_settings()
        cache = PlaylistCache()
        deezer = catalog or DeezerClient()
        daily_service = DailyService(game_settings, cache, deezer, clock=clock)
        app.state.settings = game_settings
        app.state.cache = cache
        app.state.catalog = deezer
        app.state.daily_service = daily_service
        app.state.round_locks = round_db.SlotLocks()

        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

        daily_service.refresh_persistent_window()
        scheduler = AsyncIOScheduler()
        if start_scheduler:
            # Keep the recent days pinned and let playlists refetch
            scheduler.add_job(
                daily_service.refresh_persistent_window,
                "interval",
                hours=1,
            )
            # Forget rounds nobody has touched in a long time
            scheduler.add_job(
                round_db.delete_stale_rounds,
                "interval",
                hours=24,
            )
            scheduler.start()
        try:
            yield
        finally:
            if scheduler.running:
                scheduler.shutdown()
            await deezer.aclose()
            await engine.dispose()
            logging.info("Stop Server")

    app = FastAPI(lifespan=lifespan)
    app.include_router(restapi.rest_router)
    app.include_router(rounds.round_router)
    app.include_router(site.site_router)
    return app


app = create_app()

