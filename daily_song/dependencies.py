from fastapi import Request

from daily_song.cache import PlaylistCache
from daily_song.catalog_client import DeezerClient
from daily_song.load_settings import GameSettings
from daily_song.services.daily_service import DailyService
from daily_song.services.round_db import SlotLocks


def get_settings(request: Request) -> GameSettings:
    return request.app.state.settings


def get_cache(request: Request) -> PlaylistCache:
    return request.app.state.cache


def get_catalog(request: Request) -> DeezerClient:
    return request.app.state.catalog


def get_daily_service(request: Request) -> DailyService:
    return request.app.state.daily_service


def get_round_locks(request: Request) -> SlotLocks:
    return request.app.state.round_locks
