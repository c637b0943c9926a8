from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse, Response

from daily_song.dependencies import get_daily_service, get_settings
from daily_song.load_settings import GameSettings
from daily_song.models.dc_models import LanguageModel
from daily_song.routers.restapi import parse_genre, parse_lang
from daily_song.services.daily_service import DailyService

site_router = APIRouter()

GENRES = ("all", "rap")


def redirect(request: Request, path: str) -> RedirectResponse:
    """Permanent redirect, absolute when the (forwarded) host is known."""
    host = request.headers.get("x-forwarded-host") or request.headers.get("host") or ""
    if not host:
        return RedirectResponse(path, status_code=308)
    proto = (
        request.headers.get("x-forwarded-proto")
        or request.headers.get("x-forwarded-protocol")
        or "https"
    )
    return RedirectResponse(f"{proto}://{host}{path}", status_code=308)


class SiteAPI:
    @staticmethod
    @site_router.get("/")
    async def root(
        request: Request,
        lang: Optional[str] = None,
        genre: Optional[str] = None,
        daily_service: DailyService = Depends(get_daily_service),
    ) -> RedirectResponse:
        today = daily_service.today()
        return redirect(request, f"/{parse_lang(lang)}/{parse_genre(genre)}/{today}")

    @staticmethod
    @site_router.get("/sitemap.xml")
    async def sitemap(
        settings: GameSettings = Depends(get_settings),
        daily_service: DailyService = Depends(get_daily_service),
    ) -> Response:
        host = settings.site_host.rstrip("/")
        today = daily_service.today()
        urls = [
            f"{host}/{lang.value}/{genre}/{n}"
            for lang in LanguageModel
            for genre in GENRES
            for n in range(1, today + 1)
        ]
        body = "\n".join(f"  <url><loc>{u}</loc></url>" for u in urls)
        sitemap = (
            '<?xml version="1.0" encoding="UTF-8"?>\n'
            '<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">\n'
            f"{body}\n</urlset>"
        )
        return Response(sitemap, media_type="application/xml")

    @staticmethod
    @site_router.get("/{lang}/{n:int}")
    async def legacy_day(
        request: Request, lang: LanguageModel, n: int, genre: Optional[str] = None
    ) -> RedirectResponse:
        # /fr/123?genre=rap -> /fr/rap/123
        return redirect(request, f"/{lang.value}/{parse_genre(genre)}/{n}")

    @staticmethod
    @site_router.get("/{lang}/{genre}/{n:int}")
    async def day_page(
        request: Request,
        lang: LanguageModel,
        genre: str,
        n: int,
        settings: GameSettings = Depends(get_settings),
    ):
        if genre not in GENRES:
            return redirect(request, f"/{lang.value}/all/{n}")
        host = settings.site_host.rstrip("/")
        return {
            "lang": lang.value,
            "genre": genre,
            "n": n,
            "canonical": f"{host}/{lang.value}/{genre}/{n}",
            "alternates": {
                "fr": f"{host}/fr/{genre}/{n}",
                "en": f"{host}/en/{genre}/{n}",
            },
        }
