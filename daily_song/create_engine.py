import pathlib

from sqlalchemy.ext.asyncio import create_async_engine

from daily_song.load_settings import database_url

file_path = pathlib.Path(__file__).parents[1]
file_path /= "./round_progress.sqlite3"
sqlite_url = f"sqlite+aiosqlite:///{file_path}"


engine = create_async_engine(url=database_url or sqlite_url, echo=False)
