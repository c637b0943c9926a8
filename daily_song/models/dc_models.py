from pydantic import BaseModel, ConfigDict, Field, field_validator
from datetime import datetime
from enum import Enum
from typing import Any, List, Optional


class LanguageModel(str, Enum):
    fr = "fr"
    en = "en"


class GenreModel(str, Enum):
    all = "all"
    rap = "rap"


class RoundStatusModel(str, Enum):
    idle = "idle"
    playing = "playing"  # at least one attempt, round still open
    won = "won"
    lost = "lost"


class SongModel(BaseModel):
    id: int
    title: str
    artist: str
    album: Optional[str] = None
    year: Optional[int] = None
    genre: Optional[str] = None
    length: Optional[int] = None
    cover: Optional[str] = None
    preview: str
    language: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class DailyModel(BaseModel):
    song: SongModel
    n: int
    date: str
    lang: Optional[str] = None
    genre: GenreModel = GenreModel.all


class SuggestionModel(BaseModel):
    id: int
    title: str
    artist: str


class SearchModel(BaseModel):
    suggestions: List[SuggestionModel] = []


class SongsFiltersModel(BaseModel):
    genre: str
    lang: str


class SongsModel(BaseModel):
    songs: List[SongModel] = []
    filters: SongsFiltersModel


class GuessModel(BaseModel):
    title: str
    artist: str


class RoundStateModel(BaseModel):
    answer_id: Optional[int] = None
    attempts: List[str] = []
    reveal_index: int = -1
    snippet_index: int = 0
    status: RoundStatusModel = RoundStatusModel.idle


class StoredRoundModel(BaseModel):
    """JSON record kept in a round storage slot.

    Field names follow the record written by the browser client, so a
    stored slot can be moved between the two without conversion.
    """

    answer_id: int = Field(alias="answerId")
    attempts: List[str] = Field(default_factory=list)
    reveal_index: int = Field(default=-1, alias="revealIndex")
    snippet_index: int = Field(default=0, alias="snippetIndex")
    status: str = "idle"

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("attempts", mode="before")
    @classmethod
    def keep_text_attempts(cls, value: Any) -> Any:
        if isinstance(value, list):
            return [item for item in value if isinstance(item, str)]
        return value

    @field_validator("reveal_index", "snippet_index", mode="before")
    @classmethod
    def drop_fractions(cls, value: Any) -> Any:
        if isinstance(value, float) and value.is_integer():
            return int(value)
        return value


class HintModel(BaseModel):
    label: str
    value: Optional[str] = None  # None while the hint is hidden


class AttemptSlotModel(BaseModel):
    text: Optional[str] = None
    verdict: str


class RoundViewModel(BaseModel):
    n: int
    lang: LanguageModel
    genre: GenreModel
    date: str
    state: RoundStateModel
    attempt_slots: List[AttemptSlotModel]
    hints: List[HintModel]
    snippet_seconds: float
    snippet_label: str  # "0.2s", "0:08"
    snippet_fraction: float  # unlocked part of the progress bar
    track_length: float
    answer: Optional[SongModel] = None  # revealed once the round is over


class ConfigModel(BaseModel):
    start_date_utc: str
    reset_offset_hours: int
    snippet_seconds: List[float]
    track_length: float
    today: int
    next_day_at: datetime  # UTC instant day today + 1 begins
