from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List, Dict, Literal, Union


class Month(BaseModel):
    """A calendar month as a chart window, bounds in epoch seconds"""
    model_config = ConfigDict(frozen=True)

    label: str
    start: int
    end: int


class AlbumKey(BaseModel):
    """Identity of an album, stable across months"""
    model_config = ConfigDict(frozen=True)

    artist: str
    name: str


class ChartAlbum(BaseModel):
    """One row of a weekly album chart"""
    model_config = ConfigDict(frozen=True)

    artist: str
    name: str
    rank: int = 0

    @property
    def key(self) -> AlbumKey:
        return AlbumKey(artist=self.artist, name=self.name)


class Loading(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: Literal["loading"] = "loading"


class Loaded(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: Literal["loaded"] = "loaded"
    image_url: str = ""  # Empty when the album has no artwork


class Failed(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: Literal["failed"] = "failed"


AlbumLoadState = Union[Loading, Loaded, Failed]
Cache = Dict[AlbumKey, AlbumLoadState]


class MonthWithAlbums(BaseModel):
    """A fetched month and its chart albums in rank order"""
    model_config = ConfigDict(frozen=True)

    month: Month
    albums: List[ChartAlbum] = []


class ApplicationState(BaseModel):
    """Everything one session knows; replaced as a whole on every event"""
    model_config = ConfigDict(frozen=True)

    months: List[Month]
    first_index: int = 0
    fetched: List[MonthWithAlbums] = []  # Most recently fetched first
    cache: Cache = Field(default_factory=dict)
    chain_error: Optional[str] = None


class PersistedEntry(BaseModel):
    """Model for one resolved album image on disk"""
    artist: str
    name: str
    url: str


# Effects: descriptions of work for the runtime, never performed by the loop

class FetchChart(BaseModel):
    model_config = ConfigDict(frozen=True)

    month: Month


class FetchAlbumInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    key: AlbumKey


class SaveCache(BaseModel):
    model_config = ConfigDict(frozen=True)

    entries: List[PersistedEntry]


Effect = Union[FetchChart, FetchAlbumInfo, SaveCache]


# Events: results of effects fed back into the loop

class ChartFetched(BaseModel):
    model_config = ConfigDict(frozen=True)

    month: Month
    albums: List[ChartAlbum]


class ChartFailed(BaseModel):
    model_config = ConfigDict(frozen=True)

    month: Month
    error: str


class AlbumInfoFetched(BaseModel):
    model_config = ConfigDict(frozen=True)

    key: AlbumKey
    image_url: str


class AlbumInfoFailed(BaseModel):
    model_config = ConfigDict(frozen=True)

    key: AlbumKey
    error: str


Event = Union[ChartFetched, ChartFailed, AlbumInfoFetched, AlbumInfoFailed]


class Tile(BaseModel):
    """A single grid cell; both fields None for padding"""
    image_url: Optional[str] = None
    text: Optional[str] = None


class MonthGrid(BaseModel):
    """Response model for one rendered month"""
    label: str
    tiles: List[Tile]


class GridResponse(BaseModel):
    """Response model for every fetched month, most recent first"""
    months: List[MonthGrid]
    total_count: int
