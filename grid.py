from typing import List

from models import Cache, Loaded, MonthGrid, MonthWithAlbums, Tile
from album_cache import ALBUMS_PER_MONTH


GRID_COLUMNS = 3


def padding_for(count: int, columns: int = GRID_COLUMNS) -> int:
    """Empty tiles needed to fill the last row"""
    return -count % columns


def build_tiles(month: MonthWithAlbums, cache: Cache) -> List[Tile]:
    """Tiles for one month: image when resolved, text otherwise, then padding.

    Failed albums and albums still loading both fall back to text.
    """
    tiles = []
    for album in month.albums[:ALBUMS_PER_MONTH]:
        state = cache.get(album.key)
        if isinstance(state, Loaded) and state.image_url:
            tiles.append(Tile(image_url=state.image_url))
        else:
            tiles.append(Tile(text=f"{album.artist} / {album.name}"))
    tiles.extend(Tile() for _ in range(padding_for(len(tiles))))
    return tiles


def build_grids(fetched: List[MonthWithAlbums], cache: Cache) -> List[MonthGrid]:
    """Grids for every fetched month, keeping the most recent first order"""
    return [
        MonthGrid(label=month.month.label, tiles=build_tiles(month, cache))
        for month in fetched
    ]
