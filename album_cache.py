"""Per-album image load state: dedup, settle, persistence gate and serialization.

Every function here takes a cache and returns a new one; the cache passed in is
never mutated, so a session can swap its whole state per event.
"""
from typing import Dict, Iterable, List, Tuple

from models import (
    AlbumKey,
    AlbumLoadState,
    Cache,
    ChartAlbum,
    Failed,
    Loaded,
    Loading,
    PersistedEntry,
)


ALBUMS_PER_MONTH = 15


class CacheStateError(Exception):
    """Raised when a result arrives for an album that is not loading"""


def is_loaded_or_pending(key: AlbumKey, cache: Cache) -> bool:
    return key in cache


def mark_loading(key: AlbumKey, cache: Cache) -> Cache:
    """Insert Loading for key unless it already has any entry"""
    if key in cache:
        return cache
    updated = dict(cache)
    updated[key] = Loading()
    return updated


def apply_result(key: AlbumKey, outcome: AlbumLoadState, cache: Cache) -> Cache:
    """Settle a loading album to Loaded or Failed"""
    if isinstance(outcome, Loading):
        raise CacheStateError(f"Cannot settle {key.artist} / {key.name} to loading")
    current = cache.get(key)
    if not isinstance(current, Loading):
        raise CacheStateError(
            f"{key.artist} / {key.name} is not loading (state: {current!r})"
        )
    updated = dict(cache)
    updated[key] = outcome
    return updated


def is_any_pending(cache: Cache) -> bool:
    return any(isinstance(state, Loading) for state in cache.values())


def plan_fetch_batch(
    albums: Iterable[ChartAlbum], cache: Cache
) -> Tuple[Cache, List[AlbumKey]]:
    """Mark every uncached album of a month as loading and list what to fetch.

    Only the first ALBUMS_PER_MONTH albums are considered. Albums already in
    the cache, whatever their state, are skipped without a request.
    """
    to_fetch: List[AlbumKey] = []
    for index, album in enumerate(albums):
        if index >= ALBUMS_PER_MONTH:
            break
        key = album.key
        if is_loaded_or_pending(key, cache):
            continue
        cache = mark_loading(key, cache)
        to_fetch.append(key)
    return cache, to_fetch


def to_persisted(cache: Cache) -> List[PersistedEntry]:
    """Loaded entries with an image; loading and failed albums are never saved"""
    return [
        PersistedEntry(artist=key.artist, name=key.name, url=state.image_url)
        for key, state in cache.items()
        if isinstance(state, Loaded) and state.image_url
    ]


def from_persisted(entries: Iterable[PersistedEntry]) -> Cache:
    cache: Cache = {}
    for entry in entries:
        if not entry.url:
            continue
        cache[AlbumKey(artist=entry.artist, name=entry.name)] = Loaded(
            image_url=entry.url
        )
    return cache


def count_states(cache: Cache) -> Dict[str, int]:
    """Count albums per load status"""
    counts = {"loading": 0, "loaded": 0, "failed": 0}
    for state in cache.values():
        counts[state.status] += 1
    return counts
