"""Event-driven state machine for one grid session.

`init` and `update` are pure: they take the current state and return a new one
together with the effects the runtime should carry out. Results of those
effects come back through `update` as events.
"""
import logging
from typing import Iterable, List, Sequence, Tuple

from models import (
    AlbumInfoFailed,
    AlbumInfoFetched,
    AlbumKey,
    AlbumLoadState,
    ApplicationState,
    Cache,
    ChartFailed,
    ChartFetched,
    Effect,
    Event,
    Failed,
    FetchAlbumInfo,
    FetchChart,
    Loaded,
    Month,
    MonthWithAlbums,
    PersistedEntry,
    SaveCache,
)
import album_cache
import month_chain


logger = logging.getLogger(__name__)


def init(
    months: Sequence[Month],
    first_index: int = 0,
    persisted: Iterable[PersistedEntry] = (),
) -> Tuple[ApplicationState, List[Effect]]:
    """Create the session state and request the first month"""
    state = ApplicationState(
        months=list(months),
        first_index=first_index,
        cache=album_cache.from_persisted(persisted),
    )
    effects: List[Effect] = []
    month = month_chain.first_month(state.months, first_index)
    if month is not None:
        effects.append(FetchChart(month=month))
    else:
        logger.info("No month to fetch from index %d", first_index)
    return state, effects


def update(state: ApplicationState, event: Event) -> Tuple[ApplicationState, List[Effect]]:
    if isinstance(event, ChartFetched):
        return _on_chart_fetched(state, event)
    if isinstance(event, ChartFailed):
        return _on_chart_failed(state, event)
    if isinstance(event, AlbumInfoFetched):
        return _on_album_settled(state, event.key, Loaded(image_url=event.image_url))
    if isinstance(event, AlbumInfoFailed):
        logger.warning(
            "Album info for %s / %s failed: %s",
            event.key.artist,
            event.key.name,
            event.error,
        )
        return _on_album_settled(state, event.key, Failed())
    raise TypeError(f"Unknown event: {event!r}")


def should_persist(cache: Cache) -> bool:
    """Save only at quiescence, when no image load is outstanding"""
    return not album_cache.is_any_pending(cache)


def _on_chart_fetched(
    state: ApplicationState, event: ChartFetched
) -> Tuple[ApplicationState, List[Effect]]:
    albums = event.albums[: album_cache.ALBUMS_PER_MONTH]
    fetched = [MonthWithAlbums(month=event.month, albums=albums)] + state.fetched
    logger.info(
        "Fetched %s with %d albums (%d months so far)",
        event.month.label,
        len(albums),
        len(fetched),
    )

    effects: List[Effect] = []
    upcoming = month_chain.following_month(state.months, len(fetched), state.first_index)
    if upcoming is not None:
        effects.append(FetchChart(month=upcoming))
    else:
        logger.info("Month chain finished after %d months", len(fetched))

    cache, to_fetch = album_cache.plan_fetch_batch(albums, state.cache)
    effects.extend(FetchAlbumInfo(key=key) for key in to_fetch)

    return state.model_copy(update={"fetched": fetched, "cache": cache}), effects


def _on_chart_failed(
    state: ApplicationState, event: ChartFailed
) -> Tuple[ApplicationState, List[Effect]]:
    # TODO: retry the failed month once instead of halting the whole chain
    logger.error(
        "Chart for %s failed, no further months will be fetched: %s",
        event.month.label,
        event.error,
    )
    return state.model_copy(update={"chain_error": event.error}), []


def _on_album_settled(
    state: ApplicationState, key: AlbumKey, outcome: AlbumLoadState
) -> Tuple[ApplicationState, List[Effect]]:
    cache = album_cache.apply_result(key, outcome, state.cache)
    effects: List[Effect] = []
    if should_persist(cache):
        effects.append(SaveCache(entries=album_cache.to_persisted(cache)))
    return state.model_copy(update={"cache": cache}), effects
