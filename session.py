import asyncio
import logging
from typing import List, Sequence, Set

import httpx

from cache import CacheManager
from lastfm_client import LastFMClient, LastFMError
from models import (
    AlbumInfoFailed,
    AlbumInfoFetched,
    AlbumKey,
    ApplicationState,
    ChartFailed,
    ChartFetched,
    Effect,
    FetchAlbumInfo,
    FetchChart,
    Month,
    SaveCache,
)
import orchestrator


logger = logging.getLogger(__name__)


class Session:
    """Runs the grid state machine for one user until nothing is left to do.

    Events are handled one at a time; every effect except a save becomes an
    asyncio task that delivers exactly one event back to the queue.
    """

    def __init__(
        self,
        client: LastFMClient,
        cache_manager: CacheManager,
        user: str,
        months: Sequence[Month],
        first_index: int = 0,
    ):
        self.client = client
        self.cache_manager = cache_manager
        self.user = user
        self.state, self._initial_effects = orchestrator.init(
            months, first_index, cache_manager.load()
        )
        self._queue: asyncio.Queue = asyncio.Queue()
        self._tasks: Set[asyncio.Task] = set()
        self._outstanding = 0
        self.running = False
        self.finished = False

    async def run(self) -> ApplicationState:
        """Drive the session to quiescence and return the final state"""
        self.running = True
        try:
            effects, self._initial_effects = self._initial_effects, []
            self._dispatch(effects)
            while self._outstanding:
                event = await self._queue.get()
                self._outstanding -= 1
                if isinstance(event, BaseException):
                    raise event
                self.state, effects = orchestrator.update(self.state, event)
                self._dispatch(effects)
        finally:
            self.running = False
        self.finished = True
        logger.info(
            "Session for %s finished with %d months", self.user, len(self.state.fetched)
        )
        return self.state

    def _dispatch(self, effects: List[Effect]):
        for effect in effects:
            if isinstance(effect, FetchChart):
                self._spawn(self._fetch_chart(effect.month))
            elif isinstance(effect, FetchAlbumInfo):
                self._spawn(self._fetch_album_info(effect.key))
            elif isinstance(effect, SaveCache):
                self._save(effect)
            else:
                raise TypeError(f"Unknown effect: {effect!r}")

    def _spawn(self, coro):
        self._outstanding += 1
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)

    def _on_task_done(self, task: asyncio.Task):
        self._tasks.discard(task)
        if task.cancelled():
            self._queue.put_nowait(asyncio.CancelledError())
            return
        exc = task.exception()
        if exc:
            # Unexpected failure: surface it from run() instead of waiting forever
            self._queue.put_nowait(exc)

    def _save(self, effect: SaveCache):
        try:
            self.cache_manager.save(effect.entries)
        except OSError:
            logger.exception("Saving %d album images failed", len(effect.entries))

    async def _fetch_chart(self, month: Month):
        try:
            albums = await self.client.get_weekly_album_chart(
                self.user, month.start, month.end
            )
        except (LastFMError, httpx.HTTPError) as e:
            event = ChartFailed(month=month, error=str(e))
        else:
            event = ChartFetched(month=month, albums=albums)
        self._queue.put_nowait(event)

    async def _fetch_album_info(self, key: AlbumKey):
        try:
            image_url = await self.client.get_album_image(key.artist, key.name)
        except (LastFMError, httpx.HTTPError) as e:
            event = AlbumInfoFailed(key=key, error=str(e))
        else:
            event = AlbumInfoFetched(key=key, image_url=image_url)
        self._queue.put_nowait(event)
