import asyncio
from datetime import date

import pytest

from models import ChartAlbum
from months import build_month_sequence


def make_albums(prefix: str, count: int):
    """Ranked chart albums with distinct artists"""
    return [
        ChartAlbum(artist=f"{prefix} Artist {i}", name=f"{prefix} Album {i}", rank=i)
        for i in range(1, count + 1)
    ]


class FakeLastFM:
    """Stands in for LastFMClient; records calls and chart concurrency"""

    def __init__(self, charts=None, images=None):
        # charts: month start -> list of ChartAlbum or an exception to raise
        # images: (artist, name) -> url or an exception to raise
        self.charts = charts or {}
        self.images = images or {}
        self.chart_calls = []
        self.image_calls = []
        self.charts_in_flight = 0
        self.max_charts_in_flight = 0

    async def get_weekly_album_chart(self, user, start, end):
        self.chart_calls.append(start)
        self.charts_in_flight += 1
        self.max_charts_in_flight = max(self.max_charts_in_flight, self.charts_in_flight)
        try:
            await asyncio.sleep(0)
            result = self.charts.get(start, [])
            if isinstance(result, Exception):
                raise result
            return result
        finally:
            self.charts_in_flight -= 1

    async def get_album_image(self, artist, name):
        self.image_calls.append((artist, name))
        await asyncio.sleep(0)
        result = self.images.get((artist, name), f"https://img.example/{artist}/{name}.png")
        if isinstance(result, Exception):
            raise result
        return result


class RecordingStore:
    """Stands in for CacheManager"""

    def __init__(self, entries=None):
        self.entries = list(entries or [])
        self.saves = []
        self.on_save = None

    def load(self):
        return list(self.entries)

    def save(self, entries):
        if self.on_save is not None:
            self.on_save(entries)
        self.saves.append(list(entries))
        self.entries = list(entries)


@pytest.fixture
def months():
    # Fourteen months, January 2025 to February 2026
    return build_month_sequence(date(2025, 1, 1), date(2026, 2, 1))


@pytest.fixture
def store():
    return RecordingStore()
