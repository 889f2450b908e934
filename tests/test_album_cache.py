import pytest
from hypothesis import given, strategies as st

import album_cache
from album_cache import CacheStateError
from models import AlbumKey, ChartAlbum, Failed, Loaded, Loading, PersistedEntry


A = ChartAlbum(artist="Portishead", name="Dummy", rank=1)
B = ChartAlbum(artist="Massive Attack", name="Mezzanine", rank=2)
C = ChartAlbum(artist="Tricky", name="Maxinquaye", rank=3)
D = ChartAlbum(artist="Björk", name="Post", rank=4)


def test_plan_fetch_batch_marks_new_albums_loading():
    cache, to_fetch = album_cache.plan_fetch_batch([A, B, C], {})

    assert to_fetch == [A.key, B.key, C.key]
    assert cache == {A.key: Loading(), B.key: Loading(), C.key: Loading()}


def test_plan_fetch_batch_skips_pending_albums():
    cache, _ = album_cache.plan_fetch_batch([A, B, C], {})
    cache, to_fetch = album_cache.plan_fetch_batch([A, D], cache)

    assert to_fetch == [D.key]
    assert cache[A.key] == Loading()
    assert cache[D.key] == Loading()


def test_plan_fetch_batch_skips_settled_albums():
    cache = {A.key: Loaded(image_url="https://img/a.png"), B.key: Failed()}
    new_cache, to_fetch = album_cache.plan_fetch_batch([A, B, C], cache)

    assert to_fetch == [C.key]
    assert new_cache[A.key] == Loaded(image_url="https://img/a.png")
    assert new_cache[B.key] == Failed()


def test_plan_fetch_batch_only_considers_first_fifteen():
    albums = [ChartAlbum(artist=f"Artist {i}", name=f"Album {i}", rank=i) for i in range(16)]
    cache, to_fetch = album_cache.plan_fetch_batch(albums, {})

    assert len(to_fetch) == 15
    assert albums[15].key not in cache
    assert to_fetch == [album.key for album in albums[:15]]


def test_plan_fetch_batch_requests_duplicate_album_once():
    cache, to_fetch = album_cache.plan_fetch_batch([A, A, B], {})

    assert to_fetch == [A.key, B.key]
    assert len(cache) == 2


def test_plan_fetch_batch_does_not_mutate_input():
    cache = {A.key: Loading()}
    album_cache.plan_fetch_batch([B], cache)

    assert cache == {A.key: Loading()}


def test_mark_loading_never_overwrites():
    cache = {A.key: Loaded(image_url="https://img/a.png")}

    assert album_cache.mark_loading(A.key, cache) is cache


def test_apply_result_settles_loading_album():
    cache = {A.key: Loading(), B.key: Loading()}
    cache = album_cache.apply_result(A.key, Loaded(image_url="u"), cache)
    cache = album_cache.apply_result(B.key, Failed(), cache)

    assert cache == {A.key: Loaded(image_url="u"), B.key: Failed()}


def test_apply_result_rejects_album_that_is_not_loading():
    with pytest.raises(CacheStateError):
        album_cache.apply_result(A.key, Failed(), {})
    with pytest.raises(CacheStateError):
        album_cache.apply_result(A.key, Failed(), {A.key: Loaded(image_url="u")})


def test_is_any_pending():
    assert not album_cache.is_any_pending({})
    assert not album_cache.is_any_pending({A.key: Loaded(), B.key: Failed()})
    assert album_cache.is_any_pending({A.key: Loaded(), B.key: Loading()})


def test_is_loaded_or_pending_covers_every_state():
    cache = {A.key: Loading(), B.key: Loaded(), C.key: Failed()}

    assert all(album_cache.is_loaded_or_pending(a.key, cache) for a in (A, B, C))
    assert not album_cache.is_loaded_or_pending(D.key, cache)


def test_to_persisted_keeps_only_loaded_with_image():
    cache = {
        A.key: Loaded(image_url="https://img/a.png"),
        B.key: Loaded(image_url=""),
        C.key: Failed(),
        D.key: Loading(),
    }

    assert album_cache.to_persisted(cache) == [
        PersistedEntry(artist="Portishead", name="Dummy", url="https://img/a.png")
    ]


def test_keys_compare_by_value_not_by_joined_string():
    left = AlbumKey(artist="a b", name="c")
    right = AlbumKey(artist="a", name="b c")

    assert left != right
    assert AlbumKey(artist="a", name="b c") == right
    assert len({left, right}) == 2


def test_count_states():
    cache = {A.key: Loading(), B.key: Loaded(), C.key: Failed(), D.key: Failed()}

    assert album_cache.count_states(cache) == {"loading": 1, "loaded": 1, "failed": 2}


keys = st.builds(AlbumKey, artist=st.text(max_size=8), name=st.text(max_size=8))
states = st.one_of(
    st.just(Loading()),
    st.just(Failed()),
    st.builds(Loaded, image_url=st.text(max_size=12)),
)
caches = st.dictionaries(keys, states, max_size=20)


@given(caches)
def test_persisted_round_trip_keeps_exactly_loaded_images(cache):
    restored = album_cache.from_persisted(album_cache.to_persisted(cache))

    expected = {
        key: state
        for key, state in cache.items()
        if isinstance(state, Loaded) and state.image_url
    }
    assert restored == expected


@given(caches, st.lists(keys, max_size=20))
def test_planning_never_drops_keys_or_refetches(cache, batch_keys):
    albums = [ChartAlbum(artist=k.artist, name=k.name) for k in batch_keys]
    new_cache, to_fetch = album_cache.plan_fetch_batch(albums, cache)

    for key, state in cache.items():
        assert new_cache[key] == state
    assert not set(to_fetch) & set(cache)
    assert len(to_fetch) == len(set(to_fetch))
    for key in to_fetch:
        assert new_cache[key] == Loading()
