import asyncio

from vuxo_cli.storage.search_store import SearchStore


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


def test_ids_increase_and_are_not_reused(make_tracks):
    store = SearchStore()

    ids = [store.save(f"q{i}", make_tracks(1)) for i in range(3)]

    assert ids == [1, 2, 3]
    assert store.get(2).keyword == "q1"
    assert store.get(99) is None


def test_entry_keeps_tracks_in_order(make_tracks):
    store = SearchStore()
    tracks = make_tracks(3)

    entry = store.get(store.save("daft punk", tracks))

    assert entry.tracks == tuple(tracks)


def test_entry_expires_after_ttl(make_tracks):
    clock = FakeClock()
    store = SearchStore(ttl=3600, clock=clock)
    search_id = store.save("q", make_tracks(2))

    clock.now += 3600
    assert store.get(search_id) is not None

    clock.now += 1
    assert store.get(search_id) is None
    assert len(store) == 0


def test_purge_removes_only_expired(make_tracks):
    clock = FakeClock()
    store = SearchStore(ttl=10, clock=clock)
    old = store.save("old", make_tracks(1))
    clock.now += 8
    fresh = store.save("fresh", make_tracks(1))
    clock.now += 5

    assert store.purge() == 1
    assert store.get(old) is None
    assert store.get(fresh) is not None
    assert store.purge() == 0


async def test_background_sweep_purges_and_stops(make_tracks):
    clock = FakeClock()
    store = SearchStore(ttl=10, sweep_interval=0.01, clock=clock)
    store.save("q", make_tracks(1))
    clock.now += 11

    await store.start_background_sweep()
    await asyncio.sleep(0.05)
    await store.stop_background_sweep()

    assert len(store) == 0
    assert store._sweep_task is None
