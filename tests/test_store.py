"""
Unit Tests - Memoized Dataset Store
===================================

One build per dataset signature, shared across concurrent callers, and a
wholesale rebuild when the source file changes.
"""

import threading
import time

from conftest import SAMPLE_RECIPES, write_csv, write_json
from pantry_recipes import store as store_module
from pantry_recipes.store import RecipeStore


class TestSnapshot:

    def test_same_signature_reuses_snapshot(self, sample_store):
        first = sample_store.snapshot()
        assert sample_store.snapshot() is first
        assert len(first) == len(SAMPLE_RECIPES)

    def test_indexes_built_once_per_snapshot(self, sample_store):
        snapshot = sample_store.snapshot()
        assert snapshot.token_index() is snapshot.token_index()
        assert snapshot.search_index() is snapshot.search_index()

    def test_source_change_invalidates_everything(self, sample_store, settings):
        old = sample_store.snapshot()
        old_index = old.token_index()

        write_csv(settings.csv_path, SAMPLE_RECIPES[:2])
        new = sample_store.snapshot()

        assert new is not old
        assert len(new) == 2
        assert new.token_index() is not old_index
        assert new.signature != old.signature

    def test_json_cache_appearing_switches_source(self, sample_store, settings):
        assert len(sample_store.records()) == len(SAMPLE_RECIPES)
        write_json(settings.json_path, [{"title": "Cached Only", "ingredients": ["rice"]}])
        assert [r.title for r in sample_store.records()] == ["Cached Only"]

    def test_no_dataset_is_valid_empty_state(self, store):
        snapshot = store.snapshot()
        assert snapshot.records == ()
        assert snapshot.signature is None
        assert snapshot.search_index() is None
        assert len(snapshot.token_index()) == 0

    def test_reset_forces_reload(self, sample_store):
        first = sample_store.snapshot()
        sample_store.reset()
        assert sample_store.snapshot() is not first

    def test_warm_up_builds_token_index(self, sample_store, monkeypatch):
        sample_store.warm_up()
        snapshot = sample_store.snapshot()
        monkeypatch.setattr(store_module.TokenIndex, "build", classmethod(lambda cls, records: None))
        assert snapshot.token_index() is not None


class TestConcurrentBuild:

    def test_concurrent_callers_share_one_build(self, settings, sample_csv, monkeypatch):
        calls = []
        real_load = store_module.load_dataset

        def slow_load(*args):
            calls.append(args)
            time.sleep(0.05)
            return real_load(*args)

        monkeypatch.setattr(store_module, "load_dataset", slow_load)
        store = RecipeStore(settings)

        snapshots = []
        threads = [threading.Thread(target=lambda: snapshots.append(store.snapshot())) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(calls) == 1
        assert len(snapshots) == 8
        assert all(snapshot is snapshots[0] for snapshot in snapshots)

    def test_token_index_not_blocked_by_search_index_build(self, sample_store, monkeypatch):
        snapshot = sample_store.snapshot()
        building = threading.Event()
        release = threading.Event()

        def slow_build(*args):
            building.set()
            release.wait(timeout=5)
            return None

        monkeypatch.setattr(store_module, "load_or_build", slow_build)
        builder = threading.Thread(target=snapshot.search_index)
        builder.start()
        try:
            assert building.wait(timeout=5)
            assert snapshot.token_index() is not None
            assert builder.is_alive()
        finally:
            release.set()
            builder.join()

    def test_concurrent_search_index_callers_share_one_build(self, sample_store, monkeypatch):
        snapshot = sample_store.snapshot()
        calls = []
        real_build = store_module.load_or_build

        def slow_build(*args):
            calls.append(args)
            time.sleep(0.05)
            return real_build(*args)

        monkeypatch.setattr(store_module, "load_or_build", slow_build)
        indexes = []
        threads = [threading.Thread(target=lambda: indexes.append(snapshot.search_index())) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(calls) == 1
        assert all(index is indexes[0] for index in indexes)
