"""
Tests for the JSON document store.
"""

from __future__ import annotations

import json
import os
import stat
from concurrent.futures import ThreadPoolExecutor

import pytest

from catalog import store as store_module
from catalog.defaults import SERVICE_NAMES, default_catalog
from catalog.store import DocumentStore
from core.errors import CorruptStore, SaveFailed, StoreUnavailable


def _leftover_temp_files(store: DocumentStore) -> list[str]:
    return [p.name for p in store.path.parent.iterdir() if p.name.endswith(".tmp")]


class TestSeeding:
    def test_load_on_empty_store_seeds_default(self, store: DocumentStore):
        assert not store.path.exists()

        catalog = store.load()

        assert store.path.exists()
        assert list(catalog["services"]) == list(SERVICE_NAMES)
        assert len(catalog["services"]["schedule"]["sections"]) == 1
        assert catalog["services"]["homework"]["sections"] == []

    def test_seeding_is_idempotent(self, store: DocumentStore):
        first = store.load()
        on_disk = store.path.read_bytes()

        second = store.load()

        assert first == second == default_catalog()
        assert store.path.read_bytes() == on_disk

    def test_existing_document_is_not_reseeded(self, store: DocumentStore):
        catalog = {"services": {"homework": {"name": "HW", "sections": []}}}
        store.save(catalog)

        assert store.load() == catalog

    def test_concurrent_first_loads_seed_once(self, settings):
        calls = []

        def seed():
            calls.append(1)
            return default_catalog()

        store = DocumentStore(settings.catalog_path, seed=seed)
        store.open()

        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(lambda _: store.load(), range(16)))

        assert len(calls) == 1
        assert all(result == results[0] for result in results)


class TestRoundTrip:
    def test_save_then_load_preserves_key_and_section_order(self, store: DocumentStore):
        catalog = {
            "services": {
                "contact": {"name": "Contact", "sections": []},
                "ai": {
                    "name": "AI",
                    "sections": [
                        {"id": "b", "name": "B", "description": "", "type": "text", "content": []},
                        {"id": "a", "name": "A", "description": "", "type": "mixed", "content": [
                            {"type": "text", "title": "t", "content": "c"},
                        ]},
                    ],
                },
            }
        }

        store.save(catalog)
        loaded = store.load()

        assert loaded == catalog
        assert list(loaded["services"]) == ["contact", "ai"]
        assert [s["id"] for s in loaded["services"]["ai"]["sections"]] == ["b", "a"]

    def test_unknown_keys_are_preserved(self, store: DocumentStore):
        catalog = default_catalog()
        catalog["services"]["library"] = {"name": "Library", "sections": [], "extra": True}
        catalog["version"] = 3

        store.save(catalog)

        assert store.load() == catalog

    def test_document_is_utf8_json(self, store: DocumentStore):
        store.load()

        text = store.path.read_text(encoding="utf-8")

        assert json.loads(text) == default_catalog()
        assert SERVICE_NAMES["schedule"] in text


class TestCorruption:
    @pytest.mark.parametrize(
        "raw",
        [b"{not json", b"", b"[]", b'"text"', b"\xff\xfe\x00"],
    )
    def test_corrupt_document_is_reported_not_reseeded(self, store: DocumentStore, raw: bytes):
        store.path.write_bytes(raw)

        with pytest.raises(CorruptStore):
            store.load()

        assert store.path.read_bytes() == raw


class TestSaveFailures:
    def test_rename_failure_raises_and_keeps_previous_document(self, store: DocumentStore, monkeypatch):
        original = store.load()

        def fail_replace(src, dst):
            raise OSError(28, "No space left on device")

        monkeypatch.setattr(os, "replace", fail_replace)

        with pytest.raises(SaveFailed):
            store.save({"services": {}})

        monkeypatch.undo()
        assert store.load() == original
        assert _leftover_temp_files(store) == []

    def test_unserializable_catalog_raises_save_failed(self, store: DocumentStore):
        original = store.load()

        with pytest.raises(SaveFailed):
            store.save({"services": {"x": object()}})

        assert store.load() == original

    def test_non_object_catalog_raises_save_failed(self, store: DocumentStore):
        with pytest.raises(SaveFailed):
            store.save(["not", "a", "catalog"])  # type: ignore[arg-type]

    def test_missing_directory_raises_store_unavailable(self, tmp_path):
        store = DocumentStore(tmp_path / "never-created" / "data.json")

        with pytest.raises(StoreUnavailable):
            store.save({"services": {}})

    def test_open_fails_fast_when_directory_cannot_be_created(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("a file, not a directory")
        store = DocumentStore(blocker / "data.json")

        with pytest.raises(StoreUnavailable):
            store.open()


class TestDurability:
    def test_new_document_is_world_readable(self, store: DocumentStore):
        store.load()

        assert stat.S_IMODE(store.path.stat().st_mode) == 0o644

    def test_save_keeps_existing_document_mode(self, store: DocumentStore):
        store.load()
        os.chmod(store.path, 0o640)

        store.save({"services": {}})

        assert stat.S_IMODE(store.path.stat().st_mode) == 0o640

    def test_directory_is_synced_after_rename(self, store: DocumentStore, monkeypatch):
        synced = []
        monkeypatch.setattr(store_module, "_fsync_directory", synced.append)

        store.save({"services": {}})

        assert synced == [store.path.parent]

    def test_directory_sync_failure_is_reported(self, store: DocumentStore, monkeypatch):
        def fail_sync(directory):
            raise OSError(5, "Input/output error")

        monkeypatch.setattr(store_module, "_fsync_directory", fail_sync)

        with pytest.raises(SaveFailed):
            store.save({"services": {}})


@pytest.mark.concurrency
class TestAtomicity:
    def test_concurrent_loads_never_observe_partial_document(self, store: DocumentStore):
        # Large sections make a torn write easy to notice.
        versions = []
        for version in range(40):
            catalog = default_catalog()
            catalog["version"] = version
            catalog["services"]["files"]["sections"] = [
                {"id": f"{version}-{i}", "name": "x" * 200, "description": "", "type": "text", "content": []}
                for i in range(200)
            ]
            versions.append(catalog)
        store.save(versions[0])

        def write_all() -> None:
            for catalog in versions:
                store.save(catalog)

        def read_many() -> list[int]:
            return [store.load()["version"] for _ in range(100)]

        with ThreadPoolExecutor(max_workers=6) as pool:
            writers = [pool.submit(write_all) for _ in range(2)]
            readers = [pool.submit(read_many) for _ in range(4)]
            for future in writers:
                future.result()
            seen = [v for future in readers for v in future.result()]

        assert set(seen) <= set(range(40))
        assert store.load() == versions[-1]
        assert _leftover_temp_files(store) == []


def test_scenario_add_homework_section_leaves_schedule_untouched(store: DocumentStore):
    catalog = store.load()
    schedule = catalog["services"]["schedule"]
    assert len(schedule["sections"]) == 1
    assert catalog["services"]["homework"]["sections"] == []

    catalog["services"]["homework"]["sections"] = [
        {"id": "1", "name": "HW1", "description": "", "type": "text", "content": []}
    ]
    store.save(catalog)

    reloaded = store.load()
    assert reloaded["services"]["homework"]["sections"] == [
        {"id": "1", "name": "HW1", "description": "", "type": "text", "content": []}
    ]
    assert reloaded["services"]["schedule"] == schedule
