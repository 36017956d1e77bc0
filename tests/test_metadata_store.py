import json
import threading

import pytest

from gallery.errors import StorageIOError, ValidationError
from gallery.services.metadata_store import COLLECTION_KEY, MetadataStore


@pytest.fixture
def store(tmp_path):
    return MetadataStore(tmp_path / "albums.json")


def test_create_defaults(store):
    album = store.create("  Beach Trip ", "Summer 2024")
    assert album.id.startswith("alb_")
    assert album.name == "Beach Trip"
    assert album.description == "Summer 2024"
    assert album.media_count == 0
    assert album.views == 0
    assert album.cover_image is None
    assert album.created_at == album.updated_at


@pytest.mark.parametrize("name", ["", "   ", None])
def test_create_requires_name(store, name):
    with pytest.raises(ValidationError):
        store.create(name)
    assert store.list() == []
    assert not store.path.exists()


def test_get_returns_copy(store):
    album = store.create("Office")
    copy = store.get(album.id)
    copy.name = "changed"
    assert store.get(album.id).name == "Office"
    assert store.get("alb_missing") is None


def test_update_merges_and_bumps_updated_at(store):
    album = store.create("Office")
    updated = store.update(album.id, {"description": "desk photos"})
    assert updated.name == "Office"
    assert updated.description == "desk photos"
    assert updated.updated_at >= album.updated_at
    assert updated.created_at == album.created_at


def test_update_unknown_returns_none(store):
    assert store.update("alb_missing", {"name": "x"}) is None


def test_update_rejects_bad_fields(store):
    album = store.create("Office")
    with pytest.raises(ValidationError):
        store.update(album.id, {"id": "alb_other"})
    with pytest.raises(ValidationError):
        store.update(album.id, {"name": " "})
    with pytest.raises(ValidationError):
        store.update(album.id, {"cover_image": "not-a-ref"})
    with pytest.raises(ValidationError):
        store.update(album.id, {"views": -1})
    assert store.get(album.id).name == "Office"


@pytest.mark.parametrize(
    "fields",
    [{"media_count": 42}, {"cover_image": "med_1/data"}, {"views": 10}],
)
def test_update_rejects_derived_fields(store, fields):
    album = store.create("Office")
    with pytest.raises(ValidationError):
        store.update(album.id, fields)
    assert store.get(album.id) == album


def test_delete_is_idempotent(store):
    album = store.create("Office")
    assert store.delete(album.id) is True
    assert store.delete(album.id) is False
    assert store.get(album.id) is None


def test_increment_views(store):
    album = store.create("Office")
    store.increment_views(album.id)
    store.increment_views(album.id)
    store.increment_views("alb_missing")
    assert store.get(album.id).views == 2


def test_set_counters_keeps_updated_at(store):
    album = store.create("Office")
    store.set_counters(album.id, media_count=3, cover_image="med_1/thumbnail")
    reloaded = store.get(album.id)
    assert reloaded.media_count == 3
    assert reloaded.cover_image == "med_1/thumbnail"
    assert reloaded.updated_at == album.updated_at


def test_persists_across_instances(store, tmp_path):
    a = store.create("A")
    store.create("B")
    store.increment_views(a.id)

    reopened = MetadataStore(tmp_path / "albums.json")
    assert {x.name for x in reopened.list()} == {"A", "B"}
    assert reopened.get(a.id).views == 1

    raw = json.loads((tmp_path / "albums.json").read_text())
    assert len(raw[COLLECTION_KEY]) == 2


@pytest.mark.parametrize("content", ["{not json", "[]", '{"gallery_albums": 3}'])
def test_unparseable_file_raises(tmp_path, content):
    path = tmp_path / "albums.json"
    path.write_text(content)
    with pytest.raises(StorageIOError):
        MetadataStore(path)
    assert path.read_text() == content


def test_invalid_record_is_skipped_and_kept(store, tmp_path):
    good = store.create("Good")
    bad = store.create("Bad")
    path = tmp_path / "albums.json"
    raw = json.loads(path.read_text())
    for record in raw[COLLECTION_KEY]:
        if record["id"] == bad.id:
            record["views"] = -1
    path.write_text(json.dumps(raw))

    reopened = MetadataStore(path)
    assert [a.id for a in reopened.list()] == [good.id]
    assert reopened.unreadable_count == 1

    reopened.create("Third")
    ids = [r["id"] for r in json.loads(path.read_text())[COLLECTION_KEY]]
    assert bad.id in ids
    assert len(ids) == 3


def test_failed_write_leaves_snapshot(store, monkeypatch):
    album = store.create("Office")

    def boom(path, data):
        raise OSError("disk gone")

    monkeypatch.setattr("gallery.services.metadata_store.atomic_write_text", boom)
    with pytest.raises(StorageIOError):
        store.update(album.id, {"name": "Renamed"})
    with pytest.raises(StorageIOError):
        store.create("Another")
    assert store.get(album.id).name == "Office"
    assert len(store.list()) == 1


def test_concurrent_creates_do_not_lose_records(store, tmp_path):
    def worker(n):
        for i in range(20):
            store.create(f"album-{n}-{i}")

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(5)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(store.list()) == 100
    assert len(MetadataStore(tmp_path / "albums.json").list()) == 100
