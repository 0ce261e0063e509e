"""Tests for checksum stores."""

import json

import pytest

from gcs_upload_stream.core.storage import JsonFileChecksumStore, MemoryChecksumStore


@pytest.fixture(params=["memory", "json"])
def any_store(request, tmp_path):
    if request.param == "memory":
        return MemoryChecksumStore()
    return JsonFileChecksumStore(tmp_path / "checksums")


def test_load_creates_empty_entry(any_store):
    assert any_store.load("a", 4) == {}
    assert any_store.checksums("a") == {}


def test_put_get_and_clear(any_store):
    any_store.load("a", 4)
    any_store.put("a", 0, "c0")
    any_store.put("a", 1, "c1")
    any_store.put("b", 0, "other")

    assert any_store.get("a", 1) == "c1"
    assert any_store.get("a", 7) is None
    assert any_store.checksums("a") == {0: "c0", 1: "c1"}

    any_store.clear("a")
    assert any_store.checksums("a") == {}
    assert any_store.get("b", 0) == "other"


def test_reload_keeps_matching_chunk_size(any_store):
    any_store.load("a", 4)
    any_store.put("a", 0, "c0")
    assert any_store.load("a", 4) == {0: "c0"}


def test_reload_with_new_chunk_size_resets(any_store):
    any_store.load("a", 4)
    any_store.put("a", 0, "c0")
    assert any_store.load("a", 8) == {}
    assert any_store.checksums("a") == {}


def test_clear_unknown_id_is_noop(any_store):
    any_store.clear("missing")


def test_json_store_survives_restart(tmp_path):
    directory = tmp_path / "checksums"
    first = JsonFileChecksumStore(directory)
    first.load("video.mp4", 262144)
    first.put("video.mp4", 0, "c0")
    first.put("video.mp4", 1, "c1")

    second = JsonFileChecksumStore(directory)
    assert second.load("video.mp4", 262144) == {0: "c0", 1: "c1"}


def test_json_document_layout(tmp_path):
    store = JsonFileChecksumStore(tmp_path)
    store.load("a", 4)
    store.put("a", 3, "c3")

    document = json.loads(store.path_for("a").read_text(encoding="utf-8"))
    assert document == {"id": "a", "chunk_size": 4, "checksums": {"3": "c3"}}
    assert not list(tmp_path.glob("*.tmp"))


def test_json_store_discards_corrupt_file(tmp_path):
    store = JsonFileChecksumStore(tmp_path)
    store.path_for("a").write_text("{not json", encoding="utf-8")
    assert store.load("a", 4) == {}
