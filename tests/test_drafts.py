"""草稿存储"""
import json

import pytest

from substudio.drafts import (
    DraftStoreError,
    JsonDraftStore,
    MemoryDraftStore,
    get_draft_store,
)
from substudio.subtitles import Cue


def _cue(cue_id, translation=""):
    return Cue(id=cue_id, start=float(cue_id), end=cue_id + 0.5, source_text=f"line {cue_id}", translation=translation)


@pytest.fixture(params=["memory", "json"])
def store(request, tmp_path):
    return get_draft_store(request.param, tmp_path / "d.json")


def test_store_contract(store):
    assert store.get_all() == []
    assert store.get(1) is None

    store.replace_all([_cue(2), _cue(1)])
    assert [c.id for c in store.get_all()] == [1, 2]

    store.put(_cue(2, "dva"))
    assert store.get(2).translation == "dva"

    store.replace_all([_cue(5)])
    assert [c.id for c in store.get_all()] == [5]

    store.clear()
    assert store.get_all() == []


def test_json_store_persists_across_instances(tmp_path):
    path = tmp_path / "nested" / "drafts.json"
    JsonDraftStore(path).replace_all([_cue(1), _cue(2)])
    JsonDraftStore(path).put(_cue(1, "ichi"))

    reopened = JsonDraftStore(path)
    assert reopened.get(1).translation == "ichi"
    assert reopened.get(1).source_text == "line 1"

    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["version"] == 1
    assert [c["id"] for c in data["cues"]] == [1, 2]
    assert not list(path.parent.glob("*.tmp"))


def test_json_store_keeps_unicode_readable(tmp_path):
    path = tmp_path / "drafts.json"
    JsonDraftStore(path).replace_all([_cue(1, "你好")])
    assert "你好" in path.read_text(encoding="utf-8")


def test_corrupt_json_raises_store_error(tmp_path):
    path = tmp_path / "drafts.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(DraftStoreError):
        JsonDraftStore(path).get_all()


def test_invalid_record_raises_store_error(tmp_path):
    path = tmp_path / "drafts.json"
    path.write_text(
        json.dumps({"version": 1, "cues": [{"id": 1, "start": 3, "end": 1}]}),
        encoding="utf-8",
    )
    with pytest.raises(DraftStoreError):
        JsonDraftStore(path).get(1)


def test_clear_missing_file_is_fine(tmp_path):
    JsonDraftStore(tmp_path / "absent.json").clear()


def test_factory(tmp_path):
    assert isinstance(get_draft_store("memory"), MemoryDraftStore)
    assert isinstance(get_draft_store("JSON", tmp_path / "d.json"), JsonDraftStore)
    with pytest.raises(ValueError):
        get_draft_store("json")
    with pytest.raises(ValueError):
        get_draft_store("sqlite", tmp_path / "d.db")
