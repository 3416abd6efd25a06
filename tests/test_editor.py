"""编辑器整体流程"""
import pytest

from substudio.config import SubStudioConfig
from substudio.drafts import JsonDraftStore, MemoryDraftStore
from substudio.editor import NoActiveSessionError, SubtitleEditor
from substudio.navigation import NavigationOutcome
from substudio.subtitles import parse_srt

from conftest import THREE_CUES

HELLO_WORLD = """1
00:00:01,000 --> 00:00:02,000
Hello

2
00:00:02,000 --> 00:00:03,000
World
"""


def test_end_to_end_translate_and_export(editor, player, scheduler):
    editor.load(HELLO_WORLD)
    assert editor.on_position_update(1.0) == 1

    result = editor.commit("Ayubowan")
    assert result.outcome is NavigationOutcome.MOVED
    assert editor.session.active_cue_id == 2
    assert player.seeks == [2.0]

    first_block = editor.export().split("\n\n")[0]
    assert "Ayubowan" in first_block
    assert first_block.startswith("1\n00:00:01,000 --> 00:00:02,000\n")


def test_export_bilingual(editor):
    editor.load(HELLO_WORLD)
    editor.set_translation(2, "Lokaya")
    out = editor.export(bilingual=True)
    assert "World\nLokaya" in out


def test_export_uses_config_default(player, scheduler):
    config = SubStudioConfig(bilingual_export=True)
    editor = SubtitleEditor(config, player, scheduler, store=MemoryDraftStore())
    editor.load(HELLO_WORLD)
    assert "Hello" in editor.export()


def test_operations_require_loaded_file(editor):
    with pytest.raises(NoActiveSessionError):
        editor.commit("x")
    with pytest.raises(NoActiveSessionError):
        editor.export()
    with pytest.raises(NoActiveSessionError):
        editor.on_position_update(1.0)


def test_reload_flushes_previous_session(editor, store, scheduler):
    first = editor.load(THREE_CUES)
    editor.set_translation(1, "pending")
    second = editor.load(THREE_CUES)

    assert first.closed
    assert scheduler.pending == 0
    assert (1, "pending") in store.writes
    assert second.translation(1) == "pending"


def test_reset_discards_session_and_drafts(editor, store):
    editor.load(THREE_CUES)
    editor.set_translation(1, "gone")
    editor.reset()
    assert editor.session is None
    assert store.get_all() == []
    session = editor.load(THREE_CUES)
    assert session.translation(1) == ""


def test_set_rate(editor, player):
    editor.set_rate(1.5)
    assert player.rate == 1.5
    with pytest.raises(ValueError):
        editor.set_rate(0)


def test_load_file_and_write(tmp_path, editor):
    src = tmp_path / "movie.srt"
    src.write_text(HELLO_WORLD, encoding="utf-8")
    session = editor.load_file(src)
    assert session.name == "movie.srt"

    editor.set_translation(1, "Ayubowan")
    out = editor.write(tmp_path / "out" / "movie.translated.srt")
    cues = parse_srt(out.read_text(encoding="utf-8"))
    assert [c.source_text for c in cues] == ["Ayubowan", ""]


def test_drafts_survive_restart_with_json_store(tmp_path, player, scheduler):
    config = SubStudioConfig(draft_store="json", draft_path=tmp_path / "drafts.json")
    editor = SubtitleEditor(config, player, scheduler)
    assert isinstance(editor.store, JsonDraftStore)
    editor.load(THREE_CUES)
    editor.set_translation(2, "Deka")
    scheduler.advance(1.0)
    editor.close()

    restarted = SubtitleEditor(config, player, scheduler)
    session = restarted.load(THREE_CUES)
    assert session.translation(2) == "Deka"


def test_json_without_path_falls_back_to_memory(player, scheduler):
    editor = SubtitleEditor(SubStudioConfig(draft_store="json"), player, scheduler)
    assert isinstance(editor.store, MemoryDraftStore)
