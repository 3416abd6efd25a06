"""编辑会话：内存修改、防抖持久化、草稿回填"""
import pytest

from substudio.drafts import DraftStoreError, MemoryDraftStore
from substudio.session import EditSession, UnknownCueError, hydrate_from_store
from substudio.subtitles import parse_srt

from conftest import THREE_CUES, RecordingStore


class FlakyStore(RecordingStore):
    def __init__(self) -> None:
        super().__init__()
        self.fail = False

    def put(self, cue) -> None:
        if self.fail:
            raise DraftStoreError("disk full")
        super().put(cue)


def _session(store, scheduler, debounce=0.4):
    return EditSession.load(THREE_CUES, store, scheduler, persist_debounce=debounce)


def test_set_translation_is_visible_immediately_without_write(store, scheduler):
    session = _session(store, scheduler)
    store.writes.clear()
    session.set_translation(1, "Eka")
    assert session.translation(1) == "Eka"
    assert session.get(1).start == 0.0
    assert session.dirty_ids == {1}
    assert store.writes == []


def test_debounce_coalesces_rapid_edits_into_one_write(store, scheduler):
    session = _session(store, scheduler)
    session.set_translation(2, "a")
    scheduler.advance(0.2)
    session.set_translation(2, "ab")
    scheduler.advance(0.3)
    assert store.writes == []
    scheduler.advance(0.2)
    assert store.writes == [(2, "ab")]
    assert store.get(2).translation == "ab"
    assert session.dirty_ids == set()
    scheduler.advance(5)
    assert store.writes == [(2, "ab")]


def test_debounce_is_per_cue(store, scheduler):
    session = _session(store, scheduler)
    session.set_translation(1, "x")
    session.set_translation(2, "y")
    scheduler.advance(0.5)
    assert sorted(store.writes) == [(1, "x"), (2, "y")]


def test_flush_persist_writes_current_value_and_cancels_timer(store, scheduler):
    session = _session(store, scheduler)
    session.set_translation(3, "now")
    assert session.flush_persist(3) is True
    assert store.writes == [(3, "now")]
    assert session.pending_ids == set()
    scheduler.advance(1)
    assert store.writes == [(3, "now")]


def test_flush_persist_skips_clean_cue(store, scheduler):
    session = _session(store, scheduler)
    assert session.flush_persist(1) is True
    assert store.writes == []


def test_unchanged_text_does_not_schedule_write(store, scheduler):
    session = _session(store, scheduler)
    session.set_translation(1, "")
    assert session.dirty_ids == set()
    assert scheduler.pending == 0


def test_write_failure_keeps_edit_and_retries_on_next_edit(scheduler):
    store = FlakyStore()
    session = _session(store, scheduler)
    store.fail = True
    session.set_translation(1, "first")
    scheduler.advance(0.5)
    assert session.translation(1) == "first"
    assert session.dirty_ids == {1}

    store.fail = False
    session.set_translation(1, "first")
    scheduler.advance(0.5)
    assert store.writes == [(1, "first")]
    assert session.dirty_ids == set()


def test_unknown_cue_raises(store, scheduler):
    session = _session(store, scheduler)
    with pytest.raises(UnknownCueError):
        session.set_translation(99, "x")
    with pytest.raises(KeyError):
        session.get(0)


def test_next_and_previous_follow_list_order(store, scheduler):
    session = _session(store, scheduler)
    assert session.next_cue(1).id == 2
    assert session.next_cue(3) is None
    assert session.previous_cue(2).id == 1
    assert session.previous_cue(1) is None


def test_resolve_returns_cue_with_latest_translation(store, scheduler):
    session = _session(store, scheduler)
    session.set_translation(2, "Deveni")
    assert session.resolve(3.0).translation == "Deveni"


def test_progress_counts_non_blank_translations(store, scheduler):
    session = _session(store, scheduler)
    session.set_translation(1, "a")
    session.set_translation(2, "   ")
    assert session.progress() == (1, 3)


def test_load_seeds_store_with_parsed_cues(store, scheduler):
    session = _session(store, scheduler)
    assert [c.id for c in session.load_all()] == [1, 2, 3]


def test_load_hydrates_translations_when_counts_match(scheduler):
    store = MemoryDraftStore()
    first = _session(store, scheduler)
    first.set_translation(2, "saved")
    first.close()

    second = _session(store, scheduler)
    assert second.translation(2) == "saved"
    assert second.translation(1) == ""


def test_load_discards_draft_when_counts_differ(scheduler):
    store = MemoryDraftStore()
    first = _session(store, scheduler)
    first.set_translation(1, "stale")
    first.close()

    two_cues = THREE_CUES.rsplit("\n\n", 1)[0]
    second = EditSession.load(two_cues, store, scheduler)
    assert len(second) == 2
    assert second.translation(1) == ""
    assert len(store.get_all()) == 2


def test_load_ignores_unreadable_store(scheduler):
    class BrokenStore(MemoryDraftStore):
        def get_all(self):
            raise DraftStoreError("corrupt")

    session = EditSession.load(THREE_CUES, BrokenStore(), scheduler)
    assert [c.translation for c in session.cues] == ["", "", ""]


def test_hydrate_from_store_matches_by_id():
    cues = parse_srt(THREE_CUES)
    stored = [cues[1].with_translation("two"), cues[0], cues[2].with_translation("three")]
    assert [c.translation for c in hydrate_from_store(cues, stored)] == ["", "two", "three"]
    assert hydrate_from_store(cues, stored[:2]) == cues


def test_close_flushes_dirty_and_cancels_timers(store, scheduler):
    session = _session(store, scheduler)
    session.set_translation(1, "bye")
    session.close()
    assert store.writes == [(1, "bye")]
    assert scheduler.pending == 0
    assert session.closed
    with pytest.raises(RuntimeError):
        session.set_translation(1, "again")


def test_close_without_flush_drops_pending_writes(store, scheduler):
    session = _session(store, scheduler)
    session.set_translation(1, "lost")
    session.close(flush=False)
    scheduler.advance(1)
    assert store.writes == []


def test_duplicate_ids_rejected(store, scheduler):
    cues = parse_srt(THREE_CUES)
    with pytest.raises(ValueError):
        EditSession([cues[0], cues[0]], store, scheduler)


def test_load_all_returns_latest_persisted_values_in_id_order(store, scheduler):
    session = _session(store, scheduler)
    session.set_translation(3, "tri")
    session.set_translation(1, "o")
    session.set_translation(1, "one")
    session.flush_all()

    drafts = session.load_all()
    assert [c.id for c in drafts] == [1, 2, 3]
    assert [c.translation for c in drafts] == ["one", "", "tri"]
