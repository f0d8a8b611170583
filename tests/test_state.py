from __future__ import annotations

import pytest

from gita.models import Chapter, Slok
from gita.state import (
    BackToChapters,
    ChapterSelected,
    ChaptersFailed,
    ChaptersLoaded,
    ChaptersRequested,
    ErrorDismissed,
    ErrorRaised,
    SlokFailed,
    SlokLoaded,
    SlokRequested,
    SpeechPhase,
    SpeechStatus,
    SpeechUpdated,
    View,
    ViewState,
    reduce,
)

from conftest import make_chapter, make_slok

CHAPTER_2 = Chapter.from_api(make_chapter(2))
SLOK_2_72 = Slok.from_api(make_slok(2, 72))


def _reading_state() -> ViewState:
    state = reduce(ViewState(), ChaptersLoaded((CHAPTER_2,)))
    state = reduce(state, ChapterSelected(CHAPTER_2))
    state = reduce(state, SlokRequested())
    state = reduce(state, SlokLoaded(SLOK_2_72))
    return reduce(state, SpeechUpdated(SpeechStatus(SpeechPhase.PLAYING, "Playing Hindi audio...")))


def test_chapter_requests_toggle_loading() -> None:
    state = reduce(ViewState(error="old"), ChaptersRequested())
    assert state.loading and state.error is None
    failed = reduce(state, ChaptersFailed("Failed to load chapters. Please try again later."))
    assert not failed.loading
    assert failed.error.startswith("Failed to load chapters")


def test_slok_loaded_enters_verse_detail() -> None:
    state = _reading_state()
    assert state.view is View.VERSE_DETAIL
    assert state.selected_slok is SLOK_2_72
    assert not state.loading and not state.fetching


def test_new_slok_request_clears_error_speech_and_selection() -> None:
    state = reduce(_reading_state(), ErrorRaised("boom"))
    state = reduce(state, SlokRequested())
    assert state.fetching and state.loading
    assert state.error is None
    assert state.speech.phase is SpeechPhase.IDLE
    assert state.selected_slok is None
    # verse-detail never shows without a slok
    assert state.view is View.CHAPTER_DETAIL


def test_slok_failure_keeps_chapters_and_selected_chapter() -> None:
    state = reduce(_reading_state(), SlokRequested())
    state = reduce(state, SlokFailed("Invalid slok data received."))
    assert state.chapters == (CHAPTER_2,)
    assert state.selected_chapter == CHAPTER_2
    assert state.selected_slok is None
    assert state.view is View.CHAPTER_DETAIL
    assert state.error == "Invalid slok data received."
    assert not state.busy


def test_slok_failure_without_chapter_falls_back_to_list() -> None:
    state = reduce(ViewState(), SlokLoaded(SLOK_2_72))
    state = reduce(state, SlokFailed("nope"))
    assert state.view is View.CHAPTER_LIST


def test_back_resets_selection() -> None:
    state = reduce(reduce(_reading_state(), ErrorRaised("boom")), BackToChapters())
    assert state.view is View.CHAPTER_LIST
    assert state.selected_chapter is None and state.selected_slok is None
    assert state.error is None
    assert state.speech.message == ""
    assert state.chapters == (CHAPTER_2,)


def test_chapter_selection_clears_error() -> None:
    state = reduce(ViewState(error="bad input"), ChapterSelected(CHAPTER_2))
    assert state.view is View.CHAPTER_DETAIL
    assert state.error is None


def test_error_dismissed() -> None:
    assert reduce(ViewState(error="x"), ErrorDismissed()).error is None


def test_unknown_action_is_rejected() -> None:
    with pytest.raises(TypeError):
        reduce(ViewState(), object())


def test_chapter_load_does_not_clear_pending_slok_loading() -> None:
    state = reduce(ViewState(), SlokRequested())
    state = reduce(state, ChaptersRequested())
    state = reduce(state, ChaptersLoaded((CHAPTER_2,)))
    assert state.fetching and state.loading
    assert not state.chapters_loading

    state = reduce(state, SlokLoaded(SLOK_2_72))
    assert not state.loading and not state.fetching


def test_slok_done_keeps_loading_while_chapters_pending() -> None:
    state = reduce(ViewState(), ChaptersRequested())
    state = reduce(state, SlokRequested())
    state = reduce(state, SlokFailed("Could not fetch slok: Not Found"))
    assert state.loading and state.chapters_loading
    assert not state.fetching
