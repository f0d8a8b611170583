"""View state for the reader and the reducer that owns its transitions.

The controller never mutates state fields directly. It dispatches one of the
action dataclasses below and replaces its state with ``reduce(state, action)``.
Keeping every transition here is what holds the invariants together:

* exactly one view is active;
* the verse-detail view always has a selected slok;
* choosing a chapter or starting a slok fetch clears the previous error and
  speech status;
* ``loading`` stays set while either the chapter list or a slok is in flight.
"""

from dataclasses import dataclass, replace
from enum import Enum

from .models import Chapter, Slok


class View(str, Enum):
    CHAPTER_LIST = 'chapter-list'
    CHAPTER_DETAIL = 'chapter-detail'
    VERSE_DETAIL = 'verse-detail'


class SpeechPhase(str, Enum):
    IDLE = 'idle'
    GENERATING = 'generating'
    PLAYING = 'playing'
    FINISHED = 'finished'
    ERROR = 'error'


@dataclass(frozen=True)
class SpeechStatus:
    phase: SpeechPhase = SpeechPhase.IDLE
    message: str = ''

    @property
    def is_error(self) -> bool:
        return self.phase is SpeechPhase.ERROR


SPEECH_IDLE = SpeechStatus()


@dataclass(frozen=True)
class ViewState:
    view: View = View.CHAPTER_LIST
    chapters: tuple = ()
    selected_chapter: Chapter | None = None
    selected_slok: Slok | None = None
    loading: bool = False
    chapters_loading: bool = False
    fetching: bool = False
    error: str | None = None
    speech: SpeechStatus = SPEECH_IDLE

    @property
    def busy(self) -> bool:
        return self.loading or self.fetching

    def chapter(self, number: int) -> Chapter | None:
        return next((c for c in self.chapters if c.chapter_number == number), None)


# Actions

@dataclass(frozen=True)
class ChaptersRequested:
    pass


@dataclass(frozen=True)
class ChaptersLoaded:
    chapters: tuple


@dataclass(frozen=True)
class ChaptersFailed:
    message: str


@dataclass(frozen=True)
class SlokRequested:
    pass


@dataclass(frozen=True)
class SlokLoaded:
    slok: Slok


@dataclass(frozen=True)
class SlokFailed:
    message: str


@dataclass(frozen=True)
class ChapterSelected:
    chapter: Chapter


@dataclass(frozen=True)
class BackToChapters:
    pass


@dataclass(frozen=True)
class ErrorRaised:
    message: str


@dataclass(frozen=True)
class ErrorDismissed:
    pass


@dataclass(frozen=True)
class SpeechUpdated:
    status: SpeechStatus


def _without_slok(state: ViewState) -> ViewState:
    if state.view is View.VERSE_DETAIL:
        view = View.CHAPTER_DETAIL if state.selected_chapter else View.CHAPTER_LIST
        return replace(state, view=view, selected_slok=None)
    return replace(state, selected_slok=None)


def reduce(state: ViewState, action) -> ViewState:
    """Return the state that follows *state* after *action*."""
    if isinstance(action, ChaptersRequested):
        return replace(state, chapters_loading=True, loading=True, error=None)
    if isinstance(action, ChaptersLoaded):
        return replace(state, chapters=tuple(action.chapters), chapters_loading=False, loading=state.fetching)
    if isinstance(action, ChaptersFailed):
        return replace(state, error=action.message, chapters_loading=False, loading=state.fetching)

    if isinstance(action, SlokRequested):
        state = _without_slok(state)
        return replace(state, fetching=True, loading=True, error=None, speech=SPEECH_IDLE)
    if isinstance(action, SlokLoaded):
        return replace(
            state,
            view=View.VERSE_DETAIL,
            selected_slok=action.slok,
            fetching=False,
            loading=state.chapters_loading,
        )
    if isinstance(action, SlokFailed):
        state = _without_slok(state)
        return replace(state, error=action.message, fetching=False, loading=state.chapters_loading)

    if isinstance(action, ChapterSelected):
        return replace(
            state,
            view=View.CHAPTER_DETAIL,
            selected_chapter=action.chapter,
            selected_slok=None,
            error=None,
            speech=SPEECH_IDLE,
        )
    if isinstance(action, BackToChapters):
        return replace(
            state,
            view=View.CHAPTER_LIST,
            selected_chapter=None,
            selected_slok=None,
            error=None,
            speech=SPEECH_IDLE,
        )

    if isinstance(action, ErrorRaised):
        return replace(state, error=action.message)
    if isinstance(action, ErrorDismissed):
        return replace(state, error=None)
    if isinstance(action, SpeechUpdated):
        return replace(state, speech=action.status)

    raise TypeError(f'Unknown action: {action!r}')
