"""The single reader component: fetch orchestration, view state and speech."""

import logging
import random
from contextlib import contextmanager

from .client import GitaClient
from .config import Settings
from .errors import FetchError, InputError, SpeechError
from .reference import MAX_CHAPTER, VERSE_COUNTS, next_verse, parse_reference, random_verse
from .speech import Playback, SpeechDispatcher
from .state import (
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
    ViewState,
    reduce,
)

logger = logging.getLogger(__name__)

CHAPTERS_FAILED_MESSAGE = 'Failed to load chapters. Please try again later.'
RANDOM_FAILED_MESSAGE = 'Failed to fetch a random slok. Please try again.'
NO_CURRENT_SLOK_MESSAGE = 'No current slok to find the next one.'


class ReaderController:
    """
    Owns the reader's ViewState for the lifetime of the process.

    All handlers run on one event loop, so state is only ever touched by one
    coroutine between awaits. Slok fetches are guarded by the ``fetching`` flag:
    a fetch requested while another is pending returns without doing anything.
    Errors from the fetcher and the speech layer are turned into inline
    messages here and never propagate to the caller.
    """

    def __init__(
        self,
        client: GitaClient,
        speech: SpeechDispatcher,
        rng: random.Random | None = None,
    ) -> None:
        self.client = client
        self.speech = speech
        self.rng = rng or random.Random()
        self.state = ViewState()

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> 'ReaderController':
        settings = settings or Settings.from_env()
        return cls(GitaClient(settings.api_base_url), SpeechDispatcher.from_settings(settings))

    def dispatch(self, action) -> ViewState:
        self.state = reduce(self.state, action)
        return self.state

    # Content

    async def list_chapters(self) -> None:
        """Load the chapter collection, replacing whatever was there."""
        with self._loading_chapters():
            try:
                chapters = await self.client.list_chapters()
            except FetchError as exc:
                logger.error('Error fetching chapters: %s', exc)
                self.dispatch(ChaptersFailed(CHAPTERS_FAILED_MESSAGE))
                return
            self.dispatch(ChaptersLoaded(tuple(chapters)))
        _check_verse_counts(chapters)

    @contextmanager
    def _loading_chapters(self):
        self.dispatch(ChaptersRequested())
        try:
            yield
        finally:
            if self.state.chapters_loading:
                self.dispatch(ChaptersFailed(CHAPTERS_FAILED_MESSAGE))

    @contextmanager
    def _in_flight(self):
        self.speech.stop()
        self.dispatch(SlokRequested())
        try:
            yield
        finally:
            # SlokLoaded/SlokFailed clear the flag; this covers anything else
            if self.state.fetching:
                self.dispatch(SlokFailed(self.state.error or 'Failed to fetch slok.'))

    async def _fetch_slok(self, chapter: int, verse: int, failure: str | None = None) -> None:
        with self._in_flight():
            try:
                slok = await self.client.get_slok(chapter, verse)
            except FetchError as exc:
                logger.error('Error fetching slok %s.%s: %s', chapter, verse, exc)
                self.dispatch(SlokFailed(failure or str(exc)))
                return
            self.dispatch(SlokLoaded(slok))

    async def get_verse(self, chapter: int, verse: int) -> None:
        """Fetch and show one slok. No-op while another fetch is pending."""
        if self.state.fetching:
            return
        await self._fetch_slok(chapter, verse)

    async def get_random_verse(self) -> None:
        if self.state.fetching:
            return
        chapter, verse = random_verse(self.rng)
        await self._fetch_slok(chapter, verse, failure=RANDOM_FAILED_MESSAGE)

    async def get_next_verse(self) -> None:
        if self.state.fetching:
            return
        current = self.state.selected_slok
        if current is None:
            self.dispatch(ErrorRaised(NO_CURRENT_SLOK_MESSAGE))
            return
        try:
            chapter, verse = next_verse(current.chapter, current.verse)
        except InputError as exc:
            self.dispatch(ErrorRaised(str(exc)))
            return
        await self._fetch_slok(chapter, verse)

    # Navigation

    def select_chapter(self, number: int) -> None:
        chapter = self.state.chapter(number)
        if chapter is None:
            self.dispatch(ErrorRaised(f'Chapter {number} is not available.'))
            return
        self.speech.stop()
        self.dispatch(ChapterSelected(chapter))

    async def select_verse(self, chapter: int, verse: int) -> None:
        await self.get_verse(chapter, verse)

    async def lookup(self, chapter_text, verse_text) -> None:
        """Handle the manual chapter/verse form."""
        try:
            chapter, verse = parse_reference(chapter_text, verse_text)
        except InputError as exc:
            self.dispatch(ErrorRaised(str(exc)))
            return
        self.dispatch(ErrorDismissed())
        await self.get_verse(chapter, verse)

    def back(self) -> None:
        self.speech.stop()
        self.dispatch(BackToChapters())

    def dismiss_error(self) -> None:
        self.dispatch(ErrorDismissed())

    # Speech

    def _speech_status(self, phase: SpeechPhase, message: str) -> None:
        self.dispatch(SpeechUpdated(SpeechStatus(phase, message)))

    async def speak(self, variant_key: str, provider_name: str) -> Playback | None:
        """
        Read the selected slok's *variant_key* translation aloud with *provider_name*.

        Failures only change the speech status; fetched content is untouched.
        """
        try:
            provider, variant, text = self.speech.prepare(self.state.selected_slok, variant_key, provider_name)
        except SpeechError as exc:
            self._speech_status(SpeechPhase.ERROR, str(exc))
            return None
        self.speech.stop()
        self._speech_status(SpeechPhase.GENERATING, f'Generating {variant.label} audio...')
        try:
            playback = await self.speech.start(provider, variant, text)
        except SpeechError as exc:
            logger.error('Error generating %s audio with %s: %s', variant.label, provider.name, exc)
            self._speech_status(SpeechPhase.ERROR, f'Error: {exc}')
            return None
        if playback is None:
            return None
        self._speech_status(SpeechPhase.PLAYING, f'Playing {playback.label} audio...')
        return playback

    def playback_event(self, token: str, event: str) -> None:
        """Handle the page's terminal playback event (``ended`` or ``error``)."""
        playback = self.speech.finish(token)
        if playback is None:
            return
        if event == 'ended':
            self._speech_status(SpeechPhase.FINISHED, f'{playback.label} playback finished.')
        else:
            self._speech_status(SpeechPhase.ERROR, f'Error: could not play {playback.label} audio.')

    async def discover_voices(self) -> None:
        await self.speech.discover_voices()


def _check_verse_counts(chapters) -> list[int]:
    """Log chapters whose API verse count disagrees with the local table."""
    mismatched = []
    for chapter in chapters:
        number = chapter.chapter_number
        expected = VERSE_COUNTS[number - 1] if 1 <= number <= MAX_CHAPTER else None
        if chapter.verses_count != expected:
            logger.warning(
                'Verse count mismatch for Chapter %s: API says %s, local table says %s',
                number, chapter.verses_count, expected,
            )
            mismatched.append(number)
    return mismatched
