"""Typed views over the chapter and slok JSON returned by the Gita API."""

import logging
from dataclasses import dataclass, field

from .errors import ValidationError
from .reference import MAX_CHAPTER, VERSE_COUNTS

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TranslationVariant:
    """A named translation field of a slok: ``slok[author][field]``."""

    key: str
    author: str
    field: str
    label: str
    lang: str


TRANSLATIONS = {
    'hindi': TranslationVariant('hindi', 'tej', 'ht', 'Hindi', 'hi'),
    'english': TranslationVariant('english', 'gambir', 'et', 'English', 'en'),
    'sivananda': TranslationVariant('sivananda', 'siva', 'et', 'Sivananda English', 'en'),
}


def _localized(value, lang: str = 'en') -> str:
    if isinstance(value, dict):
        return str(value.get(lang) or '')
    return str(value or '')


@dataclass(frozen=True)
class Chapter:
    chapter_number: int
    name: str
    translation: str
    verses_count: int
    transliteration: str = ''
    meaning: dict = field(default_factory=dict)
    summary: dict = field(default_factory=dict)

    @classmethod
    def from_api(cls, payload) -> 'Chapter':
        """
        Build a Chapter from one element of the ``/chapters/`` array.

        Raises:
            ValidationError: If the element is not an object or lacks a usable
                chapter number. A missing verse count falls back to the local
                table with a warning.
        """
        if not isinstance(payload, dict):
            raise ValidationError('Invalid chapters data received.')
        try:
            number = int(payload['chapter_number'])
        except (KeyError, TypeError, ValueError):
            raise ValidationError('Invalid chapters data received.') from None
        try:
            verses = int(payload['verses_count'])
        except (KeyError, TypeError, ValueError):
            verses = VERSE_COUNTS[number - 1] if 1 <= number <= MAX_CHAPTER else 0
            logger.warning(
                'Chapter %s has no usable verses_count (%r); using %s from the local table',
                number, payload.get('verses_count'), verses,
            )
        return cls(
            chapter_number=number,
            name=str(payload.get('name') or ''),
            translation=str(payload.get('translation') or ''),
            verses_count=verses,
            transliteration=str(payload.get('transliteration') or ''),
            meaning=payload.get('meaning') if isinstance(payload.get('meaning'), dict) else {},
            summary=payload.get('summary') if isinstance(payload.get('summary'), dict) else {},
        )

    @property
    def meaning_en(self) -> str:
        return _localized(self.meaning)

    @property
    def summary_en(self) -> str:
        return _localized(self.summary)

    def summary_excerpt(self, limit: int = 150) -> str:
        return self.summary_en[:limit]


@dataclass(frozen=True)
class Slok:
    """A single verse. Identity is the (chapter, verse) pair."""

    chapter: int
    verse: int
    slok: str = ''
    transliteration: str = ''
    purport: str = ''
    commentaries: dict = field(default_factory=dict)

    @classmethod
    def from_api(cls, payload) -> 'Slok':
        """
        Build a Slok from the ``/slok/{chapter}/{verse}`` response.

        Every object-valued field of the payload is kept as a commentary keyed
        by its author code (``tej``, ``siva``, ``gambir``, ...).

        Raises:
            ValidationError: If the payload is not an object or has no chapter
        """
        if not isinstance(payload, dict) or not payload.get('chapter'):
            raise ValidationError('Invalid slok data received.')
        try:
            chapter = int(payload['chapter'])
            verse = int(payload.get('verse') or 0)
        except (TypeError, ValueError):
            raise ValidationError('Invalid slok data received.') from None
        commentaries = {k: v for k, v in payload.items() if isinstance(v, dict)}
        return cls(
            chapter=chapter,
            verse=verse,
            slok=str(payload.get('slok') or ''),
            transliteration=str(payload.get('transliteration') or ''),
            purport=str(payload.get('purport') or ''),
            commentaries=commentaries,
        )

    @property
    def ref(self) -> tuple[int, int]:
        return self.chapter, self.verse

    def translation(self, variant: TranslationVariant) -> str | None:
        """Return the raw text of *variant*, or None when the field is absent."""
        author = self.commentaries.get(variant.author)
        if not author:
            return None
        text = author.get(variant.field)
        if text is None:
            return None
        return str(text)

    def available_translations(self) -> list[TranslationVariant]:
        return [v for v in TRANSLATIONS.values() if (self.translation(v) or '').strip()]
