"""Chapter/verse arithmetic over the fixed verse-count table."""

import random

from .errors import InputError

# Verses per chapter, 1-indexed by position
VERSE_COUNTS = (47, 72, 43, 42, 29, 47, 30, 28, 34, 42, 55, 20, 35, 27, 20, 24, 28, 78)
MAX_CHAPTER = len(VERSE_COUNTS)

INVALID_REFERENCE_MESSAGE = (
    f'Please enter valid positive numbers for chapter (1-{MAX_CHAPTER}) '
    'and verse within its range.'
)


def verse_count(chapter: int) -> int:
    """
    Return the number of verses in *chapter* according to the local table.

    Raises:
        InputError: If the chapter is outside 1-18
    """
    if chapter < 1 or chapter > MAX_CHAPTER:
        raise InputError(f'Chapter {chapter} is out of range (1-{MAX_CHAPTER})')
    return VERSE_COUNTS[chapter - 1]


def validate_reference(chapter: int, verse: int) -> tuple[int, int]:
    """Check that (chapter, verse) names an existing verse, raising InputError if not."""
    if chapter < 1 or chapter > MAX_CHAPTER:
        raise InputError(INVALID_REFERENCE_MESSAGE)
    if verse < 1 or verse > VERSE_COUNTS[chapter - 1]:
        raise InputError(INVALID_REFERENCE_MESSAGE)
    return chapter, verse


def parse_reference(chapter_text, verse_text) -> tuple[int, int]:
    """
    Parse the manual lookup form fields into a validated (chapter, verse) pair.

    Args:
        chapter_text: Raw chapter field, usually a string from a form
        verse_text: Raw verse field

    Returns:
        Tuple of (chapter, verse)

    Raises:
        InputError: If either field is not an integer or is out of range
    """
    try:
        chapter = int(str(chapter_text).strip())
        verse = int(str(verse_text).strip())
    except (TypeError, ValueError):
        raise InputError(INVALID_REFERENCE_MESSAGE) from None
    return validate_reference(chapter, verse)


def next_verse(chapter: int, verse: int) -> tuple[int, int]:
    """Return the verse after (chapter, verse), rolling into the next chapter and wrapping after the last."""
    verse += 1
    if verse > verse_count(chapter):
        chapter += 1
        verse = 1
        if chapter > MAX_CHAPTER:
            chapter = 1
    return chapter, verse


def random_verse(rng: random.Random | None = None) -> tuple[int, int]:
    """Draw a chapter uniformly, then a verse uniformly within that chapter."""
    rng = rng or random.Random()
    chapter = rng.randint(1, MAX_CHAPTER)
    verse = rng.randint(1, VERSE_COUNTS[chapter - 1])
    return chapter, verse
