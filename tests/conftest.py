from __future__ import annotations

import random
import re

import httpx
import pytest

from gita.client import GitaClient
from gita.controller import ReaderController
from gita.errors import SpeechError
from gita.reference import VERSE_COUNTS
from gita.speech import AudioClip, SpeechDispatcher, SpeechProvider

API_BASE = "https://gita.test"


def make_chapter(number: int, verses: int | None = None) -> dict:
    return {
        "chapter_number": number,
        "verses_count": VERSE_COUNTS[number - 1] if verses is None else verses,
        "name": f"अध्याय {number}",
        "translation": f"Chapter {number} Yoga",
        "transliteration": f"Adhyay {number}",
        "meaning": {"en": f"Meaning of chapter {number}", "hi": "अर्थ"},
        "summary": {"en": "S" * 200, "hi": "सार"},
    }


def make_slok(chapter: int, verse: int, /, **overrides) -> dict:
    payload = {
        "_id": f"BG{chapter}.{verse}",
        "chapter": chapter,
        "verse": verse,
        "slok": f"श्लोक {chapter}.{verse}",
        "transliteration": f"shloka {chapter}.{verse}",
        "tej": {"author": "Swami Tejomayananda", "ht": f"हिंदी अनुवाद {chapter}.{verse}"},
        "gambir": {"author": "Swami Gambirananda", "et": f"English translation {chapter}.{verse}"},
        "siva": {"author": "Swami Sivananda", "et": f"Sivananda translation {chapter}.{verse}", "ec": "Commentary"},
    }
    payload.update(overrides)
    return payload


class FakeGitaApi:
    """httpx.MockTransport handler standing in for the chapter/slok API."""

    def __init__(self) -> None:
        self.requests: list[str] = []
        self.chapters = [make_chapter(n) for n in range(1, len(VERSE_COUNTS) + 1)]
        self.chapters_status = 200
        self.slok_status = 200
        self.slok_overrides: dict = {}
        self.gate = None

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        self.requests.append(path)
        if self.gate is not None:
            await self.gate.wait()
        if path == "/chapters/":
            return httpx.Response(self.chapters_status, json=self.chapters)
        match = re.fullmatch(r"/slok/(\d+)/(\d+)", path)
        if match:
            chapter, verse = int(match.group(1)), int(match.group(2))
            if self.slok_status != 200:
                return httpx.Response(self.slok_status, json={"error": "nope"})
            return httpx.Response(200, json=make_slok(chapter, verse, **self.slok_overrides))
        return httpx.Response(404)

    def slok_requests(self) -> list[str]:
        return [p for p in self.requests if p.startswith("/slok/")]


class RecordingProvider(SpeechProvider):
    """Speech provider that records calls instead of synthesizing."""

    name = "fake"
    label = "Fake"

    def __init__(self) -> None:
        self.calls: list[tuple[str, str]] = []
        self.fail: str | None = None
        self.on_synthesize = None
        self.gate = None

    async def synthesize(self, *, text, variant):
        self.calls.append((text, variant.key))
        if self.on_synthesize is not None:
            self.on_synthesize()
        # the failure and the gate belong to the call that saw them
        fail, gate, self.gate = self.fail, self.gate, None
        if gate is not None:
            await gate.wait()
        if fail:
            raise SpeechError(fail)
        return AudioClip(b"ID3-fake-audio")


@pytest.fixture
def api() -> FakeGitaApi:
    return FakeGitaApi()


@pytest.fixture
def provider() -> RecordingProvider:
    return RecordingProvider()


@pytest.fixture
def controller(api, provider) -> ReaderController:
    client = GitaClient(API_BASE, transport=httpx.MockTransport(api))
    speech = SpeechDispatcher(providers={provider.name: provider})
    return ReaderController(client, speech, rng=random.Random(7))
