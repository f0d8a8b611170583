from __future__ import annotations

import random

import httpx
import pytest
from starlette.testclient import TestClient

import gita.app as web
from gita.client import GitaClient
from gita.controller import ReaderController
from gita.speech import NativeProvider, SpeechDispatcher, StreamingProvider

from conftest import API_BASE, FakeGitaApi

HX = {"HX-Request": "true"}


def _speech_api(request: httpx.Request) -> httpx.Response:
    if request.url.path == "/v1/speech/voices":
        return httpx.Response(200, json={"voices": [
            {"id": "en-US-naomi", "lang": "en-US"},
            {"id": "bn-IN-ishani", "lang": "bn-IN"},
        ]})
    return httpx.Response(200, content=b"ID3-stream", headers={"content-type": "audio/mpeg"})


@pytest.fixture
def api() -> FakeGitaApi:
    return FakeGitaApi()


@pytest.fixture
def client(api, monkeypatch) -> TestClient:
    speech = SpeechDispatcher(providers={
        "murf": StreamingProvider("secret", "https://speech.test", transport=httpx.MockTransport(_speech_api)),
        "native": NativeProvider(),
    })
    reader = ReaderController(
        GitaClient(API_BASE, transport=httpx.MockTransport(api)),
        speech,
        rng=random.Random(3),
    )
    monkeypatch.setattr(web, "controller", reader)
    return TestClient(web.app)


def test_home_loads_chapters(client, api) -> None:
    response = client.get("/")
    assert response.status_code == 200
    assert "Bhagavad Gita Wisdom" in response.text
    assert "Chapter 1 Yoga" in response.text
    assert api.requests == ["/chapters/"]

    # chapters are only fetched once
    client.get("/")
    assert api.requests == ["/chapters/"]


def test_home_shows_chapter_failure(client, api) -> None:
    api.chapters = {"not": "a list"}
    response = client.get("/")
    assert "Failed to load chapters. Please try again later." in response.text


def test_chapter_then_verse(client) -> None:
    client.get("/")
    response = client.post("/chapters/2", headers=HX)
    assert "Verses in this Chapter" in response.text
    assert 'hx-post="/slok/2/72"' in response.text

    response = client.post("/slok/2/72", headers=HX)
    assert "Chapter 2, Verse 72" in response.text
    assert "English translation 2.72" in response.text
    assert "Next Slok" in response.text

    response = client.post("/next", headers=HX)
    assert "Chapter 3, Verse 1" in response.text


def test_lookup_validation_error(client, api) -> None:
    response = client.post("/lookup", data={"chapter": "19", "verse": "1"}, headers=HX)
    assert "Please enter valid positive numbers" in response.text
    assert api.slok_requests() == []

    response = client.post("/error/dismiss", headers=HX)
    assert "Please enter valid positive numbers" not in response.text


def test_plain_form_post_redirects_home(client) -> None:
    response = client.post("/lookup", data={"chapter": "1", "verse": "1"}, follow_redirects=False)
    assert response.status_code == 303
    assert response.headers["location"] == "/"


def test_streaming_speech_round_trip(client) -> None:
    client.post("/slok/1/1", headers=HX)
    response = client.post("/speak/hindi/murf", headers=HX)
    assert "Playing Hindi audio..." in response.text
    assert 'hx-swap-oob="true"' in response.text

    token = web.controller.speech.current.token
    audio = client.get(f"/audio/{token}")
    assert audio.status_code == 200
    assert audio.content == b"ID3-stream"
    assert audio.headers["content-type"].startswith("audio/mpeg")

    finished = client.post(f"/playback/{token}/ended")
    assert "Hindi playback finished." in finished.text
    assert client.get(f"/audio/{token}").status_code == 404


def test_native_speech_renders_utterance(client) -> None:
    client.post("/slok/1/1", headers=HX)
    response = client.post("/speak/english/native", headers=HX)
    assert "SpeechSynthesisUtterance" in response.text
    assert "Playing English audio..." in response.text


def test_back_stops_audio(client) -> None:
    client.post("/slok/1/1", headers=HX)
    client.post("/speak/hindi/murf", headers=HX)
    token = web.controller.speech.current.token

    response = client.post("/back", headers=HX)
    assert "Back to Chapters" not in response.text
    assert web.controller.speech.current is None
    assert client.get(f"/audio/{token}").status_code == 404


def test_unknown_playback_event(client) -> None:
    assert client.post("/playback/abc/paused").status_code == 400


def test_manifest(client) -> None:
    payload = client.get("/manifest.webmanifest").json()
    assert payload["short_name"] == "Gita"
