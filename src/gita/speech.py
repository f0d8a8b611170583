"""Speech providers for reading slok translations aloud.

Three providers share one interface and are chosen per request by the user;
there is no automatic fallback between them:

* ``murf``: streaming commercial voice API, returns MP3 bytes
* ``relay``: alternative synthesis API reached through a proxy, returns base64 audio
* ``native``: the browser's own speechSynthesis engine, no network call

Audio bytes are kept in an AudioStore under a random token and served to the
page at ``/audio/{token}``. The page reports the terminal playback event back,
which releases the token. A newer request preempts and releases the old one.
"""

import base64
import binascii
import logging
import secrets
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace

import httpx

from .errors import SpeechError
from .models import TRANSLATIONS, Slok, TranslationVariant

logger = logging.getLogger(__name__)


@dataclass
class Voice:
    """A voice option offered by a provider."""

    id: str
    lang: str = ''
    name: str | None = None


@dataclass(frozen=True)
class VoiceConfig:
    voice_id: str
    style: str = 'Conversational'
    locale: str = 'en_IN'


@dataclass(frozen=True)
class AudioClip:
    data: bytes
    media_type: str = 'audio/mpeg'


@dataclass(frozen=True)
class Utterance:
    """Instructions for the browser speech engine."""

    text: str
    lang: str
    voice: str | None = None
    rate: float = 1.0
    pitch: float = 1.0


@dataclass(frozen=True)
class Playback:
    token: str
    provider: str
    variant: TranslationVariant
    clip: AudioClip | None = None
    utterance: Utterance | None = None

    @property
    def src(self) -> str | None:
        return f'/audio/{self.token}' if self.clip is not None else None

    @property
    def label(self) -> str:
        return self.variant.label


class AudioStore:
    """Token-addressed playback registry; each token is released at most once."""

    def __init__(self) -> None:
        self._items = {}

    def register(self, playback: Playback) -> Playback:
        self._items[playback.token] = playback
        return playback

    def get(self, token: str) -> Playback | None:
        return self._items.get(token)

    def release(self, token: str) -> bool:
        """Drop *token*. Returns False when it was already released."""
        return self._items.pop(token, None) is not None

    def __contains__(self, token: str) -> bool:
        return token in self._items

    def __len__(self) -> int:
        return len(self._items)


class SpeechProvider(ABC):
    """Base class for speech providers."""

    name: str = ''
    label: str = ''

    @property
    def available(self) -> bool:
        return True

    def is_enabled(self, variant: TranslationVariant) -> bool:
        return self.available

    def resolve_text(self, slok: Slok | None, variant_key: str) -> tuple[TranslationVariant, str]:
        """
        Pick the text to speak for *variant_key* from *slok*.

        Raises:
            SpeechError: If there is no slok, the translation field is absent,
                or it is blank
        """
        if slok is None:
            raise SpeechError('No slok selected to speak.')
        variant = TRANSLATIONS.get(variant_key)
        text = slok.translation(variant) if variant else None
        if text is None:
            raise SpeechError(f'No {variant_key} translation available for this slok.')
        if not text.strip():
            raise SpeechError(f'No valid {variant.label} text found to speak.')
        return variant, text

    async def list_voices(self) -> list[Voice]:
        return []

    async def discover_voices(self) -> None:
        """Refresh voice choices. Providers without a catalogue do nothing."""

    @abstractmethod
    async def synthesize(self, *, text: str, variant: TranslationVariant) -> AudioClip | Utterance:
        """Turn *text* into playable audio or a browser utterance."""

    def play(self, audio: AudioClip | Utterance, variant: TranslationVariant, store: AudioStore) -> Playback:
        token = secrets.token_urlsafe(16)
        if isinstance(audio, AudioClip):
            playback = Playback(token, self.name, variant, clip=audio)
        else:
            playback = Playback(token, self.name, variant, utterance=audio)
        return store.register(playback)


DEFAULT_STREAMING_VOICES = {
    'hindi': VoiceConfig('en-US-naomi', 'Conversational', 'hi_IN'),
    'english': VoiceConfig('bn-IN-ishani', 'Conversational', 'en_IN'),
    'sivananda': VoiceConfig('bn-IN-ishani', 'Conversational', 'en_IN'),
}


class StreamingProvider(SpeechProvider):
    """Murf streaming speech API."""

    name = 'murf'
    label = 'Murf AI'

    def __init__(
        self,
        api_key: str | None,
        base_url: str = 'https://api.murf.ai',
        preferred: dict | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url.rstrip('/')
        self.voices = dict(DEFAULT_STREAMING_VOICES)
        if preferred:
            for key, voice_id in preferred.items():
                if key in self.voices:
                    self.voices[key] = replace(self.voices[key], voice_id=voice_id)
        self.preferred = {k: v.voice_id for k, v in self.voices.items()}
        self.disabled = set()
        self.http = httpx.AsyncClient(transport=transport)

    @property
    def available(self) -> bool:
        return bool(self.api_key)

    def is_enabled(self, variant: TranslationVariant) -> bool:
        return self.available and variant.key not in self.disabled

    async def list_voices(self) -> list[Voice]:
        """
        Fetch the provider's voice catalogue.

        Raises:
            SpeechError: If the request fails or the payload has no voice list
        """
        try:
            response = await self.http.get(
                f'{self.base_url}/v1/speech/voices',
                headers={'api-key': self.api_key or ''},
            )
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise SpeechError(f'Voice discovery failed: {exc}') from exc
        items = data.get('voices') if isinstance(data, dict) else data
        if not isinstance(items, list):
            raise SpeechError('Voice discovery failed: unexpected payload')
        voices = []
        for item in items:
            if not isinstance(item, dict):
                continue
            voice_id = item.get('id') or item.get('voiceId')
            if not voice_id:
                continue
            lang = item.get('lang') or item.get('locale') or ''
            voices.append(Voice(id=str(voice_id), lang=str(lang), name=item.get('name') or item.get('displayName')))
        return voices

    async def discover_voices(self) -> None:
        """
        Pick a voice per translation variant from the live catalogue.

        The preferred voice id wins when listed; otherwise the first voice whose
        language starts with the variant's language prefix. Variants with no
        match are disabled for this provider.
        """
        if not self.available:
            return
        voices = await self.list_voices()
        ids = {v.id for v in voices}
        disabled = set()
        for key, config in self.voices.items():
            preferred = self.preferred.get(key, config.voice_id)
            if preferred in ids:
                self.voices[key] = replace(config, voice_id=preferred)
                continue
            prefix = TRANSLATIONS[key].lang
            match = next(
                (v for v in voices if v.lang.lower().replace('_', '-').startswith(prefix)),
                None,
            )
            if match is None:
                logger.warning('No %s voice available from %s, disabling %s', prefix, self.name, key)
                disabled.add(key)
            else:
                self.voices[key] = replace(config, voice_id=match.id)
        self.disabled = disabled

    async def synthesize(self, *, text: str, variant: TranslationVariant) -> AudioClip:
        if not self.available:
            raise SpeechError('Murf AI is not configured (set MURF_API_KEY).')
        if variant.key in self.disabled:
            raise SpeechError(f'No {variant.label} voice available from Murf AI.')
        config = self.voices[variant.key]
        try:
            response = await self.http.post(
                f'{self.base_url}/v1/speech/stream',
                headers={
                    'Authorization': f'Bearer {self.api_key}',
                    'Accept': 'audio/mpeg',
                },
                json={
                    'text': text,
                    'voiceId': config.voice_id,
                    'style': config.style,
                    'multiNativeLocale': config.locale,
                    'format': 'MP3',
                    'sampleRate': 24000,
                },
            )
        except httpx.HTTPError as exc:
            raise SpeechError(f'Murf AI streaming request failed: {exc}') from exc
        if not response.is_success:
            raise SpeechError(f'Murf AI streaming API error: {response.reason_phrase or response.status_code}')
        if not response.content:
            raise SpeechError('Murf AI returned no audio.')
        return AudioClip(response.content, response.headers.get('content-type', 'audio/mpeg'))


class ProxyRelayProvider(SpeechProvider):
    """Synthesis API reached through a CORS-style proxy: ``POST <proxy>?url=<target>``."""

    name = 'relay'
    label = 'Relay'

    VOICE_SLOTS = {'hindi': 'hi-IN', 'english': 'en-IN', 'sivananda': 'en-IN'}

    def __init__(
        self,
        proxy_url: str | None,
        target_url: str | None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.proxy_url = proxy_url
        self.target_url = target_url
        self.http = httpx.AsyncClient(transport=transport)

    @property
    def available(self) -> bool:
        return bool(self.proxy_url and self.target_url)

    async def synthesize(self, *, text: str, variant: TranslationVariant) -> AudioClip:
        if not self.available:
            raise SpeechError('Relay speech is not configured.')
        try:
            response = await self.http.post(
                self.proxy_url,
                params={'url': self.target_url},
                json={'text': text, 'voiceSlot': self.VOICE_SLOTS.get(variant.key, 'en-IN')},
            )
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise SpeechError(f'Relay speech request failed: {exc}') from exc
        content = payload.get('audioContent') if isinstance(payload, dict) else None
        if not content:
            raise SpeechError('Relay speech returned no audio.')
        try:
            data = base64.b64decode(content, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise SpeechError('Relay speech returned invalid audio data.') from exc
        return AudioClip(data, 'audio/mpeg')


class NativeProvider(SpeechProvider):
    """Browser speechSynthesis; the page speaks the utterance itself."""

    name = 'native'
    label = 'Browser voice'

    LANGS = {'hi': 'hi-IN', 'en': 'en-IN'}

    def __init__(self, rate: float = 1.0, pitch: float = 1.0, voices: dict | None = None) -> None:
        self.rate = rate
        self.pitch = pitch
        self.voice_names = voices or {}

    async def synthesize(self, *, text: str, variant: TranslationVariant) -> Utterance:
        return Utterance(
            text=text,
            lang=self.LANGS.get(variant.lang, 'en-IN'),
            voice=self.voice_names.get(variant.key),
            rate=self.rate,
            pitch=self.pitch,
        )


@dataclass
class SpeechDispatcher:
    """Routes speech requests to the chosen provider and tracks the current playback."""

    providers: dict = field(default_factory=dict)
    store: AudioStore = field(default_factory=AudioStore)
    current: Playback | None = None
    discovered: bool = False
    generation: int = 0

    @classmethod
    def from_settings(cls, settings, transport: httpx.AsyncBaseTransport | None = None) -> 'SpeechDispatcher':
        providers = [
            StreamingProvider(
                settings.murf_api_key,
                settings.speech_base_url,
                preferred=settings.preferred_voices,
                transport=transport,
            ),
            ProxyRelayProvider(settings.relay_proxy_url, settings.relay_target_url, transport=transport),
            NativeProvider(settings.native_rate, settings.native_pitch),
        ]
        return cls(providers={p.name: p for p in providers})

    def provider(self, name: str) -> SpeechProvider:
        provider = self.providers.get(name)
        if provider is None:
            raise SpeechError(f'Unknown speech provider: {name}')
        return provider

    def is_enabled(self, provider_name: str, variant_key: str) -> bool:
        provider = self.providers.get(provider_name)
        variant = TRANSLATIONS.get(variant_key)
        return bool(provider and variant and provider.is_enabled(variant))

    async def discover_voices(self) -> None:
        """Best-effort voice discovery for every provider, run once."""
        if self.discovered:
            return
        self.discovered = True
        for provider in self.providers.values():
            try:
                await provider.discover_voices()
            except SpeechError as exc:
                logger.warning('%s: %s', provider.name, exc)

    def stop(self) -> Playback | None:
        """Stop the current playback, release its audio and supersede any synthesis in progress."""
        self.generation += 1
        playback, self.current = self.current, None
        if playback is not None:
            self.store.release(playback.token)
        return playback

    def prepare(self, slok: Slok | None, variant_key: str, provider_name: str):
        """
        Resolve provider, variant and text for a speech request without any I/O.

        Raises:
            SpeechError: On missing text or an unknown or disabled provider
        """
        provider = self.provider(provider_name)
        variant, text = provider.resolve_text(slok, variant_key)
        if not provider.is_enabled(variant):
            raise SpeechError(f'{provider.label} cannot speak {variant.label} right now.')
        return provider, variant, text

    async def start(self, provider: SpeechProvider, variant: TranslationVariant, text: str) -> Playback | None:
        """
        Synthesize *text* and make it the current playback.

        Returns None when stop() was called while synthesis was running; the
        late audio is released straight away and a late failure is only logged.

        Raises:
            SpeechError: If synthesis of the current request fails
        """
        generation = self.generation
        try:
            audio = await provider.synthesize(text=text, variant=variant)
        except SpeechError as exc:
            if generation != self.generation:
                logger.info('Ignoring failure of superseded %s request: %s', provider.name, exc)
                return None
            raise
        playback = provider.play(audio, variant, self.store)
        if generation != self.generation:
            self.store.release(playback.token)
            return None
        self.current = playback
        return playback

    def finish(self, token: str) -> Playback | None:
        """
        Handle a terminal playback event for *token*.

        Returns the playback when *token* was the current one, otherwise None.
        The token is released either way; releasing twice is a no-op.
        """
        self.store.release(token)
        if self.current is not None and self.current.token == token:
            playback, self.current = self.current, None
            return playback
        return None
