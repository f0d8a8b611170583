"""FastHTML web application for the Bhagavad Gita Reader."""

import json

from fasthtml.common import *
from starlette.requests import Request
from starlette.responses import RedirectResponse, JSONResponse

from .controller import ReaderController
from .reference import MAX_CHAPTER
from .state import View

# Initialize FastHTML app
app = FastHTML()
rt = app.route

# The single reader component; owns all view state for the process
controller = ReaderController.from_settings()

API_SOURCE_URL = 'https://vedicscriptures.github.io/'
PROVIDER_ORDER = ('murf', 'relay', 'native')

BUTTON_STYLE = 'padding:8px 14px; border:none; border-radius:8px; background:#2d2d2d; color:#fbbf24; cursor:pointer; font-size:1em'
PRIMARY_STYLE = 'padding:8px 14px; border:none; border-radius:8px; background:#fbbf24; color:black; cursor:pointer; font-size:1em'
CARD_STYLE = 'padding:16px; background:#111; border:1px solid #222; border-radius:10px'


def _is_htmx(request: Request) -> bool:
    return request.headers.get('HX-Request') == 'true'


def _hx_post(url: str, target: str = '#app') -> dict:
    return {
        'hx-post': url,
        'hx-target': target,
        'hx-swap': 'outerHTML',
    }


def _current_token():
    playback = controller.speech.current
    return playback.token if playback else None


def _nav_fragment(state):
    buttons = []
    if state.view is not View.CHAPTER_LIST:
        buttons.append(Button('← Back to Chapters', type='button', style=BUTTON_STYLE,
                              **_hx_post('/back')))
    buttons.append(Button('Random Slok', type='button', style=BUTTON_STYLE,
                          disabled=state.busy, **_hx_post('/random')))
    if state.view is View.VERSE_DETAIL:
        buttons.append(Button('Next Slok →', type='button', style=BUTTON_STYLE,
                              disabled=state.busy, **_hx_post('/next')))
    return Div(*buttons, style='display:flex; gap:12px; justify-content:center; flex-wrap:wrap; margin-bottom:24px')


def _lookup_form_fragment():
    input_style = 'flex:1; padding:8px 10px; border-radius:8px; border:1px solid #333; background:#0f0f0f; color:white'
    return Form(
        H3('Get Specific Slok', style='color:#fbbf24; margin-bottom:12px'),
        Div(
            Input(type='number', name='chapter', placeholder='Chapter', min='1', max=str(MAX_CHAPTER),
                  style=input_style),
            Input(type='number', name='verse', placeholder='Verse', min='1', style=input_style),
            Button('Get Slok', type='submit', style=PRIMARY_STYLE),
            style='display:flex; gap:12px',
        ),
        action='/lookup',
        method='post',
        style=f'{CARD_STYLE}; max-width:700px; margin:0 auto 24px',
        **_hx_post('/lookup'),
    )


def _error_fragment(message: str):
    return Div(
        Strong('Error! ', style='color:#f87171'),
        Span(message),
        Button('×', type='button', aria_label='Dismiss error',
               style='float:right; background:none; border:none; color:#f87171; cursor:pointer; font-size:1.2em',
               **_hx_post('/error/dismiss')),
        role='alert',
        style='max-width:700px; margin:0 auto 24px; padding:12px 16px; background:#3a1a1a; border:1px solid #7f1d1d; border-radius:10px; color:#fecaca',
    )


def _chapter_card_fragment(chapter):
    return Div(
        H3(f'Chapter {chapter.chapter_number}: {chapter.name}', style='color:#fbbf24; font-size:1.2em'),
        P(Strong('Translation: '), chapter.translation, style='color:#ccc; margin-top:8px'),
        P(Strong('Summary: '), f'{chapter.summary_excerpt()}...', style='color:#888; margin-top:8px; font-size:0.95em'),
        id=f'chapter-card-{chapter.chapter_number}',
        style=f'{CARD_STYLE}; cursor:pointer',
        **_hx_post(f'/chapters/{chapter.chapter_number}'),
    )


def _chapter_list_fragment(state):
    if not state.chapters:
        return P('No chapters loaded', style='text-align:center; color:#888; padding:20px')
    return Div(
        *[_chapter_card_fragment(c) for c in state.chapters],
        style='display:grid; grid-template-columns:repeat(auto-fill, minmax(280px, 1fr)); gap:16px; max-width:1000px; margin:0 auto',
    )


def _chapter_detail_fragment(chapter):
    verse_buttons = [
        Button(str(n), type='button', style=BUTTON_STYLE,
               **_hx_post(f'/slok/{chapter.chapter_number}/{n}'))
        for n in range(1, chapter.verses_count + 1)
    ]
    return Div(
        H2(f'Chapter {chapter.chapter_number}: {chapter.name}', style='color:#fbbf24; margin-bottom:12px'),
        P(Strong('Translation: '), chapter.translation, style='margin-bottom:8px'),
        P(Strong('Meaning: '), chapter.meaning_en, style='margin-bottom:8px'),
        P(Strong('Summary: '), chapter.summary_en, style='color:#aaa; margin-bottom:20px; line-height:1.6'),
        H3('Verses in this Chapter', style='color:#fbbf24; margin-bottom:12px'),
        Div(*verse_buttons, style='display:grid; grid-template-columns:repeat(auto-fill, minmax(56px, 1fr)); gap:8px'),
        style=f'{CARD_STYLE}; max-width:800px; margin:0 auto',
    )


def _speech_status_fragment(status):
    color = '#f87171' if status.is_error else '#888'
    return P(status.message, id='speech-status', style=f'margin-top:10px; font-size:0.95em; color:{color}')


def _speech_buttons_fragment(slok):
    rows = []
    for variant in slok.available_translations():
        buttons = [
            Button(f'🔊 {variant.label} · {controller.speech.providers[name].label}', type='button',
                   style=BUTTON_STYLE,
                   disabled=not controller.speech.is_enabled(name, variant.key),
                   **_hx_post(f'/speak/{variant.key}/{name}'))
            for name in PROVIDER_ORDER
            if name in controller.speech.providers
        ]
        rows.append(Div(*buttons, style='display:flex; gap:8px; flex-wrap:wrap; margin-bottom:8px'))
    return Div(*rows)


def _slok_detail_fragment(state):
    slok = state.selected_slok
    translations = [
        P(Strong(f'{variant.label} Translation: '), slok.translation(variant), style='margin-bottom:10px; line-height:1.6')
        for variant in slok.available_translations()
    ]
    return Div(
        H2('Slok Details', style='color:#fbbf24; margin-bottom:12px'),
        P(f'Chapter {slok.chapter}, Verse {slok.verse}', style='font-weight:600; margin-bottom:8px'),
        P(f'"{slok.slok}"', style='white-space:pre-line; font-size:1.3em; font-style:italic; margin:16px 0; text-align:center'),
        P(slok.transliteration, style='white-space:pre-line; color:#aaa; margin-bottom:16px; text-align:center') if slok.transliteration else None,
        *translations,
        P(Strong('Purport: '), slok.purport, style='color:#aaa; margin-top:16px') if slok.purport else None,
        Div(
            _speech_buttons_fragment(slok),
            _speech_status_fragment(state.speech),
            style='margin-top:20px; padding-top:16px; border-top:1px solid #333',
        ),
        style=f'{CARD_STYLE}; max-width:800px; margin:0 auto; color:white',
    )


def _main_fragment(state):
    if state.loading:
        return P('Loading... Please wait.', style='text-align:center; color:#fbbf24; font-size:1.2em; padding:30px')
    if state.error:
        return None
    if state.view is View.CHAPTER_DETAIL and state.selected_chapter:
        return _chapter_detail_fragment(state.selected_chapter)
    if state.view is View.VERSE_DETAIL and state.selected_slok:
        return _slok_detail_fragment(state)
    return _chapter_list_fragment(state)


def _app_fragment():
    state = controller.state
    return Div(
        _nav_fragment(state),
        _lookup_form_fragment(),
        _error_fragment(state.error) if state.error else None,
        _main_fragment(state),
        id='app',
    )


def _player_fragment(oob: bool = False):
    """Audio element or browser utterance for the current playback, plus the stop-previous hook."""
    playback = controller.speech.current
    children = []
    script = ['''
        if (window._gitaAudio) {
            window._gitaAudio.onended = null;
            window._gitaAudio.onerror = null;
            window._gitaAudio.pause();
            window._gitaAudio = null;
        }
        if (window.speechSynthesis) { window.speechSynthesis.cancel(); }
    ''']
    if playback is not None:
        report = f'''
            const report = (event) => htmx.ajax('POST', `/playback/{playback.token}/${{event}}`,
                {{target: '#speech-status', swap: 'outerHTML'}});
        '''
        script.append(report)
        if playback.src:
            children.append(Audio(src=playback.src, controls=True, id='gita-audio',
                                  style='width:100%; margin-top:12px'))
            script.append('''
                const audio = document.getElementById('gita-audio');
                window._gitaAudio = audio;
                audio.onended = () => report('ended');
                audio.onerror = () => report('error');
                audio.play().catch(() => report('error'));
            ''')
        else:
            utterance = playback.utterance
            config = json.dumps({
                'text': utterance.text,
                'lang': utterance.lang,
                'voice': utterance.voice,
                'rate': utterance.rate,
                'pitch': utterance.pitch,
            })
            script.append(f'''
                const config = {config};
                if (!window.speechSynthesis) {{
                    report('error');
                }} else {{
                    const utterance = new SpeechSynthesisUtterance(config.text);
                    utterance.lang = config.lang;
                    utterance.rate = config.rate;
                    utterance.pitch = config.pitch;
                    const voices = window.speechSynthesis.getVoices();
                    const prefix = config.lang.split('-')[0];
                    const voice = voices.find(v => config.voice && v.name === config.voice)
                        || voices.find(v => v.lang.startsWith(prefix));
                    if (voice) utterance.voice = voice;
                    utterance.onend = () => report('ended');
                    utterance.onerror = () => report('error');
                    window.speechSynthesis.speak(utterance);
                }}
            ''')
    extra = {'hx-swap-oob': 'true'} if oob else {}
    return Div(*children, Script('(() => {' + '\n'.join(script) + '})();'), id='player',
               style='max-width:800px; margin:0 auto', **extra)


async def _respond(request: Request, before_token=None):
    """Render the app fragment for htmx, or redirect plain form posts home."""
    if not _is_htmx(request):
        return RedirectResponse('/', status_code=303)
    if controller.state.view is View.VERSE_DETAIL:
        await controller.discover_voices()
    parts = [_app_fragment()]
    if _current_token() != before_token:
        parts.append(_player_fragment(oob=True))
    return tuple(parts)


@rt('/manifest.webmanifest')
def manifest():
    """Web app manifest for PWA."""
    payload = {
        "name": "Bhagavad Gita Reader",
        "short_name": "Gita",
        "start_url": "/",
        "display": "standalone",
        "background_color": "#000000",
        "theme_color": "#000000",
        "icons": [
            {
                "src": "/icon.svg",
                "sizes": "any",
                "type": "image/svg+xml"
            }
        ]
    }
    return JSONResponse(payload, media_type='application/manifest+json')


@rt('/icon.svg')
def icon():
    """Simple SVG icon for PWA."""
    svg = """
    <svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 256 256">
      <rect width="256" height="256" rx="48" fill="#0b0b0b"/>
      <circle cx="128" cy="128" r="76" fill="#fbbf24"/>
      <path d="M88 92h80v72H88z" fill="#0b0b0b"/>
      <path d="M128 92v72" stroke="#fbbf24" stroke-width="6"/>
    </svg>
    """.strip()
    return Response(svg, media_type='image/svg+xml')


@rt('/')
async def home(request: Request):
    """Reader page; loads the chapter list when none is loaded yet."""
    state = controller.state
    if not state.chapters and not state.chapters_loading:
        await controller.list_chapters()
    if controller.state.view is View.VERSE_DETAIL:
        await controller.discover_voices()

    return Html(
        Head(
            Title('Bhagavad Gita Reader'),
            Meta(name='viewport', content='width=device-width, initial-scale=1, viewport-fit=cover'),
            Meta(name='theme-color', content='#000000'),
            Link(rel='manifest', href='/manifest.webmanifest'),
            Link(rel='icon', href='/icon.svg', type='image/svg+xml'),
            Style('''
                * { margin:0; padding:0; box-sizing:border-box; }
                body { font-family: "Noto Sans", system-ui, -apple-system, sans-serif; font-weight: 500; background:black; color:white; }
                button:disabled { opacity:0.5; cursor:not-allowed; }
            '''),
            Script(src='https://unpkg.com/htmx.org@1.9.12')
        ),
        Body(
            Div(
                H1('Bhagavad Gita Wisdom', style='text-align:center; color:#fbbf24; padding:30px 30px 10px; font-size:2.5em'),
                H2('Discover the eternal wisdom of the Bhagavad Gita', style='text-align:center; color:#888; padding-bottom:30px; font-size:1.2em'),
                _app_fragment(),
                _player_fragment(),
                Div(
                    P(
                        A('Source: vedicscriptures.github.io', href=API_SOURCE_URL,
                          style='color:#666; text-decoration:none'),
                        style='text-align:center; font-size:0.9em; padding:20px 0'
                    ),
                    style='border-top:1px solid #222; margin-top:30px'
                ),
                style='min-height:100vh; padding:20px'
            )
        )
    )


@rt('/chapters/{chapter_number}', methods=['POST'])
async def select_chapter(chapter_number: int, request: Request):
    """Show one chapter with its verse grid."""
    before = _current_token()
    controller.select_chapter(chapter_number)
    return await _respond(request, before)


@rt('/slok/{chapter}/{verse}', methods=['POST'])
async def slok(chapter: int, verse: int, request: Request):
    """Fetch and show a single slok."""
    before = _current_token()
    await controller.select_verse(chapter, verse)
    return await _respond(request, before)


@rt('/random', methods=['POST'])
async def random_slok(request: Request):
    """Fetch a random slok."""
    before = _current_token()
    await controller.get_random_verse()
    return await _respond(request, before)


@rt('/next', methods=['POST'])
async def next_slok(request: Request):
    """Fetch the slok after the current one."""
    before = _current_token()
    await controller.get_next_verse()
    return await _respond(request, before)


@rt('/lookup', methods=['POST'])
async def lookup(request: Request):
    """Manual chapter/verse form."""
    before = _current_token()
    form = await request.form()
    await controller.lookup(form.get('chapter', ''), form.get('verse', ''))
    return await _respond(request, before)


@rt('/back', methods=['POST'])
async def back(request: Request):
    """Return to the chapter list."""
    before = _current_token()
    controller.back()
    return await _respond(request, before)


@rt('/error/dismiss', methods=['POST'])
async def dismiss_error(request: Request):
    """Clear the inline error."""
    before = _current_token()
    controller.dismiss_error()
    return await _respond(request, before)


@rt('/speak/{variant}/{provider}', methods=['POST'])
async def speak(variant: str, provider: str, request: Request):
    """Read a translation of the current slok aloud."""
    before = _current_token()
    await controller.speak(variant, provider)
    return await _respond(request, before)


@rt('/audio/{token}')
def audio(token: str):
    """Serve synthesized audio until its playback is released."""
    playback = controller.speech.store.get(token)
    if playback is None or playback.clip is None:
        return Response('audio not found', status_code=404)
    return Response(playback.clip.data, media_type=playback.clip.media_type)


@rt('/playback/{token}/{event}', methods=['POST'])
def playback_event(token: str, event: str):
    """Terminal playback event from the page (``ended`` or ``error``)."""
    if event not in ('ended', 'error'):
        return Response('unknown playback event', status_code=400)
    controller.playback_event(token, event)
    return _speech_status_fragment(controller.state.speech)


# For running the app standalone
if __name__ == '__main__':
    from gita.cli import main
    main()
