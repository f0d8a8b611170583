"""Client for the Bhagavad Gita chapter/slok API at vedicscriptures.github.io."""

import logging

import httpx

from .errors import NetworkError, ValidationError
from .models import Chapter, Slok

logger = logging.getLogger(__name__)


class GitaClient:
    """
    Fetches chapters and sloks from the Gita REST API and validates their shape.

    The client only talks to two endpoints:

        GET {base_url}/chapters/                  -> list of chapter objects
        GET {base_url}/slok/{chapter}/{verse}     -> a single slok object

    Transport failures and non-success statuses surface as NetworkError;
    payloads of the wrong shape surface as ValidationError.

    Attributes:
        base_url (str): API root without trailing slash
        http (httpx.AsyncClient): Underlying HTTP client
    """

    BASE_URL = "https://vedicscriptures.github.io"

    def __init__(self, base_url: str | None = None, transport: httpx.AsyncBaseTransport | None = None):
        """
        Initialize the client.

        Args:
            base_url: API root, defaults to BASE_URL
            transport: Optional httpx transport (tests pass an httpx.MockTransport)
        """
        self.base_url = (base_url or self.BASE_URL).rstrip('/')
        self.http = httpx.AsyncClient(transport=transport, follow_redirects=True)

    async def _get_json(self, url: str, failure: str):
        try:
            response = await self.http.get(url)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise NetworkError(f'{failure}: {exc}') from exc
        if not response.is_success:
            raise NetworkError(f'{failure}: {response.reason_phrase or response.status_code}')
        try:
            return response.json()
        except ValueError as exc:
            raise ValidationError(f'{failure}: response is not JSON') from exc

    async def list_chapters(self) -> list[Chapter]:
        """
        Fetch all chapters.

        Returns:
            List of Chapter objects in API order

        Raises:
            NetworkError: If the request fails
            ValidationError: If the payload is not a list of chapter objects
        """
        data = await self._get_json(f'{self.base_url}/chapters/', 'Could not fetch chapters')
        if not isinstance(data, list):
            raise ValidationError('Invalid chapters data received.')
        return [Chapter.from_api(item) for item in data]

    async def get_slok(self, chapter: int, verse: int) -> Slok:
        """
        Fetch a single slok by chapter and verse number.

        Raises:
            NetworkError: If the request fails
            ValidationError: If the payload has no chapter field
        """
        data = await self._get_json(f'{self.base_url}/slok/{chapter}/{verse}', 'Could not fetch slok')
        return Slok.from_api(data)

    async def aclose(self) -> None:
        await self.http.aclose()

    def __repr__(self) -> str:
        return f"GitaClient(base_url='{self.base_url}')"
