from __future__ import annotations
from typing import Iterable, Optional, Protocol
from urllib.parse import quote
import logging

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from app.core.errors import ValidationTransportError
from app.core.settings import Settings

log = logging.getLogger(__name__)


class WordChecker(Protocol):
    def word_exists(self, word: str) -> bool:
        ...


def _make_session() -> requests.Session:
    # Sólo se reintenta por status (429/5xx). Conexión y lectura no se reintentan:
    # una llamada nunca pasa de ~timeout mientras el controlador tiene su lock.
    s = requests.Session()
    adapter = HTTPAdapter(
        max_retries=Retry(
            total=2,
            connect=0,
            read=0,
            backoff_factor=0.3,
            status_forcelist=(429, 500, 502, 503, 504),
            allowed_methods=frozenset(["GET"]),
            respect_retry_after_header=False,
            raise_on_status=False,
        )
    )
    s.mount("https://", adapter)
    s.mount("http://", adapter)
    return s


class HttpDictionary:
    """
    Cliente del diccionario remoto (WordsAPI por defecto).
    2xx -> True, 404 -> False, cualquier otra cosa -> ValidationTransportError.
    """

    def __init__(self, base_url: str, *, api_key: str = "", api_host: str = "",
                 timeout: float = 5.0, session: Optional[requests.Session] = None):
        self.base_url = base_url if base_url.endswith("/") else base_url + "/"
        self.timeout = timeout
        self.headers = {}
        if api_key:
            self.headers["X-RapidAPI-Key"] = api_key
        if api_host:
            self.headers["X-RapidAPI-Host"] = api_host
        self._session = session or _make_session()

    def word_exists(self, word: str) -> bool:
        url = f"{self.base_url}{quote(word.strip().lower())}"
        try:
            resp = self._session.get(url, headers=self.headers, timeout=self.timeout)
        except requests.RequestException as e:
            raise ValidationTransportError(f"diccionario no disponible: {e}") from e
        if 200 <= resp.status_code < 300:
            return True
        if resp.status_code == 404:
            return False
        raise ValidationTransportError(f"diccionario respondió {resp.status_code}")


class WordListDictionary:
    """Diccionario local (modo offline): sólo conoce las palabras que se le pasan."""

    def __init__(self, words: Iterable[str]):
        self._words = {w.strip().lower() for w in words if w and w.strip()}

    def word_exists(self, word: str) -> bool:
        return word.strip().lower() in self._words

    def __len__(self) -> int:
        return len(self._words)


def build_dictionary(settings: Settings, offline_words: Iterable[str] = ()) -> WordChecker:
    if not settings.dictionary_api_url:
        log.info("DICTIONARY_API_URL empty, using offline word list")
        return WordListDictionary(offline_words)
    if not settings.dictionary_api_key:
        log.warning("DICTIONARY_API_KEY not set; dictionary lookups will likely fail (fail-closed)")
    return HttpDictionary(
        settings.dictionary_api_url,
        api_key=settings.dictionary_api_key,
        api_host=settings.dictionary_api_host,
        timeout=settings.dictionary_timeout_sec,
    )
