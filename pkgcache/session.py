"""
HTTP access for the crawler.

:func:`build_session` mounts a retrying adapter for both schemes;
:class:`HttpFetcher` turns a GET into a stream of body chunks and maps
every requests failure onto :class:`ReadFailure`.
"""

from typing import Iterator

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from pkgcache.config import (
    DEFAULT_TIMEOUT,
    DOWNLOAD_CHUNK_SIZE,
    MAX_RETRIES,
    RETRY_BACKOFF,
    RETRY_STATUS_CODES,
    USER_AGENT,
)
from pkgcache.errors import ReadFailure


def build_session(verify_ssl: bool = True) -> requests.Session:
    """Return a keep-alive ``requests.Session`` that retries idempotent
    requests on connection errors and 5xx answers."""
    adapter = HTTPAdapter(max_retries=Retry(
        total=MAX_RETRIES,
        backoff_factor=RETRY_BACKOFF,
        status_forcelist=RETRY_STATUS_CODES,
        allowed_methods=frozenset({"GET", "HEAD"}),
        raise_on_status=False,
    ))
    session = requests.Session()
    for scheme in ("http://", "https://"):
        session.mount(scheme, adapter)
    session.verify = verify_ssl
    session.headers["User-Agent"] = USER_AGENT
    session.headers["Accept"] = "*/*"
    return session


class HttpFetcher:
    """
    Streams remote files one chunk at a time.

    Only one retrieval is expected to be open at a time; the crawler
    materialises each listing page on disk before following its links.
    """

    def __init__(
        self,
        timeout: int = DEFAULT_TIMEOUT,
        session: requests.Session | None = None,
        verify_ssl: bool = True,
        chunk_size: int = DOWNLOAD_CHUNK_SIZE,
    ) -> None:
        self.timeout = timeout
        self.chunk_size = chunk_size
        self.session = session if session is not None else build_session(verify_ssl)

    def get(self, url: str) -> Iterator[bytes]:
        """
        Yield the body of *url* in chunks.

        Raises ``ReadFailure`` with ``status`` set when the server answers
        with an error code, and with ``status=None`` when the transfer
        cannot start or is cut short.
        """
        try:
            with self.session.get(url, stream=True, timeout=self.timeout) as resp:
                if not resp.ok:
                    raise ReadFailure(f"HTTP {resp.status_code} for {url}",
                                      status=resp.status_code)
                yield from resp.iter_content(chunk_size=self.chunk_size)
        except requests.RequestException as exc:
            raise ReadFailure(f"{url}: {exc}") from exc

    def close(self) -> None:
        self.session.close()
