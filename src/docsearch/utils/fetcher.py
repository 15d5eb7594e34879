"""
URL content fetcher.

Downloads text resources over http(s) and reduces HTML pages to their
visible text plus the <title>.
"""
from dataclasses import dataclass
from typing import Optional, Tuple

import httpx
from bs4 import BeautifulSoup

from docsearch.core.exceptions import FetchError
from docsearch.core.logging import get_logger

logger = get_logger(__name__)

USER_AGENT = "DocSearch/1.0"
DEFAULT_TIMEOUT = 30.0
SUPPORTED_SCHEMES = ("http", "https")


@dataclass
class FetchResult:
    content: str
    title: str = ""
    size: int = 0


class ContentFetcher:
    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        user_agent: str = USER_AGENT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.timeout = timeout
        self.user_agent = user_agent
        # Injected by tests (httpx.MockTransport)
        self._transport = transport

    async def fetch_url(self, url: str) -> FetchResult:
        """Fetch a URL and extract its text content."""
        try:
            parsed = httpx.URL(url)
        except (httpx.InvalidURL, TypeError) as e:
            raise FetchError(f"invalid URL: {e}", source=url) from e

        if parsed.scheme not in SUPPORTED_SCHEMES:
            raise FetchError(
                f"unsupported URL scheme: {parsed.scheme or '(none)'} (must be http or https)",
                source=url,
            )

        logger.info("fetching_url", url=url)

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                follow_redirects=True,
                headers={"User-Agent": self.user_agent},
                transport=self._transport,
            ) as client:
                response = await client.get(parsed)
        except httpx.HTTPError as e:
            raise FetchError(f"failed to fetch URL: {e}", source=url) from e

        if not response.is_success:
            raise FetchError(
                f"HTTP error: {response.status_code} {response.reason_phrase}",
                source=url,
                details={"status_code": response.status_code},
            )

        content_type = response.headers.get("content-type", "")
        if not is_text_content(content_type):
            raise FetchError(
                f"unsupported content type: {content_type or '(none)'} "
                "(must be text/plain, text/html, or text/markdown)",
                source=url,
            )

        content = response.text
        title = ""
        if "text/html" in content_type.lower():
            content, title = extract_html_text(content)

        logger.info("url_fetched", url=url, size=len(content), has_title=bool(title))
        return FetchResult(content=content, title=title, size=len(content))


def is_text_content(content_type: str) -> bool:
    """Any text/* media type is indexable."""
    return "text/" in content_type.lower()


def extract_html_text(html: str) -> Tuple[str, str]:
    """
    Return (visible_text, title) for an HTML document.
    Script and style contents are dropped and whitespace is collapsed.
    """
    soup = BeautifulSoup(html, "html.parser")

    title = ""
    title_tag = soup.find("title")
    if title_tag is not None and title_tag.string:
        title = title_tag.string.strip()

    for tag in soup(["script", "style"]):
        tag.decompose()

    text = " ".join(soup.get_text(separator=" ").split())
    return text, title
