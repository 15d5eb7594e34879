"""
Tests for ContentFetcher using httpx.MockTransport.
"""
import httpx
import pytest

from docsearch.core.exceptions import FetchError
from docsearch.utils.fetcher import ContentFetcher, extract_html_text, is_text_content


class TestFetchUrl:

    @pytest.mark.asyncio
    async def test_html_reduced_to_visible_text(self, fetcher):
        result = await fetcher.fetch_url("https://docs.example.com/article")

        assert result.title == "Vector Search"
        assert "tracking" not in result.content
        assert "color" not in result.content
        assert "Cosine similarity" in result.content
        assert "ranks documents by angle." in result.content
        assert "  " not in result.content
        assert result.size == len(result.content)

    @pytest.mark.asyncio
    async def test_plain_text_passed_through(self, fetcher):
        result = await fetcher.fetch_url("http://docs.example.com/notes.txt")

        assert result.content == "plain notes about embeddings"
        assert result.title == ""

    @pytest.mark.asyncio
    async def test_non_text_content_rejected(self, fetcher):
        with pytest.raises(FetchError, match="unsupported content type"):
            await fetcher.fetch_url("https://docs.example.com/image.png")

    @pytest.mark.asyncio
    async def test_http_error_status(self, fetcher):
        with pytest.raises(FetchError, match="HTTP error: 404") as exc_info:
            await fetcher.fetch_url("https://docs.example.com/missing")

        assert exc_info.value.details["status_code"] == 404

    @pytest.mark.asyncio
    @pytest.mark.parametrize("url", ["ftp://example.com/file.txt", "file:///etc/passwd", "not a url"])
    async def test_unsupported_scheme(self, fetcher, url):
        with pytest.raises(FetchError):
            await fetcher.fetch_url(url)

    @pytest.mark.asyncio
    async def test_transport_error_wrapped(self):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        fetcher = ContentFetcher(transport=httpx.MockTransport(refuse))

        with pytest.raises(FetchError, match="failed to fetch URL"):
            await fetcher.fetch_url("https://down.example.com/")

    @pytest.mark.asyncio
    async def test_redirects_followed_and_user_agent_sent(self):
        seen = []

        def handler(request):
            seen.append(request)
            if request.url.path == "/old":
                return httpx.Response(301, headers={"location": "https://example.com/new"})
            return httpx.Response(200, headers={"content-type": "text/markdown"}, text="# moved")

        fetcher = ContentFetcher(transport=httpx.MockTransport(handler))
        result = await fetcher.fetch_url("https://example.com/old")

        assert result.content == "# moved"
        assert [r.url.path for r in seen] == ["/old", "/new"]
        assert seen[0].headers["user-agent"] == "DocSearch/1.0"

    @pytest.mark.asyncio
    async def test_any_success_status_accepted(self):
        fetcher = ContentFetcher(transport=httpx.MockTransport(
            lambda request: httpx.Response(203, headers={"content-type": "text/plain"}, text="ok")
        ))

        assert (await fetcher.fetch_url("https://example.com/")).content == "ok"


class TestHelpers:

    @pytest.mark.parametrize("content_type,expected", [
        ("text/html; charset=utf-8", True),
        ("text/plain", True),
        ("TEXT/MARKDOWN", True),
        ("application/json", False),
        ("", False),
    ])
    def test_is_text_content(self, content_type, expected):
        assert is_text_content(content_type) is expected

    def test_extract_html_without_title(self):
        text, title = extract_html_text("<p>just   a\tparagraph</p>")

        assert text == "just a paragraph"
        assert title == ""
