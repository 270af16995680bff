import httpx
import pytest

from mise_recipes.app.services.url_parsing import html_fetcher


def _install_client(monkeypatch, response_factory):
    calls = []

    class FakeAsyncClient:
        def __init__(self, *args, **kwargs):
            calls.append({"init": kwargs})

        async def __aenter__(self):
            return self

        async def __aexit__(self, exc_type, exc, tb):
            return False

        async def get(self, url, *args, **kwargs):
            calls.append({"get": url})
            return response_factory(url)

    monkeypatch.setattr(html_fetcher.httpx, "AsyncClient", FakeAsyncClient)
    return calls


def _response(status_code=200, content=b"<html><body>ok</body></html>", content_type="text/html; charset=utf-8"):
    def factory(url):
        return httpx.Response(
            status_code,
            headers={"content-type": content_type},
            content=content,
            request=httpx.Request("GET", url),
        )

    return factory


@pytest.mark.asyncio
async def test_fetch_html_makes_one_request_with_scraper_headers(monkeypatch):
    calls = _install_client(monkeypatch, _response())

    html = await html_fetcher.fetch_html("https://example.com/recipe")

    assert html == "<html><body>ok</body></html>"
    assert [call for call in calls if "get" in call] == [{"get": "https://example.com/recipe"}]
    init = calls[0]["init"]
    settings = html_fetcher.get_settings()
    assert init["headers"]["User-Agent"] == settings.scraper_user_agent
    assert init["headers"]["Cache-Control"] == "no-cache"
    assert init["timeout"] == settings.scraper_timeout_seconds
    assert init["follow_redirects"] is True


@pytest.mark.asyncio
async def test_fetch_html_raises_for_error_status(monkeypatch):
    calls = _install_client(monkeypatch, _response(status_code=503))

    with pytest.raises(httpx.HTTPStatusError):
        await html_fetcher.fetch_html("https://example.com/recipe")
    assert len([call for call in calls if "get" in call]) == 1


@pytest.mark.asyncio
async def test_fetch_html_rejects_non_html(monkeypatch):
    _install_client(monkeypatch, _response(content=b"%PDF-1.7", content_type="application/pdf"))

    with pytest.raises(ValueError, match="application/pdf"):
        await html_fetcher.fetch_html("https://example.com/menu.pdf")


@pytest.mark.asyncio
async def test_fetch_html_refuses_private_hosts(monkeypatch):
    calls = _install_client(monkeypatch, _response())

    with pytest.raises(html_fetcher.BlockedHostError):
        await html_fetcher.fetch_html("http://10.0.0.8/recipe")
    assert calls == []


@pytest.mark.asyncio
async def test_fetch_html_truncates_large_documents(monkeypatch):
    settings = html_fetcher.get_settings().model_copy(update={"scraper_max_bytes": 12})
    monkeypatch.setattr(html_fetcher, "get_settings", lambda: settings)
    _install_client(monkeypatch, _response(content=b"<html><body>" + b"x" * 100 + b"</body></html>"))

    html = await html_fetcher.fetch_html("https://example.com/long")

    assert html == "<html><body>"


@pytest.mark.asyncio
async def test_fetch_html_uses_meta_charset(monkeypatch):
    body = '<html><head><meta charset="iso-8859-1"></head><body>café</body></html>'.encode("latin-1")
    _install_client(monkeypatch, _response(content=body, content_type="text/html"))

    html = await html_fetcher.fetch_html("https://example.com/cafe")

    assert "café" in html


@pytest.mark.parametrize(
    "host, private",
    [
        ("127.0.0.1", True),
        ("10.1.2.3", True),
        ("169.254.0.1", True),
        ("localhost", True),
        ("LOCALHOST:8080", True),
        ("8.8.8.8", False),
        ("example.com", False),
    ],
)
def test_is_private_host(host, private):
    assert html_fetcher.is_private_host(host) is private


def test_validate_url():
    assert html_fetcher.validate_url("  https://example.com/a?b=1 ") == "https://example.com/a?b=1"
    with pytest.raises(ValueError):
        html_fetcher.validate_url("mailto:cook@example.com")
