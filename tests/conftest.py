"""Shared test fixtures for Feed Mirror tests."""

import os
import tempfile

import httpx
import pytest

from feed_mirror.database import SqliteStore

SOURCE_URL = "https://remote.example.com/wp-json/wp/v2/posts"
MEDIA_HREF = "https://remote.example.com/wp-json/wp/v2/media/7"
IMAGE_URL = "https://remote.example.com/wp-content/uploads/2026/02/photo.jpg"
PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16


def remote_post(
    guid="abc-123",
    title="<b>Hello</b> World",
    status="publish",
    categories=(("News", "news"),),
    tags=(),
    media_url=None,
    media_href=None,
    **extra,
):
    """Build a REST API post object the way WordPress embeds it."""
    post = {
        "id": 42,
        "guid": {"rendered": guid},
        "title": {"rendered": title},
        "content": {"rendered": "<p>Body text</p>"},
        "excerpt": {"rendered": "<p>Short <em>summary</em></p>"},
        "slug": "hello-world",
        "status": status,
        "date": "2026-02-13T11:00:00",
        "date_gmt": "2026-02-13T10:00:00",
        "_embedded": {
            "wp:term": [
                [{"taxonomy": "category", "name": n, "slug": s} for n, s in categories],
                [{"taxonomy": "post_tag", "name": n, "slug": s} for n, s in tags],
            ],
        },
        "_links": {},
    }
    if media_url:
        post["_embedded"]["wp:featuredmedia"] = [{"id": 7, "source_url": media_url}]
    if media_href:
        post["_links"]["wp:featuredmedia"] = [{"embeddable": True, "href": media_href}]
    post.update(extra)
    return post


def mock_client(routes: dict, calls: list | None = None) -> httpx.Client:
    """HTTP client answering from a {url-without-query: response} map.

    Values may be httpx.Response objects or callables taking the request.
    Unknown URLs answer 404.
    """

    def handler(request: httpx.Request) -> httpx.Response:
        if calls is not None:
            calls.append(request)
        key = f"{request.url.scheme}://{request.url.host}{request.url.path}"
        route = routes.get(key)
        if route is None:
            return httpx.Response(404, json={"code": "rest_no_route"})
        if callable(route):
            return route(request)
        # Fresh copy so a route can be served more than once
        return httpx.Response(route.status_code, headers=route.headers, content=route.content)

    return httpx.Client(transport=httpx.MockTransport(handler))


def feed_response(posts: list) -> httpx.Response:
    return httpx.Response(200, json=posts)


def image_response() -> httpx.Response:
    return httpx.Response(200, content=PNG_BYTES, headers={"content-type": "image/png"})


@pytest.fixture
def tmp_db_path():
    """Provide a temporary SQLite database path."""
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        path = f.name
    yield path
    for suffix in ("", "-wal", "-shm"):
        try:
            os.unlink(path + suffix)
        except OSError:
            pass


@pytest.fixture
def store(tmp_db_path, tmp_path):
    """A connected SQLite store writing uploads under tmp_path."""
    s = SqliteStore(tmp_db_path, uploads_dir=str(tmp_path / "uploads"))
    s.connect()
    yield s
    s.close()
