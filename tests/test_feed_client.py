"""Tests for remote feed fetching and decoding."""

import httpx
import pytest

from conftest import MEDIA_HREF, SOURCE_URL, feed_response, mock_client, remote_post
from feed_mirror.errors import (
    FetchError,
    FetchPayloadError,
    FetchStatusError,
    FetchTransportError,
)
from feed_mirror.feed_client import extract_guid, extract_title, fetch_remote_items, parse_remote_item


class TestFetchRemoteItems:
    def test_requests_embedded_resources(self):
        calls = []
        client = mock_client({SOURCE_URL: feed_response([remote_post()])}, calls)

        items = fetch_remote_items(SOURCE_URL, client)

        assert len(items) == 1
        assert calls[0].url.params["_embed"] == "1"

    def test_keeps_existing_query_parameters(self):
        calls = []
        client = mock_client({SOURCE_URL: feed_response([])}, calls)

        fetch_remote_items(SOURCE_URL + "?per_page=5", client)

        assert calls[0].url.params["per_page"] == "5"
        assert calls[0].url.params["_embed"] == "1"

    def test_empty_list_is_not_an_error(self):
        client = mock_client({SOURCE_URL: feed_response([])})
        assert fetch_remote_items(SOURCE_URL, client) == []

    def test_non_200_status(self):
        client = mock_client({SOURCE_URL: httpx.Response(500, text="oops")})

        with pytest.raises(FetchStatusError) as exc_info:
            fetch_remote_items(SOURCE_URL, client)

        assert exc_info.value.status_code == 500
        assert exc_info.value.code == "autoblogapi_bad_status"

    def test_invalid_json(self):
        client = mock_client({SOURCE_URL: httpx.Response(200, text="<html>nope</html>")})
        with pytest.raises(FetchPayloadError):
            fetch_remote_items(SOURCE_URL, client)

    def test_json_object_instead_of_list(self):
        client = mock_client({SOURCE_URL: httpx.Response(200, json={"code": "rest_forbidden"})})
        with pytest.raises(FetchPayloadError):
            fetch_remote_items(SOURCE_URL, client)

    def test_transport_failure(self):
        def fail(request):
            raise httpx.ConnectTimeout("timed out", request=request)

        client = mock_client({SOURCE_URL: fail})
        with pytest.raises(FetchTransportError):
            fetch_remote_items(SOURCE_URL, client)

    def test_invalid_url(self):
        client = mock_client({})
        with pytest.raises(FetchError, match="Invalid URL"):
            fetch_remote_items("ftp://remote.example.com/posts", client)

    def test_skips_entries_that_are_not_objects(self):
        client = mock_client({SOURCE_URL: feed_response([remote_post(), "junk", 3])})
        items = fetch_remote_items(SOURCE_URL, client)
        assert [i.guid for i in items] == ["abc-123"]


class TestParseRemoteItem:
    def test_full_post(self):
        item = parse_remote_item(
            remote_post(
                tags=(("Python", "python"),),
                media_url="https://remote.example.com/a.jpg",
                media_href=MEDIA_HREF,
            )
        )

        assert item.guid == "abc-123"
        assert item.title == "Hello World"
        assert item.content == "<p>Body text</p>"
        assert item.excerpt == "Short summary"
        assert item.slug == "hello-world"
        assert item.status == "publish"
        assert item.date_gmt == "2026-02-13T10:00:00"
        assert [(t.taxonomy, t.name, t.slug) for t in item.terms] == [
            ("category", "News", "news"),
            ("post_tag", "Python", "python"),
        ]
        assert item.featured_media_urls == ["https://remote.example.com/a.jpg"]
        assert item.featured_media_href == MEDIA_HREF

    def test_missing_fields_become_empty(self):
        item = parse_remote_item({"id": 1})

        assert item.guid == ""
        assert item.title == ""
        assert item.content == ""
        assert item.slug is None
        assert item.status is None
        assert item.terms == []
        assert item.featured_media_urls == []
        assert item.featured_media_href is None

    def test_guid_and_title_as_plain_strings(self):
        data = {"guid": "  plain-guid  ", "title": "<i>Plain</i> title"}
        assert extract_guid(data) == "plain-guid"
        assert extract_title(data) == "Plain title"

    def test_terms_without_taxonomy_are_ignored(self):
        data = {"_embedded": {"wp:term": [[{"name": "Orphan"}], "not-a-group"]}}
        assert parse_remote_item(data).terms == []
