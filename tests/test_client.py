from __future__ import annotations

import httpx
import pytest

import diffbot
from diffbot.client import Diffbot, call
from diffbot.endpoints import CustomApi, Operation
from diffbot.errors import ApiError, InvalidInputError, NetworkError, ParseError
from diffbot.request import Request


def test_call_builds_request_and_returns_document(mock_client) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "GET"
        assert request.url.host == "api.diffbot.com"
        assert request.url.path == "/v3/article"
        assert list(request.url.params.multi_items()) == [
            ("token", "6932269b31d051457940f3da4ee23b79"),
            ("url", "http://example.com/"),
            ("fields", "title,images(url)"),
            ("paging", "false"),
        ]
        assert request.headers.get("user-agent") == "diffbot-python"
        return httpx.Response(200, json={"type": "article", "title": "x"}, request=request)

    client = mock_client(handler)
    document = client.call(Operation.ARTICLE, "http://example.com/", {"paging": "false"}, fields=["title", "images(url)"])
    assert document.get_str("title") == "x"
    assert document["type"] == "article"


def test_call_accepts_operation_names(mock_client) -> None:
    paths: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        paths.append(request.url.path)
        return httpx.Response(200, json={"objects": []}, request=request)

    client = mock_client(handler)
    client.call("analyze", "https://example.com/")
    client.call(Operation.PRODUCT, "https://example.com/")
    assert paths == ["/v3/analyze", "/v3/product"]


def test_api_error_inside_200_is_raised(mock_client) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=b'{"error":"Not enough tokens","errorCode":401}', request=request)

    client = mock_client(handler)
    with pytest.raises(ApiError) as excinfo:
        client.call(Operation.ARTICLE, "https://example.com/")
    assert excinfo.value == ApiError(401, "Not enough tokens")


def test_non_json_body_is_parse_error(mock_client) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(502, content=b"<html>Bad Gateway</html>", request=request)

    client = mock_client(handler)
    with pytest.raises(ParseError) as excinfo:
        client.call(Operation.ARTICLE, "https://example.com/")
    assert excinfo.value.body_prefix == "<html>Bad Gateway</html>"


def test_connect_failure_is_network_error_with_cause(mock_client) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("[Errno 111] Connection refused", request=request)

    client = mock_client(handler)
    with pytest.raises(NetworkError) as excinfo:
        client.call(Operation.ARTICLE, "https://example.com/")
    assert excinfo.value.cause is not None
    assert str(excinfo.value.cause)
    assert "Connection refused" in str(excinfo.value)


def test_invalid_target_url_never_reaches_transport(recording_transport) -> None:
    client = Diffbot("token", transport=recording_transport)
    for target in ("", "not a url", "example.com"):
        with pytest.raises(InvalidInputError):
            client.call(Operation.ARTICLE, target)
    with pytest.raises(InvalidInputError):
        client.search("", "query")
    with pytest.raises(InvalidInputError):
        client.search("GLOBAL-INDEX", "")
    assert recording_transport.calls == []


def test_search_sends_index_and_query(recording_transport) -> None:
    recording_transport.body = b'{"data": [], "hits": 0}'
    client = Diffbot("token", "v3", transport=recording_transport)
    document = client.search("GLOBAL-INDEX", "type:article diffbot")

    assert document.get_int("hits") == 0
    (sent,) = recording_transport.calls
    assert sent["method"] == "GET"
    url = httpx.URL(sent["url"])
    assert url.path == "/v3/search"
    assert url.params["col"] == "GLOBAL-INDEX"
    assert url.params["query"] == "type:article diffbot"


def test_prepared_request_can_be_refined_and_sent(recording_transport) -> None:
    client = Diffbot("token", 2, transport=recording_transport)
    request = client.prepare_request(Operation.ARTICLE, "http://example.com/", fields=["title"])
    assert isinstance(request, Request)
    assert "/v2/article?" in request.url

    refined = request.with_timeout(9000).with_forwarded_headers(user_agent="UA").with_body(
        "<title>Contents of title tag</title>"
    )
    client.send(refined)
    (sent,) = recording_transport.calls
    assert sent["method"] == "POST"
    assert sent["url"].endswith("&timeout=9000")
    assert sent["headers"]["X-Forwarded-User-Agent"] == "UA"
    assert sent["content"] == b"<title>Contents of title tag</title>"


def test_client_is_immutable() -> None:
    client = Diffbot("token")
    with pytest.raises(AttributeError):
        client.token = "other"  # type: ignore[misc]
    with pytest.raises(AttributeError):
        del client.version
    assert client.version == "v3"
    assert "token" not in repr(client)


def test_client_requires_token() -> None:
    with pytest.raises(InvalidInputError, match="Token"):
        Diffbot("  ")


def test_client_from_settings(settings, recording_transport) -> None:
    client = Diffbot.from_settings(settings, transport=recording_transport)
    assert client.token == settings.token
    assert client.version == "v3"
    client.call(Operation.IMAGE, "https://example.com/pic")
    assert httpx.URL(recording_transport.calls[0]["url"]).params["token"] == settings.token


def test_client_from_settings_requires_token(settings) -> None:
    with pytest.raises(InvalidInputError, match="DIFFBOT_TOKEN"):
        Diffbot.from_settings(settings.model_copy(update={"token": None}))


def test_context_manager_reuses_and_releases_connections() -> None:
    paths: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        paths.append(request.url.path)
        return httpx.Response(200, json={}, request=request)

    with Diffbot("token", http_transport=httpx.MockTransport(handler), reuse_connections=True) as client:
        client.call(Operation.VIDEO, "https://example.com/v")
        client.call(Operation.EVENT, "https://example.com/e")
        assert client._transport._client is not None
    assert client._transport._client is None
    assert paths == ["/v3/video", "/v3/event"]


def test_module_level_call() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/v3/discussion"
        assert request.url.params["token"] == "tok"
        return httpx.Response(200, json={"type": "discussion"}, request=request)

    document = call(
        Operation.DISCUSSION,
        "https://forum.example/t/1",
        "tok",
        http_transport=httpx.MockTransport(handler),
    )
    assert document.get_str("type") == "discussion"


def test_package_exports_public_surface() -> None:
    assert diffbot.Diffbot is Diffbot
    assert diffbot.Operation is Operation
    assert diffbot.UNAUTHORIZED_TOKEN == 401
    assert issubclass(diffbot.InvalidInputError, ValueError)
    assert issubclass(diffbot.ApiError, diffbot.DiffbotError)
    assert diffbot.CustomApi is CustomApi


def test_custom_api_call_uses_its_name_as_path(mock_client) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/v3/myProductApi"
        assert request.url.params["url"] == "https://shop.example/item/9"
        return httpx.Response(200, json={"objects": [{"title": "Widget"}]}, request=request)

    client = mock_client(handler)
    document = client.call(CustomApi("myProductApi"), "https://shop.example/item/9")
    assert document.find("objects.0.title") == "Widget"


def test_search_passes_extra_params(recording_transport) -> None:
    client = Diffbot("token", transport=recording_transport)
    client.search("GLOBAL-INDEX", "type:article", {"num": 2})
    url = httpx.URL(recording_transport.calls[0]["url"])
    assert list(url.params.multi_items()) == [
        ("token", "token"),
        ("col", "GLOBAL-INDEX"),
        ("query", "type:article"),
        ("num", "2"),
    ]


def test_crawl_and_bulk_post_form_jobs(mock_client) -> None:
    seen: list[tuple[str, str, list[tuple[str, str]]]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.headers["content-type"] == "application/x-www-form-urlencoded"
        form = httpx.QueryParams(request.content.decode("utf-8"))
        seen.append((request.method, request.url.path, list(form.multi_items())))
        return httpx.Response(200, json={"response": "Successfully added urls for spidering."}, request=request)

    client = mock_client(handler)
    document = client.crawl("news", Operation.ARTICLE, ["https://example.com/"], {"maxHops": 1})
    client.bulk("catalog", "product", ["https://shop.example/1", "https://shop.example/2"])

    assert (document.get_str("response") or "").startswith("Successfully")
    assert seen[0] == (
        "POST",
        "/v3/crawl",
        [
            ("name", "news"),
            ("token", "6932269b31d051457940f3da4ee23b79"),
            ("apiUrl", "https://api.diffbot.com/v3/article"),
            ("seeds", "https://example.com/"),
            ("maxHops", "1"),
        ],
    )
    assert seen[1][1] == "/v3/bulk"
    assert ("urls", "https://shop.example/1 https://shop.example/2") in seen[1][2]


def test_job_status_and_listing(recording_transport) -> None:
    recording_transport.body = b'{"jobs": [{"name": "news", "type": "crawl"}]}'
    client = Diffbot("token", transport=recording_transport)

    client.get_crawl("news")
    client.get_bulk("catalog")
    listing = client.list_crawls()

    assert [call["method"] for call in recording_transport.calls] == ["POST", "POST", "GET"]
    assert [httpx.URL(call["url"]).path for call in recording_transport.calls] == ["/v3/crawl", "/v3/bulk", "/v3/crawl"]
    assert recording_transport.calls[1]["content"] == b"token=token&name=catalog&format=json"
    assert httpx.URL(recording_transport.calls[2]["url"]).params["token"] == "token"
    assert listing.documents("jobs")[0].get_str("name") == "news"


def test_job_with_search_api_never_reaches_transport(recording_transport) -> None:
    client = Diffbot("token", transport=recording_transport)
    with pytest.raises(InvalidInputError):
        client.crawl("news", Operation.SEARCH, ["https://example.com/"])
    assert recording_transport.calls == []
