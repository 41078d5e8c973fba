"""Tests for the Playwright host, using stand-ins for the page object."""

import json

import pytest
from playwright.async_api import Error as PlaywrightError

from stylesnap.browser import BrowserHost, build_document, capture_page, parse_identity
from stylesnap.config import CaptureConfig
from stylesnap.dom import LiveComment, LiveElement, LiveText
from stylesnap.errors import NetworkError
from stylesnap.model import IdentityKey

DUMP = {
    "doctype": "html",
    "nodes": [
        {"kind": "element", "parent": -1, "tag": "html", "attributes": {"lang": "en"}},
        {"kind": "element", "parent": 0, "tag": "head", "attributes": {}},
        {
            "kind": "element",
            "parent": 0,
            "tag": "body",
            "attributes": {},
            "style": [["display", "block"], ["margin", "8px"]],
        },
        {"kind": "other", "parent": 2},
        {"kind": "text", "parent": 2, "text": "hello"},
        {
            "kind": "element",
            "parent": 2,
            "tag": "p",
            "attributes": {"class": "lead intro"},
            "style": [["display", "block"], ["color", "rgb(1, 2, 3)"]],
        },
    ],
    "sheets": [
        {"href": None, "rules": [{"selector": "p", "text": "p { color: red; }"}, {"selector": None, "text": "@media print { }"}]},
        {"href": "https://cdn.example.com/a.css", "rules": None},
    ],
    "baselines": [
        [json.dumps(["body", None, []]), [["display", "block"], ["margin", "8px"]]],
        [json.dumps(["p", None, ["intro", "lead"]]), [["display", "block"], ["color", "rgb(0, 0, 0)"]]],
    ],
}


class FakeResponse:
    def __init__(self, status=200, body=b""):
        self.status = status
        self.ok = 200 <= status < 300
        self._body = body

    async def body(self):
        if isinstance(self._body, Exception):
            raise self._body
        return self._body


class FakeRequest:
    def __init__(self, responses):
        self.responses = responses
        self.calls = []

    async def get(self, url, timeout=None):
        self.calls.append((url, timeout))
        response = self.responses.get(url, PlaywrightError(f"net::ERR_FAILED {url}"))
        if isinstance(response, Exception):
            raise response
        return response


class FakePage:
    url = "https://example.com/"

    def __init__(self, dump=None, responses=None, parsed=None):
        self.dump = dump
        self.request = FakeRequest(responses or {})
        self.parsed = parsed or []
        self.scripts = []

    async def evaluate(self, script, arg=None):
        self.scripts.append(arg)
        if isinstance(self.dump, Exception):
            raise self.dump
        if isinstance(arg, str):
            return self.parsed
        return self.dump


class TestBuildDocument:
    def test_tree(self):
        document, _ = build_document(DUMP)
        assert document.doctype == "html"
        root = document.root
        assert isinstance(root, LiveElement)
        head, body = root.children
        assert isinstance(body.children[0], LiveComment)
        assert isinstance(body.children[1], LiveText)
        paragraph = body.children[2]
        assert paragraph.parent is body
        assert paragraph.style.value_of("color") == "rgb(1, 2, 3)"
        assert head.style is None

    def test_sheets(self):
        document, _ = build_document(DUMP)
        embedded, external = document.stylesheets
        assert [r.selector_text for r in embedded.rules] == ["p", None]
        assert external.rules is None
        assert external.href == "https://cdn.example.com/a.css"

    def test_baselines_keyed_by_identity(self):
        _, baselines = build_document(DUMP)
        key = IdentityKey("p", None, ("intro", "lead"))
        assert baselines[key].value_of("color") == "rgb(0, 0, 0)"

    def test_root_must_be_element(self):
        with pytest.raises(ValueError):
            build_document({"nodes": [{"kind": "text", "parent": -1, "text": "x"}]})

    def test_deep_dump(self):
        nodes = [{"kind": "element", "parent": -1, "tag": "html", "attributes": {}}]
        for depth in range(5000):
            nodes.append({"kind": "element", "parent": depth, "tag": "div", "attributes": {}})
        nodes.append({"kind": "text", "parent": len(nodes) - 1, "text": "leaf"})
        document, _ = build_document({"nodes": nodes})
        node = document.root
        depth = 0
        while node.children and isinstance(node.children[0], LiveElement):
            node = node.children[0]
            depth += 1
        assert depth == 5000
        assert node.children[0].text == "leaf"

    def test_parse_identity(self):
        assert parse_identity('["li", "x", ["b", "a", "a"]]') == IdentityKey("li", "x", ("a", "b"))


class TestBrowserHost:
    @pytest.mark.asyncio
    async def test_attach_matches_element_identity(self):
        host, document = await BrowserHost.attach(FakePage(DUMP))
        paragraph = document.root.children[1].children[2]
        assert host.compute_default_style(paragraph.identity).value_of("color") == "rgb(0, 0, 0)"
        assert host.compute_style(paragraph) is paragraph.style

    @pytest.mark.asyncio
    async def test_no_style_tags_sent_to_page(self):
        page = FakePage(DUMP)
        await BrowserHost.attach(page)
        assert "head" in page.scripts[0]
        assert "div" not in page.scripts[0]

    @pytest.mark.asyncio
    async def test_fetch_text(self):
        url = "https://cdn.example.com/a.css"
        page = FakePage(responses={url: FakeResponse(body="p { content: 'é'; }".encode("utf-8"))})
        host = BrowserHost(page, {}, CaptureConfig(fetch_timeout_ms=1234))
        assert await host.fetch_text(url) == "p { content: 'é'; }"
        assert page.request.calls == [(url, 1234)]

    @pytest.mark.asyncio
    async def test_fetch_text_latin1_fallback(self):
        url = "https://cdn.example.com/a.css"
        page = FakePage(responses={url: FakeResponse(body=b"p { content: '\xe9'; }")})
        assert await BrowserHost(page, {}).fetch_text(url) == "p { content: 'é'; }"

    @pytest.mark.asyncio
    async def test_fetch_http_error(self):
        url = "https://cdn.example.com/missing.css"
        page = FakePage(responses={url: FakeResponse(status=404)})
        with pytest.raises(NetworkError):
            await BrowserHost(page, {}).fetch_text(url)

    @pytest.mark.asyncio
    async def test_fetch_request_failure(self):
        url = "file:///tmp/a.css"
        page = FakePage(responses={url: PlaywrightError("unsupported protocol")})
        with pytest.raises(NetworkError):
            await BrowserHost(page, {}).fetch_text(url)

    @pytest.mark.asyncio
    async def test_fetch_body_read_failure(self):
        url = "https://cdn.example.com/a.css"
        reset = PlaywrightError("net::ERR_CONNECTION_RESET")
        page = FakePage(responses={url: FakeResponse(body=reset)})
        with pytest.raises(NetworkError) as info:
            await BrowserHost(page, {}).fetch_text(url)
        assert info.value.url == url
        assert info.value.__cause__ is reset

    @pytest.mark.asyncio
    async def test_parse_stylesheet_text(self):
        page = FakePage(parsed=[{"selector": "a", "text": "a { color: red; }"}])
        rules = await BrowserHost(page, {}).parse_stylesheet_text("a{color:red}")
        assert [(r.selector_text, r.rule_text) for r in rules] == [("a", "a { color: red; }")]


class TestCapturePage:
    @pytest.mark.asyncio
    async def test_capture(self):
        output = await capture_page(FakePage(DUMP))
        assert output.startswith("<!DOCTYPE html>")
        assert '<p class="lead intro" style="color: rgb(1, 2, 3);"></p>' in output
        assert "<body>hello" in output
        assert "<style>p { color: red; }</style>" in output

    @pytest.mark.asyncio
    async def test_dropped_stylesheet_connection_keeps_page(self):
        href = "https://cdn.example.com/a.css"
        reset = FakeResponse(body=PlaywrightError("net::ERR_CONNECTION_RESET"))
        config = CaptureConfig()
        page = FakePage(DUMP, responses={href: reset, config.proxied(href): reset})
        output = await capture_page(page, config)
        assert '<p class="lead intro" style="color: rgb(1, 2, 3);"></p>' in output
        assert "<style>p { color: red; }</style>" in output
        assert [url for url, _ in page.request.calls] == [href, config.proxied(href)]

    @pytest.mark.asyncio
    async def test_dump_failure_is_degraded(self):
        output = await capture_page(FakePage(PlaywrightError("Execution context was destroyed")))
        assert output.startswith("<html><body>Error: Execution context was destroyed")

    @pytest.mark.asyncio
    async def test_dump_failure_strict(self):
        with pytest.raises(PlaywrightError):
            await capture_page(FakePage(PlaywrightError("gone")), CaptureConfig(raise_errors=True))
