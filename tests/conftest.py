"""
Shared fixtures: an in-memory host standing in for the browser.
"""

import re
from typing import Dict, List, Optional, Union

import pytest

from stylesnap.dom import Host, LiveDocument, LiveElement, LiveText, ParsedRule, SheetSource, StyleLookup
from stylesnap.errors import NetworkError
from stylesnap.model import IdentityKey


def style(**props: str) -> StyleLookup:
    return StyleLookup((name.replace("_", "-"), value) for name, value in props.items())


def el(tag: str, attrs: Optional[Dict[str, str]] = None, *children, css: Optional[StyleLookup] = None) -> LiveElement:
    nodes = [LiveText(c) if isinstance(c, str) else c for c in children]
    return LiveElement(tag, attrs or {}, nodes, style=css)


def parse_css(text: str) -> List[ParsedRule]:
    rules = []
    for match in re.finditer(r"([^{}]+)\{([^{}]*)\}", text):
        selector = " ".join(match.group(1).split())
        body = " ".join(match.group(2).split())
        rules.append(ParsedRule(selector, f"{selector} {{ {body} }}"))
    return rules


class FakeHost(Host):
    def __init__(
        self,
        defaults: Optional[Dict[IdentityKey, StyleLookup]] = None,
        responses: Optional[Dict[str, Union[str, Exception]]] = None,
    ):
        self.defaults = defaults or {}
        self.responses = responses or {}
        self.fetched: List[str] = []
        self.default_lookups: List[IdentityKey] = []

    def compute_style(self, element: LiveElement) -> Optional[StyleLookup]:
        return element.style

    def compute_default_style(self, identity: IdentityKey) -> Optional[StyleLookup]:
        self.default_lookups.append(identity)
        return self.defaults.get(identity)

    async def fetch_text(self, url: str) -> str:
        self.fetched.append(url)
        response = self.responses.get(url)
        if response is None:
            raise NetworkError(url, "unreachable")
        if isinstance(response, Exception):
            raise response
        return response

    async def parse_stylesheet_text(self, text: str) -> List[ParsedRule]:
        return parse_css(text)


def sheet(css: str, href: Optional[str] = None) -> SheetSource:
    return SheetSource(href=href, rules=parse_css(css))


@pytest.fixture
def host():
    return FakeHost()


@pytest.fixture
def simple_document():
    """html > head(title) + body > div.a > img, with one embedded sheet."""
    body_style = style(display="block", margin="8px")
    div_style = style(display="block", color="rgb(255, 0, 0)")
    root = el(
        "html", {},
        el("head", {}, el("title", {}, "Snapshot")),
        el(
            "body", {},
            el("div", {"class": "a"}, el("img", {"src": "x", "width": "10", "height": "20", "alt": "y"}), css=div_style),
            css=body_style,
        ),
    )
    sheets = [sheet(".a { color: red; } .missing { color: blue; } body { margin: 8px; }")]
    return LiveDocument(root=root, stylesheets=sheets, doctype="html")
