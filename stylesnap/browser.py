"""
Playwright host: reads a live Chromium page into the snapshot model.

The page is dumped in a single evaluate call (tree, computed styles,
stylesheet rules and one default style per identity class) so the tree walk
itself never has to wait on the browser.
"""

import json
import logging
from typing import Any, Dict, List, Optional, Tuple

from playwright.async_api import Browser, Error as PlaywrightError, Page, async_playwright

from .assembler import render_degraded
from .capture import capture_styled_snapshot
from .config import CaptureConfig
from .dom import (
    Host,
    LiveComment,
    LiveDocument,
    LiveElement,
    LiveNode,
    LiveText,
    ParsedRule,
    SheetSource,
    StyleLookup,
)
from .errors import NetworkError
from .model import IdentityKey

logger = logging.getLogger(__name__)

DEFAULT_VIEWPORT = {"width": 1440, "height": 900}
USER_AGENT = "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"

DUMP_PAGE_JS = """
(noStyleTags) => {
    const noStyle = new Set(noStyleTags);
    const identities = new Map();

    const dumpStyle = (el) => {
        const computed = window.getComputedStyle(el, null);
        if (!computed) {
            return null;
        }
        const props = [];
        for (let i = 0; i < computed.length; ++i) {
            const name = computed.item(i);
            props.push([name, computed.getPropertyValue(name)]);
        }
        return props;
    };

    const identityKey = (el) => {
        const classes = (el.getAttribute('class') || '').split(/\\s+/).filter(Boolean);
        return JSON.stringify([
            el.tagName.toLowerCase(),
            el.getAttribute('id'),
            Array.from(new Set(classes)).sort(),
        ]);
    };

    const describe = (node, parent) => {
        if (node.nodeType === Node.TEXT_NODE) {
            return { kind: 'text', parent, text: node.data };
        }
        if (node.nodeType !== Node.ELEMENT_NODE) {
            return { kind: 'other', parent };
        }
        const tag = node.tagName.toLowerCase();
        const attributes = {};
        for (const attr of Array.from(node.attributes)) {
            attributes[attr.name] = attr.value;
        }
        const entry = { kind: 'element', parent, tag, attributes };
        if (tag === 'img') {
            if (!('width' in attributes) && node.width) {
                attributes.width = String(node.width);
            }
            if (!('height' in attributes) && node.height) {
                attributes.height = String(node.height);
            }
            return entry;
        }
        if (!noStyle.has(tag)) {
            entry.style = dumpStyle(node);
            const key = identityKey(node);
            if (!identities.has(key)) {
                identities.set(key, node);
            }
        }
        return entry;
    };

    // document order, each node after its parent
    const nodes = [];
    const pending = [[document.documentElement, -1]];
    while (pending.length) {
        const [node, parent] = pending.pop();
        const entry = describe(node, parent);
        const index = nodes.length;
        nodes.push(entry);
        if (entry.kind === 'element' && entry.tag !== 'img') {
            const children = Array.from(node.childNodes);
            for (let i = children.length - 1; i >= 0; --i) {
                pending.push([children[i], index]);
            }
        }
    }

    const sheets = Array.from(document.styleSheets).map(sheet => {
        let rules = null;
        try {
            rules = Array.from(sheet.cssRules).map(rule => ({
                selector: rule.selectorText === undefined ? null : rule.selectorText,
                text: rule.cssText,
            }));
        } catch (e) {
            rules = null;
        }
        return { href: sheet.href, rules };
    });

    let doctype = null;
    const dt = document.doctype;
    if (dt) {
        doctype = dt.name;
        if (dt.publicId) {
            doctype += ` PUBLIC "${dt.publicId}"`;
        }
        if (dt.systemId) {
            doctype += (dt.publicId ? '' : ' SYSTEM') + ` "${dt.systemId}"`;
        }
    }

    const baselines = [];
    const sandbox = document.createElement('div');
    sandbox.setAttribute('aria-hidden', 'true');
    sandbox.style.display = 'none';
    (document.body || document.documentElement).appendChild(sandbox);
    try {
        for (const [key, el] of identities) {
            const probe = el.namespaceURI
                ? document.createElementNS(el.namespaceURI, el.localName)
                : document.createElement(el.localName);
            if (el.getAttribute('id') !== null) {
                probe.setAttribute('id', el.getAttribute('id'));
            }
            if (el.getAttribute('class') !== null) {
                probe.setAttribute('class', el.getAttribute('class'));
            }
            sandbox.appendChild(probe);
            baselines.push([key, dumpStyle(probe)]);
            sandbox.removeChild(probe);
        }
    } finally {
        sandbox.remove();
    }

    return { doctype, nodes, sheets, baselines };
}
"""

PARSE_STYLESHEET_JS = """
(text) => {
    const doc = document.implementation.createHTMLDocument('');
    const style = doc.createElement('style');
    style.textContent = text;
    doc.head.appendChild(style);
    return Array.from(style.sheet.cssRules).map(rule => ({
        selector: rule.selectorText === undefined ? null : rule.selectorText,
        text: rule.cssText,
    }));
}
"""


def build_style(props: Optional[List[List[str]]]) -> Optional[StyleLookup]:
    if props is None:
        return None
    return StyleLookup((name, value) for name, value in props)


def build_node(data: Dict[str, Any]) -> LiveNode:
    kind = data.get("kind")
    if kind == "text":
        return LiveText(data.get("text", ""))
    if kind != "element":
        return LiveComment()
    return LiveElement(
        tag=data["tag"],
        attributes=data.get("attributes") or {},
        style=build_style(data.get("style")),
    )


def build_tree(entries: List[Dict[str, Any]]) -> LiveNode:
    """Link the flat node list of a page dump; entry 0 is the root."""
    if not entries:
        raise ValueError("page dump has no nodes")
    nodes: List[LiveNode] = []
    for entry in entries:
        node = build_node(entry)
        parent = entry.get("parent", -1)
        if parent >= 0:
            nodes[parent].append(node)
        nodes.append(node)
    return nodes[0]


def parse_identity(key: str) -> IdentityKey:
    tag, element_id, classes = json.loads(key)
    return IdentityKey(tag=tag, element_id=element_id, classes=tuple(sorted(set(classes))))


def parse_rules(raw: List[Dict[str, Any]]) -> List[ParsedRule]:
    return [ParsedRule(selector_text=rule.get("selector"), rule_text=rule.get("text", "")) for rule in raw]


def build_document(dump: Dict[str, Any]) -> Tuple[LiveDocument, Dict[IdentityKey, Optional[StyleLookup]]]:
    root = build_tree(dump.get("nodes", []))
    if not isinstance(root, LiveElement):
        raise ValueError("page dump has no document element")

    sheets = []
    for sheet in dump.get("sheets", []):
        rules = sheet.get("rules")
        sheets.append(SheetSource(
            href=sheet.get("href"),
            rules=parse_rules(rules) if rules is not None else None,
        ))

    baselines = {parse_identity(key): build_style(props) for key, props in dump.get("baselines", [])}
    document = LiveDocument(root=root, stylesheets=sheets, doctype=dump.get("doctype"))
    return document, baselines


class BrowserHost(Host):
    def __init__(
        self,
        page: Page,
        baselines: Dict[IdentityKey, Optional[StyleLookup]],
        config: Optional[CaptureConfig] = None,
    ):
        self.page = page
        self.baselines = baselines
        self.config = config or CaptureConfig()

    @classmethod
    async def attach(cls, page: Page, config: Optional[CaptureConfig] = None) -> Tuple["BrowserHost", LiveDocument]:
        config = config or CaptureConfig()
        dump = await page.evaluate(DUMP_PAGE_JS, sorted(config.no_style_tags))
        document, baselines = build_document(dump)
        logger.info(
            "dumped %s: %d stylesheets, %d identity classes",
            page.url, len(document.stylesheets), len(baselines),
        )
        return cls(page, baselines, config), document

    def compute_style(self, element: LiveElement) -> Optional[StyleLookup]:
        return element.style

    def compute_default_style(self, identity: IdentityKey) -> Optional[StyleLookup]:
        return self.baselines.get(identity)

    async def fetch_text(self, url: str) -> str:
        try:
            response = await self.page.request.get(url, timeout=self.config.fetch_timeout_ms)
            if not response.ok:
                raise NetworkError(url, f"HTTP {response.status}")
            content = await response.body()
        except PlaywrightError as exc:
            raise NetworkError(url, str(exc)) from exc
        try:
            return content.decode("utf-8")
        except UnicodeDecodeError:
            return content.decode("latin-1", errors="ignore")

    async def parse_stylesheet_text(self, text: str) -> List[ParsedRule]:
        return parse_rules(await self.page.evaluate(PARSE_STYLESHEET_JS, text))


async def capture_page(page: Page, config: Optional[CaptureConfig] = None) -> str:
    config = config or CaptureConfig()
    try:
        host, document = await BrowserHost.attach(page, config)
    except Exception as exc:
        if config.raise_errors:
            raise
        logger.exception("could not read the page, emitting degraded document")
        return render_degraded(exc)
    return await capture_styled_snapshot(document, host, config)


async def open_page(
    browser: Browser,
    url: str,
    viewport: Optional[Dict[str, int]] = None,
    wait_until: str = "domcontentloaded",
    timeout_ms: int = 60000,
):
    context = await browser.new_context(
        viewport=viewport or DEFAULT_VIEWPORT,
        device_scale_factor=1,
        user_agent=USER_AGENT,
    )
    page = await context.new_page()
    await page.goto(url, wait_until=wait_until, timeout=timeout_ms)
    await page.wait_for_selector("body", state="attached", timeout=15000)
    try:
        await page.wait_for_load_state("networkidle", timeout=15000)
    except PlaywrightError:
        logger.debug("network did not go idle for %s; capturing anyway", url)
    return context, page


async def snapshot_url(
    url: str,
    config: Optional[CaptureConfig] = None,
    viewport: Optional[Dict[str, int]] = None,
    wait_until: str = "domcontentloaded",
    timeout_ms: int = 60000,
    headless: bool = True,
) -> str:
    async with async_playwright() as p:
        browser = await p.chromium.launch(headless=headless)
        try:
            context, page = await open_page(browser, url, viewport, wait_until, timeout_ms)
            try:
                return await capture_page(page, config)
            finally:
                await context.close()
        finally:
            await browser.close()
