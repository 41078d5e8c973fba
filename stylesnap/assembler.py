import logging
from typing import Dict, List, Optional, Sequence

from bs4 import BeautifulSoup, Doctype, NavigableString, Tag
from bs4.element import Stylesheet

from .errors import SelectorSyntaxError, SnapshotError
from .model import ElementSnapshot, NodeSnapshot, RuleList, TextSnapshot

logger = logging.getLogger(__name__)

PARSER = "html.parser"


def render_style(style_diff: Dict[str, str]) -> str:
    return " ".join(f"{name}: {value};" for name, value in style_diff.items())


def split_selector_list(selector: str) -> List[str]:
    """Split a selector list at commas outside brackets, parentheses and strings."""
    parts = []
    depth = 0
    quote = None
    start = 0
    pos = 0
    while pos < len(selector):
        char = selector[pos]
        if char == "\\":
            pos += 2
            continue
        if quote:
            if char == quote:
                quote = None
        elif char in "\"'":
            quote = char
        elif char in "([":
            depth += 1
        elif char in ")]":
            depth = max(depth - 1, 0)
        elif char == "," and depth == 0:
            parts.append(selector[start:pos].strip())
            start = pos + 1
        pos += 1
    parts.append(selector[start:].strip())
    return [part for part in parts if part]


def describe_error(exc: BaseException) -> str:
    message = str(exc)
    if message:
        return f"{exc.__class__.__name__}: {message}"
    return exc.__class__.__name__


class DocumentAssembler:
    """
    Rebuilds a document from a snapshot and injects the rules it uses.

    Selector matching runs against the rebuilt document, so rules that only
    applied to pruned nodes are dropped.
    """

    def __init__(self, doctype: Optional[str] = "html"):
        self.doctype = doctype
        self._matched_soup: Optional[BeautifulSoup] = None
        self._matches: Dict[str, bool] = {}

    def assemble(self, root: Optional[NodeSnapshot], rule_lists: Sequence[RuleList]) -> str:
        if not isinstance(root, ElementSnapshot):
            raise SnapshotError("the document root was pruned; nothing to capture")

        soup = self.build_document(root)
        head = self.ensure_head(soup)
        for block in self.style_blocks(soup, rule_lists):
            style = soup.new_tag("style")
            style.append(Stylesheet(block))
            head.append(style)
        return self.serialize(soup)

    def build_document(self, root: ElementSnapshot) -> BeautifulSoup:
        soup = BeautifulSoup("", PARSER)
        if self.doctype:
            soup.append(Doctype(self.doctype))
        soup.append(self.to_tag(soup, root))
        return soup

    def to_tag(self, soup: BeautifulSoup, node: NodeSnapshot):
        if isinstance(node, TextSnapshot):
            return NavigableString(node.text)

        top = self.new_element(soup, node)
        stack = [(top, iter(node.children))]
        while stack:
            parent, remaining = stack[-1]
            child = next(remaining, None)
            if child is None:
                stack.pop()
            elif isinstance(child, TextSnapshot):
                parent.append(NavigableString(child.text))
            else:
                tag = self.new_element(soup, child)
                parent.append(tag)
                stack.append((tag, iter(child.children)))
        return top

    def new_element(self, soup: BeautifulSoup, node: ElementSnapshot) -> Tag:
        attrs = dict(node.attributes)
        if node.style_diff is not None:
            attrs.pop("style", None)
            if node.style_diff:
                attrs["style"] = render_style(node.style_diff)
        return soup.new_tag(node.tag, attrs=attrs)

    def ensure_head(self, soup: BeautifulSoup) -> Tag:
        root = next(iter(soup.find_all(True, recursive=False)), None)
        if root is None:
            raise SnapshotError("rebuilt document has no root element")
        head = root.find("head", recursive=False)
        if head is None:
            head = soup.new_tag("head")
            root.insert(0, head)
        return head

    def selector_matches(self, soup: BeautifulSoup, selector: Optional[str]) -> bool:
        if not selector:
            return False
        if soup is not self._matched_soup:
            self._matched_soup = soup
            self._matches = {}
        if selector not in self._matches:
            try:
                self._matches[selector] = soup.select_one(selector) is not None
            except (SelectorSyntaxError, NotImplementedError):
                # soupsieve rejects a whole list when one member is a
                # pseudo-element or an unknown pseudo-class
                parts = split_selector_list(selector)
                self._matches[selector] = len(parts) > 1 and any(
                    self.selector_matches(soup, part) for part in parts
                )
                if not self._matches[selector]:
                    logger.debug("unsupported selector treated as unmatched: %s", selector)
        return self._matches[selector]

    def used_rules(self, soup: BeautifulSoup, rule_list: RuleList) -> Dict[int, str]:
        used: Dict[int, str] = {}
        for record in rule_list.records:
            if record.rule_index in used:
                continue
            if self.selector_matches(soup, record.selector_text):
                used[record.rule_index] = record.rule_text
        return used

    def style_blocks(self, soup: BeautifulSoup, rule_lists: Sequence[RuleList]) -> List[str]:
        blocks = []
        for rule_list in sorted(rule_lists, key=lambda r: r.sheet_index):
            used = self.used_rules(soup, rule_list)
            if not used:
                continue
            logger.debug(
                "stylesheet %d: %d of %d rules in use",
                rule_list.sheet_index, len(used), len(rule_list.records),
            )
            blocks.append(" ".join(used[idx] for idx in sorted(used)))
        return blocks

    def serialize(self, soup: BeautifulSoup) -> str:
        return soup.decode(formatter="minimal")


def render_degraded(exc: BaseException) -> str:
    soup = BeautifulSoup("", PARSER)
    html = soup.new_tag("html")
    body = soup.new_tag("body")
    body.string = describe_error(exc)
    html.append(body)
    soup.append(html)
    return soup.decode(formatter="minimal")
