from typing import Optional

from .config import BLANK_CHARACTERS, IGNORED_TAGS, INLINE_TAGS, NO_STYLE_TAGS
from .dom import LiveElement, LiveNode, LiveText


def is_element(node: Optional[LiveNode]) -> bool:
    return isinstance(node, LiveElement)


def is_text(node: Optional[LiveNode]) -> bool:
    return isinstance(node, LiveText)


def matches_tag_name(node: Optional[LiveNode], name: str) -> bool:
    if not isinstance(node, LiveElement):
        return False
    return node.tag.lower() == name.lower()


def is_stylesheet_link(node: Optional[LiveNode]) -> bool:
    if not matches_tag_name(node, "link"):
        return False
    rel = (node.get("rel") or "").lower().split()
    return "stylesheet" in rel


def is_inline_element(node: Optional[LiveNode], inline_tags=INLINE_TAGS) -> bool:
    return isinstance(node, LiveElement) and node.tag.lower() in inline_tags


def is_blank_text_node(node: Optional[LiveNode], inline_tags=INLINE_TAGS) -> bool:
    """Whitespace-only text that does not separate inline content."""
    if not isinstance(node, LiveText):
        return False
    if node.text.strip(BLANK_CHARACTERS):
        return False
    if is_inline_element(node.previous_sibling, inline_tags):
        return False
    if is_inline_element(node.next_sibling, inline_tags):
        return False
    return True


def is_ignored_node(node: Optional[LiveNode], ignored_tags=IGNORED_TAGS, inline_tags=INLINE_TAGS) -> bool:
    if node is None:
        return True
    if isinstance(node, LiveElement):
        return node.tag.lower() in ignored_tags or is_stylesheet_link(node)
    return is_blank_text_node(node, inline_tags)


def is_style_bearing_tag(node: Optional[LiveNode], no_style_tags=NO_STYLE_TAGS) -> bool:
    return isinstance(node, LiveElement) and node.tag.lower() not in no_style_tags
