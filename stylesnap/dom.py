"""
In-memory view of a live, styled page.

A host adapter (see browser.py) fills these objects from the real page; the
snapshot pipeline only ever reads them.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .model import IdentityKey


class StyleLookup:
    """Ordered computed-style declaration: indexable names, lookup by name."""

    def __init__(self, properties: Iterable[Tuple[str, str]] = ()):
        self._names: List[str] = []
        self._values: Dict[str, str] = {}
        for name, value in properties:
            if name not in self._values:
                self._names.append(name)
            self._values[name] = value

    @property
    def property_count(self) -> int:
        return len(self._names)

    def property_name_at(self, index: int) -> str:
        return self._names[index]

    def value_of(self, name: str) -> str:
        return self._values.get(name, "")

    def __len__(self) -> int:
        return len(self._names)

    def __repr__(self) -> str:
        return f"StyleLookup({self.property_count} properties)"


class LiveNode:
    parent: Optional["LiveElement"] = None
    # position in parent.children, set by LiveElement.append
    index: int = -1

    @property
    def previous_sibling(self) -> Optional["LiveNode"]:
        return self._sibling(-1)

    @property
    def next_sibling(self) -> Optional["LiveNode"]:
        return self._sibling(1)

    def _sibling(self, offset: int) -> Optional["LiveNode"]:
        if self.parent is None:
            return None
        siblings = self.parent.children
        pos = self.index + offset
        if 0 <= pos < len(siblings):
            return siblings[pos]
        return None


class LiveText(LiveNode):
    def __init__(self, text: str):
        self.text = text

    def __repr__(self) -> str:
        return f"LiveText({self.text!r})"


class LiveComment(LiveNode):
    """Any node that is neither an element nor text."""

    def __init__(self, text: str = ""):
        self.text = text


class LiveElement(LiveNode):
    def __init__(
        self,
        tag: str,
        attributes: Optional[Dict[str, str]] = None,
        children: Optional[Sequence[LiveNode]] = None,
        style: Optional[StyleLookup] = None,
    ):
        self.tag = tag
        self.attributes: Dict[str, str] = dict(attributes or {})
        self.style = style
        self.children: List[LiveNode] = []
        for child in children or ():
            self.append(child)

    def append(self, child: LiveNode) -> LiveNode:
        child.parent = self
        child.index = len(self.children)
        self.children.append(child)
        return child

    def get(self, name: str, default: Optional[str] = None) -> Optional[str]:
        return self.attributes.get(name, default)

    @property
    def identity(self) -> IdentityKey:
        return IdentityKey.of(self.tag, self.attributes)

    def __repr__(self) -> str:
        return f"LiveElement({self.tag!r}, {len(self.children)} children)"


@dataclass(frozen=True)
class ParsedRule:
    selector_text: Optional[str]
    rule_text: str


@dataclass
class SheetSource:
    href: Optional[str] = None
    rules: Optional[List[ParsedRule]] = None
    """None when the rules could not be read directly."""


@dataclass
class LiveDocument:
    root: LiveElement
    stylesheets: List[SheetSource] = field(default_factory=list)
    doctype: Optional[str] = "html"


class Host(ABC):
    """Primitives the snapshot pipeline needs from the environment holding the page."""

    @abstractmethod
    def compute_style(self, element: LiveElement) -> Optional[StyleLookup]:
        ...

    @abstractmethod
    def compute_default_style(self, identity: IdentityKey) -> Optional[StyleLookup]:
        ...

    @abstractmethod
    async def fetch_text(self, url: str) -> str:
        ...

    @abstractmethod
    async def parse_stylesheet_text(self, text: str) -> List[ParsedRule]:
        ...
