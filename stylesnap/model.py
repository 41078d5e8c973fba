from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Tuple, Union


@dataclass(frozen=True)
class IdentityKey:
    """Identity class of an element: tag, id attribute and sorted unique classes."""

    tag: str
    element_id: Optional[str] = None
    classes: Tuple[str, ...] = ()

    @classmethod
    def of(cls, tag: str, attributes: Mapping[str, str]) -> "IdentityKey":
        raw_classes = attributes.get("class") or ""
        return cls(
            tag=tag.lower(),
            element_id=attributes.get("id"),
            classes=tuple(sorted(set(raw_classes.split()))),
        )


@dataclass(frozen=True)
class TextSnapshot:
    text: str


@dataclass(frozen=True)
class ElementSnapshot:
    tag: str
    attributes: Dict[str, str] = field(default_factory=dict)
    style_diff: Optional[Dict[str, str]] = None
    """None for elements that never carry style (head, meta, img...)."""
    children: Tuple["NodeSnapshot", ...] = ()

    def iter_elements(self):
        """Document-order walk over this element and its element descendants."""
        stack = [self]
        while stack:
            element = stack.pop()
            yield element
            stack.extend(
                child for child in reversed(element.children)
                if isinstance(child, ElementSnapshot)
            )


NodeSnapshot = Union[ElementSnapshot, TextSnapshot]


@dataclass(frozen=True)
class StyleRuleRecord:
    sheet_index: int
    rule_index: int
    selector_text: Optional[str]
    rule_text: str


@dataclass
class RuleList:
    """Rules contributed by one stylesheet, in source order."""

    sheet_index: int
    records: List[StyleRuleRecord] = field(default_factory=list)
    source: str = "direct"
    """One of direct, fetch, proxy or none."""
