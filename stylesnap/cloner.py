from typing import Dict, Iterator, List, Optional, Tuple

from .baseline import BaselineCache
from .config import CaptureConfig
from .dom import Host, LiveElement, LiveNode, LiveText
from .model import ElementSnapshot, NodeSnapshot, TextSnapshot
from .predicates import is_ignored_node, is_style_bearing_tag, matches_tag_name


def is_empty_value(value: Optional[str]) -> bool:
    return value is None or value == ""


class _PendingElement:
    __slots__ = ("element", "style_diff", "remaining", "children")

    def __init__(self, element: LiveElement, style_diff: Optional[Dict[str, str]]):
        self.element = element
        self.style_diff = style_diff
        self.remaining: Iterator[LiveNode] = iter(element.children)
        self.children: List[NodeSnapshot] = []

    def finish(self) -> ElementSnapshot:
        return ElementSnapshot(
            tag=self.element.tag.lower(),
            attributes=dict(self.element.attributes),
            style_diff=self.style_diff,
            children=tuple(self.children),
        )


class TreeCloner:
    """
    Turns the live tree into a pruned, style-annotated snapshot.

    The walk is synchronous and depth-first; children keep their source order
    and pruned nodes leave no trace in the result.
    """

    def __init__(self, host: Host, baselines: BaselineCache, config: Optional[CaptureConfig] = None):
        self.host = host
        self.baselines = baselines
        self.config = config or CaptureConfig()

    def clone(self, node: Optional[LiveNode]) -> Optional[NodeSnapshot]:
        snapshot, pending = self.clone_node(node)
        if pending is None:
            return snapshot

        # explicit stack so deeply nested pages do not hit the recursion limit
        stack = [pending]
        while True:
            current = stack[-1]
            child = next(current.remaining, None)
            if child is not None:
                snapshot, pending = self.clone_node(child)
                if pending is not None:
                    stack.append(pending)
                elif snapshot is not None:
                    current.children.append(snapshot)
                continue

            stack.pop()
            snapshot = current.finish()
            if not stack:
                return snapshot
            stack[-1].children.append(snapshot)

    def clone_node(self, node: Optional[LiveNode]) -> Tuple[Optional[NodeSnapshot], Optional[_PendingElement]]:
        """Clone one node; elements with children come back pending."""
        if is_ignored_node(node, self.config.ignored_tags, self.config.inline_tags):
            return None, None

        if isinstance(node, LiveText):
            return TextSnapshot(node.text), None

        if not isinstance(node, LiveElement):
            return None, None

        if matches_tag_name(node, "img"):
            return self.clone_image(node), None

        style_diff = None
        if is_style_bearing_tag(node, self.config.no_style_tags):
            style_diff = self.style_diff(node)
        return None, _PendingElement(node, style_diff)

    def clone_image(self, node: LiveElement) -> ElementSnapshot:
        attributes = {
            name: node.attributes[name]
            for name in self.config.image_attributes
            if name in node.attributes
        }
        return ElementSnapshot(tag="img", attributes=attributes)

    def style_diff(self, node: LiveElement) -> Dict[str, str]:
        computed = self.host.compute_style(node)
        if computed is None:
            return {}
        baseline = self.baselines.for_element(node)

        diff: Dict[str, str] = {}
        for idx in range(computed.property_count):
            name = computed.property_name_at(idx)
            value = computed.value_of(name)
            if is_empty_value(value):
                continue
            if baseline is not None and value == baseline.value_of(name):
                continue
            diff[name] = value
        return diff


def clone_tree(root: LiveNode, host: Host, baselines: BaselineCache, config: Optional[CaptureConfig] = None) -> Optional[NodeSnapshot]:
    return TreeCloner(host, baselines, config).clone(root)
