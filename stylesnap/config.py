from dataclasses import dataclass
from typing import FrozenSet, Tuple


DEFAULT_PROXY_URL = "https://cors-anywhere.herokuapp.com/"
DEFAULT_FETCH_TIMEOUT_MS = 30000

IGNORED_TAGS = frozenset({
    "script",
    "noscript",
    "style",
})

NO_STYLE_TAGS = frozenset({
    "base",
    "head",
    "html",
    "link",
    "meta",
    "noframes",
    "noscript",
    "param",
    "script",
    "style",
    "title",
})

INLINE_TAGS = frozenset({
    "a",
    "abbr",
    "b",
    "bdi",
    "bdo",
    "br",
    "button",
    "cite",
    "code",
    "data",
    "dfn",
    "em",
    "i",
    "img",
    "input",
    "kbd",
    "label",
    "mark",
    "q",
    "s",
    "samp",
    "select",
    "small",
    "span",
    "strong",
    "sub",
    "sup",
    "textarea",
    "time",
    "u",
    "var",
})

IMAGE_ATTRIBUTES = ("id", "alt", "width", "height", "class")

# tab, space, vertical tab, form feed, line feed, carriage return
BLANK_CHARACTERS = "\t \x0b\x0c\n\r"


@dataclass
class CaptureConfig:
    proxy_url: str = DEFAULT_PROXY_URL
    use_proxy: bool = True
    fetch_timeout_ms: int = DEFAULT_FETCH_TIMEOUT_MS
    raise_errors: bool = False
    ignored_tags: FrozenSet[str] = IGNORED_TAGS
    no_style_tags: FrozenSet[str] = NO_STYLE_TAGS
    inline_tags: FrozenSet[str] = INLINE_TAGS
    image_attributes: Tuple[str, ...] = IMAGE_ATTRIBUTES

    def proxied(self, url: str) -> str:
        return self.proxy_url + url
