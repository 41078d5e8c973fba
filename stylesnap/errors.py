"""
Failure kinds raised while taking a snapshot.

AccessDenied and NetworkError are always recovered inside stylesheet
acquisition. Malformed selectors surface as soupsieve's SelectorSyntaxError
and are treated as matching nothing.
"""

from typing import Optional

from soupsieve import SelectorSyntaxError

__all__ = ["SnapshotError", "AccessDenied", "NetworkError", "SelectorSyntaxError"]


class SnapshotError(Exception):
    pass


class AccessDenied(SnapshotError):
    def __init__(self, sheet_index: int, href: Optional[str] = None):
        self.sheet_index = sheet_index
        self.href = href
        super().__init__(f"rules of stylesheet {sheet_index} ({href or 'embedded'}) are not readable")


class NetworkError(SnapshotError):
    def __init__(self, url: str, reason: str = ""):
        self.url = url
        self.reason = reason
        message = f"failed to fetch {url}"
        if reason:
            message += f": {reason}"
        super().__init__(message)
