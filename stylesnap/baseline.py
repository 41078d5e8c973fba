import logging
from typing import Dict, Optional

from .dom import Host, LiveElement, StyleLookup
from .model import IdentityKey

logger = logging.getLogger(__name__)


class BaselineCache:
    """
    Default computed style per identity class, memoized for one capture.

    Create a new cache for every capture; instances must not be shared
    between captures running at the same time.
    """

    def __init__(self, host: Host):
        self.host = host
        self._baselines: Dict[IdentityKey, Optional[StyleLookup]] = {}
        self.misses = 0

    def get(self, identity: IdentityKey) -> Optional[StyleLookup]:
        if identity not in self._baselines:
            self.misses += 1
            baseline = self.host.compute_default_style(identity)
            if baseline is None:
                logger.debug("no default style for %s; every property counts as set", identity)
            self._baselines[identity] = baseline
        return self._baselines[identity]

    def for_element(self, element: LiveElement) -> Optional[StyleLookup]:
        return self.get(element.identity)

    def __len__(self) -> int:
        return len(self._baselines)

    def __contains__(self, identity: IdentityKey) -> bool:
        return identity in self._baselines
