import asyncio
import logging
from typing import Optional

from .assembler import DocumentAssembler, render_degraded
from .baseline import BaselineCache
from .cloner import TreeCloner
from .config import CaptureConfig
from .dom import Host, LiveDocument
from .stylesheets import StylesheetLoader

logger = logging.getLogger(__name__)


async def capture_styled_snapshot(
    document: LiveDocument,
    host: Host,
    config: Optional[CaptureConfig] = None,
) -> str:
    """
    Serialize a self-contained, styled copy of ``document``.

    Stylesheet acquisition is scheduled first and runs while the tree is
    cloned; the two meet at assembly. Any failure produces a minimal document
    describing the error instead of raising, unless ``config.raise_errors``.
    """
    config = config or CaptureConfig()
    acquisition = None
    try:
        loader = StylesheetLoader(host, config)
        acquisition = asyncio.ensure_future(loader.load_all(document.stylesheets))

        cloner = TreeCloner(host, BaselineCache(host), config)
        root = cloner.clone(document.root)
        logger.debug("cloned tree using %d default style baselines", len(cloner.baselines))

        rule_lists = await acquisition
        return DocumentAssembler(document.doctype).assemble(root, rule_lists)
    except Exception as exc:
        if acquisition is not None and not acquisition.done():
            acquisition.cancel()
            await asyncio.gather(acquisition, return_exceptions=True)
        if config.raise_errors:
            raise
        logger.exception("capture failed, emitting degraded document")
        return render_degraded(exc)
