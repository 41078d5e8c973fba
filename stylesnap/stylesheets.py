import asyncio
import logging
from typing import List, Optional, Sequence, Tuple

from .config import CaptureConfig
from .dom import Host, ParsedRule, SheetSource
from .errors import AccessDenied, NetworkError
from .model import RuleList, StyleRuleRecord

logger = logging.getLogger(__name__)


class StylesheetLoader:
    """
    Collects the rule list of every stylesheet attached to the page.

    Rules are read directly when the page allows it. Otherwise the sheet is
    downloaded, then downloaded again through the proxy; a sheet that cannot
    be obtained at all contributes no rules.
    """

    def __init__(self, host: Host, config: Optional[CaptureConfig] = None):
        self.host = host
        self.config = config or CaptureConfig()

    async def load_all(self, sheets: Sequence[SheetSource]) -> List[RuleList]:
        results = await asyncio.gather(*(self.load(idx, sheet) for idx, sheet in enumerate(sheets)))
        return list(results)

    async def load(self, sheet_index: int, sheet: SheetSource) -> RuleList:
        try:
            rules = self.read_rules(sheet_index, sheet)
            source = "direct"
        except AccessDenied as exc:
            logger.debug("%s, falling back to download", exc)
            rules, source = await self.download_rules(sheet_index, sheet)

        records = [
            StyleRuleRecord(
                sheet_index=sheet_index,
                rule_index=rule_index,
                selector_text=rule.selector_text,
                rule_text=rule.rule_text,
            )
            for rule_index, rule in enumerate(rules)
        ]
        return RuleList(sheet_index=sheet_index, records=records, source=source)

    def read_rules(self, sheet_index: int, sheet: SheetSource) -> List[ParsedRule]:
        if sheet.rules is None:
            raise AccessDenied(sheet_index, sheet.href)
        return list(sheet.rules)

    async def download_rules(self, sheet_index: int, sheet: SheetSource) -> Tuple[List[ParsedRule], str]:
        if not sheet.href:
            logger.warning("stylesheet %d has no address to download from; skipping", sheet_index)
            return [], "none"

        try:
            text = await self.host.fetch_text(sheet.href)
            source = "fetch"
        except NetworkError as exc:
            if not self.config.use_proxy:
                logger.warning("stylesheet %d skipped: %s", sheet_index, exc)
                return [], "none"
            logger.info("%s, retrying through proxy", exc)
            try:
                text = await self.host.fetch_text(self.config.proxied(sheet.href))
                source = "proxy"
            except NetworkError as proxy_exc:
                logger.warning("stylesheet %d skipped: %s", sheet_index, proxy_exc)
                return [], "none"

        rules = await self.host.parse_stylesheet_text(text)
        return rules, source
