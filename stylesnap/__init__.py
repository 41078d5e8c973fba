from .assembler import DocumentAssembler, render_degraded
from .baseline import BaselineCache
from .capture import capture_styled_snapshot
from .cloner import TreeCloner, clone_tree
from .config import CaptureConfig
from .dom import Host, LiveComment, LiveDocument, LiveElement, LiveText, ParsedRule, SheetSource, StyleLookup
from .errors import AccessDenied, NetworkError, SelectorSyntaxError, SnapshotError
from .model import ElementSnapshot, IdentityKey, RuleList, StyleRuleRecord, TextSnapshot
from .stylesheets import StylesheetLoader

__version__ = "0.1.0"
