from .parser import Rule, RuleKind, parse_rules
from .rewriter import Rewriter, rewrite_entry
from .url import rewrite_entry_url

__all__ = [
    "Rewriter",
    "Rule",
    "RuleKind",
    "parse_rules",
    "rewrite_entry",
    "rewrite_entry_url",
]
