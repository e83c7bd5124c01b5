"""Workflow pattern rules and loader exports."""

from .builtin import BUILTIN_RULES
from .loader import PatternLoadError, PatternRuleLoader, load_pattern_rules
from .models import KeywordPatternRule, PatternRule, command_mentions

__all__ = [
    "BUILTIN_RULES",
    "KeywordPatternRule",
    "PatternLoadError",
    "PatternRule",
    "PatternRuleLoader",
    "command_mentions",
    "load_pattern_rules",
]
