"""Pattern rule loading utilities."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable

import yaml
from pydantic import ValidationError

from .builtin import BUILTIN_RULES
from .models import KeywordPatternRule, PatternRule


class PatternLoadError(RuntimeError):
    """Raised when one or more pattern rule files cannot be parsed."""


class PatternRuleLoader:
    """Loads keyword pattern rules from YAML files on disk."""

    def __init__(self, search_paths: Iterable[Path] | None = None) -> None:
        paths = [Path(path) for path in (search_paths or [])]
        self._search_paths: list[Path] = [path for path in paths if path.exists()]

    @property
    def search_paths(self) -> list[Path]:
        """Return the normalized search paths."""

        return list(self._search_paths)

    def load_all(self) -> dict[str, KeywordPatternRule]:
        """Load rules from all configured search paths.

        Later search paths override earlier ones when rule names collide. A
        file may hold a single rule mapping or a list of them.
        """

        if not self._search_paths:
            return {}

        rules: dict[str, KeywordPatternRule] = {}
        errors: list[str] = []

        for base in self._search_paths:
            for path in sorted(base.glob("*.yml")) + sorted(base.glob("*.yaml")):
                try:
                    document = yaml.safe_load(path.read_text(encoding="utf-8"))
                except yaml.YAMLError as exc:  # pragma: no cover - library type
                    errors.append(f"Failed to parse YAML in {path}: {exc}")
                    continue

                if document is None:
                    continue

                entries = document if isinstance(document, list) else [document]
                for entry in entries:
                    try:
                        rule = KeywordPatternRule.model_validate(entry)
                    except ValidationError as exc:
                        errors.append(f"Pattern rule validation error in {path}: {exc}")
                        continue
                    rules[rule.name] = rule

        if errors:
            raise PatternLoadError("; ".join(errors))

        return rules

    def rules(self) -> list[PatternRule]:
        """Built-in rules followed by loaded ones; a loaded rule replaces a built-in of the same name."""

        loaded = self.load_all()
        merged: dict[str, PatternRule] = {rule.name: rule for rule in BUILTIN_RULES}
        merged.update(loaded)
        return list(merged.values())


def load_pattern_rules(search_paths: Iterable[Path] | None = None) -> list[PatternRule]:
    """Convenience wrapper returning built-in plus on-disk rules."""

    loader = PatternRuleLoader(search_paths)
    return loader.rules()


__all__ = ["PatternLoadError", "PatternRuleLoader", "load_pattern_rules"]
