"""SplitSpec: split a composite descriptor into named component fields."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Mapping

from ..core.errors import MalformedDescriptorError


@dataclass(frozen=True)
class SplitRule:
    """Split one field on ``delimiter`` into exactly ``len(fields)`` parts.

    ``source`` names the field to split. When omitted, the first rule
    splits the descriptor and later rules split the last field produced
    by the rule before them.
    """

    delimiter: str
    fields: tuple[str, ...]
    source: str | None = None

    def __post_init__(self) -> None:
        if not self.delimiter:
            raise ValueError("SplitRule delimiter must be a non-empty string.")
        fields = tuple(self.fields)
        if len(fields) < 2:
            raise ValueError(
                f"SplitRule on '{self.delimiter}' needs at least two output "
                f"fields, got {list(fields)}."
            )
        if len(set(fields)) != len(fields):
            raise ValueError(f"SplitRule fields must be unique, got {list(fields)}.")
        object.__setattr__(self, "fields", fields)


class SplitSpec:
    """Ordered list of SplitRules applied left to right.

    Usage::

        spec = SplitSpec([
            SplitRule(":", ("chrom", "rest")),
            SplitRule("-", ("start", "end")),
        ])
        spec.parse("chr1:100-200")
        # {'chrom': 'chr1', 'start': '100', 'end': '200'}
        spec.join({"chrom": "chr1", "start": "100", "end": "200"})
        # 'chr1:100-200'
    """

    DESCRIPTOR = "__descriptor__"

    def __init__(self, rules: Iterable[SplitRule]) -> None:
        rules = list(rules)
        if not rules:
            raise ValueError("SplitSpec needs at least one rule.")

        resolved: list[SplitRule] = []
        available = {self.DESCRIPTOR}
        consumed: set[str] = set()
        previous: SplitRule | None = None
        for rule in rules:
            if rule.source is None:
                source = self.DESCRIPTOR if previous is None else previous.fields[-1]
                rule = SplitRule(rule.delimiter, rule.fields, source)
            if rule.source not in available:
                raise ValueError(
                    f"SplitRule source '{rule.source}' is not produced by an "
                    f"earlier rule. Available: {sorted(available - {self.DESCRIPTOR})}"
                )
            if rule.source in consumed:
                raise ValueError(f"Field '{rule.source}' is split more than once.")
            clash = available.intersection(rule.fields)
            if clash:
                raise ValueError(f"SplitRule fields already defined: {sorted(clash)}")
            consumed.add(rule.source)
            available.update(rule.fields)
            resolved.append(rule)
            previous = rule

        self._rules = tuple(resolved)
        self._components = tuple(
            f for r in resolved for f in r.fields if f not in consumed
        )

    @classmethod
    def from_config(cls, rules: Iterable[Mapping[str, Any]]) -> SplitSpec:
        """Build from ``[{"delimiter": ":", "fields": [...], "source": ...}]``."""
        built = []
        for entry in rules:
            if "delimiter" not in entry or "fields" not in entry:
                raise ValueError(
                    f"Each split rule needs 'delimiter' and 'fields', got {dict(entry)}."
                )
            built.append(SplitRule(
                delimiter=str(entry["delimiter"]),
                fields=tuple(entry["fields"]),
                source=entry.get("source"),
            ))
        return cls(built)

    @property
    def rules(self) -> tuple[SplitRule, ...]:
        return self._rules

    @property
    def components(self) -> tuple[str, ...]:
        """Output field names (fields not consumed by a later rule)."""
        return self._components

    def parse(self, descriptor: Any, row: Any = None, column: str | None = None) -> dict[str, str]:
        """Split one descriptor value into its component fields."""
        if not isinstance(descriptor, str):
            raise MalformedDescriptorError(
                f"expected a string descriptor, got {descriptor!r}",
                stage="annotate", row=row, column=column,
            )
        values = {self.DESCRIPTOR: descriptor}
        for rule in self._rules:
            parts = values[rule.source].split(rule.delimiter)
            if len(parts) != len(rule.fields):
                raise MalformedDescriptorError(
                    f"descriptor {descriptor!r} has {len(parts) - 1} "
                    f"'{rule.delimiter}' delimiter(s) in "
                    f"{values[rule.source]!r}, expected {len(rule.fields) - 1}",
                    stage="annotate", row=row, column=column,
                )
            values.update(zip(rule.fields, parts))
        return {name: values[name] for name in self._components}

    def join(self, components: Mapping[str, Any]) -> str:
        """Rebuild the descriptor from its components (inverse of parse)."""
        missing = [c for c in self._components if c not in components]
        if missing:
            raise KeyError(f"Missing descriptor components: {missing}")
        values = {name: str(components[name]) for name in self._components}
        for rule in reversed(self._rules):
            values[rule.source] = rule.delimiter.join(values[f] for f in rule.fields)
        return values[self.DESCRIPTOR]
