"""
Explain lines of a quote.

Cost aggregation writes one STEP per cost bucket, META lines for amounts that
are already counted inside another bucket, and WARNING lines for suspicious
input. The quote engine closes the list with a CHECK line carrying the margin
level. Rendering keeps insertion order.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Iterator, List, Optional

from ..engine.context import MarginLevel, Money, cents

D = Decimal

_CODE_RE = re.compile(r"^[A-Z][A-Z0-9_]{2,63}$")
_MAX_TEXT = 240


class BreakdownKind(str, Enum):
    STEP = "STEP"
    CHECK = "CHECK"
    WARNING = "WARNING"
    META = "META"


def _code(code: str) -> str:
    code = code.strip()
    if not _CODE_RE.match(code):
        raise ValueError(f"invalid explain code '{code}' (UPPER_SNAKE, 3-64 chars)")
    return code


def _label(label: str) -> str:
    text = label.strip()
    if not text:
        raise ValueError("explain label must be non-empty")
    if any(c in text for c in "\n\r\t"):
        raise ValueError("explain label must be a single line")
    if len(text) > _MAX_TEXT:
        raise ValueError(f"explain label too long (max {_MAX_TEXT} chars)")
    return text


@dataclass(frozen=True)
class BreakdownEntry:
    kind: BreakdownKind
    code: str
    label: str
    amount: Optional[Money] = None
    note: Optional[str] = None
    level: Optional[MarginLevel] = None

    @property
    def text(self) -> str:
        out = self.label if self.amount is None else f"{self.label}: {self.amount}"
        return out if not self.note else f"{out} ({self.note})"


@dataclass
class Breakdown:
    """Ordered explain entries of one calculation; iterating yields rendered lines."""

    _entries: List[BreakdownEntry] = field(default_factory=list)

    @property
    def entries(self) -> List[BreakdownEntry]:
        return list(self._entries)

    def codes(self) -> List[str]:
        return [e.code for e in self._entries]

    def as_strings(self) -> List[str]:
        return BreakdownBuilder().build(self)

    def __iter__(self) -> Iterator[str]:
        return iter(self.as_strings())

    def __len__(self) -> int:
        return len(self._entries)

    def add_step(self, code: str, label: str, amount: Optional[Money] = None) -> None:
        self._add(BreakdownKind.STEP, code, label, amount=amount)

    def add_meta(self, code: str, label: str, amount: Optional[Money] = None, note: Optional[str] = None) -> None:
        self._add(BreakdownKind.META, code, label, amount=amount, note=note)

    def add_warning(self, code: str, label: str) -> None:
        self._add(BreakdownKind.WARNING, code, label)

    def add_margin_check(self, margin_percent, level) -> None:
        margin = cents(D(str(margin_percent)))
        self._add(BreakdownKind.CHECK, "MARGIN_LEVEL", f"Marża {margin}%", level=MarginLevel(level))

    def _add(self, kind: BreakdownKind, code: str, label: str, **extra) -> None:
        self._entries.append(BreakdownEntry(kind=kind, code=_code(code), label=_label(label), **extra))


class BreakdownBuilder:
    """Renders entries: STEP as-is, other kinds prefixed with their kind or margin level."""

    def build(self, breakdown: Breakdown) -> List[str]:
        if not isinstance(breakdown, Breakdown):
            raise TypeError("BreakdownBuilder.build expects a Breakdown instance")
        return [self._render(e) for e in breakdown.entries]

    def _render(self, e: BreakdownEntry) -> str:
        if e.kind == BreakdownKind.CHECK:
            return f"{e.level.value}: {e.text}"
        if e.kind == BreakdownKind.STEP:
            return e.text
        return f"{e.kind.value}: {e.text}"
