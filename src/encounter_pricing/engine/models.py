"""
Data models for the encounter pricing engine.

Catalog data (Code, Modifier) is immutable reference data. A Selection is a
value: every change produces a new Selection that the caller swaps in.
"""
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Optional


def to_decimal(value) -> Decimal:
    """Convert a catalog amount to Decimal without float noise."""
    if isinstance(value, Decimal):
        return value
    if value is None or value == "":
        return Decimal("0")
    return Decimal(str(value))


def _parse_date(value) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, date):
        return value
    # Catalog dates may carry a time component ("2024-01-01T00:00:00Z")
    return date.fromisoformat(str(value)[:10])


def _in_window(start: Optional[date], end: Optional[date], on_date: date) -> bool:
    if start and on_date < start:
        return False
    if end and on_date > end:
        return False
    return True


@dataclass(frozen=True)
class Modifier:
    """A catalog modifier that adjusts the price of a code."""
    id: int
    amount: Decimal
    modifier_type: str
    modifier_code: str
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    @classmethod
    def from_dict(cls, row: dict) -> 'Modifier':
        """Create a Modifier from a catalog JSON object."""
        return cls(
            id=int(row['id']),
            amount=to_decimal(row.get('amount')),
            modifier_type=str(row.get('modifier_type') or '').strip(),
            modifier_code=str(row.get('modifier_code') or '').strip(),
            start_date=_parse_date(row.get('start_date')),
            end_date=_parse_date(row.get('end_date')),
        )

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'amount': str(self.amount),
            'modifier_type': self.modifier_type,
            'modifier_code': self.modifier_code,
            'start_date': self.start_date.isoformat() if self.start_date else None,
            'end_date': self.end_date.isoformat() if self.end_date else None,
        }

    def is_active(self, on_date: date) -> bool:
        """True when on_date falls inside the validity window."""
        return _in_window(self.start_date, self.end_date, on_date)


@dataclass(frozen=True)
class Code:
    """A billable procedure code with its base price and available modifiers."""
    id: int
    code: str
    description: str
    amount: Decimal
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    modifiers: tuple[Modifier, ...] = ()

    @classmethod
    def from_dict(cls, row: dict) -> 'Code':
        """Create a Code (and its modifiers) from a catalog JSON object."""
        return cls(
            id=int(row['id']),
            code=str(row.get('code') or '').strip(),
            description=str(row.get('description') or ''),
            amount=to_decimal(row.get('amount')),
            start_date=_parse_date(row.get('start_date')),
            end_date=_parse_date(row.get('end_date')),
            modifiers=tuple(Modifier.from_dict(m) for m in row.get('modifiers') or []),
        )

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'code': self.code,
            'description': self.description,
            'amount': str(self.amount),
            'start_date': self.start_date.isoformat() if self.start_date else None,
            'end_date': self.end_date.isoformat() if self.end_date else None,
            'modifiers': [m.to_dict() for m in self.modifiers],
        }

    def is_active(self, on_date: date) -> bool:
        """True when on_date falls inside the validity window."""
        return _in_window(self.start_date, self.end_date, on_date)

    def get_modifier(self, modifier_id: int) -> Optional[Modifier]:
        """Look up one of this code's modifiers by id."""
        for modifier in self.modifiers:
            if modifier.id == modifier_id:
                return modifier
        return None

    @property
    def label(self) -> str:
        return f"{self.code} - {self.description} (${self.amount:.2f})"


@dataclass(frozen=True)
class Selection:
    """
    One encounter line: a code plus its ordered modifier picks.

    selected_modifiers[0..2] are "modifier 1..3". price is None until the
    price calculator has priced this exact (code, modifiers) pair.
    """
    code: Code
    selected_modifiers: tuple[Modifier, ...] = ()
    price: Optional[Decimal] = None

    @property
    def modifier_ids(self) -> list[int]:
        return [m.id for m in self.selected_modifiers]

    def modifier_at(self, slot_index: int) -> Optional[Modifier]:
        """The modifier held in a slot, or None when the slot is empty."""
        if 0 <= slot_index < len(self.selected_modifiers):
            return self.selected_modifiers[slot_index]
        return None


@dataclass
class TraceStep:
    """A single step in the price computation trace."""
    step: str
    description: str
    value: Optional[str] = None


@dataclass
class PriceBreakdown:
    """Result of pricing one code with its modifiers."""
    code_id: int
    base_price: Decimal
    price: Decimal
    rules_applied: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    trace: list[TraceStep] = field(default_factory=list)

    def add_trace(self, step: str, description: str, value: str = None):
        """Add a step to the trace."""
        self.trace.append(TraceStep(step=step, description=description, value=value))

    def add_warning(self, warning: str):
        """Add a warning, skipping exact duplicates."""
        if warning not in self.warnings:
            self.warnings.append(warning)

    def get_trace_text(self) -> str:
        """Get human-readable trace as formatted text."""
        lines = []
        for t in self.trace:
            if t.value:
                lines.append(f"→ {t.step}: {t.description} = {t.value}")
            else:
                lines.append(f"→ {t.step}: {t.description}")
        return "\n".join(lines)
