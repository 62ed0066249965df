"""
Encounter - the line items of one patient visit and their total.

Each line is a priced Selection. Every change builds a new Selection,
reprices it and swaps it into place, so a stored price always matches its
modifiers. An Encounter belongs to a single session and is not shared.
"""
from datetime import date
from decimal import Decimal
from typing import Optional

import pandas as pd

from ..config.logging_config import get_logger
from .models import Code, PriceBreakdown, Selection
from .price_calculator import PriceCalculator, encounter_total
from .selection import UnknownModifierError, clear_slot, new_selection, set_slot

logger = get_logger(__name__)


class Encounter:
    """Mutable list of priced lines with a running total."""

    def __init__(self, calculator: Optional[PriceCalculator] = None):
        self.calculator = calculator or PriceCalculator()
        self.lines: list[Selection] = []

    def __len__(self) -> int:
        return len(self.lines)

    def _line(self, index: int) -> Selection:
        if not 0 <= index < len(self.lines):
            raise IndexError(f"Encounter has no line {index}")
        return self.lines[index]

    def _commit(self, index: int, selection: Selection) -> Selection:
        priced = self.calculator.price_selection(selection)
        self.lines[index] = priced
        logger.debug("Line %d (%s) repriced to %s", index, priced.code.code, priced.price)
        return priced

    def add_code(self, code: Code) -> int:
        """Append a code with no modifiers. Returns the new line index."""
        self.lines.append(self.calculator.price_selection(new_selection(code)))
        return len(self.lines) - 1

    def remove_line(self, index: int) -> Selection:
        """Remove a line and return it."""
        self._line(index)
        return self.lines.pop(index)

    def set_modifier(self, index: int, slot_index: int, modifier_id: int, as_of: Optional[date] = None) -> Selection:
        """Pick a modifier (by id) for a slot on a line. Later slots are cleared."""
        selection = self._line(index)
        modifier = selection.code.get_modifier(modifier_id)
        if modifier is None:
            raise UnknownModifierError(modifier_id, selection.code)
        return self._commit(index, set_slot(selection, slot_index, modifier, as_of=as_of))

    def clear_modifier(self, index: int, slot_index: int) -> Selection:
        """Clear a slot and every later slot on a line."""
        return self._commit(index, clear_slot(self._line(index), slot_index))

    def breakdown(self, index: int) -> PriceBreakdown:
        selection = self._line(index)
        return self.calculator.breakdown(selection.code, selection.selected_modifiers)

    @property
    def total(self) -> Decimal:
        return encounter_total(self.lines)

    @property
    def warnings(self) -> list[str]:
        """Warnings from every line, without duplicates."""
        collected = []
        for index in range(len(self.lines)):
            for warning in self.breakdown(index).warnings:
                if warning not in collected:
                    collected.append(warning)
        return collected

    def to_frame(self) -> pd.DataFrame:
        """Export the lines as a table."""
        return pd.DataFrame(
            [{
                'Code': line.code.code,
                'Description': line.code.description,
                'Base Price': str(line.code.amount),
                'Modifier 1': line.modifier_at(0).modifier_code if line.modifier_at(0) else '',
                'Modifier 2': line.modifier_at(1).modifier_code if line.modifier_at(1) else '',
                'Modifier 3': line.modifier_at(2).modifier_code if line.modifier_at(2) else '',
                'Price': str(line.price),
            } for line in self.lines],
            columns=['Code', 'Description', 'Base Price', 'Modifier 1', 'Modifier 2', 'Modifier 3', 'Price'],
        )
