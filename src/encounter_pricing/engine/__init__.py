"""Engine subpackage - modifier selection and price computation."""
from .models import Code, Modifier, Selection, PriceBreakdown
from .selection import (
    available_modifiers,
    is_slot_enabled,
    set_slot,
    clear_slot,
    new_selection,
    offered_modifiers,
    SelectionError,
)
from .price_calculator import PriceCalculator, compute_price, encounter_total, build_calculator
from .encounter import Encounter

__all__ = [
    'Code', 'Modifier', 'Selection', 'PriceBreakdown',
    'available_modifiers', 'is_slot_enabled', 'set_slot', 'clear_slot', 'new_selection', 'offered_modifiers',
    'SelectionError', 'PriceCalculator', 'compute_price', 'encounter_total',
    'build_calculator', 'Encounter',
]
