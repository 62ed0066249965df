"""
Modifier selection rules.

Decides which modifiers are offered for a code and keeps a Selection's
modifier slots dense: slot 2 needs slot 1, slot 3 needs slot 2. All
operations return new Selection values and leave their input untouched.
"""
from dataclasses import replace
from datetime import date
from typing import Optional

from .models import Code, Modifier, Selection

MAX_MODIFIER_SLOTS = 3

# Modifier types that are never offered to the user
EXCLUDED_MODIFIER_TYPES = frozenset({'LMTS'})


class SelectionError(ValueError):
    """Base class for rejected modifier selections."""


class InvalidSlotError(SelectionError):
    def __init__(self, slot_index):
        super().__init__(
            f"Modifier slot {slot_index!r} is out of range (expected 0-{MAX_MODIFIER_SLOTS - 1})"
        )
        self.slot_index = slot_index


class SlotNotEnabledError(SelectionError):
    def __init__(self, slot_index: int):
        super().__init__(
            f"Modifier {slot_index + 1} cannot be set before modifier {slot_index} is set"
        )
        self.slot_index = slot_index


class UnknownModifierError(SelectionError):
    def __init__(self, modifier_id, code: Code):
        super().__init__(f"Modifier {modifier_id} is not available for code {code.code}")
        self.modifier_id = modifier_id


class ExcludedModifierError(SelectionError):
    def __init__(self, modifier: Modifier):
        super().__init__(
            f"Modifier {modifier.modifier_code} has type {modifier.modifier_type} and cannot be selected"
        )
        self.modifier_id = modifier.id


class InactiveModifierError(SelectionError):
    def __init__(self, modifier: Modifier, as_of: date):
        super().__init__(
            f"Modifier {modifier.modifier_code} is not valid on {as_of.isoformat()}"
        )
        self.modifier_id = modifier.id
        self.as_of = as_of


class DuplicateModifierError(SelectionError):
    def __init__(self, modifier: Modifier, existing_slot: int):
        super().__init__(
            f"Modifier {modifier.modifier_code} is already selected as modifier {existing_slot + 1}"
        )
        self.modifier_id = modifier.id
        self.existing_slot = existing_slot


def is_selectable(modifier: Modifier) -> bool:
    return modifier.modifier_type not in EXCLUDED_MODIFIER_TYPES


def available_modifiers(code: Code, as_of: Optional[date] = None) -> tuple[Modifier, ...]:
    """
    Modifiers the user may pick for a code, in catalog order.

    LMTS modifiers are always removed. When as_of is given, modifiers
    outside their validity window on that date are removed too.
    """
    return tuple(
        m for m in code.modifiers
        if is_selectable(m) and (as_of is None or m.is_active(as_of))
    )


def _check_slot(slot_index) -> int:
    # bool is an int subclass; True/False are not slot numbers
    if isinstance(slot_index, bool) or not isinstance(slot_index, int):
        raise InvalidSlotError(slot_index)
    if not 0 <= slot_index < MAX_MODIFIER_SLOTS:
        raise InvalidSlotError(slot_index)
    return slot_index


def is_slot_enabled(selection: Selection, slot_index: int) -> bool:
    """Slot 0 is always enabled; slot k is enabled only when slot k-1 holds a modifier."""
    slot_index = _check_slot(slot_index)
    if slot_index == 0:
        return True
    return selection.modifier_at(slot_index - 1) is not None


def new_selection(code: Code) -> Selection:
    """An empty, unpriced selection for a code."""
    return Selection(code=code)


def set_slot(
    selection: Selection,
    slot_index: int,
    modifier: Modifier,
    as_of: Optional[date] = None,
) -> Selection:
    """
    Put a modifier into a slot and clear every later slot.

    Later slots depend on earlier ones, so changing modifier 1 drops
    modifiers 2 and 3. When as_of is given, a modifier outside its
    validity window on that date is rejected. The returned Selection is
    unpriced.
    """
    slot_index = _check_slot(slot_index)
    if not is_slot_enabled(selection, slot_index):
        raise SlotNotEnabledError(slot_index)

    code = selection.code
    catalog_modifier = code.get_modifier(modifier.id)
    if catalog_modifier is None:
        raise UnknownModifierError(modifier.id, code)
    if not is_selectable(catalog_modifier):
        raise ExcludedModifierError(catalog_modifier)
    if as_of is not None and not catalog_modifier.is_active(as_of):
        raise InactiveModifierError(catalog_modifier, as_of)

    kept = selection.selected_modifiers[:slot_index]
    for existing_slot, existing in enumerate(kept):
        if existing.id == catalog_modifier.id:
            raise DuplicateModifierError(catalog_modifier, existing_slot)

    return replace(selection, selected_modifiers=kept + (catalog_modifier,), price=None)


def clear_slot(selection: Selection, slot_index: int) -> Selection:
    """Clear a slot and every slot after it. The returned Selection is unpriced."""
    slot_index = _check_slot(slot_index)
    return replace(
        selection,
        selected_modifiers=selection.selected_modifiers[:slot_index],
        price=None,
    )


def offered_modifiers(
    selection: Selection,
    slot_index: int,
    as_of: Optional[date] = None,
) -> tuple[Modifier, ...]:
    """
    Modifiers to offer for one slot of a selection.

    Empty while the slot is disabled. Modifiers held by earlier slots are
    left out since picking them again would be rejected.
    """
    if not is_slot_enabled(selection, slot_index):
        return ()
    held = {m.id for m in selection.selected_modifiers[:slot_index]}
    return tuple(m for m in available_modifiers(selection.code, as_of=as_of) if m.id not in held)
