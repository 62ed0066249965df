from datetime import date
from decimal import Decimal

import pytest

from encounter_pricing.engine import PriceCalculator
from encounter_pricing.engine.models import Code, Modifier


def make_modifier(id, amount, modifier_type="ADD", modifier_code=None, start_date=None, end_date=None):
    return Modifier(
        id=id,
        amount=Decimal(str(amount)),
        modifier_type=modifier_type,
        modifier_code=modifier_code or f"M{id}",
        start_date=start_date,
        end_date=end_date,
    )


@pytest.fixture
def office_visit():
    """Code {amount: 100} with additive, percent, factor, override and LMTS modifiers."""
    return Code(
        id=1,
        code="99213",
        description="Office visit",
        amount=Decimal("100"),
        modifiers=(
            make_modifier(1, "-10", "ADD", "25"),
            make_modifier(2, "5", "ADD", "59"),
            make_modifier(3, "-50", "PCT", "52"),
            make_modifier(4, "1.5", "FCTR", "22"),
            make_modifier(5, "0", "LMTS", "GA"),
            make_modifier(6, "80", "OVRD", "XU"),
            make_modifier(7, "12.50", "ADD", "95", start_date=date(2020, 1, 1), end_date=date(2023, 12, 31)),
        ),
    )


@pytest.fixture
def venipuncture():
    return Code(
        id=2,
        code="36415",
        description="Routine venipuncture",
        amount=Decimal("40"),
        modifiers=(make_modifier(21, "10", "PCT", "90"),),
    )


@pytest.fixture
def calculator():
    return PriceCalculator()


def modifier(code: Code, modifier_id: int) -> Modifier:
    return code.get_modifier(modifier_id)
