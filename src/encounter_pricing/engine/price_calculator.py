"""
Price Calculator - Folds a code's selected modifiers over its base price.

Modifiers apply left to right to the running price, so modifier 2 sees the
price after modifier 1. The arithmetic for each modifier comes from the
ModifierRuleTable. Prices are not clamped at zero unless a price floor is
configured.
"""
from dataclasses import replace
from decimal import MAX_EMAX, MIN_EMIN, ROUND_HALF_UP, Context, Decimal, localcontext
from typing import Iterable, Optional, Sequence

from ..config.logging_config import get_logger
from ..config.settings import Settings, get_settings
from .models import Code, Modifier, PriceBreakdown, Selection
from .modifier_rules import ModifierRuleTable

logger = get_logger(__name__)

CENTS = Decimal("0.01")

# Significant digits kept for running prices; the final rounding widens as needed
FOLD_PRECISION = 60


def _money(value: Decimal) -> str:
    return f"${value:,.2f}"


class PriceCalculator:
    """
    Pure pricing of one code and its ordered modifiers.

    Holds only read-only configuration, so one instance can be shared
    between encounters and sessions.
    """

    def __init__(
        self,
        rule_table: Optional[ModifierRuleTable] = None,
        price_floor: Optional[Decimal] = None,
        quantum: Decimal = CENTS,
    ):
        self.rule_table = rule_table or ModifierRuleTable()
        self.price_floor = price_floor
        self.quantum = quantum

    def breakdown(self, code: Code, modifiers: Sequence[Modifier] = ()) -> PriceBreakdown:
        """
        Price a code with full traceability.

        Args:
            code: Code whose amount is the starting price
            modifiers: selected modifiers in slot order

        Returns:
            PriceBreakdown with final price, trace and warnings
        """
        with localcontext() as ctx:
            ctx.prec = FOLD_PRECISION
            ctx.Emax = MAX_EMAX
            ctx.Emin = MIN_EMIN
            return self._breakdown(code, modifiers, ctx)

    def _breakdown(self, code: Code, modifiers: Sequence[Modifier], ctx: Context) -> PriceBreakdown:
        running = code.amount
        result = PriceBreakdown(code_id=code.id, base_price=code.amount, price=code.amount)
        result.add_trace("Base Price", f"Code {code.code}", _money(running))

        for slot, modifier in enumerate(modifiers, start=1):
            rule, recognized = self.rule_table.rule_for(modifier.modifier_type)
            if not recognized:
                warning = (
                    f"Unrecognized modifier type '{modifier.modifier_type}' on modifier "
                    f"{modifier.modifier_code}; applied {rule} rule"
                )
                result.add_warning(warning)
                logger.warning("%s (code %s)", warning, code.code)

            previous = running
            running = self.rule_table.apply(rule, running, modifier.amount)
            result.rules_applied.append(f"{modifier.modifier_code}:{rule}")
            result.add_trace(
                f"Modifier {slot}",
                f"{modifier.modifier_code} ({modifier.modifier_type or 'untyped'}) {rule} {modifier.amount}: "
                f"{_money(previous)} → {_money(running)}",
                _money(running),
            )
            logger.debug("Code %s modifier %s: %s -> %s", code.code, modifier.modifier_code, previous, running)

        if self.price_floor is not None and running < self.price_floor:
            warning = f"Price {_money(running)} raised to floor {_money(self.price_floor)} for code {code.code}"
            result.add_warning(warning)
            result.add_trace("Price Floor", f"Enforced floor {_money(self.price_floor)}", _money(self.price_floor))
            logger.warning(warning)
            running = self.price_floor

        # quantize needs room for every digit down to the quantum
        ctx.prec = max(ctx.prec, running.adjusted() - self.quantum.as_tuple().exponent + 2)
        result.price = running.quantize(self.quantum, rounding=ROUND_HALF_UP)
        result.add_trace("Final Price", f"Rounded to {self.quantum}", _money(result.price))
        return result

    def price(self, code: Code, modifiers: Sequence[Modifier] = ()) -> Decimal:
        return self.breakdown(code, modifiers).price

    def price_selection(self, selection: Selection) -> Selection:
        """Return a copy of the selection with its price computed."""
        return replace(selection, price=self.price(selection.code, selection.selected_modifiers))


def build_calculator(settings: Optional[Settings] = None) -> PriceCalculator:
    """Construct the calculator described by the settings."""
    settings = settings or get_settings()
    return PriceCalculator(
        rule_table=ModifierRuleTable.from_csv(settings.modifier_rules_path),
        price_floor=settings.price_floor,
    )


def compute_price(
    code: Code,
    selected_modifiers: Sequence[Modifier] = (),
    calculator: Optional[PriceCalculator] = None,
) -> Decimal:
    """Price a code with its selected modifiers, applied in slot order."""
    return (calculator or PriceCalculator()).price(code, selected_modifiers)


def encounter_total(selections: Iterable[Selection]) -> Decimal:
    """Sum of line prices. Every selection must already be priced."""
    total = Decimal("0.00")
    for selection in selections:
        if selection.price is None:
            raise ValueError(f"Selection for code {selection.code.code} has not been priced")
        total += selection.price
    return total
