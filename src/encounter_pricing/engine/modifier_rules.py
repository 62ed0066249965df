"""
Modifier Rules - Maps each modifier_type to the arithmetic it applies.

The table is loaded from modifier_rules.csv (modifier_type, rule, notes).
Every type resolves to exactly one rule; types missing from the table use
the fallback rule and are reported so pricing gaps stay visible.
"""
from decimal import Decimal
from pathlib import Path
from typing import Callable, Optional

import pandas as pd

from ..config.logging_config import get_logger

logger = get_logger(__name__)

HUNDRED = Decimal("100")


def _add(price: Decimal, amount: Decimal) -> Decimal:
    return price + amount


def _percent(price: Decimal, amount: Decimal) -> Decimal:
    return price + price * amount / HUNDRED


def _factor(price: Decimal, amount: Decimal) -> Decimal:
    return price * amount


def _override(price: Decimal, amount: Decimal) -> Decimal:
    return amount


RULES: dict[str, Callable[[Decimal, Decimal], Decimal]] = {
    'add': _add,
    'percent': _percent,
    'factor': _factor,
    'override': _override,
}

FALLBACK_RULE = 'add'

# Used when no modifier_rules.csv is available
DEFAULT_TYPE_RULES = {
    'ADD': 'add',
    'FLAT': 'add',
    'ADJ': 'add',
    'PCT': 'percent',
    'PERCENT': 'percent',
    'FCTR': 'factor',
    'MULT': 'factor',
    'OVRD': 'override',
}


class ModifierRuleTable:
    """
    Lookup from modifier_type to arithmetic rule.

    Types are matched case-insensitively after stripping whitespace.
    """

    def __init__(self, type_rules: Optional[dict[str, str]] = None, fallback_rule: str = FALLBACK_RULE):
        if fallback_rule not in RULES:
            raise ValueError(f"Unknown fallback rule '{fallback_rule}'")
        self.fallback_rule = fallback_rule
        self.type_rules: dict[str, str] = {}
        for modifier_type, rule in (type_rules if type_rules is not None else DEFAULT_TYPE_RULES).items():
            self._register(modifier_type, rule)

    def _register(self, modifier_type: str, rule: str):
        key = self._normalize(modifier_type)
        rule = str(rule).strip().lower()
        if not key:
            raise ValueError("Modifier rule row has an empty modifier_type")
        if rule not in RULES:
            raise ValueError(
                f"Unknown rule '{rule}' for modifier type '{modifier_type}'. "
                f"Expected one of: {', '.join(sorted(RULES))}"
            )
        if key in self.type_rules and self.type_rules[key] != rule:
            raise ValueError(f"Modifier type '{modifier_type}' is mapped to more than one rule")
        self.type_rules[key] = rule

    @staticmethod
    def _normalize(modifier_type) -> str:
        return str(modifier_type or '').strip().upper()

    @classmethod
    def from_csv(cls, path: Optional[Path], fallback_rule: str = FALLBACK_RULE) -> 'ModifierRuleTable':
        """Load the table from CSV, or use the built-in defaults if the file is missing."""
        if path is None or not Path(path).exists():
            logger.info("No modifier rules file at %s, using built-in defaults", path)
            return cls(fallback_rule=fallback_rule)

        df = pd.read_csv(path, dtype=str).fillna('')
        df.columns = [c.strip() for c in df.columns]
        missing = {'modifier_type', 'rule'} - set(df.columns)
        if missing:
            raise ValueError(f"{path} is missing columns: {', '.join(sorted(missing))}")

        table = cls(type_rules={}, fallback_rule=fallback_rule)
        for _, row in df.iterrows():
            if not row['modifier_type'].strip():
                continue
            table._register(row['modifier_type'], row['rule'])

        logger.info("Loaded %d modifier rules from %s", len(table.type_rules), path)
        return table

    def is_recognized(self, modifier_type: str) -> bool:
        return self._normalize(modifier_type) in self.type_rules

    def rule_for(self, modifier_type: str) -> tuple[str, bool]:
        """
        Resolve the rule for a modifier type.

        Returns (rule_name, recognized). Unrecognized types get the fallback rule.
        """
        key = self._normalize(modifier_type)
        if key in self.type_rules:
            return self.type_rules[key], True
        return self.fallback_rule, False

    def apply(self, rule: str, price: Decimal, amount: Decimal) -> Decimal:
        return RULES[rule](price, amount)

    def to_frame(self) -> pd.DataFrame:
        """Table contents for display."""
        return pd.DataFrame(
            [{'modifier_type': t, 'rule': r} for t, r in sorted(self.type_rules.items())],
            columns=['modifier_type', 'rule'],
        )
