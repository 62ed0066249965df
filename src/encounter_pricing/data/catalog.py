"""
Code Catalog - Immutable snapshot of billable codes and their modifiers.

The catalog is loaded once and passed explicitly to whatever needs it. It
is read-only, so a single snapshot can be shared across sessions.
"""
import json
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Optional, Union

from ..config.logging_config import get_logger
from ..config.settings import Settings, get_settings
from ..engine.models import Code

logger = get_logger(__name__)


class CodeNotFoundError(KeyError):
    def __init__(self, code_id):
        super().__init__(code_id)
        self.code_id = code_id

    def __str__(self):
        return f"Code {self.code_id} not found in catalog"


@dataclass(frozen=True)
class Catalog:
    """Read-only collection of codes."""
    codes: tuple[Code, ...] = ()

    @classmethod
    def from_payload(cls, payload: Union[dict, list, None]) -> 'Catalog':
        """
        Build a catalog from decoded JSON.

        Accepts a single Code object (what a single-code /code endpoint
        returns), a list of Code objects, or {"codes": [...]}.
        """
        if payload is None:
            return cls()
        if isinstance(payload, dict):
            if 'codes' in payload:
                payload = payload['codes'] or []
            else:
                payload = [payload]
        if not isinstance(payload, list):
            raise ValueError(f"Catalog payload must be an object or a list, got {type(payload).__name__}")

        codes = tuple(Code.from_dict(row) for row in payload)
        seen = set()
        for code in codes:
            if code.id in seen:
                raise ValueError(f"Duplicate code id {code.id} in catalog")
            seen.add(code.id)
        return cls(codes=codes)

    def __len__(self) -> int:
        return len(self.codes)

    def __iter__(self):
        return iter(self.codes)

    def get_code(self, code_id: int) -> Code:
        for code in self.codes:
            if code.id == code_id:
                return code
        raise CodeNotFoundError(code_id)

    def active_codes(self, on_date: Optional[date] = None) -> tuple[Code, ...]:
        on_date = on_date or date.today()
        return tuple(c for c in self.codes if c.is_active(on_date))


def load_catalog(path: Optional[Path] = None, settings: Optional[Settings] = None) -> Catalog:
    """Load the code catalog from a JSON file."""
    if path is None:
        path = (settings or get_settings()).catalog_path
    path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Code catalog not found at {path}.")

    with open(path, 'r', encoding='utf-8') as f:
        payload = json.load(f)

    catalog = Catalog.from_payload(payload)
    logger.info("Loaded %d codes from %s", len(catalog), path)
    return catalog
