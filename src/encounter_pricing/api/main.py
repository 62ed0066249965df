from datetime import date
from decimal import Decimal
from typing import List, Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from encounter_pricing import __version__
from encounter_pricing.api import state
from encounter_pricing.config.logging_config import get_logger
from encounter_pricing.data.catalog import CodeNotFoundError
from encounter_pricing.engine import is_slot_enabled, new_selection, offered_modifiers, set_slot
from encounter_pricing.engine.models import Code, Selection
from encounter_pricing.engine.selection import SelectionError, UnknownModifierError

logger = get_logger(__name__)

app = FastAPI(
    title="Encounter Pricing API",
    description="Code catalog and modifier pricing for encounter building",
    version=__version__,
)

# Enable CORS for frontend development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


class PriceRequest(BaseModel):
    code_id: int
    modifier_ids: List[int] = Field(default_factory=list, max_length=3)


class EncounterRequest(BaseModel):
    lines: List[PriceRequest] = Field(default_factory=list)


class TraceStepResponse(BaseModel):
    step: str
    description: str
    value: Optional[str] = None


class PriceResponse(BaseModel):
    code_id: int
    code: str
    modifier_ids: List[int]
    base_price: Decimal
    price: Decimal
    rules_applied: List[str]
    warnings: List[str]
    trace: List[TraceStepResponse]


class EncounterResponse(BaseModel):
    lines: List[PriceResponse]
    total: Decimal
    warnings: List[str]


def _get_code(code_id: int) -> Code:
    try:
        return state.catalog.get_code(code_id)
    except CodeNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


def _select(code: Code, modifier_ids: List[int], as_of: date) -> Selection:
    """Apply modifier ids slot by slot so every selection rule is enforced."""
    selection = new_selection(code)
    for slot_index, modifier_id in enumerate(modifier_ids):
        modifier = code.get_modifier(modifier_id)
        if modifier is None:
            raise UnknownModifierError(modifier_id, code)
        selection = set_slot(selection, slot_index, modifier, as_of=as_of)
    return selection


def _price_line(req: PriceRequest, as_of: date) -> PriceResponse:
    code = _get_code(req.code_id)
    try:
        selection = _select(code, req.modifier_ids, as_of)
    except SelectionError as e:
        raise HTTPException(status_code=400, detail=str(e))

    breakdown = state.calculator.breakdown(code, selection.selected_modifiers)
    return PriceResponse(
        code_id=code.id,
        code=code.code,
        modifier_ids=selection.modifier_ids,
        base_price=breakdown.base_price,
        price=breakdown.price,
        rules_applied=breakdown.rules_applied,
        warnings=breakdown.warnings,
        trace=[TraceStepResponse(step=t.step, description=t.description, value=t.value) for t in breakdown.trace],
    )


@app.get("/")
async def root():
    return {"status": "online", "message": "Encounter Pricing API Active", "codes": len(state.catalog)}


@app.get("/code")
async def get_code():
    """Single-code retrieval kept for existing clients: the first catalog code."""
    if not state.catalog.codes:
        raise HTTPException(status_code=404, detail="Catalog is empty")
    return state.catalog.codes[0].to_dict()


@app.get("/codes")
async def list_codes():
    return [code.to_dict() for code in state.catalog]


@app.get("/codes/{code_id}")
async def get_code_by_id(code_id: int):
    return _get_code(code_id).to_dict()


@app.get("/codes/{code_id}/modifiers")
async def get_modifiers(code_id: int, slot: int = 0, selected: Optional[str] = None, as_of: Optional[date] = None):
    """
    Modifiers selectable for a slot.

    `selected` is a comma-separated list of modifier ids already chosen for
    the earlier slots; the slot is disabled until its predecessor is set.
    Modifiers outside their validity window on `as_of` (default today) and
    modifiers already held by earlier slots are not offered.
    """
    code = _get_code(code_id)
    as_of = as_of or date.today()
    try:
        ids = [int(s) for s in selected.split(',') if s.strip()] if selected else []
        selection = _select(code, ids[:slot], as_of)
        enabled = is_slot_enabled(selection, slot)
        offered = offered_modifiers(selection, slot, as_of=as_of)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return {
        "code_id": code.id,
        "slot": slot,
        "enabled": enabled,
        "as_of": as_of.isoformat(),
        "modifiers": [m.to_dict() for m in offered],
    }


@app.post("/price", response_model=PriceResponse)
async def price_code(req: PriceRequest, as_of: Optional[date] = None):
    """Price one code. Modifiers must be valid on `as_of` (default today)."""
    return _price_line(req, as_of or date.today())


@app.post("/encounter/price", response_model=EncounterResponse)
async def price_encounter(req: EncounterRequest, as_of: Optional[date] = None):
    """Price every line of an encounter. Nothing is stored between requests."""
    as_of = as_of or date.today()
    lines = [_price_line(line, as_of) for line in req.lines]
    warnings = []
    for line in lines:
        for warning in line.warnings:
            if warning not in warnings:
                warnings.append(warning)
    total = sum((line.price for line in lines), Decimal("0.00"))
    logger.debug("Priced encounter with %d lines, total %s", len(lines), total)
    return EncounterResponse(lines=lines, total=total, warnings=warnings)
