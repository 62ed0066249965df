import json
from datetime import date
from decimal import Decimal

import pytest

from encounter_pricing.config.settings import Settings
from encounter_pricing.data.catalog import Catalog, CodeNotFoundError, load_catalog

CODE_PAYLOAD = {
    "id": 7,
    "code": "99214",
    "description": "Office visit, moderate complexity",
    "amount": 135.1,
    "start_date": "2024-01-01T00:00:00Z",
    "end_date": None,
    "modifiers": [
        {"id": 70, "amount": 0.1, "modifier_type": "ADD", "modifier_code": "25",
         "start_date": "2024-01-01", "end_date": None},
    ],
}


def test_single_code_payload():
    """A lone Code object (single-code endpoint) becomes a one-code catalog."""
    catalog = Catalog.from_payload(CODE_PAYLOAD)
    assert len(catalog) == 1
    code = catalog.get_code(7)
    assert code.amount == Decimal("135.1")
    assert code.start_date == date(2024, 1, 1)
    assert code.modifiers[0].amount == Decimal("0.1")


def test_list_and_wrapped_payloads():
    second = dict(CODE_PAYLOAD, id=8, modifiers=[])
    assert len(Catalog.from_payload([CODE_PAYLOAD, second])) == 2
    assert len(Catalog.from_payload({"codes": [CODE_PAYLOAD, second]})) == 2


def test_empty_catalog():
    assert len(Catalog.from_payload([])) == 0
    assert len(Catalog.from_payload(None)) == 0


def test_duplicate_code_ids_rejected():
    with pytest.raises(ValueError, match="Duplicate"):
        Catalog.from_payload([CODE_PAYLOAD, CODE_PAYLOAD])


def test_get_code_missing():
    with pytest.raises(CodeNotFoundError):
        Catalog.from_payload(CODE_PAYLOAD).get_code(999)


def test_active_codes():
    expired = dict(CODE_PAYLOAD, id=8, start_date="2019-01-01", end_date="2020-01-01")
    catalog = Catalog.from_payload([CODE_PAYLOAD, expired])
    assert [c.id for c in catalog.active_codes(date(2025, 1, 1))] == [7]


def test_load_catalog_from_file(tmp_path):
    path = tmp_path / "catalog.json"
    path.write_text(json.dumps([CODE_PAYLOAD]))
    assert load_catalog(path).get_code(7).code == "99214"


def test_load_catalog_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_catalog(tmp_path / "nope.json")


def test_packaged_catalog_loads(tmp_path):
    catalog = load_catalog(settings=Settings.load(project_root=tmp_path))
    assert len(catalog) >= 1
    assert catalog.get_code(1).code == "99213"


def test_settings_env_overrides(tmp_path, monkeypatch):
    monkeypatch.setenv("ENCOUNTER_CATALOG_PATH", str(tmp_path / "c.json"))
    monkeypatch.setenv("ENCOUNTER_PRICE_FLOOR", "0")
    settings = Settings.load(project_root=tmp_path)
    assert settings.catalog_path == tmp_path / "c.json"
    assert settings.price_floor == Decimal("0")

    monkeypatch.setenv("ENCOUNTER_PRICE_FLOOR", "free")
    with pytest.raises(ValueError):
        Settings.load(project_root=tmp_path)


def test_settings_api_server(tmp_path, monkeypatch):
    settings = Settings.load(project_root=tmp_path)
    assert (settings.api_host, settings.api_port, settings.api_reload) == ("127.0.0.1", 8000, False)

    monkeypatch.setenv("ENCOUNTER_API_HOST", "0.0.0.0")
    monkeypatch.setenv("ENCOUNTER_API_PORT", "9100")
    monkeypatch.setenv("ENCOUNTER_API_RELOAD", "true")
    settings = Settings.load(project_root=tmp_path)
    assert (settings.api_host, settings.api_port, settings.api_reload) == ("0.0.0.0", 9100, True)

    monkeypatch.setenv("ENCOUNTER_API_PORT", "99999")
    with pytest.raises(ValueError):
        Settings.load(project_root=tmp_path)
