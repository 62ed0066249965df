"""
Centralized settings and path configuration for the encounter pricing tool.
"""
import os
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Optional


def get_project_root() -> Path:
    """Get the project root directory (where pyproject.toml lives)."""
    current = Path(__file__).resolve()
    for parent in current.parents:
        if (parent / 'pyproject.toml').exists():
            return parent
    # Fallback to 3 levels up from this file
    return Path(__file__).resolve().parent.parent.parent.parent


def get_package_root() -> Path:
    return Path(__file__).resolve().parent.parent


def _parse_floor(value: Optional[str]) -> Optional[Decimal]:
    if value is None or not value.strip():
        return None
    try:
        return Decimal(value.strip())
    except InvalidOperation:
        raise ValueError(f"ENCOUNTER_PRICE_FLOOR must be a decimal number, got '{value}'")


def _parse_port(value: Optional[str]) -> int:
    if value is None or not value.strip():
        return 8000
    try:
        port = int(value.strip())
    except ValueError:
        raise ValueError(f"ENCOUNTER_API_PORT must be an integer, got '{value}'")
    if not 0 < port < 65536:
        raise ValueError(f"ENCOUNTER_API_PORT must be between 1 and 65535, got {port}")
    return port


@dataclass
class Settings:
    """Application settings with sensible defaults."""

    project_root: Path

    # Code catalog (JSON: one Code object or a list of them)
    catalog_path: Path

    # modifier_type -> arithmetic rule table
    modifier_rules_path: Optional[Path] = None

    # Lowest price a line may reach; None lets negative prices through
    price_floor: Optional[Decimal] = None

    log_level: str = 'INFO'

    # API server (scripts/run_api.py)
    api_host: str = '127.0.0.1'
    api_port: int = 8000
    api_reload: bool = False

    @classmethod
    def load(cls, project_root: Optional[Path] = None) -> 'Settings':
        """Load settings from the package layout, with environment overrides."""
        root = project_root or get_project_root()
        package_root = get_package_root()

        catalog_path = os.environ.get('ENCOUNTER_CATALOG_PATH')
        rules_path = os.environ.get('ENCOUNTER_MODIFIER_RULES_PATH')

        return cls(
            project_root=root,
            catalog_path=Path(catalog_path) if catalog_path else package_root / 'data' / 'catalog.json',
            modifier_rules_path=Path(rules_path) if rules_path else package_root / 'rules' / 'modifier_rules.csv',
            price_floor=_parse_floor(os.environ.get('ENCOUNTER_PRICE_FLOOR')),
            log_level=os.environ.get('ENCOUNTER_LOG_LEVEL', 'INFO'),
            api_host=os.environ.get('ENCOUNTER_API_HOST', '127.0.0.1'),
            api_port=_parse_port(os.environ.get('ENCOUNTER_API_PORT')),
            api_reload=os.environ.get('ENCOUNTER_API_RELOAD', '').strip().lower() in ('1', 'true', 'yes'),
        )


# Default settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings.load()
    return _settings
