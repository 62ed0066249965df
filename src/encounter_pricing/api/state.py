"""Shared read-only API state: settings, code catalog and price calculator."""
from ..config.logging_config import configure_logging
from ..config.settings import get_settings
from ..data.catalog import load_catalog
from ..engine.price_calculator import build_calculator

settings = get_settings()
configure_logging(settings.log_level)

catalog = load_catalog(settings=settings)
calculator = build_calculator(settings)
