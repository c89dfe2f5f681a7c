"""Test configuration utilities and shared fixtures."""

import sys
from pathlib import Path

# Ensure the ``src`` directory is importable when tests are executed without an
# editable install.
ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

import pytest  # noqa: E402
from flask import Flask  # noqa: E402
from flask.testing import FlaskClient  # noqa: E402

from incometax.backend.app import create_app  # noqa: E402
from incometax.backend.app.services.calculation_service import (  # noqa: E402
    TaxCalculationEngine,
    get_default_engine,
)
from incometax.backend.config import year_config  # noqa: E402


@pytest.fixture(autouse=True)
def _reset_configuration_caches() -> None:
    """Start every test from freshly loaded YAML configuration."""

    year_config.clear_caches()
    get_default_engine.cache_clear()
    yield
    year_config.clear_caches()
    get_default_engine.cache_clear()


@pytest.fixture()
def engine() -> TaxCalculationEngine:
    """Return an engine built from the packaged tables and policy."""

    return TaxCalculationEngine.from_configuration()


@pytest.fixture()
def app() -> Flask:
    """Return a configured Flask application for integration tests."""

    application = create_app()
    application.config.update(TESTING=True)
    return application


@pytest.fixture()
def client(app: Flask) -> FlaskClient:
    """Provide a test client bound to the configured Flask app."""

    return app.test_client()
