"""Integration tests covering CORS behaviour for the embedded calculator form."""

import pytest
from flask.testing import FlaskClient

from incometax.backend.app import create_app

SITE_ORIGIN = "https://site.test"
PREVIEW_ORIGIN = "https://preview.site.test"
FOREIGN_ORIGIN = "https://foreign.test"


@pytest.fixture()
def cors_client(monkeypatch: pytest.MonkeyPatch) -> FlaskClient:
    """Return a client whose allow-list contains the hosting site origins."""

    monkeypatch.setenv(
        "INCOMETAX_ALLOWED_ORIGINS", f"{SITE_ORIGIN}, {PREVIEW_ORIGIN},"
    )

    app = create_app()
    app.config.update(TESTING=True)

    with app.test_client() as client:
        yield client


@pytest.mark.parametrize("origin", [SITE_ORIGIN, PREVIEW_ORIGIN])
def test_calculation_endpoint_allows_hosting_site(
    cors_client: FlaskClient, origin: str
) -> None:
    response = cors_client.post(
        "/api/v1/calculations",
        json={"year": 2022, "income": 100000},
        headers={"Origin": origin},
    )

    assert response.status_code == 200
    assert response.headers.get("Access-Control-Allow-Origin") == origin


def test_preflight_for_calculation_succeeds(cors_client: FlaskClient) -> None:
    response = cors_client.options(
        "/api/v1/calculations",
        headers={
            "Origin": SITE_ORIGIN,
            "Access-Control-Request-Method": "POST",
            "Access-Control-Request-Headers": "Content-Type",
        },
    )

    assert response.status_code == 200
    assert response.headers.get("Access-Control-Allow-Origin") == SITE_ORIGIN
    assert "POST" in response.headers.get("Access-Control-Allow-Methods", "")


def test_foreign_origin_receives_no_cors_headers(cors_client: FlaskClient) -> None:
    response = cors_client.get(
        "/api/v1/config/years",
        headers={"Origin": FOREIGN_ORIGIN},
    )

    assert response.status_code == 200
    assert response.headers.get("Access-Control-Allow-Origin") is None


def test_health_endpoint_is_not_cross_origin(cors_client: FlaskClient) -> None:
    """Only the ``/api`` routes are exposed to other origins."""

    response = cors_client.get("/health", headers={"Origin": SITE_ORIGIN})

    assert response.status_code == 200
    assert response.headers.get("Access-Control-Allow-Origin") is None
