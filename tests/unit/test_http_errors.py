from __future__ import annotations

from fastapi import FastAPI
from fastapi.testclient import TestClient

from worklog.domain.auth.errors import InvalidInputError
from worklog.infrastructure.http.errors import ApiError, install_error_handlers


def _app() -> FastAPI:
    app = FastAPI()
    install_error_handlers(app)

    @app.post("/hash")
    async def hash_endpoint() -> dict[str, str]:
        raise InvalidInputError("password cannot exceed 72 bytes")

    @app.get("/conflict")
    async def conflict_endpoint() -> dict[str, str]:
        raise ApiError(status_code=409, code="CONFLICT", message="already exists")

    return app


def test_invalid_input_maps_to_generic_validation_error() -> None:
    with TestClient(_app()) as client:
        response = client.post("/hash")

    assert response.status_code == 400
    assert response.json() == {
        "success": False,
        "error": {"code": "VALIDATION_ERROR", "message": "Invalid input"},
    }


def test_api_error_renders_envelope() -> None:
    with TestClient(_app()) as client:
        response = client.get("/conflict")

    assert response.status_code == 409
    assert response.json() == {
        "success": False,
        "error": {"code": "CONFLICT", "message": "already exists"},
    }
