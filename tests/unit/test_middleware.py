"""Unit tests for request tracing middleware."""

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from libs.common.logging import get_caller_service, get_request_id
from libs.common.middleware import add_observability_middleware, logging_level_for


def _traced_app() -> FastAPI:
    app = FastAPI()
    add_observability_middleware(app)

    @app.get("/whoami")
    async def whoami():
        return {"request_id": get_request_id(), "caller": get_caller_service()}

    return app


@pytest.mark.asyncio
@pytest.mark.unit
async def test_request_id_is_propagated():
    async with AsyncClient(
        transport=ASGITransport(app=_traced_app()), base_url="http://test"
    ) as client:
        response = await client.get(
            "/whoami",
            headers={"X-Request-ID": "req-42", "X-Caller-Service": "store_service"},
        )

    assert response.headers["X-Request-ID"] == "req-42"
    assert response.json() == {"request_id": "req-42", "caller": "store_service"}


@pytest.mark.asyncio
@pytest.mark.unit
async def test_request_id_is_generated():
    async with AsyncClient(
        transport=ASGITransport(app=_traced_app()), base_url="http://test"
    ) as client:
        response = await client.get("/whoami")

    generated = response.headers["X-Request-ID"]
    assert len(generated) == 32
    assert response.json() == {"request_id": generated, "caller": None}
    # Context does not leak out of the request
    assert get_request_id() is None


@pytest.mark.unit
def test_logging_level_for_status():
    import logging

    assert logging_level_for(200) == logging.INFO
    assert logging_level_for(404) == logging.WARNING
    assert logging_level_for(503) == logging.ERROR
