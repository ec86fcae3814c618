import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from storefront.api import offer_router, order_router, task_router
from storefront.api.errors import register_exception_handlers

SUPERUSER_HEADERS = {"X-Actor-Id": "admin-1", "X-Actor-Role": "superuser"}
WORKER_HEADERS = {"X-Actor-Id": "worker-1", "X-Actor-Role": "worker"}


@pytest.fixture()
def client():
    app = FastAPI()
    app.include_router(order_router)
    app.include_router(task_router)
    app.include_router(offer_router)
    register_exception_handlers(app)
    return TestClient(app)


@pytest.fixture()
def admin():
    return dict(SUPERUSER_HEADERS)


@pytest.fixture()
def worker_headers():
    return dict(WORKER_HEADERS)
