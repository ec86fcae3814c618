"""Tests for the order-number backfill script against an in-memory SQLite store."""

import importlib.util
import re
from datetime import datetime
from pathlib import Path

import pytest
from sqlalchemy import Column, DateTime, MetaData, String, Table, create_engine, insert, select

_SCRIPT = Path(__file__).resolve().parents[2] / "scripts" / "backfill_order_numbers.py"


@pytest.fixture(scope="module")
def backfill_module():
    spec = importlib.util.spec_from_file_location("backfill_order_numbers", _SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


@pytest.fixture
def store():
    engine = create_engine("sqlite://")
    metadata = MetaData()
    order = Table(
        "order",
        metadata,
        Column("id", String, primary_key=True),
        Column("order_number", String, nullable=True),
        Column("created_at", DateTime),
    )
    metadata.create_all(engine)
    with engine.begin() as conn:
        conn.execute(
            insert(order),
            [
                {"id": "o1", "order_number": "ORD-2024-000001", "created_at": datetime(2024, 1, 5)},
                {"id": "o2", "order_number": None, "created_at": datetime(2023, 7, 9)},
                {"id": "o3", "order_number": None, "created_at": datetime(2024, 2, 1)},
            ],
        )
    return engine, order


def _numbers(engine, order):
    with engine.connect() as conn:
        return dict(conn.execute(select(order.c.id, order.c.order_number)).all())


def test_assigns_numbers_to_orders_without_one(backfill_module, store):
    engine, order = store

    assigned = dict(backfill_module.backfill(engine))

    numbers = _numbers(engine, order)
    assert set(assigned) == {"o2", "o3"}
    assert numbers["o1"] == "ORD-2024-000001"
    assert re.fullmatch(r"ORD-2023-\d{6}", numbers["o2"])
    assert re.fullmatch(r"ORD-2024-\d{6}", numbers["o3"])
    assert len(set(numbers.values())) == 3


def test_dry_run_writes_nothing(backfill_module, store):
    engine, order = store

    assigned = backfill_module.backfill(engine, dry_run=True)

    assert len(assigned) == 2
    assert _numbers(engine, order)["o2"] is None


def test_second_run_is_a_noop(backfill_module, store):
    engine, _ = store
    backfill_module.backfill(engine)

    assert backfill_module.backfill(engine) == []
