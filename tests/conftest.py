"""Shared fixtures."""

import pytest

from helpers import make_table
from joinscout.utils.config import Config, set_config


@pytest.fixture(autouse=True)
def default_config():
    """Run every test against built-in defaults."""
    set_config(Config())
    yield
    set_config(None)


@pytest.fixture
def shop_tables():
    """Orders, customers and products with conventional key names."""
    return [
        make_table("customers", [("id", "integer"), ("name", "text")]),
        make_table("orders", [("id", "integer"), ("customer_id", "integer"), ("total", "numeric")]),
        make_table("products", [("id", "integer"), ("title", "varchar")]),
    ]
