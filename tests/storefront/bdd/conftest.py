"""Shared BDD fixtures for the storefront."""

import pytest
from pytest_bdd import parsers, then
from storefront.errors import StorefrontError


@pytest.fixture()
def outcome():
    """Collects the result or the refusal of the last When step."""
    return {"result": None, "error": None}


@then(parsers.cfparse('the update is refused with "{message}"'))
@then(parsers.cfparse('the offer is rejected with "{message}"'))
def _(outcome, message):
    assert isinstance(outcome["error"], StorefrontError)
    assert outcome["error"].message == message
