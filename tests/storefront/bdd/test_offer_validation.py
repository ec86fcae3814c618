"""BDD tests for offer validation."""

from pytest_bdd import given, parsers, scenarios, then, when
from storefront.errors import OfferRejected
from storefront.offer.validation import Customer, validate_offer

scenarios("features/offer_validation.feature")


def _never_redeemed(offer_id, customer):
    return False


@given(parsers.cfparse('a "{discount_type}" offer "{code}" worth {value:g}'), target_fixture="offer")
def _(make_offer, discount_type, code, value):
    return make_offer(persist=False, code=code, discount_type=discount_type, discount_value=value)


@given(parsers.cfparse("the offer caps the discount at {amount:g}"))
def _(offer, amount):
    offer.max_discount = amount


@given(parsers.cfparse("the offer allows {limit:d} use and has been used {used:d} time"))
def _(offer, limit, used):
    offer.usage_limit = limit
    offer.used_count = used


@given("the offer is inactive")
def _(offer):
    offer.is_active = False


@given(parsers.cfparse("the offer requires a minimum order of {amount:g}"))
def _(offer, amount):
    offer.min_order_amount = amount


@when(parsers.cfparse("the offer is quoted for a subtotal of {subtotal:g}"))
def _(offer, outcome, subtotal):
    try:
        outcome["result"] = validate_offer(offer, subtotal, Customer.of("asha@example.com"), _never_redeemed)
    except OfferRejected as exc:
        outcome["error"] = exc


@then(parsers.cfparse("the discount is {amount:g}"))
def _(outcome, amount):
    assert outcome["error"] is None
    assert outcome["result"].discount == amount
