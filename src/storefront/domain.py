"""Storefront bounded context: order fulfillment, order listings and offers.

Orders move through a fixed fulfillment workflow driven by worker tasks.
Listings are served through a time-boxed read cache and checkout discounts
are quoted by the offer validator.
"""

from protean.domain import Domain

from storefront.utils.logging import configure_logging, get_logger

configure_logging()

logger = get_logger(__name__)

storefront = Domain(name="storefront")
