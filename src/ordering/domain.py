"""Ordering bounded context: orders placed from the storefront cart.

Holds the order records written at checkout (order header, line items,
payment record, admin notification) and the checkout flow that produces
them from a cart snapshot.
"""

import structlog
from protean.domain import Domain

ordering = Domain(name="ordering")

logger = structlog.get_logger(__name__)
