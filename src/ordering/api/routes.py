"""FastAPI routes for the Ordering domain: order lookups."""

from fastapi import APIRouter, HTTPException
from protean.exceptions import ObjectNotFoundError

from ordering.api.schemas import OrderListResponse, OrderResponse
from ordering.order.repository import OrderRepository

order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.get("", response_model=OrderListResponse)
async def list_user_orders(user_id: str) -> OrderListResponse:
    """Return a user's orders, newest first, with their line items."""
    orders = OrderRepository().get_user_orders(user_id)
    return OrderListResponse(orders=orders)


@order_router.get("/{order_id}", response_model=OrderResponse)
async def get_order(order_id: str) -> OrderResponse:
    try:
        order = OrderRepository().get_order(order_id)
    except ObjectNotFoundError:
        raise HTTPException(status_code=404, detail="Order not found") from None
    return OrderResponse(**order)
