from __future__ import annotations

import uuid

from structlog.typing import FilteringBoundLogger

from cloudapp import HttpFunction, Method, NotFoundError, Shape, Table, function_config, http_api
from samples.order_api.models import Order


class CreateOrderRequest(Shape):
    name: str
    total: float


class CreateOrderResponse(Shape):
    id: str


class GetOrderRequest(Shape):
    id: str


class OrderResponse(Shape):
    id: str
    name: str
    total: float


class ListOrdersRequest(Shape):
    pass


class ListOrdersResponse(Shape):
    orders: list[OrderResponse]


@http_api(Method.POST, "/orders")
class CreateOrder(HttpFunction[CreateOrderRequest, CreateOrderResponse]):
    def __init__(self, orders: Table[Order], logger: FilteringBoundLogger):
        self.orders = orders
        self.logger = logger

    async def handle(self, request: CreateOrderRequest) -> CreateOrderResponse:
        order = Order(id=str(uuid.uuid4()), name=request.name, total=request.total)
        await self.orders.put(order)
        self.logger.info("order.created", order_id=order.id)
        return CreateOrderResponse(id=order.id)


@http_api(Method.GET, "/orders/{id}")
class GetOrder(HttpFunction[GetOrderRequest, OrderResponse]):
    def __init__(self, orders: Table[Order]):
        self.orders = orders

    async def handle(self, request: GetOrderRequest) -> OrderResponse:
        order = await self.orders.get(request.id)
        if order is None:
            raise NotFoundError(f"Order {request.id} not found")
        return OrderResponse(id=order.id, name=order.name, total=order.total)


@function_config(memory_mb=512)
@http_api(Method.GET, "/orders")
class ListOrders(HttpFunction[ListOrdersRequest, ListOrdersResponse]):
    def __init__(self, orders: Table[Order]):
        self.orders = orders

    async def handle(self, request: ListOrdersRequest) -> ListOrdersResponse:
        orders = await self.orders.scan()
        return ListOrdersResponse(
            orders=[OrderResponse(id=o.id, name=o.name, total=o.total) for o in orders]
        )
