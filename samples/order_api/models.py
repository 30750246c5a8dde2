from __future__ import annotations

from typing import Annotated

from cloudapp import PartitionKey, TableEntity


class Order(TableEntity):
    id: Annotated[str, PartitionKey()]
    name: str = ""
    total: float = 0.0
