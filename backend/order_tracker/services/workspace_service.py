# Overview: Session-owned working copy of orders and inventory with optimistic mutations.

"""
Workspace

The in-memory lists a session works against. Mutations are optimistic: the
local state changes first, then the gateway call runs; if it fails the state
is restored from a snapshot and the error propagates unchanged. After a
successful write the lists are reloaded from the store.

Statistics are never cached; every read of `stats` recomputes them.
"""

from __future__ import annotations

import copy
from typing import Any, Callable

from .reporting_service import (
    RETURNED_STATUS,
    SETTLED_STATUS,
    DashboardStats,
    compute_dashboard_stats,
    dashboard,
)


def _restore(state: Any, snapshot: Any) -> None:
    if isinstance(state, dict):
        state.clear()
        state.update(snapshot)
    elif isinstance(state, list):
        state[:] = snapshot
    else:
        state.__dict__.clear()
        state.__dict__.update(snapshot.__dict__)


def optimistic_update(state: Any, mutate: Callable[[Any], Any], persist: Callable[[], Any]) -> Any:
    """
    Apply mutate(state) locally, then persist().

    Any exception from either step restores state in place to its prior
    contents and is re-raised. Returns persist()'s result.
    """
    snapshot = copy.deepcopy(state)
    try:
        mutate(state)
        return persist()
    except Exception:
        _restore(state, snapshot)
        raise


def _as_dict(record: Any) -> dict:
    return record.to_dict() if hasattr(record, "to_dict") else dict(record)


class Workspace:
    """Orders and inventory for one authenticated session."""

    def __init__(self, gateway, *, settled_status: str = SETTLED_STATUS, returned_status: str = RETURNED_STATUS):
        self.gateway = gateway
        self.settled_status = settled_status
        self.returned_status = returned_status
        self.state: dict[str, list[dict]] = {"orders": [], "inventory": []}

    @property
    def orders(self) -> list[dict]:
        return self.state["orders"]

    @property
    def inventory(self) -> list[dict]:
        return self.state["inventory"]

    @property
    def stats(self) -> DashboardStats:
        return compute_dashboard_stats(
            self.orders,
            settled_status=self.settled_status,
            returned_status=self.returned_status,
        )

    def dashboard(self, statuses=()) -> dict:
        return dashboard(
            self.orders,
            self.inventory,
            statuses,
            settled_status=self.settled_status,
            returned_status=self.returned_status,
        )

    def refresh(self) -> "Workspace":
        self.state["orders"] = [_as_dict(o) for o in self.gateway.get_orders()]
        self.state["inventory"] = [_as_dict(i) for i in self.gateway.get_inventory()]
        return self

    # -- orders --

    def add_order(self, order: dict) -> Any:
        def mutate(state):
            state["orders"].insert(0, dict(order))

        saved = optimistic_update(self.state, mutate, lambda: self.gateway.save_order(order))
        self.refresh()
        return saved

    def update_order(self, order_id: str, changes: dict) -> Any:
        def mutate(state):
            for row in state["orders"]:
                if row.get("id") == order_id:
                    row.update(changes)

        saved = optimistic_update(self.state, mutate, lambda: self.gateway.update_order(order_id, changes))
        self.refresh()
        return saved

    def delete_order(self, order_id: str) -> None:
        def mutate(state):
            state["orders"] = [row for row in state["orders"] if row.get("id") != order_id]

        optimistic_update(self.state, mutate, lambda: self.gateway.delete_order(order_id))
        self.refresh()

    # -- inventory --

    def add_item(self, item: dict) -> Any:
        def mutate(state):
            state["inventory"].append(dict(item))

        saved = optimistic_update(self.state, mutate, lambda: self.gateway.save_inventory_item(item))
        self.refresh()
        return saved

    def update_item(self, item_id: str, changes: dict) -> Any:
        def mutate(state):
            for row in state["inventory"]:
                if row.get("id") == item_id:
                    row.update(changes)

        saved = optimistic_update(self.state, mutate, lambda: self.gateway.update_inventory_item(item_id, changes))
        self.refresh()
        return saved

    def delete_item(self, item_id: str) -> None:
        def mutate(state):
            state["inventory"] = [row for row in state["inventory"] if row.get("id") != item_id]

        optimistic_update(self.state, mutate, lambda: self.gateway.delete_inventory_item(item_id))
        self.refresh()
