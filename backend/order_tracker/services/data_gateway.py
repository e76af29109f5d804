# Overview: Data gateway; the single façade over the relational store and the identity provider.

"""
Remote Data Gateway

Every read and write of orders, inventory and profiles goes through
DataGateway. A gateway is bound to one identity (the request's authenticated
user) and scopes every query to that owner.

FAILURE MODEL:
- NotConfigured: no database URI, or the SQLAlchemy extension never initialized
- NotAuthenticated: a data call made without an identity
- SchemaMismatch: the table lacks the ownership column
- TransientStoreError: retry budget spent on connection-level failures
- ConflictError: duplicate primary key on insert
- RecordNotFound: id not found among the owner's rows

CONCURRENCY:
No version columns and no de-duplication. Two sessions editing the same row
are last-write-wins at the store.
"""

from __future__ import annotations

import re
import uuid
from typing import Any, Callable

from flask import current_app, g, has_app_context
from sqlalchemy import inspect, select
from sqlalchemy.exc import DBAPIError, IntegrityError, NoSuchTableError, SQLAlchemyError

from ..errors import NotAuthenticated, NotConfigured, RecordNotFound, SchemaMismatch
from ..extensions import db
from ..models import AuthUser, InventoryItem, Order, UserProfile
from ..models.orders import OWNERSHIP_COLUMN
from ..permissions import ROLE_STAFF, normalize_role
from ..time_utils import utcnow
from ..validation import ConflictError, ValidationError
from . import auth_service, session_service
from .concurrency import run_with_retry
from .permission_service import require_permission


# table name -> True once the ownership column has been seen
_schema_cache: dict[str, bool] = {}

# SQLite and MySQL wording; Postgres is matched by SQLSTATE or _PG_MISSING_COLUMN
_MISSING_COLUMN_MARKERS = ("no such column", "unknown column")
_PG_UNDEFINED_COLUMN = "42703"
_PG_MISSING_COLUMN = re.compile(r"column \S+( of relation \S+)? does not exist")

# Columns the share operation never copies
_SHARE_STRIPPED = ("id", "created_at")


def reset_schema_cache() -> None:
    _schema_cache.clear()


def new_order_id() -> str:
    return f"ORD-{uuid.uuid4().hex[:8].upper()}"


def new_item_id() -> str:
    return f"INV-{uuid.uuid4().hex[:8].upper()}"


def _is_missing_column(exc: DBAPIError) -> bool:
    """Undefined-column driver errors only; missing databases or roles do not count."""
    orig = getattr(exc, "orig", None)
    if getattr(orig, "pgcode", None) == _PG_UNDEFINED_COLUMN:
        return True
    message = str(orig if orig is not None else exc).lower()
    if any(marker in message for marker in _MISSING_COLUMN_MARKERS):
        return True
    return _PG_MISSING_COLUMN.search(message) is not None


class DataGateway:
    """Owner-scoped access to orders, inventory, profiles and identity."""

    def __init__(self, user: AuthUser | None = None):
        self.user = user

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def is_configured(self) -> bool:
        if not has_app_context():
            return False
        if not current_app.config.get("SQLALCHEMY_DATABASE_URI"):
            return False
        return "sqlalchemy" in current_app.extensions

    def _require_configured(self) -> None:
        if not self.is_configured():
            raise NotConfigured("The data store is not configured. Set DATABASE_URL and restart.")

    def _require_user_id(self) -> str:
        self._require_configured()
        if self.user is None:
            raise NotAuthenticated("Sign in to access your data")
        return self.user.id

    def check_connection(self) -> bool:
        """Cheap probe of the profiles table. Never raises."""
        if not self.is_configured():
            return False
        try:
            db.session.execute(select(UserProfile.id).limit(1))
            return True
        except SQLAlchemyError as exc:
            db.session.rollback()
            current_app.logger.warning("Store connection check failed: %s", exc.__class__.__name__)
            return False

    def ensure_ownership_column(self, model) -> None:
        table = model.__tablename__
        if _schema_cache.get(table):
            return
        try:
            columns = {col["name"] for col in inspect(db.engine).get_columns(table)}
        except NoSuchTableError:
            columns = set()
        if OWNERSHIP_COLUMN not in columns:
            current_app.logger.error("Schema mismatch: %s.%s missing", table, OWNERSHIP_COLUMN)
            raise SchemaMismatch(table, OWNERSHIP_COLUMN)
        _schema_cache[table] = True

    def _run(self, model, func: Callable[[], Any]) -> Any:
        """
        Run one unit of work against an owner-scoped table under the retry
        policy. The ownership column check runs inside the policy too.
        Missing-column driver errors become SchemaMismatch and are never
        retried.
        """
        table = model.__tablename__

        def unit():
            self.ensure_ownership_column(model)
            try:
                return func()
            except DBAPIError as exc:
                if _is_missing_column(exc):
                    db.session.rollback()
                    _schema_cache.pop(table, None)
                    raise SchemaMismatch(table, OWNERSHIP_COLUMN) from exc
                raise

        return run_with_retry(unit)

    # ------------------------------------------------------------------
    # Orders
    # ------------------------------------------------------------------

    def get_orders(self) -> list[Order]:
        """The owner's orders, most recent date first."""
        user_id = self._require_user_id()
        return self._run(Order, lambda: db.session.execute(
            select(Order)
            .where(Order.user_id == user_id)
            .order_by(Order.date.desc(), Order.created_at.desc())
        ).scalars().all())

    def _owned_order(self, user_id: str, order_id: str) -> Order:
        order = db.session.execute(
            select(Order).where(Order.id == order_id, Order.user_id == user_id)
        ).scalar_one_or_none()
        if order is None:
            raise RecordNotFound(f"Order {order_id} not found")
        return order

    def get_order(self, order_id: str) -> Order:
        user_id = self._require_user_id()
        return self._run(Order, lambda: self._owned_order(user_id, order_id))

    def save_order(self, data: dict) -> Order:
        """Insert a new order owned by the caller. A missing id is generated."""
        user_id = self._require_user_id()
        values = dict(data)
        values.pop("user_id", None)
        values.pop("created_at", None)
        if not values.get("id"):
            values["id"] = new_order_id()

        conflict = f"An order with id {values['id']} already exists"

        def unit():
            if db.session.get(Order, values["id"]) is not None:
                raise ConflictError(conflict)
            order = Order(**values, user_id=user_id)
            db.session.add(order)
            db.session.commit()
            return order

        return self._insert(Order, unit, conflict)

    def update_order(self, order_id: str, changes: dict) -> Order:
        """Update by primary key. id, owner and created_at are not writable."""
        user_id = self._require_user_id()
        changes = {k: v for k, v in changes.items() if k not in ("id", "user_id", "created_at")}

        def unit():
            order = self._owned_order(user_id, order_id)
            for key, value in changes.items():
                setattr(order, key, value)
            db.session.commit()
            return order

        return self._run(Order, unit)

    def delete_order(self, order_id: str) -> None:
        user_id = self._require_user_id()

        def unit():
            db.session.delete(self._owned_order(user_id, order_id))
            db.session.commit()

        self._run(Order, unit)

    # ------------------------------------------------------------------
    # Inventory
    # ------------------------------------------------------------------

    def get_inventory(self) -> list[InventoryItem]:
        """The owner's catalog, by name."""
        user_id = self._require_user_id()
        return self._run(InventoryItem, lambda: db.session.execute(
            select(InventoryItem)
            .where(InventoryItem.user_id == user_id)
            .order_by(InventoryItem.name.asc())
        ).scalars().all())

    def _owned_item(self, user_id: str, item_id: str) -> InventoryItem:
        item = db.session.execute(
            select(InventoryItem).where(InventoryItem.id == item_id, InventoryItem.user_id == user_id)
        ).scalar_one_or_none()
        if item is None:
            raise RecordNotFound(f"Inventory item {item_id} not found")
        return item

    def get_inventory_item(self, item_id: str) -> InventoryItem:
        user_id = self._require_user_id()
        return self._run(InventoryItem, lambda: self._owned_item(user_id, item_id))

    def save_inventory_item(self, data: dict) -> InventoryItem:
        user_id = self._require_user_id()
        values = dict(data)
        values.pop("user_id", None)
        values.pop("created_at", None)
        if not values.get("id"):
            values["id"] = new_item_id()

        conflict = f"An inventory item with id {values['id']} already exists"

        def unit():
            if db.session.get(InventoryItem, values["id"]) is not None:
                raise ConflictError(conflict)
            item = InventoryItem(**values, user_id=user_id)
            db.session.add(item)
            db.session.commit()
            return item

        return self._insert(InventoryItem, unit, conflict)

    def update_inventory_item(self, item_id: str, changes: dict) -> InventoryItem:
        user_id = self._require_user_id()
        changes = {k: v for k, v in changes.items() if k not in ("id", "user_id", "created_at")}

        def unit():
            item = self._owned_item(user_id, item_id)
            for key, value in changes.items():
                setattr(item, key, value)
            db.session.commit()
            return item

        return self._run(InventoryItem, unit)

    def delete_inventory_item(self, item_id: str) -> None:
        """Delete the item. Orders that reference it keep their snapshot."""
        user_id = self._require_user_id()

        def unit():
            db.session.delete(self._owned_item(user_id, item_id))
            db.session.commit()

        self._run(InventoryItem, unit)

    def _insert(self, model, unit: Callable[[], Any], conflict_message: str) -> Any:
        try:
            return self._run(model, unit)
        except IntegrityError as exc:
            db.session.rollback()
            raise ConflictError(conflict_message) from exc

    # ------------------------------------------------------------------
    # Identity
    # ------------------------------------------------------------------

    def login(self, email: str, password: str, *, user_agent: str | None = None, ip_address: str | None = None) -> dict:
        """
        Authenticate and open a session.

        Returns {"token", "user", "profile"}. Raises NotAuthenticated for bad
        credentials; the message never says which part was wrong.
        """
        self._require_configured()
        user = run_with_retry(lambda: auth_service.authenticate(email, password))
        if user is None:
            raise NotAuthenticated("Invalid email or password")

        _, token = session_service.create_session(user.id, user_agent=user_agent, ip_address=ip_address)
        profile = self.sync_profile(user)
        self.user = user
        return {"token": token, "user": user.to_dict(), "profile": profile.to_dict()}

    def register(
        self,
        email: str,
        password: str,
        role: str = ROLE_STAFF,
        *,
        start_session: bool = True,
        user_agent: str | None = None,
        ip_address: str | None = None,
    ) -> dict:
        """
        Create an identity and its profile.

        start_session=False onboards someone else (team management) without
        touching the caller's own session.
        """
        self._require_configured()
        user = auth_service.create_account(email, password)
        profile = self.sync_profile(user, role=role)

        result = {"user": user.to_dict(), "profile": profile.to_dict()}
        if start_session:
            _, token = session_service.create_session(user.id, user_agent=user_agent, ip_address=ip_address)
            result["token"] = token
            self.user = user
        return result

    def logout(self, token: str | None) -> bool:
        if not token or not self.is_configured():
            return False
        revoked = session_service.revoke_session(token)
        self.user = None
        return revoked

    def get_current_user(self) -> AuthUser | None:
        return self.user

    def get_current_profile(self) -> UserProfile | None:
        if self.user is None or not self.is_configured():
            return None
        return db.session.get(UserProfile, self.user.id)

    def sync_profile(self, user: AuthUser, role: str | None = None) -> UserProfile:
        """
        Upsert the directory record for user. The role is only written when
        given, so a plain login never demotes anyone.
        """
        def unit():
            profile = db.session.get(UserProfile, user.id)
            if profile is None:
                profile = UserProfile(id=user.id, email=user.email, role=normalize_role(role or ROLE_STAFF))
                db.session.add(profile)
            else:
                profile.email = user.email
                if role:
                    profile.role = normalize_role(role)
            profile.updated_at = utcnow()
            db.session.commit()
            return profile

        return run_with_retry(unit)

    # ------------------------------------------------------------------
    # Team
    # ------------------------------------------------------------------

    def _caller_profile(self) -> UserProfile | None:
        self._require_user_id()
        return db.session.get(UserProfile, self.user.id)

    def get_all_profiles(self) -> list[UserProfile]:
        require_permission(self._caller_profile(), "MANAGE_TEAM")
        return run_with_retry(lambda: db.session.execute(
            select(UserProfile).order_by(UserProfile.email.asc())
        ).scalars().all())

    def set_profile_role(self, profile_id: str, role: str) -> UserProfile:
        require_permission(self._caller_profile(), "MANAGE_TEAM")
        return set_profile_role(profile_id, role)

    def share_data(self, target_user_id: str, inventory: bool = True, orders: bool = False) -> dict:
        """
        Clone the caller's catalog and/or orders into another account.

        Copies get fresh ids and the target as owner; id and created_at are
        never copied. The caller's rows are untouched. Returns counts.
        """
        user_id = self._require_user_id()
        require_permission(self._caller_profile(), "SHARE_DATA")

        if db.session.get(UserProfile, target_user_id) is None:
            raise RecordNotFound(f"Profile {target_user_id} not found")

        counts = {"inventory": 0, "orders": 0}

        def unit():
            if inventory:
                self.ensure_ownership_column(InventoryItem)
            if orders:
                self.ensure_ownership_column(Order)
            counts["inventory"] = counts["orders"] = 0
            if inventory:
                counts["inventory"] = self._clone_rows(InventoryItem, user_id, target_user_id, new_item_id)
            if orders:
                counts["orders"] = self._clone_rows(Order, user_id, target_user_id, new_order_id)
            db.session.commit()
            return counts

        result = run_with_retry(unit)
        current_app.logger.info(
            "Shared data from %s to %s: %d items, %d orders",
            user_id, target_user_id, result["inventory"], result["orders"],
        )
        return result

    @staticmethod
    def _clone_rows(model, source_user_id: str, target_user_id: str, make_id: Callable[[], str]) -> int:
        rows = db.session.execute(
            select(model).where(model.user_id == source_user_id)
        ).scalars().all()
        columns = [col.key for col in model.__mapper__.columns if col.key not in _SHARE_STRIPPED]

        for row in rows:
            values = {key: getattr(row, key) for key in columns}
            values["user_id"] = target_user_id
            db.session.add(model(id=make_id(), **values))
        return len(rows)


def set_profile_role(profile_id: str, role: str) -> UserProfile:
    """Change a profile's role. Also used by the users CLI."""
    profile = db.session.get(UserProfile, profile_id)
    if profile is None:
        raise RecordNotFound(f"Profile {profile_id} not found")
    role = normalize_role(role)
    if not role:
        raise ValidationError("role is required")
    profile.role = role
    profile.updated_at = utcnow()
    db.session.commit()
    return profile


def get_gateway() -> DataGateway:
    """Gateway bound to the request's authenticated identity (if any)."""
    return DataGateway(user=getattr(g, "current_user", None))
