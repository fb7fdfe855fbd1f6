"""Domain records and in-memory repositories for projects, catalog, carts, customers and tokens."""

from __future__ import annotations

import uuid
from copy import deepcopy
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable


class NotFoundError(LookupError):
    """Raised when a requested record does not exist."""


class AlreadyExistsError(ValueError):
    """Raised when a record would violate a uniqueness constraint."""


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


@dataclass
class Product:
    id: str = ""
    project_id: str = ""
    key: str = ""
    sku: str = ""
    name: str = ""
    description: str = ""
    price_cents: int = 0
    currency: str = ""
    attributes: dict[str, Any] = field(default_factory=dict)
    created_at: datetime | None = None


@dataclass
class Category:
    id: str = ""
    project_id: str = ""
    key: str = ""
    name: str = ""
    slug: str = ""
    order_hint: str = ""
    parent_key: str = ""
    description: str = ""
    meta_title: str = ""
    meta_description: str = ""
    created_at: datetime | None = None


@dataclass
class CartLine:
    id: str = ""
    cart_id: str = ""
    product_id: str = ""
    quantity: int = 0
    unit_price_cents: int = 0
    total_cents: int = 0
    snapshot: dict[str, Any] = field(default_factory=dict)
    created_at: datetime | None = None


@dataclass
class Cart:
    id: str = ""
    project_id: str = ""
    customer_id: str | None = None
    anonymous_id: str | None = None
    currency: str = ""
    total_cents: int = 0
    state: str = ""
    created_at: datetime | None = None
    lines: list[CartLine] = field(default_factory=list)


@dataclass
class CustomerAddress:
    id: str = ""
    first_name: str = ""
    last_name: str = ""
    country: str = ""
    street_name: str = ""
    postal_code: str = ""
    city: str = ""
    email: str = ""
    department: str = ""


@dataclass
class Customer:
    id: str = ""
    project_id: str = ""
    email: str = ""
    password_hash: str = ""
    first_name: str = ""
    last_name: str = ""
    date_of_birth: str = ""
    addresses: list[CustomerAddress] = field(default_factory=list)
    default_shipping_address_id: str = ""
    default_billing_address_id: str = ""
    shipping_address_ids: list[str] = field(default_factory=list)
    billing_address_ids: list[str] = field(default_factory=list)
    created_at: datetime | None = None


@dataclass
class Project:
    id: str = ""
    key: str = ""
    name: str = ""
    created_at: datetime | None = None


@dataclass
class Token:
    token: str
    project_id: str
    kind: str
    expires_at: datetime
    customer_id: str | None = None
    anonymous_id: str | None = None
    created_at: datetime | None = None

    def is_expired(self, now=None) -> bool:
        """Return True once ``now`` (default: the current time) is past the expiry."""
        return (now or _now()) > self.expires_at


@dataclass
class CreateCartInput:
    project_id: str
    currency: str
    customer_id: str | None = None
    anonymous_id: str | None = None


class CartRepository:
    """Stores carts and their line items."""

    def __init__(self) -> None:
        self._carts: dict[str, Cart] = {}

    def _find(self, cart_id: str, project_id: str | None = None) -> Cart:
        cart = self._carts.get(cart_id)
        if cart is None or (project_id is not None and cart.project_id != project_id):
            raise NotFoundError(f"cart {cart_id} not found")
        return cart

    def create(self, data: CreateCartInput) -> Cart:
        cart = Cart(
            id=_new_id(),
            project_id=data.project_id,
            customer_id=data.customer_id,
            anonymous_id=data.anonymous_id,
            currency=data.currency,
            state="active",
            created_at=_now(),
        )
        self._carts[cart.id] = cart
        return deepcopy(cart)

    def get_by_id(self, project_id: str, cart_id: str) -> Cart:
        return deepcopy(self._find(cart_id, project_id))

    def _active(self, project_id: str, matches: Callable[[Cart], bool]) -> list[Cart]:
        return [
            c for c in self._carts.values()
            if c.project_id == project_id and c.state == "active" and matches(c)
        ]

    def get_active_by_customer(self, project_id: str, customer_id: str) -> Cart:
        found = self._active(project_id, lambda c: c.customer_id == customer_id)
        if not found:
            raise NotFoundError("no active cart")
        return deepcopy(found[-1])

    def get_active_by_anonymous(self, project_id: str, anonymous_id: str) -> Cart:
        found = self._active(project_id, lambda c: c.anonymous_id == anonymous_id)
        if not found:
            raise NotFoundError("no active cart")
        return deepcopy(found[-1])

    def assign_customer_to_anonymous(self, project_id: str, anonymous_id: str, customer_id: str) -> Cart:
        found = self._active(project_id, lambda c: c.anonymous_id == anonymous_id)
        if not found:
            raise NotFoundError("no active anonymous cart")
        for cart in found:
            cart.customer_id, cart.anonymous_id = customer_id, None
        return deepcopy(found[-1])

    def add_line_item(self, cart_id: str, product: Product, quantity: int, snapshot: dict[str, Any]) -> None:
        cart = self._find(cart_id)
        line = next((ln for ln in cart.lines if ln.product_id == product.id), None)
        if line is None:
            cart.lines.append(CartLine(
                id=_new_id(),
                cart_id=cart_id,
                product_id=product.id,
                quantity=quantity,
                unit_price_cents=product.price_cents,
                total_cents=product.price_cents * quantity,
                snapshot=deepcopy(snapshot),
                created_at=_now(),
            ))
        else:
            line.quantity += quantity
            line.total_cents = line.unit_price_cents * line.quantity
        cart.total_cents = sum(ln.total_cents for ln in cart.lines)

    def change_line_item_quantity(self, cart_id: str, line_item_id: str, quantity: int) -> None:
        cart = self._find(cart_id)
        line = next((ln for ln in cart.lines if ln.id == line_item_id), None)
        if line is None:
            raise NotFoundError(f"line item {line_item_id} not found")
        if quantity <= 0:
            cart.lines.remove(line)
        else:
            line.quantity = quantity
            line.total_cents = line.unit_price_cents * quantity
        cart.total_cents = sum(ln.total_cents for ln in cart.lines)

    def set_state(self, project_id: str, cart_id: str, state: str) -> None:
        self._find(cart_id, project_id).state = state


_CATEGORY_KEPT_FIELDS = ("slug", "order_hint", "parent_key", "description", "meta_title", "meta_description")


class CategoryRepository:
    """Stores categories, unique per project and key."""

    def __init__(self) -> None:
        self._items: dict[tuple[str, str], Category] = {}

    def list_by_project(self, project_id: str) -> list[Category]:
        found = [deepcopy(c) for c in self._items.values() if c.project_id == project_id]
        return sorted(found, key=lambda c: c.name)

    def upsert(self, category: Category) -> Category:
        slot = (category.project_id, category.key)
        stored = self._items.get(slot)
        if stored is None:
            stored = deepcopy(category)
            stored.id, stored.created_at = _new_id(), _now()
            self._items[slot] = stored
        else:
            stored.name = category.name
            for name in _CATEGORY_KEPT_FIELDS:
                if value := getattr(category, name):
                    setattr(stored, name, value)
        return deepcopy(stored)


class CustomerRepository:
    """Stores customers, unique per project and case-insensitive e-mail."""

    def __init__(self) -> None:
        self._items: dict[str, Customer] = {}

    def _by_email(self, project_id: str, email: str) -> Customer | None:
        wanted = email.lower()
        return next(
            (c for c in self._items.values() if c.project_id == project_id and c.email.lower() == wanted),
            None,
        )

    def create(self, customer: Customer) -> Customer:
        if self._by_email(customer.project_id, customer.email) is not None:
            raise AlreadyExistsError(f"customer {customer.email.lower()} already exists")
        stored = deepcopy(customer)
        stored.email = stored.email.lower()
        stored.id, stored.created_at = _new_id(), _now()
        self._items[stored.id] = stored
        return deepcopy(stored)

    def get_by_email(self, project_id: str, email: str) -> Customer:
        found = self._by_email(project_id, email)
        if found is None:
            raise NotFoundError(f"customer {email} not found")
        return deepcopy(found)

    def get_by_id(self, project_id: str, customer_id: str) -> Customer:
        found = self._items.get(customer_id)
        if found is None or found.project_id != project_id:
            raise NotFoundError(f"customer {customer_id} not found")
        return deepcopy(found)


class ProductRepository:
    """Stores products, unique per project and key."""

    def __init__(self) -> None:
        self._items: dict[str, Product] = {}
        self._by_key: dict[tuple[str, str], str] = {}

    def list_by_project(self, project_id: str) -> list[Product]:
        return [deepcopy(p) for p in reversed(self._items.values()) if p.project_id == project_id]

    def get_by_id(self, project_id: str, product_id: str) -> Product:
        found = self._items.get(product_id)
        if found is None or found.project_id != project_id:
            raise NotFoundError(f"product {product_id} not found")
        return deepcopy(found)

    def get_by_sku(self, project_id: str, sku: str) -> Product:
        for product in self._items.values():
            if product.project_id == project_id and product.sku == sku:
                return deepcopy(product)
        raise NotFoundError(f"product with sku {sku} not found")

    def upsert(self, product: Product) -> Product:
        slot = (product.project_id, product.key)
        existing_id = self._by_key.get(slot)
        if existing_id is None:
            new_id = product.id or _new_id()
            if new_id in self._items:
                raise AlreadyExistsError(f"product id {new_id} already exists")
            stored = deepcopy(product)
            stored.id, stored.created_at = new_id, _now()
            self._items[new_id] = stored
            self._by_key[slot] = new_id
        else:
            stored = self._items[existing_id]
            if product.id and stored.id != product.id:
                raise ValueError(
                    f"product repo: id mismatch for key={product.key} project_id={product.project_id} "
                    f"existing_id={stored.id} import_id={product.id}"
                )
            for name in ("sku", "name", "description", "price_cents", "currency"):
                setattr(stored, name, getattr(product, name))
            stored.attributes = deepcopy(product.attributes)
        if stored.attributes is None:
            stored.attributes = {}
        return deepcopy(stored)


class ProjectRepository:
    """Stores projects, unique by key."""

    def __init__(self) -> None:
        self._items: dict[str, Project] = {}

    def get_by_key(self, key: str) -> Project:
        found = self._items.get(key)
        if found is None:
            raise NotFoundError(f"project {key} not found")
        return deepcopy(found)

    def create(self, project: Project) -> Project:
        if project.key in self._items:
            raise AlreadyExistsError(f"project {project.key} already exists")
        stored = Project(id=_new_id(), key=project.key, name=project.name, created_at=_now())
        self._items[stored.key] = stored
        return deepcopy(stored)


class TokenRepository:
    """Stores issued tokens, unique by token value."""

    def __init__(self) -> None:
        self._items: dict[str, Token] = {}

    def create(self, token: Token) -> None:
        if token.token in self._items:
            raise AlreadyExistsError("token already exists")
        stored = deepcopy(token)
        stored.created_at = _now()
        self._items[stored.token] = stored

    def get(self, token: str) -> Token:
        found = self._items.get(token)
        if found is None:
            raise NotFoundError("token not found")
        return deepcopy(found)

    def delete(self, token: str) -> None:
        if self._items.pop(token, None) is None:
            raise NotFoundError("token not found")