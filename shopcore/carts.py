"""Cart service: creation, lookup, update actions and deletion with owner checks."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from shopcore.repositories import Cart, CreateCartInput, NotFoundError, Product


class CartValidationError(ValueError):
    """Raised when a cart request is incomplete or asks for something unsupported."""


@dataclass
class CreateInput:
    currency: str = ""
    customer_id: str | None = None
    anonymous_id: str | None = None


@dataclass
class UpdateAction:
    action: str
    sku: str = ""
    line_item_id: str = ""
    quantity: int = 0


@dataclass
class UpdateInput:
    version: int = 0
    actions: list[UpdateAction] = field(default_factory=list)


def snapshot_from_product(product: Product) -> dict[str, Any]:
    """Describe a product as it looked when it was put into a cart."""
    slug = product.key.strip() or product.name.lower().replace(" ", "-")
    snapshot: dict[str, Any] = {
        "productKey": product.key,
        "productName": product.name,
        "sku": product.sku,
        "productSlug": slug,
        "priceCents": product.price_cents,
        "currency": product.currency,
    }
    if product.attributes and "images" in product.attributes:
        snapshot["images"] = product.attributes["images"]
    return snapshot


def _check_owner(cart: Cart, customer_id: str | None, anonymous_id: str | None) -> None:
    if customer_id is not None:
        if cart.customer_id is None or cart.customer_id != customer_id:
            raise NotFoundError(f"cart {cart.id} not found")
    elif anonymous_id is not None:
        if cart.anonymous_id is None or cart.anonymous_id != anonymous_id:
            raise NotFoundError(f"cart {cart.id} not found")
    else:
        raise NotFoundError(f"cart {cart.id} not found")


class CartService:
    """Manages carts of customers and anonymous shoppers."""

    def __init__(self, repo, product_repo=None) -> None:
        self._repo = repo
        self._product_repo = product_repo

    def create(self, project_id: str, data: CreateInput) -> Cart:
        """Open a new active cart in the given currency."""
        if not data.currency.strip():
            raise CartValidationError("currency required")
        return self._repo.create(
            CreateCartInput(
                project_id=project_id,
                currency=data.currency,
                customer_id=data.customer_id,
                anonymous_id=data.anonymous_id,
            )
        )

    def get(self, project_id: str, cart_id: str) -> Cart:
        """The cart with this id."""
        return self._repo.get_by_id(project_id, cart_id)

    def get_active(self, project_id: str, customer_id: str) -> Cart:
        """The customer's most recent active cart."""
        return self._repo.get_active_by_customer(project_id, customer_id)

    def get_active_anonymous(self, project_id: str, anonymous_id: str) -> Cart:
        """The anonymous shopper's most recent active cart."""
        return self._repo.get_active_by_anonymous(project_id, anonymous_id)

    def assign_customer_from_anonymous(self, project_id: str, anonymous_id: str, customer_id: str) -> Cart:
        """Hand an anonymous shopper's active cart over to a customer."""
        return self._repo.assign_customer_to_anonymous(project_id, anonymous_id, customer_id)

    def update(self, project_id: str, customer_id: str, cart_id: str, data: UpdateInput) -> Cart:
        """Apply update actions to a cart owned by the customer."""
        return self._update_with_owner(project_id, cart_id, customer_id, None, data)

    def update_anonymous(self, project_id: str, anonymous_id: str, cart_id: str, data: UpdateInput) -> Cart:
        """Apply update actions to a cart owned by the anonymous shopper."""
        return self._update_with_owner(project_id, cart_id, None, anonymous_id, data)

    def delete(self, project_id: str, customer_id: str, cart_id: str) -> Cart:
        """Mark a cart owned by the customer as deleted."""
        return self._delete_with_owner(project_id, cart_id, customer_id, None)

    def delete_anonymous(self, project_id: str, anonymous_id: str, cart_id: str) -> Cart:
        """Mark a cart owned by the anonymous shopper as deleted."""
        return self._delete_with_owner(project_id, cart_id, None, anonymous_id)

    def _update_with_owner(
        self,
        project_id: str,
        cart_id: str,
        customer_id: str | None,
        anonymous_id: str | None,
        data: UpdateInput,
    ) -> Cart:
        if not data.actions:
            raise CartValidationError("actions required")
        cart = self._repo.get_by_id(project_id, cart_id)
        _check_owner(cart, customer_id, anonymous_id)

        for action in data.actions:
            name = action.action.strip().lower()
            if name == "addlineitem":
                self._add_line_item(project_id, cart_id, action)
            elif name == "changelineitemquantity":
                line_id = action.line_item_id.strip()
                if not line_id:
                    raise CartValidationError("lineItemId required")
                if action.quantity <= 0:
                    raise CartValidationError("quantity must be positive")
                self._repo.change_line_item_quantity(cart_id, line_id, action.quantity)
            else:
                raise CartValidationError("unsupported action")

        return self._repo.get_by_id(project_id, cart_id)

    def _add_line_item(self, project_id: str, cart_id: str, action: UpdateAction) -> None:
        sku = action.sku.strip()
        if not sku:
            raise CartValidationError("sku required")
        if action.quantity <= 0:
            raise CartValidationError("quantity must be positive")
        if self._product_repo is None:
            raise CartValidationError("product repository unavailable")
        try:
            product = self._product_repo.get_by_sku(project_id, sku)
        except NotFoundError as exc:
            raise CartValidationError("product not found") from exc
        self._repo.add_line_item(cart_id, product, action.quantity, snapshot_from_product(product))

    def _delete_with_owner(
        self,
        project_id: str,
        cart_id: str,
        customer_id: str | None,
        anonymous_id: str | None,
    ) -> Cart:
        cart = self._repo.get_by_id(project_id, cart_id)
        _check_owner(cart, customer_id, anonymous_id)
        self._repo.set_state(project_id, cart_id, "deleted")
        return self._repo.get_by_id(project_id, cart_id)