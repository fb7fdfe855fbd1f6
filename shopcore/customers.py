"""Customer sign-up, login and token lookup."""

from __future__ import annotations

import secrets
from dataclasses import dataclass, field
from datetime import timedelta

import bcrypt

from shopcore.repositories import Customer, CustomerAddress, NotFoundError
from shopcore.tokens import InvalidTokenError, TokenManager

_BCRYPT_COST = 10


class InvalidCredentialsError(Exception):
    """Raised when e-mail and password do not match."""

    def __init__(self, message: str = "invalid credentials") -> None:
        super().__init__(message)


class PasswordPolicyError(ValueError):
    """Raised when a password does not meet the policy."""


@dataclass
class AddressInput:
    first_name: str = ""
    last_name: str = ""
    country: str = ""
    street_name: str = ""
    postal_code: str = ""
    city: str = ""
    email: str = ""
    department: str = ""


@dataclass
class SignupInput:
    email: str
    password: str
    first_name: str = ""
    last_name: str = ""
    date_of_birth: str = ""
    addresses: list[AddressInput] = field(default_factory=list)
    default_shipping_address: int | None = None
    default_billing_address: int | None = None


def validate_password(password: str, minimum: int) -> None:
    """Raise PasswordPolicyError unless the password is long and mixed enough."""
    trimmed = password.strip()
    if len(trimmed.encode()) < minimum:
        raise PasswordPolicyError(f"password must be at least {minimum} characters")
    has_upper = any("A" <= ch <= "Z" for ch in trimmed)
    has_lower = any("a" <= ch <= "z" for ch in trimmed)
    has_digit = any("0" <= ch <= "9" for ch in trimmed)
    if not (has_upper and has_lower and has_digit):
        raise PasswordPolicyError(
            "password must contain at least 1 uppercase letter, 1 lowercase letter, and 1 number"
        )


def _random_address_id() -> str:
    return secrets.token_urlsafe(6)


def _address_id_at(addresses: list[CustomerAddress], index: int | None) -> str:
    if index is None or not 0 <= index < len(addresses):
        return ""
    return addresses[index].id


class CustomerService:
    """Handles customer sign-up and login flows."""

    def __init__(self, repo, tokens) -> None:
        self._repo = repo
        self._tokens = TokenManager(tokens, "customer")
        self._access_ttl = timedelta(hours=48)
        self._refresh_ttl = timedelta(days=30)
        self._password_min = 8

    def signup(self, project_id: str, data: SignupInput) -> Customer:
        """Register a new customer within the project."""
        email = data.email.lower().strip()
        if not email:
            raise ValueError("email required")
        password = data.password.strip()
        validate_password(password, self._password_min)
        hashed = bcrypt.hashpw(password.encode(), bcrypt.gensalt(rounds=_BCRYPT_COST)).decode()

        addresses = [
            CustomerAddress(
                id=_random_address_id(),
                first_name=a.first_name,
                last_name=a.last_name,
                country=a.country,
                street_name=a.street_name,
                postal_code=a.postal_code,
                city=a.city,
                email=a.email,
                department=a.department,
            )
            for a in data.addresses
        ]
        first_id = addresses[0].id if addresses else ""
        shipping_id = _address_id_at(addresses, data.default_shipping_address) or first_id
        billing_id = _address_id_at(addresses, data.default_billing_address) or first_id

        customer = Customer(
            project_id=project_id,
            email=email,
            password_hash=hashed,
            first_name=data.first_name,
            last_name=data.last_name,
            date_of_birth=data.date_of_birth,
            addresses=addresses,
            default_shipping_address_id=shipping_id,
            default_billing_address_id=billing_id,
            shipping_address_ids=[shipping_id] if shipping_id else [],
            billing_address_ids=[billing_id] if billing_id else [],
        )
        return self._repo.create(customer)

    def login(self, project_id: str, email: str, password: str) -> tuple[Customer, str, str]:
        """Check credentials; return (customer, access token, refresh token)."""
        password = password.strip()
        try:
            customer = self._repo.get_by_email(project_id, email)
        except NotFoundError as exc:
            raise InvalidCredentialsError() from exc
        try:
            matches = bcrypt.checkpw(password.encode(), customer.password_hash.encode())
        except ValueError:
            matches = False
        if not matches:
            raise InvalidCredentialsError()
        access = self._tokens.issue(customer.project_id, customer.id, "access", self._access_ttl)
        refresh = self._tokens.issue(customer.project_id, customer.id, "refresh", self._refresh_ttl)
        return customer, access, refresh

    def lookup_by_token(self, project_id: str, token: str) -> Customer:
        """Return the customer bound to a valid access token of this project."""
        meta = self._tokens.validate(token)
        if meta.project_id != project_id:
            raise InvalidTokenError()
        try:
            return self._repo.get_by_id(project_id, meta.owner_id)
        except NotFoundError as exc:
            raise InvalidTokenError() from exc

    def access_ttl_seconds(self) -> int:
        """Lifetime of an access token in seconds."""
        return int(self._access_ttl.total_seconds())