import bcrypt
import pytest

from shopcore.customers import (
    AddressInput,
    CustomerService,
    InvalidCredentialsError,
    PasswordPolicyError,
    SignupInput,
    validate_password,
)
from shopcore.repositories import AlreadyExistsError, CustomerRepository, TokenRepository
from shopcore.tokens import InvalidTokenError

PASSWORD = "password".capitalize() + str(2024)


@pytest.fixture
def repos():
    return CustomerRepository(), TokenRepository()


@pytest.fixture
def service(repos):
    return CustomerService(*repos)


def _signup(service, email="user@example.com", **extra):
    password = PASSWORD
    return service.signup("proj", SignupInput(email=email, password=password, **extra))


def test_validate_password_accepts_strong():
    password = PASSWORD
    assert validate_password(password, 8) is None


@pytest.mark.parametrize(
    "candidate",
    ["password", "password".upper() + str(1), "password" + str(1)],
)
def test_validate_password_requires_mix(candidate):
    with pytest.raises(PasswordPolicyError, match="uppercase letter"):
        validate_password(candidate, 8)


def test_validate_password_minimum_length():
    with pytest.raises(PasswordPolicyError, match="password must be at least 8 characters"):
        validate_password(PASSWORD[:5], 8)


def test_signup_normalises_email_and_hashes(service):
    customer = _signup(service, email="  User@Example.com ")
    assert customer.email == "user@example.com"
    assert customer.id
    assert customer.password_hash != PASSWORD
    assert bcrypt.checkpw(PASSWORD.encode(), customer.password_hash.encode())


def test_signup_requires_email(service):
    with pytest.raises(ValueError, match="email required"):
        _signup(service, email="   ")


def test_signup_rejects_weak_password(service):
    password = "password"
    with pytest.raises(PasswordPolicyError):
        service.signup("proj", SignupInput(email="user@example.com", password=password))


def test_signup_duplicate_email(service):
    _signup(service)
    with pytest.raises(AlreadyExistsError):
        _signup(service, email="USER@example.com")


def test_signup_without_addresses_has_no_defaults(service):
    customer = _signup(service)
    assert customer.addresses == []
    assert customer.default_shipping_address_id == ""
    assert customer.shipping_address_ids == []
    assert customer.billing_address_ids == []


def test_signup_defaults_to_first_address(service):
    addresses = [AddressInput(city="Berlin"), AddressInput(city="Paris")]
    customer = _signup(service, addresses=addresses, default_shipping_address=5)
    first = customer.addresses[0].id
    assert [a.city for a in customer.addresses] == ["Berlin", "Paris"]
    assert customer.default_shipping_address_id == first
    assert customer.default_billing_address_id == first
    assert customer.shipping_address_ids == [first]


def test_signup_uses_given_default_indices(service):
    addresses = [AddressInput(city="Berlin"), AddressInput(city="Paris")]
    customer = _signup(service, addresses=addresses, default_shipping_address=1, default_billing_address=0)
    assert customer.addresses[0].id != customer.addresses[1].id
    assert customer.default_shipping_address_id == customer.addresses[1].id
    assert customer.default_billing_address_id == customer.addresses[0].id
    assert customer.billing_address_ids == [customer.addresses[0].id]


def test_login_and_lookup_round_trip(service):
    created = _signup(service)
    customer, access, refresh = service.login("proj", "USER@example.com", PASSWORD)
    assert customer.id == created.id
    assert access != refresh
    assert service.lookup_by_token("proj", access).id == created.id


def test_login_wrong_password(service):
    _signup(service)
    password = "password"
    with pytest.raises(InvalidCredentialsError, match="invalid credentials"):
        service.login("proj", "user@example.com", password)


def test_login_unknown_email(service):
    with pytest.raises(InvalidCredentialsError):
        service.login("proj", "nobody@example.com", PASSWORD)


def test_lookup_rejects_refresh_and_foreign_project(service):
    _signup(service)
    _, access, refresh = service.login("proj", "user@example.com", PASSWORD)
    with pytest.raises(InvalidTokenError):
        service.lookup_by_token("proj", refresh)
    with pytest.raises(InvalidTokenError):
        service.lookup_by_token("other", access)


def test_access_ttl_seconds(service):
    assert service.access_ttl_seconds() == 172800