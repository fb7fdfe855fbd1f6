# shopcore

Building blocks for a small commerce backend: catalog CSV import, carts,
customer accounts and anonymous shopper sessions. Each service is given its
repository objects when it is built. `shopcore.repositories` provides
in-memory repositories. Any object with the same methods can take their place.

## Install

```
pip install shopcore
```

To run the tests:

```
pip install "shopcore[test]"
pytest
```

## Modules

- `shopcore.repositories` holds the domain records (`Product`, `Category`,
  `Cart`, `CartLine`, `Customer`, `CustomerAddress`, `Project`, `Token`,
  `CreateCartInput`) and the shared errors `NotFoundError` and
  `AlreadyExistsError`. It also holds in-memory repositories:
  `CartRepository`, `CategoryRepository`, `CustomerRepository`,
  `ProductRepository`, `ProjectRepository` and `TokenRepository`. Each one
  returns copies of what it stores. Products are unique per project and key,
  and categories are too. Customers are unique per project and e-mail
  address, without regard to case.
- `shopcore.importer`:
  - `CSVImporter` reads catalog CSV exports and upserts products or
    categories.
  - `detect_kind` tells a product file from a category file by its header row.
  - `normalize_category_key` and `display_name_from_key` are helpers.
  - Failures raise `CSVImportError`. Its `imported` attribute counts the
    records saved before the failure.
- `shopcore.tokens`:
  - `TokenManager` issues and validates opaque tokens for either `"customer"`
    or `"anonymous"` owners.
  - Failures raise `InvalidTokenError` and `TokenCollisionError`.
  - `random_token` and `random_uuid` generate values.
- `shopcore.anonymous`: `AnonymousService` issues sessions for shoppers who
  are not signed in. Access tokens last 3 hours and refresh tokens last 30
  days.
- `shopcore.customers`:
  - `CustomerService` handles signup, login and token lookup. Passwords are
    hashed with bcrypt. Access tokens last 48 hours and refresh tokens last
    30 days.
  - `validate_password` checks a password against the policy.
  - Failures raise `InvalidCredentialsError` and `PasswordPolicyError`.
- `shopcore.catalog`: `CategoryService` and `ProductService`.
- `shopcore.carts`:
  - `CartService` creates carts and applies the `addLineItem` and
    `changeLineItemQuantity` update actions. It also handles deletion, and
    checks that the caller owns the cart first.
  - `snapshot_from_product` records a product as it was when added to a cart.

## Importing a catalog

```python
from shopcore.importer import CSVImporter, detect_kind
from shopcore.repositories import CategoryRepository, ProductRepository

products = ProductRepository()
categories = CategoryRepository()

with open("export.csv", newline="") as fh:
    print(detect_kind(fh))

with open("export.csv", newline="") as fh:
    importer = CSVImporter(fh, products, categories, "project-1")
    count = importer.run()

print(importer.kind(), count)
```

A file is read as a category file when its header has `parent.key` or
`slug.en` and does not have `variants.sku`.

In a product file:

- A row with a `key` starts a new product.
- Later rows without a key add more image URLs to that product.
- Each product needs a key, a name, a SKU, a non-zero cent amount and a
  currency. Its `id`, if given, must be 36 characters long.
- The categories named in the `categories` column are created on demand.
  The column is split on `,` or `;`, and `productType.key` is the fallback.
  The product's `categories` attribute then holds their ids.

In a category file:

- A missing key falls back to the slug, and a missing name is built from the
  key.
- A row with no parent takes one from its order hint. A hint such as `3.3`
  makes the category with hint `3` its parent.

## Customers and carts

```python
from getpass import getpass

from shopcore.carts import CartService, CreateInput, UpdateAction, UpdateInput
from shopcore.customers import CustomerService, SignupInput
from shopcore.repositories import (
    CartRepository, CustomerRepository, ProductRepository, TokenRepository,
)

products = ProductRepository()
customers = CustomerService(CustomerRepository(), TokenRepository())

password = getpass()
customers.signup("project-1", SignupInput(email="someone@example.com", password=password))
customer, access, refresh = customers.login("project-1", "someone@example.com", password)

carts = CartService(CartRepository(), products)
cart = carts.create("project-1", CreateInput(currency="EUR", customer_id=customer.id))
cart = carts.update("project-1", customer.id, cart.id, UpdateInput(
    version=1,
    actions=[UpdateAction(action="addLineItem", sku="SKU-1", quantity=2)],
))
```

Signup passwords must have at least eight characters, including at least one
upper-case letter, one lower-case letter and one digit. If not,
`PasswordPolicyError` is raised.

Update requests are rejected with `CartValidationError` in these cases:

- missing actions
- an empty SKU or line item id
- a quantity that is not positive
- an unknown SKU
- an unsupported action

A cart that the caller does not own raises `NotFoundError`.

## What it does not do

- shopcore has no persistent storage. Its repositories keep everything in
  memory for the life of the process. For a database, supply objects with the
  same methods.
- It has no HTTP server.
- It has no command-line program.