"""Import of catalog CSV exports into product and category repositories."""

from __future__ import annotations

import csv
import re
from dataclasses import dataclass, field
from typing import Any, Iterable, Iterator, Protocol

from shopcore.repositories import Category, Product

KIND_PRODUCTS = "products"
KIND_CATEGORIES = "categories"

_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1
_INTEGER = re.compile(r"[+-]?[0-9]+")


class CSVImportError(Exception):
    """Raised when an import fails; ``imported`` counts records saved before the failure."""

    def __init__(self, message: str, imported: int = 0) -> None:
        super().__init__(message)
        self.imported = imported


class _ProductWriter(Protocol):
    def upsert(self, product: Product) -> Product | None: ...


class _CategoryWriter(Protocol):
    def upsert(self, category: Category) -> Category | None: ...


@dataclass
class _ProductRow:
    id: str
    key: str
    name: str
    description: str
    sku: str
    cents: int
    currency: str
    categories: list[str]
    product_type: str
    image_urls: list[str] = field(default_factory=list)


@dataclass
class _CategoryRow:
    key: str
    name: str
    slug: str
    parent_key: str
    order_hint: str
    description: str
    meta_title: str
    meta_description: str


def _records(reader: Iterator[list[str]]) -> Iterator[list[str]]:
    try:
        for record in reader:
            if record:
                yield record
    except csv.Error as exc:
        raise CSVImportError(f"read row: {exc}") from exc


def _read_headers(reader: Iterator[list[str]]) -> dict[str, int]:
    try:
        for record in reader:
            if record:
                return {name: pos for pos, name in enumerate(record)}
    except csv.Error as exc:
        raise CSVImportError(f"read headers: {exc}") from exc
    raise CSVImportError("read headers: EOF")


def _is_category_file(index: dict[str, int]) -> bool:
    return ("parent.key" in index or "slug.en" in index) and "variants.sku" not in index


def detect_kind(source: Iterable[str]) -> str:
    """Tell from the header line whether an export holds products or categories."""
    index = _read_headers(csv.reader(source))
    return KIND_CATEGORIES if _is_category_file(index) else KIND_PRODUCTS


def normalize_category_key(key: str) -> str:
    """Trim a category key and drop a trailing ``-types`` or ``-type``."""
    return key.strip().removesuffix("-types").removesuffix("-type")


def display_name_from_key(key: str) -> str:
    """Turn a key such as ``indoor-pots`` into a title such as ``Indoor Pots``."""
    parts = [p for p in re.split(r"[-_ ]", key) if p]
    return " ".join(p[:1].upper() + p[1:].lower() for p in parts)


def _pick(record: list[str], index: dict[str, int], name: str) -> str:
    pos = index.get(name)
    if pos is None or pos >= len(record):
        return ""
    return record[pos].strip()


def _pick_categories(record: list[str], index: dict[str, int], name: str) -> list[str]:
    value = _pick(record, index, name)
    return [part.strip() for part in re.split(r"[,;]", value) if part.strip()]


def _normalize_category_keys(categories: list[str], fallback: str) -> list[str]:
    if not categories and fallback:
        categories = [fallback]
    out: list[str] = []
    for raw in categories:
        key = normalize_category_key(raw)
        if key and key not in out:
            out.append(key)
    return out


def _parse_cents(text: str) -> int:
    if not _INTEGER.fullmatch(text):
        return 0
    return max(_INT64_MIN, min(_INT64_MAX, int(text)))


def _parse_product_row(record: list[str], index: dict[str, int]) -> _ProductRow | None:
    key = _pick(record, index, "key")
    image_url = _pick(record, index, "variants.images.url")
    product_type = _pick(record, index, "productType.key")
    categories = _normalize_category_keys(_pick_categories(record, index, "categories"), product_type)
    if not key and not image_url:
        return None
    return _ProductRow(
        id=_pick(record, index, "id"),
        key=key,
        name=_pick(record, index, "name.en"),
        description=_pick(record, index, "description.en"),
        sku=_pick(record, index, "variants.sku"),
        cents=_parse_cents(_pick(record, index, "variants.prices.value.centAmount")),
        currency=_pick(record, index, "variants.prices.value.currencyCode"),
        categories=categories,
        product_type=product_type,
        image_urls=[image_url] if image_url else [],
    )


def _parse_category_row(record: list[str], index: dict[str, int]) -> _CategoryRow | None:
    key = _pick(record, index, "key")
    slug = _pick(record, index, "slug.en")
    name = _pick(record, index, "name.en")
    key = key or slug
    if not key:
        return None
    return _CategoryRow(
        key=key,
        name=name or display_name_from_key(key),
        slug=slug or key,
        parent_key=_pick(record, index, "parent.key"),
        order_hint=_pick(record, index, "orderHint"),
        description=_pick(record, index, "description.en"),
        meta_title=_pick(record, index, "metaTitle.en"),
        meta_description=_pick(record, index, "metaDescription.en"),
    )


def _primary_order_hint(order_hint: str) -> str:
    return order_hint.strip().split(".")[0]


def _infer_category_parents(rows: list[_CategoryRow]) -> None:
    primary_to_key: dict[str, str] = {}
    for row in rows:
        row.key = normalize_category_key(row.key)
        row.parent_key = normalize_category_key(row.parent_key)
        primary = _primary_order_hint(row.order_hint)
        if not primary or "." in row.order_hint.strip():
            continue
        if row.key:
            primary_to_key.setdefault(primary, row.key)

    for row in rows:
        if row.parent_key:
            continue
        parts = row.order_hint.strip().split(".")
        if len(parts) < 2:
            continue
        parent = primary_to_key.get(parts[0], "")
        if parent and parent != row.key:
            row.parent_key = parent


def _pick_category_keys(row: _ProductRow) -> list[str]:
    if row.categories:
        return row.categories
    if row.product_type:
        return [row.product_type]
    return []


class CSVImporter:
    """Reads a catalog CSV export and upserts its products or categories."""

    def __init__(self, source, product_repo, category_repo, project_id) -> None:
        self._reader = csv.reader(source)
        self._product_repo: _ProductWriter | None = product_repo
        self._category_repo: _CategoryWriter | None = category_repo
        self._project_id: str = project_id
        self._category_seen: set[str] = set()
        self._category_id_by_key: dict[str, str] = {}
        self._kind = KIND_PRODUCTS

    def kind(self) -> str:
        """Kind of the last file run: products or categories."""
        return self._kind

    def run(self) -> int:
        """Import every record and return how many were saved."""
        index = _read_headers(self._reader)
        if _is_category_file(index):
            self._kind = KIND_CATEGORIES
            if self._category_repo is None:
                raise CSVImportError("category import requested but category repository is not configured")
            return self._run_categories(index)
        self._kind = KIND_PRODUCTS
        if self._product_repo is None:
            raise CSVImportError("product import requested but product repository is not configured")
        return self._run_products(index)

    def _run_products(self, index: dict[str, int]) -> int:
        imported = 0
        current: _ProductRow | None = None
        try:
            for record in _records(self._reader):
                row = _parse_product_row(record, index)
                if row is None:
                    continue
                if row.key:
                    if current is not None:
                        self._save_product(current)
                        imported += 1
                    current = row
                elif current is not None and row.image_urls:
                    # Continuation rows carry further images of the current product.
                    current.image_urls.extend(row.image_urls)
            if current is not None:
                self._save_product(current)
                imported += 1
        except CSVImportError as exc:
            exc.imported = imported
            raise
        return imported

    def _save_product(self, row: _ProductRow) -> None:
        if not (row.key and row.name and row.sku and row.cents and row.currency):
            raise CSVImportError(f'invalid product row (missing required fields) for key "{row.key}"')
        if row.id and len(row.id.encode()) != 36:
            raise CSVImportError(f'invalid id for key "{row.key}": {row.id}')

        attributes: dict[str, Any] = {}
        if row.image_urls:
            attributes["images"] = list(row.image_urls)
        category_keys = _pick_category_keys(row)
        if category_keys:
            attributes["categoryKeys"] = list(category_keys)
        category_ids = self._ensure_category_ids(category_keys)
        if category_ids:
            attributes["categories"] = category_ids
        elif category_keys:
            attributes["categories"] = list(category_keys)

        product = Product(
            id=row.id,
            project_id=self._project_id,
            key=row.key,
            sku=row.sku,
            name=row.name,
            description=row.description,
            price_cents=row.cents,
            currency=row.currency,
            attributes=attributes,
        )
        try:
            self._product_repo.upsert(product)
        except Exception as exc:
            raise CSVImportError(f'upsert product "{row.key}": {exc}') from exc

    def _ensure_category_ids(self, category_keys: list[str]) -> list[str]:
        if self._category_repo is None:
            return []
        seen: set[str] = set()
        ids: list[str] = []
        for raw in category_keys:
            key = normalize_category_key(raw)
            if not key or key in seen:
                continue
            seen.add(key)
            cached = self._category_id_by_key.get(key)
            if cached:
                ids.append(cached)
                continue
            try:
                out = self._category_repo.upsert(
                    Category(project_id=self._project_id, key=key, name=display_name_from_key(key), slug=key)
                )
            except Exception as exc:
                raise CSVImportError(f'upsert category "{key}": {exc}') from exc
            if out is not None and out.id:
                self._category_id_by_key[key] = out.id
                ids.append(out.id)
            self._category_seen.add(key)
        return ids

    def _run_categories(self, index: dict[str, int]) -> int:
        rows = [row for row in map(lambda r: _parse_category_row(r, index), _records(self._reader)) if row]
        _infer_category_parents(rows)
        imported = 0
        try:
            for row in rows:
                self._save_category(row)
                imported += 1
        except CSVImportError as exc:
            exc.imported = imported
            raise
        return imported

    def _save_category(self, row: _CategoryRow) -> None:
        key = normalize_category_key(row.key)
        if not key or key in self._category_seen:
            return
        try:
            out = self._category_repo.upsert(
                Category(
                    project_id=self._project_id,
                    key=key,
                    name=row.name,
                    slug=row.slug,
                    order_hint=row.order_hint,
                    parent_key=normalize_category_key(row.parent_key),
                    description=row.description,
                    meta_title=row.meta_title,
                    meta_description=row.meta_description,
                )
            )
        except Exception as exc:
            raise CSVImportError(f'upsert category "{key}": {exc}') from exc
        if out is not None and out.id:
            self._category_id_by_key[key] = out.id
        self._category_seen.add(key)