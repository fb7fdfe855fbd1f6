"""Read and write services for categories and products."""

from __future__ import annotations

from shopcore.repositories import Category, Product


class CategoryService:
    """Lists and upserts categories."""

    def __init__(self, repo) -> None:
        self._repo = repo

    def list(self, project_id: str) -> list[Category]:
        """Categories of a project, ordered by name."""
        return self._repo.list_by_project(project_id)

    def upsert(self, category: Category) -> Category:
        """Create or update a category by project and key."""
        return self._repo.upsert(category)


class ProductService:
    """Reads products."""

    def __init__(self, repo) -> None:
        self._repo = repo

    def list(self, project_id: str) -> list[Product]:
        """Products of a project, newest first."""
        return self._repo.list_by_project(project_id)

    def get(self, project_id: str, product_id: str) -> Product:
        """The product with this id; raises NotFoundError otherwise."""
        return self._repo.get_by_id(project_id, product_id)

    def get_by_sku(self, project_id: str, sku: str) -> Product:
        """The product with this SKU; raises NotFoundError otherwise."""
        return self._repo.get_by_sku(project_id, sku)