"""Commerce core: catalog CSV import, carts, customers and anonymous sessions over in-memory repositories."""

__version__ = "0.1.0"