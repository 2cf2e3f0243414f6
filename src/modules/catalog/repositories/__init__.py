"""Catalog repositories package."""

from modules.catalog.repositories.django_repository import ProductDjangoRepository
from modules.catalog.repositories.interfaces import IProductRepository, IStockStore

__all__ = ["IProductRepository", "IStockStore", "ProductDjangoRepository"]
