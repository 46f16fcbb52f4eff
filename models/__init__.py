"""Database models."""

from db import Base

# Import all models so Alembic can detect them
from models.slug import Slug
from models.url import Url
from models.category import Category
from models.product import Product

__all__ = [
    "Base",
    "Slug",
    "Url",
    "Category",
    "Product",
]
