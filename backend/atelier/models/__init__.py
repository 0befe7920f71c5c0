"""SQLAlchemy ORM models."""

from atelier.models.enums import (
    BatchType,
    Gender,
    MaterialType,
    OrderStatus,
    ProductionStage,
    ProductionType,
)
from atelier.models.material import Collection, Material
from atelier.models.order import Order, OrderItem
from atelier.models.product import Product
from atelier.models.production_batch import ProductionBatch

__all__ = [
    "BatchType",
    "Collection",
    "Gender",
    "Material",
    "MaterialType",
    "Order",
    "OrderItem",
    "OrderStatus",
    "Product",
    "ProductionBatch",
    "ProductionStage",
    "ProductionType",
]
