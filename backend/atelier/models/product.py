"""Product SQLAlchemy model."""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Enum, Float, String, Text, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from atelier.core.database import Base
from atelier.models.enums import Gender, ProductionType, enum_values


class Product(Base):
    """Catalog item, keyed by its master SKU."""

    __tablename__ = "products"

    sku: Mapped[str] = mapped_column(String(50), primary_key=True)
    category: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    gender: Mapped[Gender | None] = mapped_column(
        Enum(Gender, name="gender", native_enum=False, length=10, values_callable=enum_values),
        nullable=True,
    )
    production_type: Mapped[ProductionType] = mapped_column(
        Enum(
            ProductionType,
            name="production_type",
            native_enum=False,
            length=10,
            values_callable=enum_values,
        ),
        nullable=False,
        server_default=ProductionType.IN_HOUSE.value,
    )
    weight_g: Mapped[float] = mapped_column(
        Float, nullable=False, server_default="0", comment="Metal weight per piece in grams"
    )
    image_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    is_component: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default="false")
    recipe: Mapped[list] = mapped_column(
        JSONB,
        nullable=False,
        server_default="[]",
        comment="Bill of materials: raw material and component references",
    )
    collections: Mapped[list] = mapped_column(
        JSONB, nullable=False, server_default="[]", comment="Collection ids, first is primary"
    )
    variants: Mapped[list] = mapped_column(
        JSONB, nullable=False, server_default="[]", comment="Finish/stone variants by suffix"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
