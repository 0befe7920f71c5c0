"""ProductionBatch SQLAlchemy model."""

from datetime import datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from atelier.core.database import Base
from atelier.models.enums import BatchType, ProductionStage, enum_values


class ProductionBatch(Base):
    """A physical lot of pieces sitting at one production stage."""

    __tablename__ = "production_batches"
    __table_args__ = (CheckConstraint("quantity >= 1", name="ck_production_batches_quantity_positive"),)

    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    sku: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    variant_suffix: Mapped[str | None] = mapped_column(String(20), nullable=True)
    size_info: Mapped[str | None] = mapped_column(String(50), nullable=True)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    current_stage: Mapped[ProductionStage] = mapped_column(
        Enum(
            ProductionStage,
            name="production_stage",
            native_enum=False,
            length=20,
            values_callable=enum_values,
        ),
        nullable=False,
        index=True,
    )
    order_id: Mapped[str | None] = mapped_column(
        String(32), ForeignKey("orders.id", ondelete="SET NULL"), nullable=True, index=True
    )
    type: Mapped[BatchType] = mapped_column(
        Enum(BatchType, name="batch_type", native_enum=False, length=20, values_callable=enum_values),
        nullable=False,
        server_default=BatchType.NEW.value,
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    on_hold: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default="false")
    on_hold_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        comment="Stage clock; reset on every stage transition",
    )
