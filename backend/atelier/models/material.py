"""Material and Collection SQLAlchemy models."""

from sqlalchemy import Enum, Float, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from atelier.core.database import Base
from atelier.models.enums import MaterialType, enum_values


class Material(Base):
    """Raw material referenced from product recipes."""

    __tablename__ = "materials"

    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    type: Mapped[MaterialType] = mapped_column(
        Enum(MaterialType, name="material_type", native_enum=False, length=20, values_callable=enum_values),
        nullable=False,
    )
    cost_per_unit: Mapped[float] = mapped_column(Float, nullable=False, server_default="0")
    unit: Mapped[str] = mapped_column(String(20), nullable=False, server_default="pcs")


class Collection(Base):
    """Named product collection used to group the board."""

    __tablename__ = "collections"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
