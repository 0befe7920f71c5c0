"""Closed enumerations shared by models, schemas and services."""

import enum


class ProductionStage(str, enum.Enum):
    """Manufacturing stages, declared in pipeline order."""

    AWAITING_DELIVERY = "AwaitingDelivery"
    WAXING = "Waxing"
    CASTING = "Casting"
    SETTING = "Setting"
    POLISHING = "Polishing"
    LABELING = "Labeling"
    READY = "Ready"


class BatchType(str, enum.Enum):
    NEW = "New"
    REFURBISH = "Refurbish"


class Gender(str, enum.Enum):
    WOMEN = "Women"
    MEN = "Men"
    UNISEX = "Unisex"


class ProductionType(str, enum.Enum):
    """Whether a product is cast in-house or bought finished from a supplier."""

    IN_HOUSE = "InHouse"
    IMPORTED = "Imported"


class MaterialType(str, enum.Enum):
    STONE = "Stone"
    CORD = "Cord"
    CHAIN = "Chain"
    COMPONENT = "Component"


class OrderStatus(str, enum.Enum):
    PENDING = "Pending"
    IN_PRODUCTION = "InProduction"
    READY = "Ready"
    DELIVERED = "Delivered"
    CANCELLED = "Cancelled"


def enum_values(enum_cls: type[enum.Enum]) -> list[str]:
    """Persist enum values (not member names) in string columns."""
    return [member.value for member in enum_cls]
