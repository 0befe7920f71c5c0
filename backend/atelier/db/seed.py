"""Seed script with a small jewelry workshop for the production board.

Covers the shapes the board has to handle:
1. Stone-set pieces that go through Setting, and plain pieces that skip it
2. Imported pieces waiting for delivery
3. Batches past their stage SLA, and one on hold
4. A partially dispatched order next to an untouched one
"""

from datetime import datetime, timedelta, timezone

from sqlalchemy.ext.asyncio import AsyncSession

from atelier.db.init_db import table_has_data
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

COLLECTION_NAMES = ("Aegean", "Olive Grove", "Meander")


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _hours_ago(hours: int) -> datetime:
    return _now() - timedelta(hours=hours)


def _create_materials() -> list[Material]:
    return [
        Material(id="MAT-ZIR-W", name="Zircon white 2mm", type=MaterialType.STONE, cost_per_unit=0.08),
        Material(id="MAT-ZIR-B", name="Zircon blue 3mm", type=MaterialType.STONE, cost_per_unit=0.12),
        Material(id="MAT-CORD-BK", name="Waxed cord black", type=MaterialType.CORD, cost_per_unit=0.30, unit="m"),
        Material(id="MAT-CHAIN-45", name="Rolo chain 45cm", type=MaterialType.CHAIN, cost_per_unit=2.10),
        Material(id="MAT-CLASP", name="Lobster clasp", type=MaterialType.COMPONENT, cost_per_unit=0.25),
    ]


def _create_products(collection_ids: dict[str, int]) -> list[Product]:
    """Five in-house designs, one imported piece, one component."""
    aegean = collection_ids["Aegean"]
    olive = collection_ids["Olive Grove"]
    meander = collection_ids["Meander"]
    return [
        Product(
            sku="RN-101",
            category="Ring",
            description="Wave ring with white zircon row",
            gender=Gender.WOMEN,
            weight_g=3.2,
            recipe=[{"type": "raw", "id": "MAT-ZIR-W", "quantity": 7}],
            collections=[aegean],
            variants=[{"suffix": "X", "description": "Gold plated"}, {"suffix": "S", "description": "Silver"}],
        ),
        Product(
            sku="RN-110",
            category="Ring",
            description="Plain meander band",
            gender=Gender.MEN,
            weight_g=6.8,
            collections=[meander],
            variants=[{"suffix": "S", "description": "Silver"}],
        ),
        Product(
            sku="PD-12",
            category="Pendant",
            description="Olive leaf pendant on chain",
            gender=Gender.WOMEN,
            weight_g=2.4,
            recipe=[
                {"type": "raw", "id": "MAT-CHAIN-45", "quantity": 1},
                {"type": "component", "sku": "CMP-JR", "quantity": 1},
            ],
            collections=[olive],
        ),
        Product(
            sku="PD-9",
            category="Pendant",
            description="Blue eye pendant",
            gender=Gender.UNISEX,
            weight_g=1.9,
            recipe=[{"type": "raw", "id": "MAT-ZIR-B", "quantity": 1}],
            collections=[aegean],
        ),
        Product(
            sku="BR-40",
            category="Bracelet",
            description="Cord bracelet with cast knot",
            gender=Gender.MEN,
            weight_g=1.1,
            recipe=[{"type": "raw", "id": "MAT-CORD-BK", "quantity": 0.25}],
        ),
        Product(
            sku="ER-7",
            category="Earrings",
            description="Imported hoop earrings",
            gender=Gender.WOMEN,
            production_type=ProductionType.IMPORTED,
            weight_g=2.0,
        ),
        Product(
            sku="CMP-JR",
            category="Component",
            description="Jump ring 5mm",
            weight_g=0.2,
            is_component=True,
        ),
    ]


def _create_orders() -> list[Order]:
    return [
        Order(
            id="ORD-2601",
            customer_name="Kalliste Boutique",
            status=OrderStatus.IN_PRODUCTION,
            notes="Summer window display",
            items=[
                OrderItem(sku="RN-101", variant_suffix="X", size_info="54", quantity=12),
                OrderItem(sku="PD-9", quantity=20),
                OrderItem(sku="ER-7", quantity=10),
            ],
        ),
        Order(
            id="ORD-2602",
            customer_name="Meltemi Gifts",
            status=OrderStatus.PENDING,
            items=[
                OrderItem(sku="RN-110", variant_suffix="S", size_info="62", quantity=6),
                OrderItem(sku="BR-40", quantity=30, notes="Mixed cord lengths"),
            ],
        ),
    ]


def _create_batches() -> list[ProductionBatch]:
    """Batches spread across the board; ``updated_at`` sets the stage clock."""

    def _batch(batch_id: str, sku: str, qty: int, stage: ProductionStage, hours: int, **extra) -> ProductionBatch:
        return ProductionBatch(
            id=batch_id,
            sku=sku,
            quantity=qty,
            current_stage=stage,
            created_at=_hours_ago(hours + 24),
            updated_at=_hours_ago(hours),
            **extra,
        )

    return [
        _batch("BAT-0000A001", "RN-101", 8, ProductionStage.CASTING, 30,
               variant_suffix="X", size_info="54", order_id="ORD-2601"),
        _batch("BAT-0000A002", "RN-101", 4, ProductionStage.SETTING, 10,
               variant_suffix="X", size_info="54", order_id="ORD-2601"),
        _batch("BAT-0000A003", "PD-9", 20, ProductionStage.WAXING, 5, order_id="ORD-2601"),
        _batch("BAT-0000A004", "ER-7", 10, ProductionStage.AWAITING_DELIVERY, 72, order_id="ORD-2601"),
        _batch("BAT-0000A005", "PD-12", 15, ProductionStage.POLISHING, 60,
               notes="Check chain length"),
        _batch("BAT-0000A006", "RN-110", 3, ProductionStage.CASTING, 2,
               variant_suffix="S", type=BatchType.REFURBISH,
               on_hold=True, on_hold_reason="Waiting for customer sizing"),
        _batch("BAT-0000A007", "BR-40", 25, ProductionStage.LABELING, 8),
        _batch("BAT-0000A008", "PD-12", 5, ProductionStage.READY, 200),
    ]


async def seed_demo_data(session: AsyncSession) -> dict[str, int]:
    """Seed the database with demo data.

    Args:
        session: An async SQLAlchemy session.

    Returns:
        Dictionary with counts of created entities.
    """
    collections = [Collection(name=name) for name in COLLECTION_NAMES]
    materials = _create_materials()
    session.add_all(collections)
    session.add_all(materials)
    await session.flush()

    products = _create_products({c.name: c.id for c in collections})
    orders = _create_orders()
    session.add_all(products)
    session.add_all(orders)
    await session.flush()

    batches = _create_batches()
    session.add_all(batches)
    await session.flush()

    return {
        "collections": len(collections),
        "materials": len(materials),
        "products": len(products),
        "orders": len(orders),
        "order_items": sum(len(order.items) for order in orders),
        "production_batches": len(batches),
    }


async def seed_if_empty(session: AsyncSession) -> dict[str, int] | None:
    """Seed demo data only if the catalog is empty.

    Returns:
        Seed counts if data was seeded, None if database already has data.
    """
    if await table_has_data(session, "products"):
        return None
    return await seed_demo_data(session)
