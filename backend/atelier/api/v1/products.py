"""Product catalog API endpoints."""

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from atelier.core.database import get_db
from atelier.models.enums import ProductionType
from atelier.models.product import Product
from atelier.schemas.catalog import ProductCreate, ProductResponse

router = APIRouter(prefix="/products", tags=["products"])


@router.get("", response_model=list[ProductResponse])
async def list_products(
    production_type: ProductionType | None = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    db: AsyncSession = Depends(get_db),
) -> list[Product]:
    """List products by SKU with pagination."""
    query = select(Product)
    if production_type is not None:
        query = query.where(Product.production_type == production_type)
    query = query.order_by(Product.sku).offset(skip).limit(limit)
    result = await db.execute(query)
    return list(result.scalars().all())


@router.post("", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
async def create_product(
    payload: ProductCreate,
    db: AsyncSession = Depends(get_db),
) -> Product:
    """Create a new product."""
    if await db.get(Product, payload.sku) is not None:
        raise HTTPException(status_code=409, detail=f"Product {payload.sku} already exists")

    product = Product(**payload.model_dump())
    db.add(product)
    await db.flush()
    await db.refresh(product)
    return product


@router.get("/{sku}", response_model=ProductResponse)
async def get_product(
    sku: str,
    db: AsyncSession = Depends(get_db),
) -> Product:
    """Get a single product by master SKU."""
    product = await db.get(Product, sku)
    if product is None:
        raise HTTPException(status_code=404, detail="Product not found")
    return product
