"""Raw material API endpoints."""

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from atelier.core.database import get_db
from atelier.models.enums import MaterialType
from atelier.models.material import Material
from atelier.schemas.catalog import MaterialCreate, MaterialResponse

router = APIRouter(prefix="/materials", tags=["materials"])


@router.get("", response_model=list[MaterialResponse])
async def list_materials(
    type_filter: MaterialType | None = Query(None, alias="type"),
    db: AsyncSession = Depends(get_db),
) -> list[Material]:
    """List materials, optionally filtered by type."""
    query = select(Material)
    if type_filter is not None:
        query = query.where(Material.type == type_filter)
    result = await db.execute(query.order_by(Material.id))
    return list(result.scalars().all())


@router.post("", response_model=MaterialResponse, status_code=status.HTTP_201_CREATED)
async def create_material(
    payload: MaterialCreate,
    db: AsyncSession = Depends(get_db),
) -> Material:
    if await db.get(Material, payload.id) is not None:
        raise HTTPException(status_code=409, detail=f"Material {payload.id} already exists")

    material = Material(**payload.model_dump())
    db.add(material)
    await db.flush()
    await db.refresh(material)
    return material
