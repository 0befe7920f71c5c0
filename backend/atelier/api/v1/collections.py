"""Product collection API endpoints."""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from atelier.core.database import get_db
from atelier.models.material import Collection
from atelier.schemas.catalog import CollectionCreate, CollectionResponse

router = APIRouter(prefix="/collections", tags=["collections"])


@router.get("", response_model=list[CollectionResponse])
async def list_collections(db: AsyncSession = Depends(get_db)) -> list[Collection]:
    """List collections alphabetically."""
    result = await db.execute(select(Collection).order_by(Collection.name))
    return list(result.scalars().all())


@router.post("", response_model=CollectionResponse, status_code=status.HTTP_201_CREATED)
async def create_collection(
    payload: CollectionCreate,
    db: AsyncSession = Depends(get_db),
) -> Collection:
    result = await db.execute(select(Collection).where(Collection.name == payload.name))
    if result.scalar_one_or_none() is not None:
        raise HTTPException(status_code=409, detail=f"Collection {payload.name!r} already exists")

    collection = Collection(name=payload.name)
    db.add(collection)
    await db.flush()
    await db.refresh(collection)
    return collection
