"""Product, Material and Collection Pydantic schemas."""

from typing import Annotated, Literal

from pydantic import BaseModel, Field

from atelier.models.enums import Gender, MaterialType, ProductionType


class RawRecipeItem(BaseModel):
    """Recipe line pointing at a raw material."""

    type: Literal["raw"] = "raw"
    id: str
    quantity: float = Field(..., gt=0)


class ComponentRecipeItem(BaseModel):
    """Recipe line pointing at another product used as a component."""

    type: Literal["component"] = "component"
    sku: str
    quantity: float = Field(..., gt=0)


RecipeItem = Annotated[RawRecipeItem | ComponentRecipeItem, Field(discriminator="type")]


class ProductVariant(BaseModel):
    suffix: str = Field(..., max_length=20)
    description: str = ""


class ProductCreate(BaseModel):
    """Schema for creating a product."""

    sku: str = Field(..., max_length=50)
    category: str = Field(..., max_length=100)
    description: str | None = None
    gender: Gender | None = None
    production_type: ProductionType = ProductionType.IN_HOUSE
    weight_g: float = Field(default=0.0, ge=0, description="Metal weight per piece in grams")
    image_url: str | None = Field(None, max_length=500)
    is_component: bool = False
    recipe: list[RecipeItem] = Field(default_factory=list)
    collections: list[int] = Field(default_factory=list)
    variants: list[ProductVariant] = Field(default_factory=list)


class ProductResponse(BaseModel):
    """Schema for product responses."""

    sku: str
    category: str
    description: str | None
    gender: Gender | None
    production_type: ProductionType
    weight_g: float
    image_url: str | None
    is_component: bool
    recipe: list[RecipeItem]
    collections: list[int]
    variants: list[ProductVariant]

    model_config = {"from_attributes": True}


class MaterialCreate(BaseModel):
    id: str = Field(..., max_length=32)
    name: str = Field(..., max_length=200)
    type: MaterialType
    cost_per_unit: float = Field(default=0.0, ge=0)
    unit: str = Field(default="pcs", max_length=20)


class MaterialResponse(MaterialCreate):
    model_config = {"from_attributes": True}


class CollectionCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)


class CollectionResponse(BaseModel):
    id: int
    name: str

    model_config = {"from_attributes": True}
