"""
Product service.

This module provides functionality for:
- Public product listing and lookup
- Product creation owned by the caller
- Owner- or ADMIN-only replacement, partial update and deletion
"""
from datetime import datetime
from typing import Optional, List

from pydantic import BaseModel, ConfigDict, Field, field_validator
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from letsplay.auth.identity import Identity
from letsplay.auth.models import User
from letsplay.auth.policy import Action, authorize
from letsplay.errors import ResourceNotFound, Unauthenticated
from letsplay.products.models import Product


class ProductCreate(BaseModel):
    """Model for creating or fully replacing a product.

    There is no owner field: the owner always comes from the caller.
    """
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=1000)
    price: float = Field(..., gt=0)
    category: Optional[str] = Field(None, max_length=50)
    stock: int = Field(0, ge=0)


class ProductUpdate(BaseModel):
    """Model for partially updating a product."""
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=1000)
    price: Optional[float] = Field(None, gt=0)
    category: Optional[str] = Field(None, max_length=50)
    stock: Optional[int] = Field(None, ge=0)

    @field_validator('name', 'price', 'stock')
    @classmethod
    def required_fields_not_null(cls, v):
        # the field may be omitted, but a sent value can't clear it
        if v is None:
            raise ValueError('may not be null')
        return v


class ProductOut(BaseModel):
    """Product information returned to clients."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    description: Optional[str] = None
    price: float
    category: Optional[str] = None
    stock: int
    owner_id: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


async def _load_product(db: AsyncSession, product_id: str) -> Product:
    result = await db.execute(select(Product).where(Product.id == product_id))
    product = result.scalar_one_or_none()
    if product is None:
        raise ResourceNotFound("Product not found")
    return product


class ProductService:
    """
    Service for product operations.
    """

    @staticmethod
    async def list_products(
        db: AsyncSession,
        category: Optional[str] = None,
        owner_id: Optional[str] = None,
    ) -> List[ProductOut]:
        stmt = select(Product)
        if category is not None:
            stmt = stmt.where(Product.category == category)
        if owner_id is not None:
            stmt = stmt.where(Product.owner_id == owner_id)
        result = await db.execute(stmt.order_by(Product.created_at))
        return [ProductOut.model_validate(p) for p in result.scalars().all()]

    @staticmethod
    async def get_product(product_id: str, db: AsyncSession) -> ProductOut:
        product = await _load_product(db, product_id)
        return ProductOut.model_validate(product)

    @staticmethod
    async def create_product(identity: Identity, data: ProductCreate, db: AsyncSession) -> ProductOut:
        """
        Create a product owned by the caller.

        Raises:
            Unauthenticated: If the caller is anonymous or its account is gone
        """
        authorize(identity, Action.CREATE_PRODUCT)

        # tokens outlive deleted accounts
        owner = await db.get(User, identity.subject_id)
        if owner is None:
            raise Unauthenticated("User account no longer exists")

        product = Product(owner_id=owner.id, **data.model_dump())
        db.add(product)
        await db.commit()
        await db.refresh(product)
        return ProductOut.model_validate(product)

    @staticmethod
    async def replace_product(
        identity: Identity,
        product_id: str,
        data: ProductCreate,
        db: AsyncSession,
    ) -> ProductOut:
        """Replace every editable field of a product."""
        return await ProductService._apply_update(identity, product_id, data.model_dump(), db)

    @staticmethod
    async def patch_product(
        identity: Identity,
        product_id: str,
        data: ProductUpdate,
        db: AsyncSession,
    ) -> ProductOut:
        """Change only the fields present in the request."""
        return await ProductService._apply_update(
            identity, product_id, data.model_dump(exclude_unset=True), db
        )

    @staticmethod
    async def delete_product(identity: Identity, product_id: str, db: AsyncSession) -> None:
        """
        Raises:
            Unauthenticated: If the caller is anonymous
            ResourceNotFound: If the product does not exist
            Forbidden: If the caller neither owns the product nor is ADMIN
        """
        if identity.is_anonymous:
            authorize(identity, Action.DELETE_PRODUCT)
        product = await _load_product(db, product_id)
        authorize(identity, Action.DELETE_PRODUCT, product.owner_id)

        await db.delete(product)
        await db.commit()

    @staticmethod
    async def _apply_update(identity: Identity, product_id: str, changes: dict, db: AsyncSession) -> ProductOut:
        if identity.is_anonymous:
            authorize(identity, Action.UPDATE_PRODUCT)
        product = await _load_product(db, product_id)
        authorize(identity, Action.UPDATE_PRODUCT, product.owner_id)

        for field, value in changes.items():
            setattr(product, field, value)
        await db.commit()
        await db.refresh(product)
        return ProductOut.model_validate(product)
