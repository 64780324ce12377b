"""
Product router.

Reads are public; writes need a token, and changes to an existing product
need ownership or the ADMIN role.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from letsplay.auth.identity import Identity
from letsplay.auth.middleware import get_identity, require_identity
from letsplay.auth.policy import Action, authorize
from letsplay.base_service import BaseService, get_db_session
from letsplay.products.service import ProductService, ProductCreate, ProductUpdate

router = APIRouter(tags=["products"])
product_service = BaseService("products")


@router.get("")
async def list_products(
    response: Response,
    category: Optional[str] = Query(None),
    owner_id: Optional[str] = Query(None),
    identity: Identity = Depends(get_identity),
    db: AsyncSession = Depends(get_db_session)
):
    """List products, optionally filtered by category or owner."""
    authorize(identity, Action.READ_PRODUCT)
    products = await ProductService.list_products(db, category=category, owner_id=owner_id)
    response.headers["X-Total-Count"] = str(len(products))
    return product_service.api_response(products, message="Products retrieved successfully")


@router.get("/{product_id}")
async def get_product(
    product_id: str,
    identity: Identity = Depends(get_identity),
    db: AsyncSession = Depends(get_db_session)
):
    authorize(identity, Action.READ_PRODUCT)
    product = await ProductService.get_product(product_id, db)
    return product_service.api_response(product, message="Product retrieved successfully")


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_product(
    data: ProductCreate,
    identity: Identity = Depends(require_identity),
    db: AsyncSession = Depends(get_db_session)
):
    product = await ProductService.create_product(identity, data, db)
    product_service.log_event("product.created", {"id": product.id, "owner_id": product.owner_id})
    return product_service.api_response(product, message="Product created successfully")


@router.put("/{product_id}")
async def replace_product(
    product_id: str,
    data: ProductCreate,
    identity: Identity = Depends(require_identity),
    db: AsyncSession = Depends(get_db_session)
):
    product = await ProductService.replace_product(identity, product_id, data, db)
    product_service.log_event("product.updated", {"id": product_id, "by": identity.subject_id})
    return product_service.api_response(product, message="Product updated successfully")


@router.patch("/{product_id}")
async def patch_product(
    product_id: str,
    data: ProductUpdate,
    identity: Identity = Depends(require_identity),
    db: AsyncSession = Depends(get_db_session)
):
    product = await ProductService.patch_product(identity, product_id, data, db)
    product_service.log_event("product.updated", {
        "id": product_id,
        "by": identity.subject_id,
        "fields_updated": list(data.model_dump(exclude_unset=True).keys())
    })
    return product_service.api_response(product, message="Product updated successfully")


@router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_product(
    product_id: str,
    identity: Identity = Depends(require_identity),
    db: AsyncSession = Depends(get_db_session)
):
    await ProductService.delete_product(identity, product_id, db)
    product_service.log_event("product.deleted", {"id": product_id, "by": identity.subject_id})
    return Response(status_code=status.HTTP_204_NO_CONTENT)
