"""Catalog Service — admin categories, vendor-owned products and the public storefront.

Invariants:
    - Category slug is always slugify(name); names unique case-insensitively
    - A category with non-deleted products cannot be deleted
    - Vendor product handlers only ever see the calling vendor's non-deleted products
    - Product deletion is soft (deleted_at), so transaction history keeps its product
    - student_price never ends up above price, including after partial updates
    - The public storefront lists active, non-deleted products of active, non-deleted vendors

Design Decisions:
    - Partial updates use model_dump(exclude_unset=True): only fields the client sent
      are touched, and an empty body is a 400
"""

import logging
from typing import Any
from uuid import UUID

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from awoof.core.clock import utcnow
from awoof.core.commission import to_float
from awoof.core.domain_types import ProductStatus, VendorStatus
from awoof.core.errors import BadRequestError, NotFoundError
from awoof.core.slugs import slugify
from awoof.models.category import Category
from awoof.models.product import Product
from awoof.models.vendor import Vendor
from awoof.schemas.catalog import (
    CategoryCreate, CategoryUpdate, ProductCreate, ProductUpdate,
)

logger = logging.getLogger(__name__)

_REQUIRED_PRODUCT_FIELDS = ("name", "price", "student_price", "stock", "status")


def _iso(value) -> str | None:
    return value.isoformat() if value else None


def pagination(page: int, limit: int, total: int) -> dict[str, int]:
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "totalPages": (total + limit - 1) // limit,
    }


def category_to_dict(category: Category, product_count: int | None = None) -> dict[str, Any]:
    data = {
        "id": str(category.id),
        "name": category.name,
        "description": category.description,
        "slug": category.slug,
        "createdAt": _iso(category.created_at),
        "updatedAt": _iso(category.updated_at),
    }
    if product_count is not None:
        data["productCount"] = product_count
    return data


def product_to_dict(
    product: Product, category_name: str | None = None, vendor: Vendor | None = None,
) -> dict[str, Any]:
    data = {
        "id": str(product.id),
        "name": product.name,
        "description": product.description,
        "price": to_float(product.price),
        "studentPrice": to_float(product.student_price),
        "categoryId": str(product.category_id) if product.category_id else None,
        "categoryName": category_name,
        "imageUrl": product.image_url,
        "apiId": product.api_id,
        "stock": product.stock,
        "status": product.status,
        "createdAt": _iso(product.created_at),
        "updatedAt": _iso(product.updated_at),
    }
    if vendor is not None:
        data["vendor"] = {
            "id": str(vendor.id),
            "name": vendor.name,
            "logoUrl": vendor.logo_url,
        }
    return data


def _search_clause(search: str):
    pattern = f"%{search}%"
    return or_(Product.name.ilike(pattern), Product.description.ilike(pattern))


# ─── Admin categories ────────────────────────────────────────────

class CategoryHandlers:
    def __init__(self, db: AsyncSession):
        self.db = db

    def _with_counts(self):
        return (
            select(Category, func.count(Product.id))
            .outerjoin(
                Product,
                (Product.category_id == Category.id) & Product.deleted_at.is_(None),
            )
            .group_by(Category.id)
        )

    async def list_categories(self) -> list[dict[str, Any]]:
        rows = (await self.db.execute(self._with_counts().order_by(Category.name))).all()
        return [category_to_dict(c, count) for c, count in rows]

    async def get(self, category_id: UUID) -> dict[str, Any]:
        row = (await self.db.execute(
            self._with_counts().where(Category.id == category_id),
        )).first()
        if row is None:
            raise NotFoundError("Category not found")
        return category_to_dict(row[0], row[1])

    async def _ensure_unique(self, name: str, slug: str, exclude_id: UUID | None = None) -> None:
        name_query = select(Category.id).where(func.lower(Category.name) == name.lower())
        slug_query = select(Category.id).where(Category.slug == slug)
        if exclude_id is not None:
            name_query = name_query.where(Category.id != exclude_id)
            slug_query = slug_query.where(Category.id != exclude_id)
        if (await self.db.execute(name_query)).first() is not None:
            raise BadRequestError("A category with this name already exists")
        if (await self.db.execute(slug_query)).first() is not None:
            raise BadRequestError("A category with this slug already exists")

    async def create(self, body: CategoryCreate) -> dict[str, Any]:
        slug = slugify(body.name)
        if not slug:
            raise BadRequestError("Category name must contain letters or digits")
        await self._ensure_unique(body.name, slug)

        category = Category(name=body.name, description=body.description, slug=slug)
        self.db.add(category)
        await self.db.commit()
        return category_to_dict(category)

    async def update(self, category_id: UUID, body: CategoryUpdate) -> dict[str, Any]:
        changes = body.model_dump(exclude_unset=True)
        if not changes:
            raise BadRequestError("No fields to update")

        category = await self.db.get(Category, category_id)
        if not category:
            raise NotFoundError("Category not found")

        if "name" in changes and changes["name"]:
            name = changes["name"].strip()
            slug = slugify(name)
            if not slug:
                raise BadRequestError("Category name must contain letters or digits")
            await self._ensure_unique(name, slug, exclude_id=category.id)
            category.name = name
            category.slug = slug
        if "description" in changes:
            category.description = changes["description"]
        await self.db.commit()
        return category_to_dict(category)

    async def delete(self, category_id: UUID) -> None:
        category = await self.db.get(Category, category_id)
        if not category:
            raise NotFoundError("Category not found")

        in_use = (await self.db.execute(
            select(func.count(Product.id))
            .where(Product.category_id == category_id)
            .where(Product.deleted_at.is_(None)),
        )).scalar_one()
        if in_use:
            raise BadRequestError("Cannot delete category with associated products")

        await self.db.delete(category)
        await self.db.commit()


# ─── Vendor products ─────────────────────────────────────────────

class VendorProductHandlers:
    def __init__(self, db: AsyncSession, vendor: Vendor):
        self.db = db
        self.vendor = vendor

    def _owned(self):
        return (
            select(Product, Category.name)
            .outerjoin(Category, Category.id == Product.category_id)
            .where(Product.vendor_id == self.vendor.id)
            .where(Product.deleted_at.is_(None))
        )

    async def _load(self, product_id: UUID) -> Product:
        result = await self.db.execute(
            select(Product)
            .where(Product.id == product_id)
            .where(Product.vendor_id == self.vendor.id)
            .where(Product.deleted_at.is_(None)),
        )
        product = result.scalar_one_or_none()
        if not product:
            raise NotFoundError("Product not found")
        return product

    async def _check_category(self, category_id: UUID | None) -> str | None:
        if category_id is None:
            return None
        category = await self.db.get(Category, category_id)
        if not category:
            raise BadRequestError("Category not found")
        return category.name

    async def list_products(
        self, page: int = 1, limit: int = 20, status: str | None = None,
        search: str | None = None,
    ) -> dict[str, Any]:
        query = self._owned()
        count_query = (
            select(func.count(Product.id))
            .where(Product.vendor_id == self.vendor.id)
            .where(Product.deleted_at.is_(None))
        )
        if status:
            query = query.where(Product.status == status)
            count_query = count_query.where(Product.status == status)
        if search:
            query = query.where(_search_clause(search))
            count_query = count_query.where(_search_clause(search))

        total = (await self.db.execute(count_query)).scalar_one()
        rows = (await self.db.execute(
            query.order_by(Product.created_at.desc()).limit(limit).offset((page - 1) * limit),
        )).all()
        return {
            "products": [product_to_dict(p, category_name) for p, category_name in rows],
            "pagination": pagination(page, limit, total),
        }

    async def get(self, product_id: UUID) -> dict[str, Any]:
        row = (await self.db.execute(self._owned().where(Product.id == product_id))).first()
        if row is None:
            raise NotFoundError("Product not found")
        return product_to_dict(row[0], row[1])

    async def create(self, body: ProductCreate) -> dict[str, Any]:
        category_name = await self._check_category(body.category_id)
        product = Product(
            vendor_id=self.vendor.id,
            name=body.name,
            description=body.description,
            price=body.price,
            student_price=body.student_price,
            category_id=body.category_id,
            image_url=body.image_url,
            api_id=body.api_id,
            stock=body.stock,
            status=body.status,
        )
        self.db.add(product)
        await self.db.commit()
        logger.info("Product created", extra={"vendor_id": str(self.vendor.id)})
        return product_to_dict(product, category_name)

    async def update(self, product_id: UUID, body: ProductUpdate) -> dict[str, Any]:
        changes = body.model_dump(exclude_unset=True)
        if not changes:
            raise BadRequestError("No fields to update")

        product = await self._load(product_id)
        if "category_id" in changes:
            await self._check_category(changes["category_id"])

        for field in _REQUIRED_PRODUCT_FIELDS:
            if field in changes and changes[field] is None:
                raise BadRequestError(f"{field} cannot be null")

        price = changes.get("price", to_float(product.price))
        student_price = changes.get("student_price", to_float(product.student_price))
        if student_price > price:
            raise BadRequestError("Student price cannot be higher than regular price")

        for field, value in changes.items():
            setattr(product, field, value)
        await self.db.commit()
        return await self.get(product.id)

    async def delete(self, product_id: UUID) -> None:
        product = await self._load(product_id)
        product.deleted_at = utcnow()
        await self.db.commit()


# ─── Public storefront ───────────────────────────────────────────

class PublicCatalog:
    def __init__(self, db: AsyncSession):
        self.db = db

    def _visible(self):
        return (
            select(Product, Category.name, Vendor)
            .join(Vendor, Vendor.id == Product.vendor_id)
            .outerjoin(Category, Category.id == Product.category_id)
            .where(Product.status == ProductStatus.ACTIVE.value)
            .where(Product.deleted_at.is_(None))
            .where(Vendor.deleted_at.is_(None))
            .where(Vendor.status == VendorStatus.ACTIVE.value)
        )

    async def list_products(
        self,
        page: int = 1,
        limit: int = 20,
        category_id: UUID | None = None,
        search: str | None = None,
        min_price: float | None = None,
        max_price: float | None = None,
    ) -> dict[str, Any]:
        query = self._visible()
        if category_id is not None:
            query = query.where(Product.category_id == category_id)
        if search:
            query = query.where(_search_clause(search))
        if min_price is not None:
            query = query.where(Product.student_price >= min_price)
        if max_price is not None:
            query = query.where(Product.student_price <= max_price)

        total = (await self.db.execute(
            select(func.count()).select_from(query.subquery()),
        )).scalar_one()
        rows = (await self.db.execute(
            query.order_by(Product.created_at.desc()).limit(limit).offset((page - 1) * limit),
        )).all()
        return {
            "products": [product_to_dict(p, c, v) for p, c, v in rows],
            "pagination": pagination(page, limit, total),
        }

    async def categories(self) -> list[dict[str, Any]]:
        rows = (await self.db.execute(select(Category).order_by(Category.name))).scalars().all()
        return [
            {"id": str(c.id), "name": c.name, "description": c.description, "slug": c.slug}
            for c in rows
        ]

    async def get(self, product_id: UUID) -> dict[str, Any]:
        row = (await self.db.execute(self._visible().where(Product.id == product_id))).first()
        if row is None:
            raise NotFoundError("Product not found")
        product, category_name, vendor = row
        data = product_to_dict(product, category_name, vendor)
        data["vendor"]["description"] = vendor.description
        return data
