# wlstore/repos/product_repo.py
from datetime import datetime
from decimal import Decimal
from typing import Dict, Iterable, List

from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from wlstore.data.models.product import ProductModel
from wlstore.domain.errors import ConflictError


class ProductRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_by_code(self, code: str) -> ProductModel | None:
        return self.db.execute(
            select(ProductModel).where(ProductModel.code == code)
        ).scalar_one_or_none()

    def list_products(self, q: str | None = None, skip: int = 0, limit: int = 100) -> List[ProductModel]:
        stmt = select(ProductModel).order_by(ProductModel.code)
        if q:
            stmt = stmt.where(ProductModel.name.ilike(f"%{q}%"))
        return list(self.db.execute(stmt.offset(skip).limit(limit)).scalars().all())

    def get_prices(self, codes: Iterable[str]) -> Dict[str, ProductModel]:
        """One query for every distinct code, keyed by code."""
        codes = set(codes)
        if not codes:
            return {}
        rows = self.db.execute(
            select(ProductModel).where(ProductModel.code.in_(codes))
        ).scalars().all()
        return {p.code: p for p in rows}

    def create_product(self, product: ProductModel) -> ProductModel:
        self.db.add(product)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise ConflictError(f"Product with code '{product.code}' already exists")
        self.db.refresh(product)
        return product

    def save(self, product: ProductModel) -> ProductModel:
        self.db.add(product)
        self.db.commit()
        self.db.refresh(product)
        return product

    def delete(self, product: ProductModel) -> None:
        self.db.delete(product)
        self.db.commit()

    def count(self) -> int:
        return self.db.execute(select(func.count(ProductModel.id))).scalar_one()

    def created_since(self, since: datetime, limit: int) -> List[ProductModel]:
        return list(
            self.db.execute(
                select(ProductModel)
                .where(ProductModel.created_at >= since)
                .order_by(ProductModel.created_at.desc())
                .limit(limit)
            ).scalars().all()
        )


def unit_price(product: ProductModel | None) -> Decimal:
    if product is None or product.price is None:
        return Decimal("0.00")
    return Decimal(str(product.price))
