# wlstore/repos/order_repo.py
from datetime import datetime
from decimal import Decimal
from typing import List, Tuple

from sqlalchemy import select, func, or_
from sqlalchemy.orm import Session, selectinload

from wlstore.data.models.order import OrderModel
from wlstore.domain.order_status import CART, REVENUE_STATUSES


class OrderRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_order(self, order_id: int) -> OrderModel | None:
        return self.db.get(OrderModel, order_id)

    def get_cart_by_user(self, user_id: int) -> OrderModel | None:
        return self.db.execute(
            select(OrderModel)
            .where(OrderModel.user_id == user_id, OrderModel.status == CART)
            .order_by(OrderModel.id.desc())
            .limit(1)
        ).scalar_one_or_none()

    def create_order(self, order: OrderModel) -> OrderModel:
        self.db.add(order)
        self.db.commit()
        self.db.refresh(order)
        return order

    def save(self, order: OrderModel) -> OrderModel:
        self.db.add(order)
        self.db.commit()
        self.db.refresh(order)
        return order

    def delete(self, order: OrderModel) -> None:
        self.db.delete(order)
        self.db.commit()

    def list_by_user(self, user_id: int) -> List[OrderModel]:
        return list(
            self.db.execute(
                select(OrderModel)
                .options(selectinload(OrderModel.items))
                .where(OrderModel.user_id == user_id, OrderModel.status != CART)
                .order_by(OrderModel.created_at.desc(), OrderModel.id.desc())
            ).scalars().all()
        )

    def list_orders(self, status: str | None = None, skip: int = 0, limit: int = 50) -> List[OrderModel]:
        stmt = select(OrderModel).options(selectinload(OrderModel.items)).where(OrderModel.status != CART)
        if status:
            stmt = stmt.where(OrderModel.status == status)
        stmt = stmt.order_by(OrderModel.created_at.desc(), OrderModel.id.desc()).offset(skip).limit(limit)
        return list(self.db.execute(stmt).scalars().all())

    def count_orders(self) -> int:
        return self.db.execute(
            select(func.count(OrderModel.id)).where(OrderModel.status != CART)
        ).scalar_one()

    def total_revenue(self) -> Decimal:
        total = self.db.execute(
            select(func.sum(OrderModel.total_price)).where(OrderModel.status.in_(REVENUE_STATUSES))
        ).scalar_one()
        return Decimal(str(total)) if total is not None else Decimal("0.00")

    def stats_by_status(self) -> List[Tuple[str, int, Decimal]]:
        rows = self.db.execute(
            select(OrderModel.status, func.count(OrderModel.id), func.sum(OrderModel.total_price))
            .where(OrderModel.status != CART)
            .group_by(OrderModel.status)
        ).all()
        return [
            (status, count, Decimal(str(total)) if total is not None else Decimal("0.00"))
            for status, count, total in rows
        ]

    def touched_since(self, since: datetime, limit: int) -> List[OrderModel]:
        """Non-cart orders created or updated since the given moment."""
        return list(
            self.db.execute(
                select(OrderModel)
                .options(selectinload(OrderModel.items), selectinload(OrderModel.user))
                .where(
                    OrderModel.status != CART,
                    or_(OrderModel.created_at >= since, OrderModel.updated_at >= since),
                )
                .order_by(OrderModel.updated_at.desc(), OrderModel.created_at.desc())
                .limit(limit)
            ).scalars().all()
        )

    def ping(self) -> None:
        self.db.execute(select(OrderModel.id).limit(1)).first()
