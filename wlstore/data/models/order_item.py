from sqlalchemy import Column, Integer, ForeignKey, String, CheckConstraint, UniqueConstraint
from sqlalchemy.orm import relationship

from wlstore.data.database import Base


class OrderItemModel(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    product_code = Column(String(64), nullable=False, index=True)

    quantity = Column(Integer, nullable=False, default=1)

    order = relationship("OrderModel", back_populates="items")

    __table_args__ = (
        CheckConstraint("quantity >= 1", name="ck_order_item_quantity"),
        UniqueConstraint("order_id", "product_code", name="u_order_product"),
    )
