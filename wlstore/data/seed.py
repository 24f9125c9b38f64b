# wlstore/data/seed.py
import os
from decimal import Decimal

from wlstore.data.database import Base, SessionLocal, engine
from wlstore.data.models import ProductModel, UserModel
from wlstore.utils.security import hash_password
from wlstore.utils.logging import get_logger

logger = get_logger(__name__)

PRODUCTS = [
    {"code": "PROD001", "name": "iPhone 14 Pro", "price": Decimal("18000000"), "stock": 25, "rating": 4.8,
     "description": "Latest iPhone with a pro camera and high performance.", "image_url": "/img/iphone.jpg"},
    {"code": "PROD002", "name": "Nike Running Shoes", "price": Decimal("1500000"), "stock": 50, "rating": 4.5,
     "description": "Lightweight running shoes for daily training.", "image_url": "/img/sepatu.jpg"},
    {"code": "PROD003", "name": "Gaming Laptop", "price": Decimal("22000000"), "stock": 10, "rating": 4.7,
     "description": "High refresh rate display and a dedicated GPU.", "image_url": "/img/laptop.jpg"},
    {"code": "PROD004", "name": "Wireless Headphones", "price": Decimal("2500000"), "stock": 40, "rating": 4.4,
     "description": "Noise cancelling over-ear headphones.", "image_url": "/img/headphone.jpg"},
    {"code": "PROD005", "name": "Smart Watch", "price": Decimal("3200000"), "stock": 30, "rating": 4.3,
     "description": "Fitness tracking and notifications on your wrist.", "image_url": "/img/smartwatch.jpg"},
]


def seed():
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        #only seed products into an empty table
        if not db.query(ProductModel).first():
            db.add_all(ProductModel(**p) for p in PRODUCTS)
            logger.info(f"Seeded {len(PRODUCTS)} products")

        if not db.query(UserModel).filter(UserModel.username == "admin").first():
            db.add(
                UserModel(
                    username="admin",
                    email="admin@wlstore.com",
                    password=hash_password(os.getenv("ADMIN_PASSWORD", "admin123")),
                    name="Administrator",
                    phone="",
                    roles=["admin"],
                    is_active=True,
                )
            )
            logger.info("Created admin user 'admin'")

        db.commit()
    finally:
        db.close()


if __name__ == "__main__":
    seed()
