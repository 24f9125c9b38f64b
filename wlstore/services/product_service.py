# wlstore/services/product_service.py
import os
import secrets
from typing import BinaryIO, List

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from wlstore.data.models.product import ProductModel
from wlstore.data.models.user import UserModel
from wlstore.domain.errors import ConflictError, NotFoundError, PayloadTooLargeError
from wlstore.domain.schemas import ProductCreate, ProductUpdate
from wlstore.repos.product_repo import ProductRepo
from wlstore.services.activity_service import activity_feed
from wlstore.utils.settings import UPLOAD_DIR, MAX_UPLOAD_BYTES, ALLOWED_IMAGE_EXTENSIONS
from wlstore.utils.logging import get_logger

logger = get_logger(__name__)

IMAGE_URL_PREFIX = "/img/"


class ProductService:
    def __init__(self, db: Session, upload_dir: str = UPLOAD_DIR):
        self.repo = ProductRepo(db)
        self.upload_dir = upload_dir

    def list_products(self, q: str | None = None, skip: int = 0, limit: int = 100) -> List[ProductModel]:
        return self.repo.list_products(q, skip, limit)

    def get_product(self, code: str) -> ProductModel:
        product = self.repo.get_by_code(code)
        if not product:
            raise NotFoundError(f"Product '{code}' not found")
        return product

    def create_product(self, payload: ProductCreate, admin: UserModel) -> ProductModel:
        if self.repo.get_by_code(payload.code):
            raise ConflictError(f"Product with code '{payload.code}' already exists")

        created = self.repo.create_product(ProductModel(**payload.model_dump()))

        logger.info(f"Product {created.code} created by admin {admin.id}")
        activity_feed.record(
            "product",
            f'Product "{created.name}" added (price {created.price})',
            productCode=created.code,
            productName=created.name,
            price=str(created.price),
            stock=created.stock,
            source="product_management",
        )
        return created

    def update_product(self, code: str, payload: ProductUpdate, admin: UserModel) -> ProductModel:
        product = self.get_product(code)
        changes = payload.model_dump(exclude_unset=True)

        for field, value in changes.items():
            if value is None and field in ("name", "price", "stock", "rating"):
                raise ValueError(f"Field '{field}' cannot be null")
            setattr(product, field, value)

        saved = self.repo.save(product)

        logger.info(f"Product {code} updated by admin {admin.id}: {sorted(changes)}")
        activity_feed.record(
            "product",
            f'Product "{saved.name}" updated',
            productCode=code,
            fields=sorted(changes),
            source="product_management",
        )
        return saved

    def delete_product(self, code: str, admin: UserModel) -> None:
        product = self.get_product(code)
        image_url = product.image_url
        self.repo.delete(product)
        self._remove_image(image_url)

        logger.info(f"Product {code} deleted by admin {admin.id}")
        activity_feed.record(
            "product",
            f"Product {code} deleted",
            productCode=code,
            severity="warning",
            source="product_management",
        )

    # ---------- images ----------

    @staticmethod
    def allowed_image(filename: str) -> bool:
        extension = os.path.splitext(filename or "")[1].lower().lstrip(".")
        return extension in ALLOWED_IMAGE_EXTENSIONS

    def _remove_image(self, image_url: str | None) -> None:
        if not image_url or not image_url.startswith(IMAGE_URL_PREFIX):
            return
        path = os.path.join(self.upload_dir, os.path.basename(image_url))
        try:
            os.remove(path)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"Could not remove image {path}: {e}")

    def save_image(self, code: str, filename: str, stream: BinaryIO, admin: UserModel) -> ProductModel:
        product = self.get_product(code)

        if not self.allowed_image(filename):
            raise ValueError(
                "Unsupported image format. Upload "
                + ", ".join(sorted(e.upper() for e in ALLOWED_IMAGE_EXTENSIONS))
                + " files."
            )

        data = stream.read(MAX_UPLOAD_BYTES + 1)
        if not data:
            raise ValueError("An image file is required")
        if len(data) > MAX_UPLOAD_BYTES:
            raise PayloadTooLargeError(f"Image exceeds the {MAX_UPLOAD_BYTES} byte limit")

        os.makedirs(self.upload_dir, exist_ok=True)
        extension = os.path.splitext(filename)[1].lower()
        stored_name = f"{secrets.token_hex(16)}{extension}"
        with open(os.path.join(self.upload_dir, stored_name), "wb") as f:
            f.write(data)

        previous = product.image_url
        product.image_url = IMAGE_URL_PREFIX + stored_name
        try:
            saved = self.repo.save(product)
        except SQLAlchemyError as e:
            logger.error(f"Saving image for product {code} failed: {e}")
            self._remove_image(IMAGE_URL_PREFIX + stored_name)
            raise
        if previous != saved.image_url:
            self._remove_image(previous)

        logger.info(f"Image {stored_name} stored for product {code} by admin {admin.id}")
        activity_feed.record(
            "product",
            f'New image for product "{saved.name}"',
            productCode=code,
            imageUrl=saved.image_url,
            source="product_management",
        )
        return saved
