# wlstore/api/routers/products.py
from typing import List

from fastapi import APIRouter, Depends, File, Query, Response, UploadFile
from sqlalchemy.orm import Session

from wlstore.api.deps import require_admin
from wlstore.api.errors import raise_http
from wlstore.data.database import get_db
from wlstore.data.models.user import UserModel
from wlstore.domain.schemas import ProductCreate, ProductOut, ProductUpdate
from wlstore.services.product_service import ProductService

router = APIRouter(prefix="/api/products", tags=["products"])


def get_service(db: Session):
    return ProductService(db)


@router.get("/", response_model=List[ProductOut])
def list_products(
    q: str | None = Query(None, description="Filter by name"),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db),
):
    return get_service(db).list_products(q, skip, limit)


@router.get("/{code}", response_model=ProductOut)
def get_product(code: str, db: Session = Depends(get_db)):
    try:
        return get_service(db).get_product(code)
    except ValueError as e:
        raise_http(e)


@router.post("/", response_model=ProductOut, status_code=201)
def create_product(
    payload: ProductCreate,
    admin: UserModel = Depends(require_admin),
    db: Session = Depends(get_db),
):
    try:
        return get_service(db).create_product(payload, admin)
    except ValueError as e:
        raise_http(e)


@router.put("/{code}", response_model=ProductOut)
def update_product(
    code: str,
    payload: ProductUpdate,
    admin: UserModel = Depends(require_admin),
    db: Session = Depends(get_db),
):
    try:
        return get_service(db).update_product(code, payload, admin)
    except ValueError as e:
        raise_http(e)


@router.delete("/{code}", status_code=204)
def delete_product(
    code: str,
    admin: UserModel = Depends(require_admin),
    db: Session = Depends(get_db),
):
    try:
        get_service(db).delete_product(code, admin)
    except ValueError as e:
        raise_http(e)
    return Response(status_code=204)


@router.post("/{code}/image", response_model=ProductOut)
def upload_image(
    code: str,
    image: UploadFile = File(...),
    admin: UserModel = Depends(require_admin),
    db: Session = Depends(get_db),
):
    try:
        return get_service(db).save_image(code, image.filename, image.file, admin)
    except ValueError as e:
        raise_http(e)
    finally:
        image.file.close()
