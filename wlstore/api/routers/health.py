# wlstore/api/routers/health.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from wlstore.data.database import get_db
from wlstore.services.admin_service import AdminService

router = APIRouter(prefix="/api", tags=["health"])


@router.get("/health")
def health(db: Session = Depends(get_db)):
    return AdminService(db).health()
