# wlstore/api/routers/auth.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from wlstore.api.errors import raise_http
from wlstore.data.database import get_db
from wlstore.domain.schemas import SignupIn, SignupOut, SigninIn, SigninOut
from wlstore.services.auth_service import AuthService

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/signup", response_model=SignupOut, status_code=201)
def signup(payload: SignupIn, db: Session = Depends(get_db)):
    try:
        return AuthService(db).signup(payload)
    except ValueError as e:
        raise_http(e)


@router.post("/signin", response_model=SigninOut)
def signin(payload: SigninIn, db: Session = Depends(get_db)):
    try:
        return AuthService(db).signin(payload)
    except ValueError as e:
        raise_http(e)
