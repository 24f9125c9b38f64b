# wlstore/api/routers/users.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from wlstore.api.deps import get_current_user
from wlstore.api.errors import raise_http
from wlstore.data.database import get_db
from wlstore.data.models.user import UserModel
from wlstore.domain.schemas import (
    AddressIn,
    AddressListOut,
    AddressUpdate,
    MessageOut,
    PasswordChange,
    ProfileOut,
    ProfileUpdate,
)
from wlstore.services.user_service import UserService

router = APIRouter(prefix="/api/users", tags=["users"])


@router.get("/profile", response_model=ProfileOut)
def get_profile(user: UserModel = Depends(get_current_user)):
    return {"message": "Profile retrieved successfully.", "user": user}


@router.put("/profile", response_model=ProfileOut)
def update_profile(
    payload: ProfileUpdate,
    user: UserModel = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        updated = UserService(db).update_profile(user, payload)
    except ValueError as e:
        raise_http(e)
    return {"message": "Profile updated successfully.", "user": updated}


@router.put("/change-password", response_model=MessageOut)
def change_password(
    payload: PasswordChange,
    user: UserModel = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        UserService(db).change_password(user, payload)
    except ValueError as e:
        raise_http(e)
    return {"message": "Password changed successfully."}


@router.post("/addresses", response_model=AddressListOut, status_code=201)
def add_address(
    payload: AddressIn,
    user: UserModel = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    addresses = UserService(db).add_address(user, payload)
    return {"message": "Address added successfully.", "addresses": addresses}


@router.put("/addresses/{address_id}", response_model=AddressListOut)
def update_address(
    address_id: int,
    payload: AddressUpdate,
    user: UserModel = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        addresses = UserService(db).update_address(user, address_id, payload)
    except ValueError as e:
        raise_http(e)
    return {"message": "Address updated successfully.", "addresses": addresses}


@router.delete("/addresses/{address_id}", response_model=AddressListOut)
def delete_address(
    address_id: int,
    user: UserModel = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        addresses = UserService(db).delete_address(user, address_id)
    except ValueError as e:
        raise_http(e)
    return {"message": "Address deleted successfully.", "addresses": addresses}
