# wlstore/services/user_service.py
from typing import List

from sqlalchemy.orm import Session

from wlstore.data.models.address import AddressModel
from wlstore.data.models.user import UserModel
from wlstore.domain.errors import AuthError, ConflictError, NotFoundError
from wlstore.domain.schemas import AddressIn, AddressUpdate, PasswordChange, ProfileUpdate
from wlstore.repos.user_repo import UserRepo
from wlstore.services.activity_service import activity_feed
from wlstore.utils.security import hash_password, verify_password
from wlstore.utils.settings import MIN_PASSWORD_LENGTH
from wlstore.utils.logging import get_logger

logger = get_logger(__name__)


def _ensure_single_default(addresses: List[AddressModel], preferred: AddressModel | None = None) -> None:
    """Exactly one default address whenever the list is non-empty."""
    if not addresses:
        return
    chosen = preferred or next((a for a in addresses if a.is_default), addresses[0])
    for a in addresses:
        a.is_default = a is chosen


def _renumber(addresses: List[AddressModel]) -> None:
    for position, a in enumerate(addresses):
        a.position = position


class UserService:
    def __init__(self, db: Session):
        self.repo = UserRepo(db)

    def get_user(self, user_id: int) -> UserModel:
        user = self.repo.get_user(user_id)
        if not user:
            raise NotFoundError("User not found")
        return user

    # ---------- profile ----------

    def update_profile(self, user: UserModel, payload: ProfileUpdate) -> UserModel:
        if payload.email:
            email = payload.email.strip().lower()
            existing = self.repo.get_by_email(email)
            if existing and existing.id != user.id:
                raise ConflictError("Email is already taken by another user")
            user.email = email

        user.name = payload.name.strip()
        if payload.phone is not None:
            user.phone = payload.phone.strip()

        saved = self.repo.save(user)
        logger.info(f"User {user.id} updated profile")
        return saved

    def change_password(self, user: UserModel, payload: PasswordChange) -> None:
        if len(payload.new_password) < MIN_PASSWORD_LENGTH:
            raise ValueError(f"New password must be at least {MIN_PASSWORD_LENGTH} characters long")

        if not verify_password(payload.current_password, user.password):
            logger.warning(f"User {user.id}: wrong current password on password change")
            raise AuthError("Current password is incorrect")

        user.password = hash_password(payload.new_password)
        self.repo.save(user)
        logger.info(f"User {user.id} changed password")

    # ---------- addresses ----------

    def add_address(self, user: UserModel, payload: AddressIn) -> List[AddressModel]:
        address = AddressModel(
            kind=payload.kind,
            street=payload.street,
            city=payload.city,
            state=payload.state,
            zip_code=payload.zip_code,
            is_default=payload.is_default,
        )
        user.addresses.append(address)
        _renumber(user.addresses)
        #the first address is the default one
        _ensure_single_default(user.addresses, address if payload.is_default else None)

        saved = self.repo.save(user)
        logger.info(f"User {user.id} added address {address.id}")
        return saved.addresses

    def _find_address(self, user: UserModel, address_id: int) -> AddressModel:
        address = next((a for a in user.addresses if a.id == address_id), None)
        if not address:
            raise NotFoundError("Address not found")
        return address

    def update_address(self, user: UserModel, address_id: int, payload: AddressUpdate) -> List[AddressModel]:
        address = self._find_address(user, address_id)
        changes = payload.model_dump(exclude_unset=True, exclude={"is_default"})

        for field, value in changes.items():
            if value is not None:
                setattr(address, field, value)

        #clearing the flag on the current default is ignored
        if payload.is_default:
            _ensure_single_default(user.addresses, address)

        saved = self.repo.save(user)
        logger.info(f"User {user.id} updated address {address_id}")
        return saved.addresses

    def delete_address(self, user: UserModel, address_id: int) -> List[AddressModel]:
        address = self._find_address(user, address_id)
        user.addresses.remove(address)
        _renumber(user.addresses)
        _ensure_single_default(user.addresses)

        saved = self.repo.save(user)
        logger.info(f"User {user.id} deleted address {address_id}")
        return saved.addresses

    # ---------- admin ----------

    def list_users(self, skip: int = 0, limit: int = 100) -> List[UserModel]:
        return self.repo.list_users(skip, limit)

    def set_active(self, user_id: int, is_active: bool, admin: UserModel) -> UserModel:
        user = self.get_user(user_id)
        if user.id == admin.id and not is_active:
            raise ValueError("Administrators cannot deactivate their own account")

        user.is_active = is_active
        saved = self.repo.save(user)

        state = "activated" if is_active else "deactivated"
        logger.info(f"User {user_id} {state} by admin {admin.id}")
        activity_feed.record(
            "user",
            f'User "{saved.username}" {state}',
            userId=saved.id,
            username=saved.username,
            isActive=is_active,
            updatedBy=admin.username,
            severity="info" if is_active else "warning",
            source="user_management",
        )
        return saved
