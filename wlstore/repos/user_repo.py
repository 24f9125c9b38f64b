# wlstore/repos/user_repo.py
from datetime import datetime
from typing import List

from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from wlstore.data.models.user import UserModel
from wlstore.domain.errors import ConflictError


class UserRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_user(self, user_id: int) -> UserModel | None:
        return self.db.get(UserModel, user_id)

    def get_by_username(self, username: str) -> UserModel | None:
        return self.db.execute(
            select(UserModel).where(UserModel.username == username)
        ).scalar_one_or_none()

    def get_by_email(self, email: str) -> UserModel | None:
        return self.db.execute(
            select(UserModel).where(UserModel.email == email.strip().lower())
        ).scalar_one_or_none()

    def create_user(self, user: UserModel) -> UserModel:
        self.db.add(user)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise ConflictError("Username or email is already taken")
        self.db.refresh(user)
        return user

    def save(self, user: UserModel) -> UserModel:
        self.db.add(user)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise ConflictError("Email is already taken")
        self.db.refresh(user)
        return user

    def list_users(self, skip: int = 0, limit: int = 100) -> List[UserModel]:
        return list(
            self.db.execute(
                select(UserModel).order_by(UserModel.created_at.desc(), UserModel.id.desc())
                .offset(skip).limit(limit)
            ).scalars().all()
        )

    def count(self) -> int:
        return self.db.execute(select(func.count(UserModel.id))).scalar_one()

    def created_since(self, since: datetime, limit: int) -> List[UserModel]:
        #roles is a JSON column, admin filtering happens in python
        users = self.db.execute(
            select(UserModel)
            .where(UserModel.created_at >= since)
            .order_by(UserModel.created_at.desc())
        ).scalars().all()
        return [u for u in users if not u.is_admin][:limit]
