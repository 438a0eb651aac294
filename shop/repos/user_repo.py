# shop/repos/user_repo.py
from sqlalchemy import select
from sqlalchemy.orm import Session

from shop.data.models.user import UserModel


class UserRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_user(self, user_id: int) -> UserModel | None:
        return self.db.get(UserModel, user_id)

    def get_contact(self, user_id: int):
        """Name and e-mail of the user, the fallback customer data of an order."""
        return self.db.execute(
            select(UserModel.name, UserModel.email).where(UserModel.id == user_id)
        ).first()

    def add_user(self, user: UserModel) -> UserModel:
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        return user
