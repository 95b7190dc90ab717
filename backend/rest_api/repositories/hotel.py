"""
Hotel membership repository: user x hotel grants.
"""

from sqlalchemy import select

from rest_api.models import HotelUser, User
from .base import BaseRepository


class UserRepository(BaseRepository[User]):
    """Repository for User entities."""

    @property
    def model(self) -> type[User]:
        return User

    def find_active(self, user_id: str) -> User | None:
        query = select(User).where(User.id == user_id, User.is_active.is_(True))
        return self._db.scalar(query)


class HotelMembershipRepository(BaseRepository[HotelUser]):
    """Answers 'may this user act on this hotel?'."""

    @property
    def model(self) -> type[HotelUser]:
        return HotelUser

    def has_grant(self, user_id: str, hotel_id: str) -> bool:
        query = select(HotelUser.id).where(
            HotelUser.user_id == user_id,
            HotelUser.hotel_id == hotel_id,
        )
        return self._db.scalar(query) is not None
