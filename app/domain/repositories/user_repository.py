"""User repository interface"""

from abc import ABC, abstractmethod
from typing import Optional

from ..entities.user import User
from ..value_objects.entity_ids import UserId


class IUserRepository(ABC):

    @abstractmethod
    async def get_by_id(self, user_id: UserId) -> Optional[User]:
        pass

    @abstractmethod
    async def get_for_update(self, user_id: UserId) -> Optional[User]:
        """Load the user with a row lock for the rest of the transaction"""
        pass

    @abstractmethod
    async def update(self, user: User) -> User:
        pass
