"""Transaction boundary shared by the commerce use cases"""

from abc import ABC, abstractmethod

from .user_repository import IUserRepository
from .order_repository import IOrderRepository
from .catalog_repository import ICatalogRepository
from .promo_code_repository import IPromoCodeRepository


class IUnitOfWork(ABC):
    """One database transaction per ``async with`` block.

    Repositories are only usable inside the block. Leaving it normally
    commits; an exception rolls back everything written inside it.
    Blocks are sequential and never nested.
    """

    users: IUserRepository
    orders: IOrderRepository
    catalog: ICatalogRepository
    promo_codes: IPromoCodeRepository

    @abstractmethod
    async def __aenter__(self) -> "IUnitOfWork":
        pass

    @abstractmethod
    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        pass

    @abstractmethod
    async def commit(self) -> None:
        pass

    @abstractmethod
    async def rollback(self) -> None:
        pass
