"""Unit of Work implementation with proper async support"""

from sqlalchemy.orm import Session, sessionmaker

from ...db.database import SessionLocal
from ...domain.repositories.unit_of_work import IUnitOfWork
from .user_repository_impl import UserRepositoryImpl
from .order_repository_impl import OrderRepositoryImpl
from .catalog_repository_impl import CatalogRepositoryImpl
from .promo_code_repository_impl import PromoCodeRepositoryImpl


class UnitOfWorkImpl(IUnitOfWork):
    """Opens a fresh session for every ``async with`` block.

    Leaving the block commits whatever is still pending; an exception rolls
    everything back.
    """

    def __init__(self, session_factory: sessionmaker = SessionLocal):
        self.session_factory = session_factory
        self.session: Session = None

    async def __aenter__(self):
        self.session = self.session_factory()
        self.users = UserRepositoryImpl(self.session)
        self.orders = OrderRepositoryImpl(self.session)
        self.catalog = CatalogRepositoryImpl(self.session)
        self.promo_codes = PromoCodeRepositoryImpl(self.session)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        try:
            if exc_type:
                await self.rollback()
            else:
                await self.commit()
        finally:
            self.session.close()
            self.session = None

    async def commit(self) -> None:
        """Commit transaction"""
        try:
            self.session.commit()
        except Exception:
            self.rollback_sync()
            raise

    async def rollback(self) -> None:
        """Rollback transaction"""
        self.rollback_sync()

    def rollback_sync(self) -> None:
        """Synchronous rollback helper"""
        self.session.rollback()
