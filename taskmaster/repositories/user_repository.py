from typing import Iterable, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from taskmaster.models.user import User


class UserRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, user_id: int) -> Optional[User]:
        result = await self.session.execute(select(User).where(User.user_id == user_id))
        return result.scalar_one_or_none()

    async def get_by_email(self, email: str) -> Optional[User]:
        result = await self.session.execute(select(User).where(User.email == email.lower()))
        return result.scalar_one_or_none()

    async def list_users(self) -> List[User]:
        result = await self.session.execute(select(User).order_by(User.name, User.user_id))
        return list(result.scalars().all())

    async def get_many(self, user_ids: Iterable[int]) -> List[User]:
        ids = list(set(user_ids))
        if not ids:
            return []
        result = await self.session.execute(select(User).where(User.user_id.in_(ids)))
        return list(result.scalars().all())

    async def existing_ids(self, user_ids: Iterable[int]) -> set[int]:
        ids = list(set(user_ids))
        if not ids:
            return set()
        result = await self.session.execute(select(User.user_id).where(User.user_id.in_(ids)))
        return set(result.scalars().all())
