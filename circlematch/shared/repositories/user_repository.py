"""
User Repository

Database operations specific to the User model.

Users are read-only inputs of matching; the write helpers here exist for
onboarding imports and test fixtures.

Common Operations:
==================
- create_with_interests()  → Insert a user and their interest tags
"""

from datetime import date
from typing import Iterable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from circlematch.shared.repositories.base import BaseRepository
from circlematch.shared.models.user import User
from circlematch.shared.models.user_interest import UserInterest


class UserRepository(BaseRepository[User]):
    """Repository for User database operations."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(User, session)

    async def create_with_interests(
        self,
        *,
        full_name: Optional[str] = None,
        gender: Optional[str] = None,
        date_of_birth: Optional[date] = None,
        interests: Iterable[str] = (),
    ) -> User:
        """
        Create a user and their interest rows in the current transaction.

        Duplicate interest tags are stored once.
        """
        user = User(full_name=full_name, gender=gender, date_of_birth=date_of_birth)
        user.interests = [UserInterest(interest_type=tag) for tag in dict.fromkeys(interests)]
        self.session.add(user)
        await self.session.flush()
        return user
