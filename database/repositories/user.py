from typing import Any, Iterable, List, Optional

from sqlalchemy import select

from database.models import User
from database.repositories.base import BaseRepository
from core.utils import to_uuid


class UserRepository(BaseRepository):
    def get_by_id(self, user_id: Any) -> Optional[User]:
        return self.db.get(User, to_uuid(user_id))

    def find_located_users(self, exclude_ids: Optional[Iterable[Any]] = None) -> List[User]:
        """Users with coordinates set, minus exclude_ids."""
        stmt = select(User).where(
            User.latitude.is_not(None),
            User.longitude.is_not(None)
        )

        excluded = [to_uuid(user_id) for user_id in exclude_ids or ()]
        if excluded:
            stmt = stmt.where(User.id.not_in(excluded))

        return list(self.db.execute(stmt).scalars().all())
