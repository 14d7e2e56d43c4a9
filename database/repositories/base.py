from typing import Type, TypeVar

from sqlalchemy.orm import Session

R = TypeVar('R', bound='BaseRepository')


class BaseRepository:
    def __init__(self, db: Session):
        self.db = db

    def flush(self) -> None:
        self.db.flush()

    def sibling(self, repo_cls: Type[R]) -> R:
        """Another repository sharing this repository's session and transaction."""
        return repo_cls(self.db)
