from database.repositories.base import BaseRepository
from database.repositories.user import UserRepository
from database.repositories.course import CourseRepository
from database.repositories.tee_time import TeeTimeRepository

__all__ = [
    'BaseRepository',
    'UserRepository',
    'CourseRepository',
    'TeeTimeRepository',
]
