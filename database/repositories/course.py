from typing import Any, Optional

from database.models import Course
from database.repositories.base import BaseRepository
from core.utils import to_uuid


class CourseRepository(BaseRepository):
    def get_by_id(self, course_id: Any) -> Optional[Course]:
        return self.db.get(Course, to_uuid(course_id))
