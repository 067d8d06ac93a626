"""In-memory storage for course records."""

import logging
import threading
from typing import Dict, Iterable, List, Optional, Tuple

from dashboard.grading import serialize_result
from dashboard.models import CourseRecord, PredictedResult

logger = logging.getLogger(__name__)


class RecordNotFoundError(KeyError):
    """No record exists for the requested (student_id, course_id)."""

    def __init__(self, student_id: str, course_id: str):
        super().__init__(f"No record for student {student_id} in course {course_id}")
        self.student_id = student_id
        self.course_id = course_id

    def __str__(self):
        return self.args[0]


class RecordStore:
    """
    Course records keyed by (student_id, course_id).

    Upserting an existing pair replaces the stored record. Readers always get
    copies, so callers never mutate stored state directly.
    """

    def __init__(self):
        self._records: Dict[Tuple[str, str], CourseRecord] = {}
        self._lock = threading.Lock()

    def __len__(self):
        return len(self._records)

    def upsert(self, record: CourseRecord) -> None:
        with self._lock:
            self._records[record.key] = record.model_copy()

    def upsert_many(self, records: Iterable[CourseRecord]) -> int:
        count = 0
        with self._lock:
            for record in records:
                self._records[record.key] = record.model_copy()
                count += 1
        logger.info(f"Upserted {count} course records")
        return count

    def get(self, student_id: str, course_id: str) -> CourseRecord:
        record = self._records.get((student_id, course_id))
        if record is None:
            raise RecordNotFoundError(student_id, course_id)
        return record.model_copy()

    def delete(self, student_id: str, course_id: str) -> None:
        with self._lock:
            if self._records.pop((student_id, course_id), None) is None:
                raise RecordNotFoundError(student_id, course_id)

    def all(self) -> List[CourseRecord]:
        with self._lock:
            return [r.model_copy() for r in self._records.values()]

    def for_student(self, student_id: str, semester: Optional[int] = None) -> List[CourseRecord]:
        return [
            r for r in self.all()
            if r.student_id == student_id and (semester is None or r.semester == semester)
        ]

    def for_faculty(self, faculty_id: str) -> List[CourseRecord]:
        return [r for r in self.all() if r.faculty_id == faculty_id]

    def _update(self, student_id: str, course_id: str, **changes) -> CourseRecord:
        with self._lock:
            record = self._records.get((student_id, course_id))
            if record is None:
                raise RecordNotFoundError(student_id, course_id)
            updated = record.model_copy(update=changes)
            self._records[record.key] = updated
            return updated.model_copy()

    def save_prediction(self, student_id: str, course_id: str, result: PredictedResult) -> CourseRecord:
        return self._update(
            student_id,
            course_id,
            predicted_end_term_marks=result.end_term,
            predicted_grade=serialize_result(result)
        )

    def update_quiz_score(self, student_id: str, course_id: str, score: float) -> CourseRecord:
        return self._update(student_id, course_id, quiz_score=score)
