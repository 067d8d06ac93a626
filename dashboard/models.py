"""Data models for the Academic Dashboard application."""

from typing import Optional, Dict, List, Literal, Union
from pydantic import BaseModel, Field

RiskLevel = Literal['low', 'medium', 'high']


class CourseRecord(BaseModel):
    """One student's enrollment in one course for one semester."""
    student_id: str
    student_name: str
    student_email: str = ""
    course_id: str
    course_name: str
    credits: int = Field(ge=1, le=6)
    semester: int = Field(ge=1, le=8)
    mid_term_marks: float = Field(ge=0, le=20)
    attendance: float = Field(ge=0, le=100)
    assignments: float = Field(ge=0, le=10)
    quiz_score: Optional[float] = Field(default=None, ge=0, le=100)
    predicted_end_term_marks: Optional[float] = Field(default=None, ge=0, le=50)
    predicted_grade: Optional[str] = None
    faculty_id: Optional[str] = None

    @property
    def key(self):
        return (self.student_id, self.course_id)

    @property
    def quiz_taken(self) -> bool:
        """A quiz score of 0 or no score at all means the quiz is still pending."""
        return self.quiz_score is not None and self.quiz_score > 0


class PredictedResult(BaseModel):
    """Structured outcome of a course prediction."""
    total_score: float
    letter: str
    grade_point: int
    end_term: float


class CourseRisk(BaseModel):
    """Risk assessment for a single student-course pair."""
    course_name: str
    risk_factors: List[str]
    risk_level: RiskLevel
    risk_color: str = 'secondary'


class StudentRiskGroup(BaseModel):
    """All at-risk courses for one student."""
    student_id: str
    student_name: str
    student_email: str
    courses: List[CourseRisk]
    overall_risk_level: RiskLevel
    risk_color: str = 'secondary'


class UpsertResponse(BaseModel):
    success: bool
    message: str
    count: int


class PredictRequest(BaseModel):
    """Raw end-term prediction handed over by the AI gateway caller."""
    student_id: str
    course_id: str
    raw_prediction: Union[float, str, None] = None


class PredictResponse(BaseModel):
    success: bool
    result: PredictedResult
    predicted_grade: str
    sgpa: str


class SgpaResponse(BaseModel):
    student_id: str
    semester: Optional[int] = None
    sgpa: str
    contributing_courses: int


class QuizQuestion(BaseModel):
    question: str = ""
    options: List[str] = []
    correct_answer: str


class QuizSubmission(BaseModel):
    student_id: str
    course_id: str
    answers: List[Optional[str]]
    questions: List[QuizQuestion]
    raw_prediction: Union[float, str, None] = None


class QuizResult(BaseModel):
    score: int
    correct_answers: int
    total_questions: int
    percentage: int


class QuizResponse(QuizResult):
    predicted_grade: Optional[str] = None


class RiskReportResponse(BaseModel):
    faculty_id: str
    students: List[StudentRiskGroup]
    summary: Dict[str, int]
