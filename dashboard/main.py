"""FastAPI main application for the Academic Dashboard."""

import os
import csv
import logging
import traceback
from io import StringIO
from typing import List, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse, StreamingResponse
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from starlette.exceptions import HTTPException as StarletteHTTPException
from dotenv import load_dotenv

from dashboard.models import (
    CourseRecord,
    PredictedResult,
    UpsertResponse,
    PredictRequest,
    PredictResponse,
    SgpaResponse,
    QuizSubmission,
    QuizResponse,
    RiskReportResponse,
)
from dashboard.grading import (
    predict,
    grade_course,
    record_sgpa,
    format_sgpa,
    extract_grade_point,
)
from dashboard.risk import classify, risk_summary
from dashboard.quiz import score_quiz
from dashboard.store import RecordStore, RecordNotFoundError
from dashboard import analytics

# Load environment variables
load_dotenv()

logging.basicConfig(
    level=getattr(logging, os.getenv('LOG_LEVEL', 'INFO').upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Academic Dashboard", version="1.0.0")

# CORS configuration
allow_origins = os.getenv('ALLOW_ORIGINS', '*').split(',')
app.add_middleware(
    CORSMiddleware,
    allow_origins=allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler_json(request: Request, exc: StarletteHTTPException):
    """Handle HTTP exceptions and return JSON."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail}
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler_json(request: Request, exc: RequestValidationError):
    """Handle validation errors and return JSON."""
    return JSONResponse(
        status_code=422,
        content=jsonable_encoder({"detail": exc.errors(), "body": exc.body})
    )


@app.exception_handler(RecordNotFoundError)
async def record_not_found_handler(request: Request, exc: RecordNotFoundError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle all unhandled exceptions and return JSON."""
    logger.exception(f"Unhandled error on {request.url.path}")
    error_detail = str(exc)
    if os.getenv('DEBUG', 'False').lower() == 'true':
        error_detail = f"{str(exc)}\n\n{traceback.format_exc()}"

    return JSONResponse(
        status_code=500,
        content={
            "detail": f"Internal server error: {error_detail}",
            "type": type(exc).__name__
        }
    )


store = RecordStore()


def _semester_sgpa(student_id: str, semester: int) -> str:
    return format_sgpa(record_sgpa(store.for_student(student_id, semester)))


def _recompute_with_stored_end_term(record: CourseRecord) -> Optional[PredictedResult]:
    """Re-derive the grade after a score change, reusing the last end-term prediction."""
    if record.predicted_end_term_marks is None:
        return None
    return grade_course(record, record.predicted_end_term_marks)


@app.get("/health")
async def health_check():
    """Health check endpoint to test server connectivity."""
    return JSONResponse(content={"status": "ok", "message": "Server is running"})


@app.post("/records", response_model=UpsertResponse)
async def upsert_records(records: List[CourseRecord]):
    """Insert or replace course records; (student_id, course_id) is the key."""
    count = store.upsert_many(records)
    return UpsertResponse(
        success=True,
        message=f"Successfully stored {count} course records",
        count=count
    )


@app.get("/records/{student_id}", response_model=List[CourseRecord])
async def list_student_records(student_id: str, semester: Optional[int] = None):
    return store.for_student(student_id, semester)


@app.delete("/records/{student_id}/{course_id}")
async def delete_record(student_id: str, course_id: str):
    store.delete(student_id, course_id)
    return {"success": True}


@app.post("/predict", response_model=PredictResponse)
async def predict_performance(request: PredictRequest):
    """Grade a course from the AI gateway's raw end-term prediction and persist it."""
    record = store.get(request.student_id, request.course_id)
    result = predict(record, request.raw_prediction)
    updated = store.save_prediction(record.student_id, record.course_id, result)

    return PredictResponse(
        success=True,
        result=result,
        predicted_grade=updated.predicted_grade,
        sgpa=_semester_sgpa(record.student_id, record.semester)
    )


@app.get("/students/{student_id}/sgpa", response_model=SgpaResponse)
async def student_sgpa(student_id: str, semester: Optional[int] = None):
    records = store.for_student(student_id, semester)
    contributing = sum(1 for r in records if extract_grade_point(r.predicted_grade) is not None)
    return SgpaResponse(
        student_id=student_id,
        semester=semester,
        sgpa=format_sgpa(record_sgpa(records)),
        contributing_courses=contributing
    )


@app.get("/students/{student_id}/overview")
async def student_overview(student_id: str):
    return analytics.student_overview(store.for_student(student_id))


@app.post("/quiz/check", response_model=QuizResponse)
async def check_quiz_answers(submission: QuizSubmission):
    """Score a quiz, store the score and refresh the course prediction."""
    store.get(submission.student_id, submission.course_id)

    try:
        quiz = score_quiz(submission.answers, submission.questions)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    logger.info(
        f"Quiz results for {submission.student_id}/{submission.course_id}: "
        f"{quiz.correct_answers}/{quiz.total_questions} ({quiz.score}%)"
    )
    record = store.update_quiz_score(submission.student_id, submission.course_id, quiz.score)

    if submission.raw_prediction is not None:
        result = predict(record, submission.raw_prediction)
    else:
        result = _recompute_with_stored_end_term(record)

    predicted_grade = record.predicted_grade
    if result is not None:
        predicted_grade = store.save_prediction(record.student_id, record.course_id, result).predicted_grade
    else:
        logger.info(f"No end-term prediction yet for {record.student_id}/{record.course_id}; grade unchanged")

    return QuizResponse(predicted_grade=predicted_grade, **quiz.model_dump())


@app.get("/faculty/{faculty_id}/at-risk", response_model=RiskReportResponse)
async def at_risk_students(faculty_id: str):
    groups = classify(store.for_faculty(faculty_id))
    return RiskReportResponse(
        faculty_id=faculty_id,
        students=groups,
        summary=risk_summary(groups)
    )


@app.get("/faculty/{faculty_id}/at-risk.csv")
async def download_at_risk_csv(faculty_id: str):
    """Download the at-risk report as CSV, one row per student-course pair."""
    groups = classify(store.for_faculty(faculty_id))

    output = StringIO()
    writer = csv.writer(output)
    writer.writerow([
        'Student ID',
        'Student Name',
        'Student Email',
        'Overall Risk',
        'Course',
        'Course Risk',
        'Risk Factors'
    ])
    for group in groups:
        for course in group.courses:
            writer.writerow([
                group.student_id,
                group.student_name,
                group.student_email,
                group.overall_risk_level,
                course.course_name,
                course.risk_level,
                "; ".join(course.risk_factors)
            ])
    output.seek(0)

    return StreamingResponse(
        iter([output.getvalue()]),
        media_type="text/csv",
        headers={
            "Content-Disposition": f"attachment; filename=at_risk_students_{faculty_id}.csv"
        }
    )


@app.get("/faculty/{faculty_id}/analytics")
async def faculty_analytics(faculty_id: str):
    records = store.for_faculty(faculty_id)
    return {
        'faculty_id': faculty_id,
        'overview': analytics.overview_stats(records),
        'course_difficulty': analytics.course_difficulty_report(records),
        'semester_performance': analytics.semester_performance(records),
        'course_performance': analytics.course_performance(records),
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
