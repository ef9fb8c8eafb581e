"""
Result API routes - test submission and result retrieval.

This module implements:
1. POST /api/results/submit - enforce the test window, score, persist
2. GET /api/results/student - the caller's results, newest first
3. GET /api/results/{id} - a single result with performance metrics

Scoring itself is delegated to services.scoring, which is pure; this
layer owns authentication, the time window and persistence.
"""

import math
import time
import uuid
import json
from typing import List
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session, joinedload, selectinload

from examprep.database import get_db
from examprep.models.result import Result
from examprep.models.test import Test, TestQuestion
from examprep.models.user import User
from examprep.services.scoring import (
    ScoringQuestion, ScoringTest, SubmittedResponse, ScoredResponse,
    score_submission, generate_performance_metrics
)
from examprep.services.validators import utc_now
from examprep.routes.deps import get_current_user
from examprep.logging_config import get_logger, log_with_context

router = APIRouter(prefix="/api/results")
logger = get_logger("http")
scoring_logger = get_logger("scoring")


# ── Pydantic schemas ─────────────────────────────────────────

class ResponseItem(BaseModel):
    """A single answer; an empty answer means the question was left blank."""
    question_id: str = Field(..., min_length=1)
    answer: str = ""


class SubmitRequest(BaseModel):
    test_id: str = Field(..., min_length=1)
    responses: List[ResponseItem]


def _finite_or_none(value):
    if value is None or not math.isfinite(value):
        return None
    return value


def build_scoring_test(test: Test) -> ScoringTest:
    """Convert a Test and its questions into the engine's input type."""
    return ScoringTest(
        id=str(test.id),
        questions=[
            ScoringQuestion(
                id=str(q.id),
                type=q.type,
                correct_answer=q.correct_answer,
                marks=q.marks,
                topic=q.topic,
                difficulty=q.difficulty
            )
            for q in test.questions
        ],
        start_time=test.start_time,
        end_time=test.end_time,
        total_marks=test.total_marks
    )


def serialize_result(result: Result) -> dict:
    """Serialize a Result ORM object for API responses."""
    return {
        "id": str(result.id),
        "student_id": str(result.student_id),
        "test_id": str(result.test_id),
        "responses": result.responses_list,
        "total_score": result.total_score,
        "percentage_score": _finite_or_none(result.percentage_score),
        "time_taken": result.time_taken,
        "submitted_at": result.submitted_at.isoformat() if result.submitted_at else None,
        "chapter_wise_analysis": result.chapter_wise_analysis_list,
        "status": result.status,
        "feedback": result.feedback_dict
    }


@router.post("/submit", status_code=201)
def submit_test(request: SubmitRequest, current_user: User = Depends(get_current_user),
                db: Session = Depends(get_db)):
    """
    Score and store a test submission.

    The submission must arrive inside the test window. Students may only
    submit tests assigned to them.
    """
    start_time = time.time()

    test = db.query(Test).options(
        selectinload(Test.question_links).joinedload(TestQuestion.question),
        selectinload(Test.assigned_students)
    ).filter(Test.id == request.test_id).first()

    if not test:
        raise HTTPException(status_code=404, detail="Test not found")

    if not current_user.is_admin and current_user not in test.assigned_students:
        raise HTTPException(status_code=403, detail="Access denied. Test not assigned to user.")

    now = utc_now()
    if now < test.start_time:
        raise HTTPException(status_code=400, detail="Test has not started yet")
    if now > test.end_time:
        raise HTTPException(status_code=400, detail="Test has already ended")

    scored = score_submission(
        build_scoring_test(test),
        [SubmittedResponse(question_id=r.question_id, answer=r.answer) for r in request.responses],
        submitted_at=now,
        student_id=str(current_user.id)
    )

    result = Result(
        id=str(uuid.uuid4()),
        student_id=scored.student_id,
        test_id=scored.test_id,
        responses=json.dumps([r.model_dump() for r in scored.responses]),
        total_score=scored.total_score,
        percentage_score=scored.percentage_score,
        time_taken=scored.time_taken,
        submitted_at=scored.submitted_at,
        chapter_wise_analysis=json.dumps([c.model_dump() for c in scored.chapter_wise_analysis]),
        status=scored.status,
        feedback=json.dumps(scored.feedback.model_dump())
    )
    db.add(result)
    db.commit()
    db.refresh(result)

    dropped = len(request.responses) - len(scored.responses)
    if dropped:
        log_with_context(scoring_logger, "WARNING",
            "Ignored {} responses for questions outside the test".format(dropped),
            context={"result_id": str(result.id), "test_id": str(test.id)})

    duration_ms = (time.time() - start_time) * 1000
    log_with_context(scoring_logger, "INFO",
        "Score computed: {}/{} ({}%)".format(
            scored.total_score, test.total_marks, scored.percentage_score),
        context={
            "result_id": str(result.id),
            "student_id": str(current_user.id),
            "test_id": str(test.id)
        },
        extra_data={
            "duration_ms": round(duration_ms, 2),
            "strengths": len(scored.feedback.strengths),
            "weaknesses": len(scored.feedback.weaknesses)
        })

    return serialize_result(result)


@router.get("/student")
def get_student_results(current_user: User = Depends(get_current_user),
                        db: Session = Depends(get_db)):
    """The caller's results, most recent submission first."""
    results = db.query(Result).options(
        joinedload(Result.test)
    ).filter(
        Result.student_id == current_user.id
    ).order_by(Result.submitted_at.desc()).all()

    data = []
    for result in results:
        item = serialize_result(result)
        item["test"] = {
            "id": str(result.test.id),
            "title": result.test.title,
            "subject": result.test.subject,
            "class": result.test.student_class
        } if result.test else None
        data.append(item)
    return data


@router.get("/{result_id}")
def get_result(result_id: str, current_user: User = Depends(get_current_user),
               db: Session = Depends(get_db)):
    """A single result. Students can only read their own."""
    result = db.query(Result).options(
        joinedload(Result.test),
        joinedload(Result.student)
    ).filter(Result.id == result_id).first()

    if not result:
        raise HTTPException(status_code=404, detail="Result not found")

    if not current_user.is_admin and result.student_id != current_user.id:
        raise HTTPException(status_code=403, detail="Access denied")

    data = serialize_result(result)
    data["test"] = {
        "id": str(result.test.id),
        "title": result.test.title,
        "subject": result.test.subject,
        "class": result.test.student_class,
        "total_marks": result.test.total_marks,
        "start_time": result.test.start_time.isoformat(),
        "end_time": result.test.end_time.isoformat()
    } if result.test else None
    data["student"] = {
        "id": str(result.student.id),
        "name": result.student.name,
        "email": result.student.email,
        "class": result.student.student_class
    } if result.student else None

    metrics = generate_performance_metrics(
        [ScoredResponse(**r) for r in result.responses_list], result.time_taken)
    data["performance_metrics"] = metrics.model_dump()
    return data
