"""
Test API routes - creating, scheduling and browsing tests.

Admins create tests from questions in the bank and assign them to
students. Students only see tests assigned to them for their class.
A test can no longer be edited or deleted once its window has opened.
"""

import uuid
import json
from datetime import datetime
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field, field_validator, model_validator
from sqlalchemy.orm import Session, joinedload, selectinload

from examprep.constants import (
    ROLE_STUDENT, MIN_TEST_DURATION, MAX_TEST_DURATION,
    TEST_STATUSES, TEST_STATUS_UPCOMING, TEST_STATUS_ONGOING, TEST_STATUS_COMPLETED
)
from examprep.database import get_db
from examprep.models.question import Question
from examprep.models.test import Test, TestQuestion
from examprep.models.user import User
from examprep.services.validators import (
    is_valid_subject, is_valid_class, is_valid_test_duration,
    to_naive_utc, utc_now, window_status
)
from examprep.routes.deps import get_current_user, require_admin
from examprep.routes.questions import serialize_question
from examprep.logging_config import get_logger, log_with_context

router = APIRouter(prefix="/api/tests")
logger = get_logger("http")
db_logger = get_logger("db")


# ── Pydantic schemas ─────────────────────────────────────────

class TestPayload(BaseModel):
    """Schema for creating or replacing a test."""
    title: str = Field(..., min_length=1)
    subject: str
    student_class: int = Field(..., alias="class")
    topics: List[str] = Field(default_factory=list)
    duration: int = Field(..., description="Minutes")
    total_marks: int = Field(..., gt=0)
    start_time: datetime
    end_time: datetime
    question_ids: List[str] = Field(default_factory=list)
    assigned_to: List[str] = Field(default_factory=list)

    model_config = {"populate_by_name": True}

    @field_validator("subject")
    @classmethod
    def subject_known(cls, value):
        if not is_valid_subject(value):
            raise ValueError("Invalid subject")
        return value

    @field_validator("student_class")
    @classmethod
    def class_known(cls, value):
        if not is_valid_class(value):
            raise ValueError("Invalid class")
        return value

    @field_validator("duration")
    @classmethod
    def duration_in_range(cls, value):
        if not is_valid_test_duration(value):
            raise ValueError("Duration must be between {} and {} minutes".format(
                MIN_TEST_DURATION, MAX_TEST_DURATION))
        return value

    @field_validator("start_time", "end_time")
    @classmethod
    def normalize_time(cls, value):
        return to_naive_utc(value)

    @model_validator(mode="after")
    def window_is_ordered(self):
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self


def serialize_test(test: Test, include_answers: bool = True, now: Optional[datetime] = None) -> dict:
    """Serialize a Test with its questions in order."""
    now = now or utc_now()
    return {
        "id": str(test.id),
        "title": test.title,
        "subject": test.subject,
        "class": test.student_class,
        "topics": test.topics_list,
        "duration": test.duration,
        "total_marks": test.total_marks,
        "start_time": test.start_time.isoformat() if test.start_time else None,
        "end_time": test.end_time.isoformat() if test.end_time else None,
        "status": window_status(test.start_time, test.end_time, now),
        "questions": [serialize_question(q, include_answer=include_answers) for q in test.questions],
        "assigned_to": [str(u.id) for u in test.assigned_students],
        "created_by": str(test.created_by),
        "created_at": test.created_at.isoformat() if test.created_at else None
    }


def _resolve_questions(db: Session, question_ids: List[str]) -> List[Question]:
    """Load questions in the requested order; 400 on unknown ids."""
    if not question_ids:
        return []
    found = {q.id: q for q in db.query(Question).filter(Question.id.in_(question_ids)).all()}
    missing = [qid for qid in question_ids if qid not in found]
    if missing:
        raise HTTPException(status_code=400, detail="Unknown question ids: {}".format(", ".join(missing)))
    return [found[qid] for qid in question_ids]


def _resolve_students(db: Session, user_ids: List[str]) -> List[User]:
    if not user_ids:
        return []
    students = db.query(User).filter(User.id.in_(user_ids), User.role == ROLE_STUDENT).all()
    if len(students) != len(set(user_ids)):
        raise HTTPException(status_code=400, detail="assigned_to must list existing students")
    return students


def _load_test(db: Session, test_id: str) -> Test:
    test = db.query(Test).options(
        selectinload(Test.question_links).joinedload(TestQuestion.question),
        selectinload(Test.assigned_students)
    ).filter(Test.id == test_id).first()
    if not test:
        raise HTTPException(status_code=404, detail="Test not found")
    return test


def _apply_payload(test: Test, payload: TestPayload, db: Session):
    test.title = payload.title
    test.subject = payload.subject
    test.student_class = payload.student_class
    test.topics = json.dumps(payload.topics)
    test.duration = payload.duration
    test.total_marks = payload.total_marks
    test.start_time = payload.start_time
    test.end_time = payload.end_time
    test.set_questions(_resolve_questions(db, payload.question_ids))
    test.assigned_students = _resolve_students(db, payload.assigned_to)


@router.post("", status_code=201)
def create_test(payload: TestPayload, admin: User = Depends(require_admin),
                db: Session = Depends(get_db)):
    """Create a test from existing questions."""
    test = Test(
        id=str(uuid.uuid4()),
        created_by=admin.id,
        created_at=utc_now()
    )
    _apply_payload(test, payload, db)
    db.add(test)
    db.commit()

    log_with_context(db_logger, "INFO", "Created test: {}".format(test.title),
                     context={"test_id": str(test.id), "user_id": str(admin.id)},
                     extra_data={"questions": len(payload.question_ids),
                                 "total_marks": payload.total_marks})
    return serialize_test(_load_test(db, test.id))


@router.get("")
def list_tests(
    subject: Optional[str] = Query(None, description="Filter by subject"),
    student_class: Optional[int] = Query(None, alias="class", description="Filter by class"),
    status: Optional[str] = Query(None, description="upcoming | ongoing | completed"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """List tests by start time. Students only see tests assigned to them."""
    if status is not None and status not in TEST_STATUSES:
        raise HTTPException(status_code=400, detail="status must be one of: {}".format(", ".join(TEST_STATUSES)))

    query = db.query(Test).options(
        selectinload(Test.question_links).joinedload(TestQuestion.question),
        selectinload(Test.assigned_students)
    )

    if subject:
        query = query.filter(Test.subject == subject)
    if student_class is not None:
        query = query.filter(Test.student_class == student_class)

    if not current_user.is_admin:
        query = query.filter(
            Test.assigned_students.any(User.id == current_user.id),
            Test.student_class == current_user.student_class
        )

    now = utc_now()
    if status == TEST_STATUS_UPCOMING:
        query = query.filter(Test.start_time > now)
    elif status == TEST_STATUS_ONGOING:
        query = query.filter(Test.start_time <= now, Test.end_time >= now)
    elif status == TEST_STATUS_COMPLETED:
        query = query.filter(Test.end_time < now)

    tests = query.order_by(Test.start_time.asc()).all()

    log_with_context(logger, "INFO", "Listed {} tests".format(len(tests)),
                     context={"user_id": str(current_user.id)},
                     extra_data={"status": status})
    return [serialize_test(t, include_answers=current_user.is_admin, now=now) for t in tests]


@router.get("/{test_id}")
def get_test(test_id: str, current_user: User = Depends(get_current_user),
             db: Session = Depends(get_db)):
    """Get one test. Students must be assigned to it."""
    test = _load_test(db, test_id)

    if not current_user.is_admin and current_user not in test.assigned_students:
        raise HTTPException(status_code=403, detail="Access denied. Test not assigned to user.")

    return serialize_test(test, include_answers=current_user.is_admin)


@router.put("/{test_id}")
def update_test(test_id: str, payload: TestPayload, admin: User = Depends(require_admin),
                db: Session = Depends(get_db)):
    """Replace a test that has not started yet."""
    test = _load_test(db, test_id)

    if test.start_time < utc_now():
        raise HTTPException(status_code=400, detail="Cannot update an ongoing or completed test")

    _apply_payload(test, payload, db)
    db.commit()

    log_with_context(db_logger, "INFO", "Updated test: {}".format(test.title),
                     context={"test_id": test_id, "user_id": str(admin.id)})
    return serialize_test(_load_test(db, test_id))


@router.delete("/{test_id}")
def delete_test(test_id: str, admin: User = Depends(require_admin),
                db: Session = Depends(get_db)):
    """Delete a test that has not started yet."""
    test = _load_test(db, test_id)

    if test.start_time < utc_now():
        raise HTTPException(status_code=400, detail="Cannot delete an ongoing or completed test")

    db.delete(test)
    db.commit()

    log_with_context(db_logger, "INFO", "Deleted test",
                     context={"test_id": test_id, "user_id": str(admin.id)})
    return {"message": "Test deleted successfully"}
