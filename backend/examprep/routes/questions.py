"""
Question bank API routes.

Provides endpoints for:
- Creating, updating and deleting questions (admin)
- Listing questions with filters and viewing a single question
- Bulk importing questions (admin)

Questions used by a test whose window is open cannot be edited, and
questions used by any test cannot be deleted.
"""

import uuid
import json
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field, field_validator
from sqlalchemy.orm import Session

from examprep.constants import QUESTION_TYPES, DIFFICULTY_LEVELS, QUESTION_SOURCES
from examprep.database import get_db
from examprep.models.question import Question
from examprep.models.user import User
from examprep.services.validators import is_valid_subject, is_valid_class, is_test_active, utc_now
from examprep.routes.deps import get_current_user, require_admin
from examprep.logging_config import get_logger, log_with_context

router = APIRouter(prefix="/api/questions")
db_logger = get_logger("db")


# ── Pydantic schemas ─────────────────────────────────────────

class QuestionOption(BaseModel):
    id: str
    text: str
    is_correct: bool = False


class QuestionPayload(BaseModel):
    """Schema for creating or replacing a question."""
    type: str = Field(..., description="MCQ | short_answer")
    text: str = Field(..., min_length=1)
    options: List[QuestionOption] = Field(default_factory=list)
    correct_answer: str = Field(..., min_length=1)
    explanation: Optional[str] = None
    marks: int = Field(..., ge=1)
    difficulty: str = Field(..., description="easy | medium | hard")
    subject: str
    student_class: int = Field(..., alias="class")
    topic: str = Field(..., min_length=1)
    image_url: Optional[str] = None

    model_config = {"populate_by_name": True}

    @field_validator("type")
    @classmethod
    def type_known(cls, value):
        if value not in QUESTION_TYPES:
            raise ValueError("Invalid question type")
        return value

    @field_validator("difficulty")
    @classmethod
    def difficulty_known(cls, value):
        if value not in DIFFICULTY_LEVELS:
            raise ValueError("Invalid difficulty level")
        return value

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

    @field_validator("text", "topic", "correct_answer")
    @classmethod
    def not_blank(cls, value):
        if not value.strip():
            raise ValueError("Field cannot be blank")
        return value


class BulkImportRequest(BaseModel):
    questions: List[QuestionPayload]


def serialize_question(question: Question, include_answer: bool = True) -> dict:
    """Serialize a Question; students get it without the answer key."""
    options = question.options_list
    data = {
        "id": str(question.id),
        "type": question.type,
        "text": question.text,
        "options": options if include_answer else [
            {"id": o.get("id"), "text": o.get("text")} for o in options
        ],
        "marks": question.marks,
        "difficulty": question.difficulty,
        "subject": question.subject,
        "class": question.student_class,
        "topic": question.topic,
        "image_url": question.image_url,
        "source": question.source,
        "created_by": str(question.created_by),
        "created_at": question.created_at.isoformat() if question.created_at else None,
        "last_modified": question.last_modified.isoformat() if question.last_modified else None
    }
    if include_answer:
        data["correct_answer"] = question.correct_answer
        data["explanation"] = question.explanation
    return data


def _new_question(payload: QuestionPayload, author: User) -> Question:
    now = utc_now()
    return Question(
        id=str(uuid.uuid4()),
        type=payload.type,
        text=payload.text,
        options=json.dumps([o.model_dump() for o in payload.options]),
        correct_answer=payload.correct_answer,
        explanation=payload.explanation,
        marks=payload.marks,
        difficulty=payload.difficulty,
        subject=payload.subject,
        student_class=payload.student_class,
        topic=payload.topic,
        image_url=payload.image_url,
        source="custom",
        created_by=author.id,
        created_at=now,
        last_modified=now
    )


def _get_question_or_404(db: Session, question_id: str) -> Question:
    question = db.query(Question).filter(Question.id == question_id).first()
    if not question:
        raise HTTPException(status_code=404, detail="Question not found")
    return question


@router.post("", status_code=201)
def create_question(payload: QuestionPayload, admin: User = Depends(require_admin),
                    db: Session = Depends(get_db)):
    """Create a question in the bank."""
    question = _new_question(payload, admin)
    db.add(question)
    db.commit()
    db.refresh(question)

    log_with_context(db_logger, "INFO", "Created question on topic {}".format(question.topic),
                     context={"question_id": str(question.id), "user_id": str(admin.id)})
    return serialize_question(question)


@router.get("")
def list_questions(
    subject: Optional[str] = Query(None, description="Filter by subject"),
    student_class: Optional[int] = Query(None, alias="class", description="Filter by class"),
    topic: Optional[str] = Query(None, description="Filter by topic"),
    difficulty: Optional[str] = Query(None, description="Filter by difficulty"),
    type: Optional[str] = Query(None, description="Filter by question type"),
    source: Optional[str] = Query(None, description="Filter by source"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """List questions, newest first."""
    query = db.query(Question)

    if subject:
        query = query.filter(Question.subject == subject)
    if student_class is not None:
        query = query.filter(Question.student_class == student_class)
    if topic:
        query = query.filter(Question.topic == topic)
    if difficulty:
        query = query.filter(Question.difficulty == difficulty)
    if type:
        query = query.filter(Question.type == type)
    if source and source in QUESTION_SOURCES:
        query = query.filter(Question.source == source)

    questions = query.order_by(Question.created_at.desc()).all()
    return [serialize_question(q, include_answer=current_user.is_admin) for q in questions]


@router.post("/bulk-import", status_code=201)
def bulk_import_questions(request: BulkImportRequest, admin: User = Depends(require_admin),
                          db: Session = Depends(get_db)):
    """Import many questions in one transaction."""
    questions = [_new_question(payload, admin) for payload in request.questions]
    db.add_all(questions)
    db.commit()

    log_with_context(db_logger, "INFO", "Bulk imported {} questions".format(len(questions)),
                     context={"user_id": str(admin.id)})
    return [serialize_question(q) for q in questions]


@router.get("/{question_id}")
def get_question(question_id: str, current_user: User = Depends(get_current_user),
                 db: Session = Depends(get_db)):
    question = _get_question_or_404(db, question_id)
    return serialize_question(question, include_answer=current_user.is_admin)


@router.put("/{question_id}")
def update_question(question_id: str, payload: QuestionPayload,
                    admin: User = Depends(require_admin), db: Session = Depends(get_db)):
    """Replace a question's content unless a test using it is in progress."""
    question = _get_question_or_404(db, question_id)

    now = utc_now()
    ongoing = [t for t in question.tests if is_test_active(t.start_time, t.end_time, now)]
    if ongoing:
        raise HTTPException(
            status_code=400,
            detail="Cannot update question while it is being used in ongoing tests"
        )

    question.type = payload.type
    question.text = payload.text
    question.options = json.dumps([o.model_dump() for o in payload.options])
    question.correct_answer = payload.correct_answer
    question.explanation = payload.explanation
    question.marks = payload.marks
    question.difficulty = payload.difficulty
    question.subject = payload.subject
    question.student_class = payload.student_class
    question.topic = payload.topic
    question.image_url = payload.image_url
    question.last_modified = utc_now()

    db.commit()
    db.refresh(question)

    log_with_context(db_logger, "INFO", "Updated question",
                     context={"question_id": question_id, "user_id": str(admin.id)})
    return serialize_question(question)


@router.delete("/{question_id}")
def delete_question(question_id: str, admin: User = Depends(require_admin),
                    db: Session = Depends(get_db)):
    """Delete a question that no test references."""
    question = _get_question_or_404(db, question_id)

    if question.tests:
        raise HTTPException(
            status_code=400,
            detail="Cannot delete question as it is being used in tests"
        )

    db.delete(question)
    db.commit()

    log_with_context(db_logger, "INFO", "Deleted question",
                     context={"question_id": question_id, "user_id": str(admin.id)})
    return {"message": "Question deleted successfully"}
