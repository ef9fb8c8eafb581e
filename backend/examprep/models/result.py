"""
Result model - the scored outcome of one test submission.

A result is written once when a student submits and is never updated.
It stores:
- Scored responses as JSON (question_id, selected_answer, is_correct, marks_obtained)
- Totals (total_score, percentage_score, time_taken)
- Chapter-wise analysis and feedback as JSON
"""

import uuid
import json
from sqlalchemy import Column, Text, Integer, Float, DateTime, ForeignKey, Index, String
from sqlalchemy.orm import relationship
from examprep.database import Base
from examprep.services.validators import utc_now


def _load_json(value, default):
    if isinstance(value, (dict, list)):
        return value
    try:
        return json.loads(value) if value else default
    except (json.JSONDecodeError, TypeError):
        return default


class Result(Base):
    """
    SQLAlchemy model for the results table.

    status is one of completed | partial | expired; only completed is
    written today. Nothing prevents several results for the same
    student and test.
    """
    __tablename__ = "results"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()),
                doc="Unique result identifier")
    student_id = Column(String(36), ForeignKey("users.id"), nullable=False,
                        doc="Student who submitted")
    test_id = Column(String(36), ForeignKey("tests.id"), nullable=False,
                     doc="Test that was taken")
    responses = Column(Text, nullable=False, default="[]",
                       doc="Scored responses as JSON list")
    total_score = Column(Integer, nullable=False, default=0,
                         doc="Sum of marks obtained")
    percentage_score = Column(Float, nullable=True,
                              doc="total_score / test.total_marks * 100, 2 dp")
    time_taken = Column(Integer, nullable=False, default=0,
                        doc="Minutes from test start to submission")
    submitted_at = Column(DateTime, default=utc_now,
                          doc="Submission instant (naive UTC)")
    chapter_wise_analysis = Column(Text, nullable=False, default="[]",
                                   doc="Per-topic analysis as JSON list")
    status = Column(String(16), nullable=False, default="completed",
                    doc="completed | partial | expired")
    feedback = Column(Text, nullable=False, default="{}",
                      doc="Strengths, weaknesses and recommendations as JSON")

    student = relationship("User", back_populates="results")
    test = relationship("Test", back_populates="results")

    __table_args__ = (
        Index("ix_results_student_id_test_id", "student_id", "test_id"),
        Index("ix_results_submitted_at", "submitted_at"),
    )

    @property
    def responses_list(self):
        return _load_json(self.responses, [])

    @property
    def chapter_wise_analysis_list(self):
        return _load_json(self.chapter_wise_analysis, [])

    @property
    def feedback_dict(self):
        return _load_json(self.feedback, {})

    def __repr__(self):
        return f"<Result(id={self.id}, student={self.student_id}, test={self.test_id}, score={self.total_score})>"
