"""
Question model - a single MCQ or short-answer question in the question bank.

MCQ options are stored as a JSON list of {"id", "text", "is_correct"}.
The scoring engine only reads correct_answer, marks and topic.
"""

import uuid
import json
from sqlalchemy import Column, Text, Integer, DateTime, ForeignKey, Index, String
from sqlalchemy.orm import relationship
from examprep.database import Base
from examprep.services.validators import utc_now


class Question(Base):
    """SQLAlchemy model for the questions table."""
    __tablename__ = "questions"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()),
                doc="Unique question identifier")
    type = Column(String(16), nullable=False,
                  doc="MCQ | short_answer")
    text = Column(Text, nullable=False,
                  doc="Question text")
    options = Column(Text, nullable=False, default="[]",
                     doc="MCQ options as JSON list")
    correct_answer = Column(Text, nullable=False,
                            doc="Answer compared exactly against the submission")
    explanation = Column(Text, nullable=True,
                         doc="Optional worked explanation")
    marks = Column(Integer, nullable=False,
                   doc="Marks for a correct answer (>= 1)")
    difficulty = Column(String(16), nullable=False,
                        doc="easy | medium | hard (informational only)")
    subject = Column(Text, nullable=False,
                     doc="Subject name")
    student_class = Column(Integer, nullable=False,
                           doc="Class the question targets (8 or 9)")
    topic = Column(Text, nullable=False,
                   doc="Topic/chapter label used for chapter-wise analysis")
    image_url = Column(Text, nullable=True,
                       doc="Optional illustration")
    source = Column(String(16), nullable=False, default="custom",
                    doc="custom | opentdb")
    created_by = Column(String(36), ForeignKey("users.id"), nullable=False,
                        doc="Admin who authored the question")
    created_at = Column(DateTime, default=utc_now,
                        doc="Timestamp when the question was created")
    last_modified = Column(DateTime, default=utc_now,
                           onupdate=utc_now,
                           doc="Timestamp of the last edit")

    author = relationship("User")
    tests = relationship("Test", secondary="test_questions", viewonly=True)

    __table_args__ = (
        Index("ix_questions_subject", "subject"),
        Index("ix_questions_topic", "topic"),
    )

    @property
    def options_list(self):
        """Parse the options JSON string into a list."""
        if isinstance(self.options, list):
            return self.options
        try:
            return json.loads(self.options) if self.options else []
        except (json.JSONDecodeError, TypeError):
            return []

    def __repr__(self):
        return f"<Question(id={self.id}, topic='{self.topic}', marks={self.marks})>"
