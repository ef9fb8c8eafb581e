"""
Test model - a timed test built from an ordered list of questions.

Question order is kept in the test_questions association table
(position column). Students see a test only when it is assigned to them.
"""

import uuid
import json
from sqlalchemy import Column, Text, Integer, DateTime, ForeignKey, String, Table
from sqlalchemy.orm import relationship
from examprep.database import Base
from examprep.services.validators import utc_now


test_assignments = Table(
    "test_assignments",
    Base.metadata,
    Column("test_id", String(36), ForeignKey("tests.id", ondelete="CASCADE"), primary_key=True),
    Column("user_id", String(36), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
)


class TestQuestion(Base):
    """Association row placing a question at a position within a test."""
    __tablename__ = "test_questions"

    test_id = Column(String(36), ForeignKey("tests.id", ondelete="CASCADE"), primary_key=True)
    question_id = Column(String(36), ForeignKey("questions.id"), primary_key=True)
    position = Column(Integer, nullable=False, default=0)

    question = relationship("Question")


class Test(Base):
    """
    SQLAlchemy model for the tests table.

    total_marks is entered by the admin and is not checked against the
    sum of question marks.
    """
    __tablename__ = "tests"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()),
                doc="Unique test identifier")
    title = Column(Text, nullable=False,
                   doc="Test title")
    subject = Column(Text, nullable=False,
                     doc="Subject name")
    student_class = Column(Integer, nullable=False,
                           doc="Class the test is set for (8 or 9)")
    topics = Column(Text, nullable=False, default="[]",
                    doc="Topics covered, as JSON list")
    duration = Column(Integer, nullable=False,
                      doc="Duration in minutes")
    total_marks = Column(Integer, nullable=False,
                         doc="Maximum marks used for the overall percentage")
    start_time = Column(DateTime, nullable=False,
                        doc="Window opens (naive UTC)")
    end_time = Column(DateTime, nullable=False,
                      doc="Window closes (naive UTC)")
    created_by = Column(String(36), ForeignKey("users.id"), nullable=False,
                        doc="Admin who created the test")
    created_at = Column(DateTime, default=utc_now,
                        doc="Timestamp when test was created")

    question_links = relationship("TestQuestion", order_by=TestQuestion.position,
                                  cascade="all, delete-orphan")
    assigned_students = relationship("User", secondary=test_assignments)
    author = relationship("User", foreign_keys=[created_by])
    results = relationship("Result", back_populates="test")

    @property
    def questions(self):
        """Questions in test order."""
        return [link.question for link in self.question_links]

    def set_questions(self, questions):
        """Replace the question list, keeping the given order. Repeats are ignored."""
        existing = {link.question_id: link for link in self.question_links}
        links = []
        for q in questions:
            if any(link.question_id == q.id for link in links):
                continue
            link = existing.get(q.id) or TestQuestion(question_id=q.id, question=q)
            link.position = len(links)
            links.append(link)
        self.question_links = links

    @property
    def topics_list(self):
        """Parse the topics JSON string into a list."""
        if isinstance(self.topics, list):
            return self.topics
        try:
            return json.loads(self.topics) if self.topics else []
        except (json.JSONDecodeError, TypeError):
            return []

    def __repr__(self):
        return f"<Test(id={self.id}, title='{self.title}', total_marks={self.total_marks})>"
