"""
User model - admins who author questions and tests, and students who take them.
"""

import uuid
from sqlalchemy import Column, Text, Integer, DateTime, String
from sqlalchemy.orm import relationship
from examprep.database import Base
from examprep.services.validators import utc_now


class User(Base):
    """
    SQLAlchemy model for the users table.

    Students carry their class (8 or 9); admins leave it empty.
    """
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()),
                doc="Unique user identifier")
    name = Column(Text, nullable=False,
                  doc="Display name")
    email = Column(String(255), nullable=False, unique=True,
                   doc="Login email, stored lowercased")
    password_hash = Column(Text, nullable=False,
                           doc="Password hash (never the plain password)")
    role = Column(String(16), nullable=False, default="student",
                  doc="admin | student")
    student_class = Column(Integer, nullable=True,
                           doc="Class for students (8 or 9)")
    created_at = Column(DateTime, default=utc_now,
                        doc="Timestamp when the account was created")

    results = relationship("Result", back_populates="student")

    @property
    def is_admin(self):
        return self.role == "admin"

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}', role='{self.role}')>"
