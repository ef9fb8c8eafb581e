"""
Exam Prep Platform - ORM model tests
"""
from datetime import timedelta

import pytest
from sqlalchemy.orm import configure_mappers, sessionmaker

from examprep import models
from examprep.services.validators import utc_now


@pytest.fixture
def session(engine):
    db = sessionmaker(bind=engine)()
    yield db
    db.close()


@pytest.fixture
def admin_user(session):
    user = models.User(name="Asha", email="asha@example.com", password_hash="x", role="admin")
    session.add(user)
    session.flush()
    return user


def _question(author, topic="Algebra"):
    return models.Question(type="MCQ", text="2 + 3?", correct_answer="a", marks=1,
                           difficulty="easy", subject="Maths", student_class=9,
                           topic=topic, created_by=author.id)


def test_mappers_configure():
    configure_mappers()


def test_question_lists_the_tests_using_it(session, admin_user):
    first, second = _question(admin_user), _question(admin_user, "Geometry")
    now = utc_now()
    exam = models.Test(title="Unit Test", subject="Maths", student_class=9, duration=30,
                       total_marks=2, start_time=now, end_time=now + timedelta(hours=1),
                       created_by=admin_user.id)
    session.add_all([first, second, exam])
    session.flush()
    exam.set_questions([second, first, second])
    session.commit()

    assert [q.id for q in exam.questions] == [second.id, first.id]
    session.expire_all()
    assert [t.id for t in first.tests] == [exam.id]


def test_column_defaults_store_naive_utc(session, admin_user):
    question = _question(admin_user)
    session.add(question)
    session.flush()

    assert admin_user.created_at.tzinfo is None
    assert question.created_at.tzinfo is None
    assert question.last_modified.tzinfo is None
    assert abs(utc_now() - question.created_at) < timedelta(minutes=1)
