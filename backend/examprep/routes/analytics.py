"""
Class analytics API route - aggregate performance across results.

Groups stored results by the test's subject and, within a subject, by
chapter-wise topic:
1. Subject average percentage over all matching results
2. Topic average percentage, question and correct-answer totals
"""

import math
from datetime import datetime
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session, joinedload

from examprep.database import get_db
from examprep.models.result import Result
from examprep.models.test import Test
from examprep.models.user import User
from examprep.services.scoring import round_half_up
from examprep.services.validators import to_naive_utc
from examprep.routes.deps import require_admin
from examprep.logging_config import get_logger, log_with_context

router = APIRouter(prefix="/api/results")
logger = get_logger("http")


def _average(values):
    finite = [v for v in values if v is not None and math.isfinite(v)]
    if not finite:
        return None
    return round_half_up(sum(finite) / len(finite))


@router.get("/analytics")
def get_class_analytics(
    student_class: Optional[int] = Query(None, alias="class", description="Filter by class"),
    subject: Optional[str] = Query(None, description="Filter by subject"),
    from_date: Optional[datetime] = Query(None, description="Submitted on or after"),
    to_date: Optional[datetime] = Query(None, description="Submitted on or before"),
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Average scores per subject and per topic (admin only)."""
    query = db.query(Result).join(Test).options(joinedload(Result.test))

    if student_class is not None:
        query = query.filter(Test.student_class == student_class)
    if subject:
        query = query.filter(Test.subject == subject)
    if from_date:
        query = query.filter(Result.submitted_at >= to_naive_utc(from_date))
    if to_date:
        query = query.filter(Result.submitted_at <= to_naive_utc(to_date))

    results = query.all()

    # Group by subject, then by topic within the subject
    subjects = {}
    for result in results:
        bucket = subjects.setdefault(result.test.subject, {"scores": [], "students": set(), "topics": {}})
        bucket["scores"].append(result.percentage_score)
        bucket["students"].add(result.student_id)

        for chapter in result.chapter_wise_analysis_list:
            topic = bucket["topics"].setdefault(chapter.get("topic"), {
                "scores": [], "total_questions": 0, "correct_answers": 0
            })
            topic["scores"].append(chapter.get("percentage_score"))
            topic["total_questions"] += chapter.get("total_questions", 0)
            topic["correct_answers"] += chapter.get("correct_answers", 0)

    analytics = []
    for subject_name in sorted(subjects):
        bucket = subjects[subject_name]
        analytics.append({
            "subject": subject_name,
            "average_score": _average(bucket["scores"]),
            "total_results": len(bucket["scores"]),
            "total_students": len(bucket["students"]),
            "topics": [
                {
                    "topic": topic_name,
                    "average_score": _average(topic["scores"]),
                    "attempts": len(topic["scores"]),
                    "total_questions": topic["total_questions"],
                    "correct_answers": topic["correct_answers"]
                }
                for topic_name, topic in sorted(bucket["topics"].items())
            ]
        })

    log_with_context(logger, "INFO",
        "Analytics generated: {} subjects from {} results".format(len(analytics), len(results)),
        context={"user_id": str(admin.id)},
        extra_data={"class": student_class, "subject": subject})

    return {
        "filters": {
            "class": student_class,
            "subject": subject,
            "from_date": from_date.isoformat() if from_date else None,
            "to_date": to_date.isoformat() if to_date else None
        },
        "subjects": analytics
    }
