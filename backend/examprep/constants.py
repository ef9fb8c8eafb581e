"""
Domain constants and environment-driven settings.

Subjects, classes and the enumerations used by the models and the API
live here, together with the performance thresholds that feed the
default ScoringConfig.
"""

import os

# ──────────────────────────────────────────────────────────────
# Curriculum
# ──────────────────────────────────────────────────────────────
SUBJECTS = ["Maths", "Science", "Social Science", "English", "Hindi"]
CLASSES = [8, 9]

QUESTION_TYPES = ["MCQ", "short_answer"]
DIFFICULTY_LEVELS = ["easy", "medium", "hard"]
QUESTION_SOURCES = ["custom", "opentdb"]

ROLE_ADMIN = "admin"
ROLE_STUDENT = "student"
ROLES = [ROLE_ADMIN, ROLE_STUDENT]

# Test window status (derived from start/end time, never stored)
TEST_STATUS_UPCOMING = "upcoming"
TEST_STATUS_ONGOING = "ongoing"
TEST_STATUS_COMPLETED = "completed"
TEST_STATUSES = [TEST_STATUS_UPCOMING, TEST_STATUS_ONGOING, TEST_STATUS_COMPLETED]

# Result status. Only "completed" is produced; the other two are reserved.
RESULT_STATUS_COMPLETED = "completed"
RESULT_STATUS_PARTIAL = "partial"
RESULT_STATUS_EXPIRED = "expired"
RESULT_STATUSES = [RESULT_STATUS_COMPLETED, RESULT_STATUS_PARTIAL, RESULT_STATUS_EXPIRED]

# ──────────────────────────────────────────────────────────────
# Performance thresholds (percent, inclusive)
# ──────────────────────────────────────────────────────────────
STRENGTH_THRESHOLD = 70    # topic score >= 70% is a strength
WEAKNESS_THRESHOLD = 40    # topic score <= 40% is a weakness

# Test duration limits in minutes
MIN_TEST_DURATION = 15
MAX_TEST_DURATION = 180

# ──────────────────────────────────────────────────────────────
# Auth settings
# ──────────────────────────────────────────────────────────────
JWT_SECRET = os.getenv("JWT_SECRET", "change-me-in-production")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
JWT_EXPIRE_MINUTES = int(os.getenv("JWT_EXPIRE_MINUTES", str(24 * 60)))
