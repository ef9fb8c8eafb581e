from examprep.models.user import User
from examprep.models.question import Question
from examprep.models.test import Test, TestQuestion, test_assignments
from examprep.models.result import Result

__all__ = ["User", "Question", "Test", "TestQuestion", "test_assignments", "Result"]
