"""
Scoring Service - Scores a test submission and derives topic-wise feedback.

Implements the scoring pipeline:
1. Resolve each response against the test's own questions (unknown ids are dropped)
2. Exact, case-sensitive match against the correct answer; full marks or zero
3. Per-topic tallies -> chapter-wise analysis (percentage, 2 dp)
4. Strengths (>= strength threshold) and weaknesses (<= weakness threshold)
5. total_score = sum of marks obtained
   percentage_score = total_score / total_marks * 100 (2 dp)

The engine is a pure function: it performs no I/O, reads no clock and
never mutates its inputs. Persistence and the test time window are the
caller's concern.
"""

import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from examprep.constants import (
    STRENGTH_THRESHOLD, WEAKNESS_THRESHOLD, RESULT_STATUS_COMPLETED
)


# ── Engine value types ───────────────────────────────────────

class ScoringConfig(BaseModel):
    """Classification thresholds, in percent, both inclusive."""
    model_config = ConfigDict(frozen=True)

    strength_threshold: float = STRENGTH_THRESHOLD
    weakness_threshold: float = WEAKNESS_THRESHOLD


DEFAULT_SCORING_CONFIG = ScoringConfig()


class ScoringQuestion(BaseModel):
    """A question as the engine sees it: answer key, marks and topic."""
    model_config = ConfigDict(frozen=True)

    id: str
    type: str = "MCQ"
    correct_answer: str
    marks: int
    topic: str
    difficulty: str = "medium"


class ScoringTest(BaseModel):
    """A fully resolved test: ordered questions, window and total marks."""
    model_config = ConfigDict(frozen=True)

    id: str
    questions: List[ScoringQuestion]
    start_time: datetime
    end_time: datetime
    total_marks: int


class SubmittedResponse(BaseModel):
    """A learner's answer; an empty string means unanswered."""
    model_config = ConfigDict(frozen=True)

    question_id: str
    answer: str = ""


class ScoredResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    question_id: str
    selected_answer: str
    is_correct: bool
    marks_obtained: int


class ChapterAnalysis(BaseModel):
    model_config = ConfigDict(frozen=True)

    topic: str
    total_questions: int
    correct_answers: int
    percentage_score: float


class Feedback(BaseModel):
    model_config = ConfigDict(frozen=True)

    strengths: List[str] = Field(default_factory=list)
    weaknesses: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)


class ScoredResult(BaseModel):
    """The scored submission, ready for the caller to persist."""
    model_config = ConfigDict(frozen=True)

    student_id: Optional[str] = None
    test_id: str
    responses: List[ScoredResponse]
    total_score: int
    percentage_score: float
    time_taken: int
    submitted_at: datetime
    chapter_wise_analysis: List[ChapterAnalysis]
    status: str = RESULT_STATUS_COMPLETED
    feedback: Feedback


class PerformanceMetrics(BaseModel):
    accuracy: float
    time_per_question: int
    completion_rate: float


@dataclass
class TopicAggregate:
    """Running totals for one topic while responses are scored."""
    topic: str
    total_questions: int = 0
    correct_answers: int = 0
    marks_possible: int = 0
    marks_obtained: int = 0

    def add(self, marks: int, marks_obtained: int, is_correct: bool):
        self.total_questions += 1
        self.correct_answers += 1 if is_correct else 0
        self.marks_possible += marks
        self.marks_obtained += marks_obtained


# ── Numeric helpers ──────────────────────────────────────────

def round_half_up(value: float, places: int = 2) -> float:
    """Round like JavaScript's Math.round(value * 10**places) / 10**places."""
    factor = 10 ** places
    return math.floor(value * factor + 0.5) / factor


def _percentage_of_zero_total(obtained: float) -> float:
    """
    Percentage against a zero total. No fallback value is defined, so this
    mirrors naive division: 0/0 is NaN, anything else is +/- infinity.
    """
    if obtained == 0:
        return math.nan
    return math.copysign(math.inf, obtained)


def calculate_percentage(obtained: float, total: float) -> float:
    """
    Calculate a percentage rounded to 2 decimal places.

    A zero total does not raise; it yields a non-finite value.
    """
    if not total:
        return _percentage_of_zero_total(obtained)
    return round_half_up(obtained / total * 100)


def topic_percentage(aggregate: TopicAggregate) -> float:
    """Topic percentage; a topic with no marks available reports 0."""
    if aggregate.marks_possible == 0:
        return 0.0
    return calculate_percentage(aggregate.marks_obtained, aggregate.marks_possible)


def format_score(value: float) -> str:
    """Render a percentage the way it reads in feedback text (40, 33.33)."""
    if math.isfinite(value) and value == int(value):
        return str(int(value))
    return str(value)


def _as_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def compute_time_taken(start_time: datetime, submitted_at: datetime) -> int:
    """Whole minutes from test start to submission, never negative."""
    elapsed = _as_naive_utc(submitted_at) - _as_naive_utc(start_time)
    minutes = math.floor(elapsed.total_seconds() / 60 + 0.5)
    return max(0, minutes)


# ── Pipeline stages ──────────────────────────────────────────

def resolve_response(lookup: Dict[str, ScoringQuestion],
                     response: SubmittedResponse) -> Optional[ScoringQuestion]:
    """
    Find the question a response refers to.

    Responses for questions outside the test are silently dropped:
    they return None and are neither scored nor reported.
    """
    return lookup.get(response.question_id)


def build_chapter_analysis(aggregates: Iterable[TopicAggregate]) -> List[ChapterAnalysis]:
    """Turn per-topic tallies into chapter-wise analysis rows."""
    return [
        ChapterAnalysis(
            topic=aggregate.topic,
            total_questions=aggregate.total_questions,
            correct_answers=aggregate.correct_answers,
            percentage_score=topic_percentage(aggregate)
        )
        for aggregate in aggregates
    ]


def generate_feedback(chapter_analysis: Iterable[ChapterAnalysis],
                      config: ScoringConfig = DEFAULT_SCORING_CONFIG) -> Feedback:
    """
    Classify topics into strengths and weaknesses.

    Topics strictly between the two thresholds appear in neither list.
    Every weakness gets one recommendation.
    """
    strengths = []
    weaknesses = []
    recommendations = []

    for chapter in chapter_analysis:
        if chapter.percentage_score >= config.strength_threshold:
            strengths.append(chapter.topic)
        elif chapter.percentage_score <= config.weakness_threshold:
            weaknesses.append(chapter.topic)
            recommendations.append("Focus on improving {} ({}% score)".format(
                chapter.topic, format_score(chapter.percentage_score)))

    return Feedback(strengths=strengths, weaknesses=weaknesses, recommendations=recommendations)


def score_submission(test: ScoringTest, responses: Iterable[SubmittedResponse],
                     submitted_at: datetime, student_id: Optional[str] = None,
                     config: ScoringConfig = DEFAULT_SCORING_CONFIG) -> ScoredResult:
    """
    Score a submission against a test and derive chapter-wise feedback.

    Args:
        test: The resolved test with its questions and total marks
        responses: The learner's answers in submission order
        submitted_at: Submission instant supplied by the caller
        student_id: Owner of the result, copied through unchanged
        config: Strength/weakness thresholds

    Returns:
        ScoredResult with status "completed"
    """
    lookup = {question.id: question for question in test.questions}

    scored_responses = []
    aggregates: Dict[str, TopicAggregate] = {}

    for response in responses:
        question = resolve_response(lookup, response)
        if question is None:
            continue

        is_correct = response.answer == question.correct_answer
        marks_obtained = question.marks if is_correct else 0

        scored_responses.append(ScoredResponse(
            question_id=question.id,
            selected_answer=response.answer,
            is_correct=is_correct,
            marks_obtained=marks_obtained
        ))

        if question.topic not in aggregates:
            aggregates[question.topic] = TopicAggregate(topic=question.topic)
        aggregates[question.topic].add(question.marks, marks_obtained, is_correct)

    chapter_wise_analysis = build_chapter_analysis(aggregates.values())
    feedback = generate_feedback(chapter_wise_analysis, config)

    total_score = sum(r.marks_obtained for r in scored_responses)

    return ScoredResult(
        student_id=student_id,
        test_id=test.id,
        responses=scored_responses,
        total_score=total_score,
        percentage_score=calculate_percentage(total_score, test.total_marks),
        time_taken=compute_time_taken(test.start_time, submitted_at),
        submitted_at=submitted_at,
        chapter_wise_analysis=chapter_wise_analysis,
        status=RESULT_STATUS_COMPLETED,
        feedback=feedback
    )


def generate_performance_metrics(responses: List[ScoredResponse], time_taken: int) -> PerformanceMetrics:
    """
    Summary metrics for a stored result.

    accuracy: percent of scored responses that were correct
    time_per_question: minutes per scored response, rounded
    completion_rate: percent of scored responses with a non-empty answer
    """
    count = len(responses)
    if count == 0:
        return PerformanceMetrics(accuracy=0.0, time_per_question=0, completion_rate=0.0)

    correct = len([r for r in responses if r.is_correct])
    answered = len([r for r in responses if r.selected_answer])
    return PerformanceMetrics(
        accuracy=calculate_percentage(correct, count),
        time_per_question=math.floor(time_taken / count + 0.5),
        completion_rate=calculate_percentage(answered, count)
    )
