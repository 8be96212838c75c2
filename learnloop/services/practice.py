"""Adaptive practice sessions over approved questions."""

import logging
from datetime import datetime

from pydantic import BaseModel

from learnloop.errors import ContentNotFoundError
from learnloop.models.content import (
    CurriculumTag,
    GeneratedQuestion,
    MasteryLevel,
    PracticeSession,
    ReviewStatus,
    StudentAttempt,
    StudentProgress,
)
from learnloop.store.base import QuestionStore

logger = logging.getLogger(__name__)

# Lower rank is practiced first; tags never practiced rank below beginner
MASTERY_RANK = {
    MasteryLevel.BEGINNER: 1,
    MasteryLevel.DEVELOPING: 2,
    MasteryLevel.PROFICIENT: 3,
    MasteryLevel.MASTERED: 4,
}


class AttemptResult(BaseModel):
    """Feedback for one answered question."""

    attempt: StudentAttempt
    is_correct: bool
    correct_answer: str | None


def mastery_for(total_attempts: int, correct_attempts: int) -> MasteryLevel:
    """
    Derive a mastery level from attempt counts.

    Args:
        total_attempts: Attempts on the tag
        correct_attempts: Correct attempts on the tag

    Returns:
        Mastery level
    """
    if total_attempts == 0:
        return MasteryLevel.BEGINNER
    accuracy = correct_attempts / total_attempts
    if accuracy >= 0.9 and total_attempts >= 5:
        return MasteryLevel.MASTERED
    if accuracy >= 0.75 and total_attempts >= 3:
        return MasteryLevel.PROFICIENT
    if accuracy >= 0.5:
        return MasteryLevel.DEVELOPING
    return MasteryLevel.BEGINNER


def _weakest_rank(question: GeneratedQuestion, progress: dict[str, StudentProgress]) -> int:
    ranks = [
        MASTERY_RANK[progress[tag.id].mastery_level] if tag.id in progress else 0
        for tag in question.curriculum_tags
    ]
    # Untagged questions go last
    return min(ranks, default=len(MASTERY_RANK) + 1)


def is_correct_answer(answer: str, expected: str | None) -> bool:
    """Case- and whitespace-insensitive answer comparison."""
    if not expected:
        return False
    return str(answer).strip().lower() == str(expected).strip().lower()


async def start_session(
    store: QuestionStore,
    student_id: str,
    curriculum_tags: list[CurriculumTag] | None = None,
    question_count: int = 10,
) -> tuple[PracticeSession, list[GeneratedQuestion]]:
    """
    Pick questions for a practice session and open it.

    Only approved questions the student has not attempted are offered,
    optionally restricted to the given curriculum tags. Questions on the
    student's weakest tags come first.

    Args:
        store: Question store
        student_id: Student practicing
        curriculum_tags: Tags to restrict the session to
        question_count: Maximum number of questions

    Returns:
        The new session and its questions
    """
    attempted = {a.question_id for a in await store.list_attempts(student_id)}
    progress = {p.curriculum_tag_id: p for p in await store.list_progress(student_id)}

    questions = await store.list_questions(status=ReviewStatus.APPROVED)
    if curriculum_tags:
        questions = [
            q
            for q in questions
            if any(tag.matches(wanted) for tag in q.curriculum_tags for wanted in curriculum_tags)
        ]

    unattempted = [q for q in questions if q.id not in attempted]
    prioritized = sorted(unattempted, key=lambda q: _weakest_rank(q, progress))
    selected = prioritized[:question_count]

    session = PracticeSession(
        student_id=student_id,
        curriculum_tags=curriculum_tags or [],
        question_ids=[q.id for q in selected],
    )
    await store.insert_session(session)
    logger.info(
        "Started session %s for %s with %d question(s)",
        session.id,
        student_id,
        len(selected),
    )
    return session, selected


async def record_attempt(
    store: QuestionStore,
    student_id: str,
    question_id: str,
    answer: str,
    time_spent: float = 0.0,
    session_id: str | None = None,
) -> AttemptResult:
    """
    Check a student's answer and update their progress.

    Args:
        store: Question store
        student_id: Student answering
        question_id: Question answered
        answer: The student's answer
        time_spent: Seconds spent on the question
        session_id: Session the attempt belongs to, if any

    Returns:
        Whether the answer was correct, with the expected answer

    Raises:
        ContentNotFoundError: If the question does not exist
    """
    question = await store.find_question_by_id(question_id)
    if question is None:
        raise ContentNotFoundError("question", question_id)

    is_correct = is_correct_answer(answer, question.calculated_answer)
    attempt = StudentAttempt(
        student_id=student_id,
        question_id=question_id,
        session_id=session_id,
        answer=str(answer),
        is_correct=is_correct,
        time_spent=time_spent,
    )
    await store.insert_attempt(attempt)
    await store.record_question_attempt(question_id)

    existing = {p.curriculum_tag_id: p for p in await store.list_progress(student_id)}
    for tag in question.curriculum_tags:
        current = existing.get(tag.id)
        total = (current.total_attempts if current else 0) + 1
        correct = (current.correct_attempts if current else 0) + (1 if is_correct else 0)
        await store.save_progress(
            StudentProgress(
                student_id=student_id,
                curriculum_tag_id=tag.id,
                total_attempts=total,
                correct_attempts=correct,
                mastery_level=mastery_for(total, correct),
                last_practiced_at=datetime.now(),
            )
        )

    return AttemptResult(
        attempt=attempt,
        is_correct=is_correct,
        correct_answer=question.calculated_answer,
    )
