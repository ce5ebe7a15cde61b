import logging
from typing import Iterable, List

from .db import Repository
from .errors import ValidationError
from .models import SessionStatus, StudySession, TimeSlot, overlaps_any

logger = logging.getLogger(__name__)


def propose_session(
    store: Repository,
    inviter_id: str,
    course: str,
    slot: TimeSlot,
    invitee_ids: Iterable[str],
) -> StudySession:
    """Create a pending session once every party is enrolled and available.

    All checks run before the store is touched, so a rejected proposal
    creates nothing.
    """
    invitee_ids = list(invitee_ids)

    inviter = store.find_student(inviter_id)
    if course not in inviter.courses:
        raise ValidationError(f"Inviter {inviter_id} not in course {course}")

    for invitee_id in invitee_ids:
        other = store.find_student(invitee_id)
        if course not in other.courses:
            raise ValidationError(f"Invitee {invitee_id} not in course {course}")
        if not overlaps_any([slot], other.availability):
            raise ValidationError(f"Invitee {invitee_id} not available at {slot}")

    if not overlaps_any([slot], inviter.availability):
        raise ValidationError(f"Inviter {inviter_id} not available at {slot}")

    session = store.create_session(course, slot, inviter_id, invitee_ids)
    logger.info("Proposed session %s for %s at %s", session.id, course, slot)
    return session


def respond_to_session(
    store: Repository, student_id: str, session_id: str, accept: bool
) -> StudySession:
    """Record a participant's answer.

    A single acceptance confirms the session and any later answer from any
    participant overwrites the status.
    """
    session = store.find_session(session_id)
    if student_id not in session.participants:
        raise ValidationError(f"{student_id} is not an invitee of session {session_id}")

    session.status = SessionStatus.CONFIRMED if accept else SessionStatus.DECLINED
    logger.info("Session %s is now %s (answer from %s)", session.id, session.status, student_id)
    return session


def list_sessions_for(store: Repository, student_id: str) -> List[StudySession]:
    return [s for s in store.sessions() if student_id in s.participants]
