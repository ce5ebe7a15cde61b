import logging
from datetime import time
from typing import List

from .db import LIST_SEPARATOR, Repository
from .errors import ValidationError
from .models import Student, TimeSlot, Weekday, overlaps_any

logger = logging.getLogger(__name__)


def create_profile(store: Repository, name: str, email: str) -> Student:
    name = (name or "").strip()
    email = (email or "").strip()
    if not name:
        raise ValidationError("name required")
    if not email:
        raise ValidationError("email required")

    student = store.create_student(name, email)
    logger.info("Created student %s", student.id)
    return student


# --- Courses ---


def add_course(store: Repository, student_id: str, course: str) -> Student:
    student = store.find_student(student_id)
    course = (course or "").strip()
    if not course:
        raise ValidationError("course required")
    # Course lists are stored ';'-joined in a single field.
    if LIST_SEPARATOR in course:
        raise ValidationError(f"Course code may not contain '{LIST_SEPARATOR}': {course}")
    student.courses.add(course)
    return student


def remove_course(store: Repository, student_id: str, course: str) -> Student:
    student = store.find_student(student_id)
    student.courses.discard(course.strip())
    return student


# --- Availability ---


def add_availability(
    store: Repository, student_id: str, weekday: Weekday, start: time, end: time
) -> Student:
    student = store.find_student(student_id)
    student.availability.append(TimeSlot(weekday, start, end))
    return student


def remove_availability(
    store: Repository, student_id: str, weekday: Weekday, start: time, end: time
) -> Student:
    """Drop every slot that matches exactly; partial overlaps are left alone."""
    student = store.find_student(student_id)
    student.availability[:] = [
        slot
        for slot in student.availability
        if not (slot.weekday == weekday and slot.start == start and slot.end == end)
    ]
    return student


# --- Matching ---


def classmates_in_course(store: Repository, course: str) -> List[Student]:
    return [s for s in store.students() if course in s.courses]


def suggest_matches(store: Repository, student_id: str, course: str) -> List[Student]:
    """Other students in ``course`` sharing at least one overlapping slot."""
    me = store.find_student(student_id)
    if course not in me.courses:
        raise ValidationError(f"You are not enrolled in {course}")

    return [
        s
        for s in store.students()
        if s.id != me.id
        and course in s.courses
        and overlaps_any(me.availability, s.availability)
    ]
