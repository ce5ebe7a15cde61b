import csv
import io
import logging
import re
import shutil
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional, Sequence

from .errors import NotFound
from .models import (
    SessionStatus,
    Student,
    StudySession,
    TimeSlot,
    Weekday,
    format_time,
    parse_time,
)

logger = logging.getLogger(__name__)

STUDENTS_FILE = "students.csv"
AVAILABILITY_FILE = "availability.csv"
SESSIONS_FILE = "sessions.csv"

STUDENTS_HEADER = ["id", "name", "email", "courses"]
AVAILABILITY_HEADER = ["studentId", "dayOfWeek", "startTime", "endTime"]
SESSIONS_HEADER = [
    "id",
    "courseCode",
    "slotDay",
    "slotStart",
    "slotEnd",
    "participants",
    "status",
    "inviterId",
]

LIST_SEPARATOR = ";"

_NUMERIC_SUFFIX = re.compile(r"(\d+)$")


def _writer(handle):
    return csv.writer(handle, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")


def join_list(items: Iterable[str]) -> str:
    return LIST_SEPARATOR.join(items)


def split_list(value: str) -> List[str]:
    if not value or not value.strip():
        return []
    return [item.strip() for item in value.split(LIST_SEPARATOR) if item.strip()]


def numeric_suffix(record_id: str) -> Optional[int]:
    """Return the trailing number of an id such as ``s12``, or None."""
    match = _NUMERIC_SUFFIX.search(record_id or "")
    return int(match.group(1)) if match else None


def format_rows(header: Sequence[str], rows: Iterable[Sequence[str]]) -> str:
    """Render a header plus rows using the same quoting as the data files."""
    buffer = io.StringIO()
    writer = _writer(buffer)
    writer.writerow(header)
    writer.writerows(rows)
    return buffer.getvalue()


def _read_rows(path: Path, width: int) -> Iterator[List[str]]:
    """Yield data rows of a CSV file, skipping the header and blank lines."""
    with path.open("r", newline="", encoding="utf-8") as handle:
        reader = csv.reader(handle)
        next(reader, None)
        for row in reader:
            if not row:
                continue
            if len(row) < width:
                row = row + [""] * (width - len(row))
            yield row


class Repository:
    """In-memory registry of students and sessions backed by three CSV files."""

    def __init__(self, data_dir: Path):
        self.data_dir = Path(data_dir)
        self.students_csv = self.data_dir / STUDENTS_FILE
        self.availability_csv = self.data_dir / AVAILABILITY_FILE
        self.sessions_csv = self.data_dir / SESSIONS_FILE

        self._students: Dict[str, Student] = {}
        self._sessions: Dict[str, StudySession] = {}
        self._student_seq = 1
        self._session_seq = 1

    # --- Students ---

    def create_student(self, name: str, email: str) -> Student:
        student_id = f"s{self._student_seq}"
        self._student_seq += 1
        student = Student(id=student_id, name=name, email=email)
        self._students[student_id] = student
        return student

    def find_student(self, student_id: str) -> Student:
        student = self._students.get(student_id)
        if student is None:
            raise NotFound(f"Student not found: {student_id}")
        return student

    def students(self) -> List[Student]:
        return list(self._students.values())

    # --- Sessions ---

    def create_session(
        self,
        course: str,
        slot: TimeSlot,
        inviter_id: str,
        invitee_ids: Iterable[str],
    ) -> StudySession:
        session_id = f"S{self._session_seq}"
        self._session_seq += 1
        session = StudySession(
            id=session_id,
            course_code=course,
            slot=slot,
            inviter_id=inviter_id,
            participants={inviter_id, *invitee_ids},
        )
        self._sessions[session_id] = session
        return session

    def find_session(self, session_id: str) -> StudySession:
        session = self._sessions.get(session_id)
        if session is None:
            raise NotFound(f"Session not found: {session_id}")
        return session

    def sessions(self) -> List[StudySession]:
        return list(self._sessions.values())

    # --- Persistence ---

    def load(self) -> bool:
        """Load all three files, students first.

        Missing files count as empty. Returns False when a file could not be
        read or decoded; whatever was read before the error is kept.
        """
        try:
            if self.students_csv.exists():
                self._load_students()
            if self.availability_csv.exists():
                self._load_availability()
            if self.sessions_csv.exists():
                self._load_sessions()
        except (OSError, UnicodeDecodeError, csv.Error) as exc:
            logger.warning("Could not load data from %s: %s", self.data_dir, exc)
            return False

        logger.info(
            "Loaded %d students and %d sessions from %s",
            len(self._students),
            len(self._sessions),
            self.data_dir,
        )
        return True

    def _load_students(self) -> None:
        for row in _read_rows(self.students_csv, len(STUDENTS_HEADER)):
            student_id, name, email, courses = row[:4]
            student = Student(id=student_id, name=name, email=email)
            student.courses.update(split_list(courses))
            self._students[student_id] = student
            self._student_seq = self._advance(self._student_seq, student_id)

    def _load_availability(self) -> None:
        for row in _read_rows(self.availability_csv, len(AVAILABILITY_HEADER)):
            student_id, day, start, end = row[:4]
            student = self._students.get(student_id)
            if student is None:
                logger.debug("Skipping availability for unknown student %s", student_id)
                continue
            student.availability.append(
                TimeSlot(Weekday.parse(day), parse_time(start), parse_time(end))
            )

    def _load_sessions(self) -> None:
        for row in _read_rows(self.sessions_csv, len(SESSIONS_HEADER)):
            session_id, course, day, start, end, participants, status, inviter_id = row[:8]
            session = StudySession(
                id=session_id,
                course_code=course,
                slot=TimeSlot(Weekday.parse(day), parse_time(start), parse_time(end)),
                inviter_id=inviter_id,
                participants=set(split_list(participants)),
                status=SessionStatus.parse(status),
            )
            self._sessions[session_id] = session
            self._session_seq = self._advance(self._session_seq, session_id)

    @staticmethod
    def _advance(sequence: int, record_id: str) -> int:
        suffix = numeric_suffix(record_id)
        if suffix is None:
            return sequence
        return max(sequence, suffix + 1)

    def save(self) -> None:
        """Overwrite all three files from the in-memory state."""
        self.data_dir.mkdir(parents=True, exist_ok=True)

        with self.students_csv.open("w", newline="", encoding="utf-8") as handle:
            writer = _writer(handle)
            writer.writerow(STUDENTS_HEADER)
            for s in self._students.values():
                writer.writerow([s.id, s.name, s.email, join_list(s.sorted_courses())])

        with self.availability_csv.open("w", newline="", encoding="utf-8") as handle:
            writer = _writer(handle)
            writer.writerow(AVAILABILITY_HEADER)
            for s in self._students.values():
                for slot in s.availability:
                    writer.writerow(
                        [s.id, str(slot.weekday), format_time(slot.start), format_time(slot.end)]
                    )

        with self.sessions_csv.open("w", newline="", encoding="utf-8") as handle:
            writer = _writer(handle)
            writer.writerow(SESSIONS_HEADER)
            for ss in self._sessions.values():
                writer.writerow(
                    [
                        ss.id,
                        ss.course_code,
                        str(ss.slot.weekday),
                        format_time(ss.slot.start),
                        format_time(ss.slot.end),
                        join_list(ss.sorted_participants()),
                        str(ss.status),
                        ss.inviter_id,
                    ]
                )

        logger.debug("Saved %d students and %d sessions", len(self._students), len(self._sessions))

    def export_to(self, out_dir: Path) -> Path:
        """Save, then copy the three data files into ``out_dir``."""
        self.save()
        out_dir = Path(out_dir)
        out_dir.mkdir(parents=True, exist_ok=True)
        for source in (self.students_csv, self.availability_csv, self.sessions_csv):
            shutil.copyfile(source, out_dir / source.name)
        logger.info("Exported data files to %s", out_dir.resolve())
        return out_dir
