"""
Shared fixtures: a store rooted in a temporary directory and a Flask test client.
"""

from datetime import time

import pytest

from study_buddy.app import create_app
from study_buddy.db import Repository
from study_buddy.models import TimeSlot, Weekday


@pytest.fixture
def store(tmp_path):
    return Repository(tmp_path / "data")


@pytest.fixture
def client(tmp_path):
    app = create_app(tmp_path / "data")
    app.config["TESTING"] = True
    return app.test_client()


@pytest.fixture
def enrolled_pair(store):
    """s1 and s2 in CPSC-3720 with TUE 15:00-17:00 and TUE 16:00-18:00."""
    s1 = store.create_student("Avery", "avery@clemson.edu")
    s2 = store.create_student("Blake", "blake@clemson.edu")
    for student in (s1, s2):
        student.courses.add("CPSC-3720")
    s1.availability.append(TimeSlot(Weekday.TUESDAY, time(15, 0), time(17, 0)))
    s2.availability.append(TimeSlot(Weekday.TUESDAY, time(16, 0), time(18, 0)))
    return s1, s2
