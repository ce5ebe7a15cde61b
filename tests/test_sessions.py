"""
Tests for session proposal, responses and listing.
"""

import pytest

from study_buddy import sessions
from study_buddy.errors import NotFound, ValidationError
from study_buddy.models import SessionStatus, TimeSlot

COURSE = "CPSC-3720"


class TestProposeSession:
    def test_creates_pending_session(self, store, enrolled_pair):
        session = sessions.propose_session(store, "s1", COURSE, TimeSlot.parse("TUE 16:00-17:00"), ["s2"])
        assert session.id == "S1"
        assert session.status is SessionStatus.PENDING
        assert session.participants == {"s1", "s2"}
        assert session.inviter_id == "s1"
        assert store.sessions() == [session]

    def test_invitee_unavailable(self, store, enrolled_pair):
        _, s2 = enrolled_pair
        s2.availability[:] = [TimeSlot.parse("TUE 17:00-18:00")]
        s1_slot = TimeSlot.parse("TUE 15:00-16:00")

        with pytest.raises(ValidationError, match="s2"):
            sessions.propose_session(store, "s1", COURSE, s1_slot, ["s2"])
        assert store.sessions() == []

    def test_invitee_not_enrolled(self, store, enrolled_pair):
        _, s2 = enrolled_pair
        s2.courses.clear()
        with pytest.raises(ValidationError, match="Invitee s2 not in course"):
            sessions.propose_session(store, "s1", COURSE, TimeSlot.parse("TUE 16:00-17:00"), ["s2"])
        assert store.sessions() == []

    def test_inviter_not_enrolled(self, store, enrolled_pair):
        with pytest.raises(ValidationError, match="Inviter s1"):
            sessions.propose_session(store, "s1", "MATH-2060", TimeSlot.parse("TUE 16:00-17:00"), ["s2"])

    def test_inviter_unavailable(self, store, enrolled_pair):
        s1, _ = enrolled_pair
        s1.availability.clear()
        with pytest.raises(ValidationError, match="Inviter s1 not available"):
            sessions.propose_session(store, "s1", COURSE, TimeSlot.parse("TUE 16:00-17:00"), ["s2"])
        assert store.sessions() == []

    def test_unknown_invitee(self, store, enrolled_pair):
        with pytest.raises(NotFound):
            sessions.propose_session(store, "s1", COURSE, TimeSlot.parse("TUE 16:00-17:00"), ["s2", "s9"])
        assert store.sessions() == []

    def test_failed_proposal_does_not_consume_id(self, store, enrolled_pair):
        with pytest.raises(ValidationError):
            sessions.propose_session(store, "s1", COURSE, TimeSlot.parse("MON 09:00-10:00"), ["s2"])
        session = sessions.propose_session(store, "s1", COURSE, TimeSlot.parse("TUE 16:00-17:00"), ["s2"])
        assert session.id == "S1"


class TestRespondToSession:
    @pytest.fixture
    def session(self, store, enrolled_pair):
        return sessions.propose_session(store, "s1", COURSE, TimeSlot.parse("TUE 16:00-17:00"), ["s2"])

    def test_accept_then_decline_overwrites(self, store, session):
        sessions.respond_to_session(store, "s2", session.id, True)
        assert session.status is SessionStatus.CONFIRMED

        sessions.respond_to_session(store, "s1", session.id, False)
        assert session.status is SessionStatus.DECLINED

    def test_decline_then_accept(self, store, session):
        sessions.respond_to_session(store, "s2", session.id, False)
        sessions.respond_to_session(store, "s2", session.id, True)
        assert session.status is SessionStatus.CONFIRMED

    def test_unknown_session(self, store, session):
        with pytest.raises(NotFound):
            sessions.respond_to_session(store, "s2", "S99", True)

    def test_non_participant(self, store, session):
        outsider = store.create_student("Casey", "casey@x.edu")
        with pytest.raises(ValidationError):
            sessions.respond_to_session(store, outsider.id, session.id, True)
        assert session.status is SessionStatus.PENDING


def test_list_sessions_for(store, enrolled_pair):
    first = sessions.propose_session(store, "s1", COURSE, TimeSlot.parse("TUE 16:00-17:00"), ["s2"])
    second = sessions.propose_session(store, "s2", COURSE, TimeSlot.parse("TUE 16:30-17:00"), [])

    assert sessions.list_sessions_for(store, "s1") == [first]
    assert sessions.list_sessions_for(store, "s2") == [first, second]
    assert sessions.list_sessions_for(store, "s3") == []
