from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from student_attendance.core.enums import SessionOutcome, SessionStatus
from student_attendance.core.exceptions import AuthorizationError, ValidationError
from student_attendance.sessions.service import SessionTracker

T0 = datetime(2024, 3, 4, 9, 0, 0)
DEVICE = "Mozilla/5.0"
ORIGIN = "10.0.0.5"


@pytest.fixture
def tracker(sessions_repo) -> SessionTracker:
    return SessionTracker(sessions_repo, grace_seconds=30)


def test_quick_relogin_reactivates_same_session(tracker, sessions_repo):
    first = tracker.begin_session(10, DEVICE, ORIGIN, now=T0)
    assert first.outcome == SessionOutcome.CREATED

    ended = tracker.end_session(session_id=first.session_id, user_id=10, now=T0 + timedelta(minutes=5))
    assert ended.outcome == SessionOutcome.ENDED

    again = tracker.begin_session(10, DEVICE, ORIGIN, now=T0 + timedelta(minutes=5, seconds=10))
    assert again.outcome == SessionOutcome.REACTIVATED
    assert again.session_id == first.session_id

    row = sessions_repo.rows[first.session_id]
    assert row.status == SessionStatus.ACTIVE
    assert row.logout_time is None
    assert row.login_time == T0 + timedelta(minutes=5, seconds=10)
    assert len(sessions_repo.rows) == 1


def test_login_logout_relogin_timeline(tracker, sessions_repo):
    first = tracker.begin_session(10, DEVICE, ORIGIN, now=T0)
    tracker.end_session(session_id=first.session_id, user_id=10, now=T0 + timedelta(seconds=5))

    quick = tracker.begin_session(10, DEVICE, ORIGIN, now=T0 + timedelta(seconds=20))
    assert quick.outcome == SessionOutcome.REACTIVATED
    assert quick.session_id == first.session_id

    later = tracker.begin_session(10, DEVICE, ORIGIN, now=T0 + timedelta(seconds=120))
    assert later.outcome == SessionOutcome.CREATED
    assert later.session_id != first.session_id
    assert [s.session_id for s in sessions_repo.active_for(10)] == [later.session_id]
    assert sessions_repo.rows[first.session_id].logout_time == T0 + timedelta(seconds=120)


def test_relogin_after_grace_window_creates_new_session(tracker, sessions_repo):
    first = tracker.begin_session(10, DEVICE, ORIGIN, now=T0)
    tracker.end_session(session_id=first.session_id, user_id=10, now=T0)

    again = tracker.begin_session(10, DEVICE, ORIGIN, now=T0 + timedelta(seconds=31))
    assert again.outcome == SessionOutcome.CREATED
    assert again.session_id != first.session_id
    assert sessions_repo.rows[first.session_id].status == SessionStatus.ENDED


def test_relogin_from_other_device_creates_new_session(tracker):
    first = tracker.begin_session(10, DEVICE, ORIGIN, now=T0)
    tracker.end_session(session_id=first.session_id, user_id=10, now=T0)

    again = tracker.begin_session(10, "curl/8.0", ORIGIN, now=T0 + timedelta(seconds=5))
    assert again.outcome == SessionOutcome.CREATED


def test_login_ends_other_active_sessions(tracker, sessions_repo):
    a = tracker.begin_session(10, DEVICE, ORIGIN, now=T0)
    b = tracker.begin_session(10, "curl/8.0", "10.0.0.6", now=T0 + timedelta(minutes=1))

    active = sessions_repo.active_for(10)
    assert [s.session_id for s in active] == [b.session_id]
    assert sessions_repo.rows[a.session_id].logout_time == T0 + timedelta(minutes=1)


def test_reactivation_keeps_single_active_session(tracker, sessions_repo):
    first = tracker.begin_session(10, DEVICE, ORIGIN, now=T0)
    tracker.end_session(session_id=first.session_id, user_id=10, now=T0)
    other = tracker.begin_session(10, "curl/8.0", "10.0.0.6", now=T0 + timedelta(seconds=2))

    again = tracker.begin_session(10, DEVICE, ORIGIN, now=T0 + timedelta(seconds=5))
    assert again.outcome == SessionOutcome.REACTIVATED
    assert [s.session_id for s in sessions_repo.active_for(10)] == [first.session_id]
    assert sessions_repo.rows[other.session_id].status == SessionStatus.ENDED


def test_sessions_of_other_users_are_untouched(tracker, sessions_repo):
    carol = tracker.begin_session(11, DEVICE, ORIGIN, now=T0)
    tracker.begin_session(10, DEVICE, ORIGIN, now=T0 + timedelta(seconds=1))
    assert sessions_repo.rows[carol.session_id].is_active


def test_login_survives_bookkeeping_failure(tracker, sessions_repo):
    sessions_repo.fail_bookkeeping = True
    result = tracker.begin_session(10, DEVICE, ORIGIN, now=T0)
    assert result.outcome == SessionOutcome.CREATED
    assert result.session_id in sessions_repo.rows


def test_logout_without_any_session_is_noop(tracker):
    result = tracker.end_session(user_id=10, now=T0)
    assert result.updated is False
    assert result.outcome == SessionOutcome.NOOP
    assert result.session is None


def test_logout_twice_is_idempotent(tracker, sessions_repo):
    s = tracker.begin_session(10, DEVICE, ORIGIN, now=T0)
    tracker.end_session(session_id=s.session_id, user_id=10, now=T0 + timedelta(minutes=1))

    again = tracker.end_session(session_id=s.session_id, user_id=10, now=T0 + timedelta(minutes=2))
    assert again.updated is True
    assert again.outcome == SessionOutcome.NOOP
    assert again.session.logout_time == T0 + timedelta(minutes=2)
    assert sessions_repo.rows[s.session_id].status == SessionStatus.ENDED
    assert sessions_repo.rows[s.session_id].logout_time == T0 + timedelta(minutes=2)


def test_logout_falls_back_to_latest_active_session(tracker, sessions_repo):
    s = tracker.begin_session(10, DEVICE, ORIGIN, now=T0)
    result = tracker.end_session(user_id=10, now=T0 + timedelta(minutes=90))
    assert result.outcome == SessionOutcome.ENDED
    assert result.session.session_id == s.session_id
    assert result.session.duration == "1 hr 30 mins"


def test_logout_ignores_session_of_another_user(tracker, sessions_repo):
    carol = tracker.begin_session(11, DEVICE, ORIGIN, now=T0)
    bob = tracker.begin_session(10, DEVICE, ORIGIN, now=T0)

    result = tracker.end_session(session_id=carol.session_id, user_id=10, now=T0 + timedelta(minutes=1))
    assert result.session.session_id == bob.session_id
    assert sessions_repo.rows[carol.session_id].is_active


def test_logout_survives_store_failure(tracker, sessions_repo):
    s = tracker.begin_session(10, DEVICE, ORIGIN, now=T0)
    sessions_repo.fail_bookkeeping = True
    result = tracker.end_session(session_id=s.session_id, user_id=10, now=T0)
    assert result.outcome == SessionOutcome.NOOP
    assert result.updated is False


def test_get_active_session_hides_ended_sessions(tracker):
    s = tracker.begin_session(10, DEVICE, ORIGIN, now=T0)
    assert tracker.get_active_session(s.session_id, requester_id=10).session_id == s.session_id

    tracker.end_session(session_id=s.session_id, user_id=10, now=T0)
    assert tracker.get_active_session(s.session_id, requester_id=10) is None


def test_history_is_admin_only(tracker, people):
    with pytest.raises(AuthorizationError):
        tracker.list_history(people["lecturer"])


def test_history_pagination_and_filters(tracker, people):
    for i in range(5):
        tracker.begin_session(10 + (i % 2), f"dev{i}", ORIGIN, now=T0 + timedelta(minutes=i))

    page = tracker.list_history(people["admin"], page=1, limit=2)
    assert page.total == 5
    assert [s.device for s in page.items] == ["dev4", "dev3"]
    assert page.next == 2 and page.prev is None

    last = tracker.list_history(people["admin"], page=3, limit=2)
    assert last.next is None and last.prev == 2

    active_bob = tracker.list_history(people["admin"], user_id=10, status=SessionStatus.ACTIVE)
    assert [s.device for s in active_bob.items] == ["dev4"]


def test_history_rejects_bad_paging(tracker, people):
    with pytest.raises(ValidationError):
        tracker.list_history(people["admin"], page=0)
