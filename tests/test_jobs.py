from datetime import timedelta

from mover_api.application.jobs import LifecycleJob, ReadStatusJob
from mover_api.application.use_cases.notifications import create_notification
from mover_api.domain.entities import LifecycleStatus, NotificationType, SystemSubject
from mover_api.infrastructure.models import NotificationModel
from mover_api.infrastructure.repositories import NotificationRepository
from mover_api.utils import now_in_app_timezone


def _persist(session, *, days_ago=0):
    return create_notification(
        session,
        NotificationType.BACKUP_COMPLETED,
        SystemSubject(),
        actor_id=None,
        recipient_ids=[1, 2],
        now=now_in_app_timezone() - timedelta(days=days_ago),
    )


def test_lifecycle_job_runs_with_its_own_session(session_factory, session, make_user):
    make_user("Admin", role="admin")
    record = _persist(session, days_ago=31)
    job = LifecycleJob(session_factory=session_factory)

    results = job.run()

    assert results["reminders_sent"] == 1
    assert job.stats.total_runs == 1
    assert job.stats.counters["moved_to_review"] == 1
    assert job.is_running is False
    session.expire_all()
    assert NotificationRepository(session).get(record.id).lifecycle_status is LifecycleStatus.PENDING_REVIEW


def test_read_status_job_reports_corrections(session_factory, session):
    record = _persist(session)
    session.query(NotificationModel).filter(NotificationModel.id == record.id).update(
        {"is_read_by_all_users": True}, synchronize_session=False
    )
    session.commit()
    job = ReadStatusJob(session_factory=session_factory)

    results = job.run()

    assert results["corrected"] == 1
    assert job.status()["total_runs"] == 1


def test_overlapping_run_is_skipped(session_factory):
    job = ReadStatusJob(session_factory=session_factory)
    job._lock.acquire()
    try:
        assert job.run() is None
    finally:
        job._lock.release()

    assert job.stats.total_runs == 0
