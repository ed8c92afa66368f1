"""
APScheduler Service
Handles background tasks like booking reminders and feedback requests
"""
import logging
from datetime import date, datetime, timedelta
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger
from groombook.config import settings
from groombook.database import SessionLocal
from groombook.models import Booking, BookingStatus
from groombook.services.notifications import BookingEvent, Notifier, get_notifier

logger = logging.getLogger(__name__)


def send_booking_reminders(db, notifier: Notifier, today: date | None = None) -> int:
    """
    Notify reserved bookings dated tomorrow, once each.

    Returns the number of reminders sent.
    """
    tomorrow = (today or date.today()) + timedelta(days=1)
    bookings = db.query(Booking).filter(
        Booking.booking_date == tomorrow,
        Booking.status == BookingStatus.RESERVED.value,
        Booking.reminder_sent == False  # noqa: E712  (Only send once)
    ).all()

    for booking in bookings:
        notifier.send(booking.id, BookingEvent.REMINDER)
        booking.reminder_sent = True
        db.commit()
        logger.info("Reminder sent for booking %s", booking.id)
    return len(bookings)


def send_feedback_requests(db, notifier: Notifier, today: date | None = None) -> int:
    """
    Ask for feedback on bookings completed in the last two days that
    have none yet. Returns the number of requests sent.
    """
    today = today or date.today()
    two_days_ago = today - timedelta(days=2)

    bookings = db.query(Booking).filter(
        Booking.status == BookingStatus.COMPLETED.value,
        Booking.booking_date >= two_days_ago,
        Booking.booking_date <= today,
        Booking.feedback_request_sent == False  # noqa: E712
    ).all()

    sent = 0
    for booking in bookings:
        if booking.feedback is not None:
            continue
        notifier.send(booking.id, BookingEvent.FEEDBACK_REQUEST)
        booking.feedback_request_sent = True
        db.commit()
        sent += 1
        logger.info("Feedback request sent for booking %s", booking.id)
    return sent


class SchedulerService:
    """Service to manage background scheduler tasks"""

    def __init__(self, notifier: Notifier | None = None, session_factory=SessionLocal):
        self.scheduler = BackgroundScheduler()
        self.notifier = notifier
        self.session_factory = session_factory
        self._setup_jobs()

    def _setup_jobs(self):
        """Setup all background jobs"""
        self.scheduler.add_job(
            self._run_reminders,
            IntervalTrigger(minutes=settings.reminder_interval_minutes),
            id="booking_reminders",
            name="Send booking reminders",
            replace_existing=True
        )

        self.scheduler.add_job(
            self._run_feedback_requests,
            IntervalTrigger(minutes=settings.feedback_request_interval_minutes),
            id="feedback_requests",
            name="Send feedback requests",
            replace_existing=True
        )

    def _run_reminders(self):
        self._run_job("booking reminders", send_booking_reminders)

    def _run_feedback_requests(self):
        self._run_job("feedback requests", send_feedback_requests)

    def _run_job(self, name: str, job):
        db = self.session_factory()
        try:
            job(db, self.notifier or get_notifier())
        except Exception:
            # A failed run is retried on the next tick
            db.rollback()
            logger.exception("Error in %s job at %s", name, datetime.now().isoformat())
        finally:
            db.close()

    def start(self):
        """Start the scheduler"""
        if not self.scheduler.running:
            self.scheduler.start()
            logger.info("Scheduler started")

    def stop(self):
        """Stop the scheduler"""
        if self.scheduler.running:
            self.scheduler.shutdown()
            logger.info("Scheduler stopped")


# Global scheduler instance
_scheduler_service = None


def get_scheduler() -> SchedulerService:
    """Get or create scheduler instance"""
    global _scheduler_service
    if _scheduler_service is None:
        _scheduler_service = SchedulerService()
    return _scheduler_service


def start_scheduler():
    """Start the background scheduler"""
    scheduler = get_scheduler()
    scheduler.start()


def stop_scheduler():
    """Stop the background scheduler"""
    scheduler = get_scheduler()
    scheduler.stop()
