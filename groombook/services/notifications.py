"""
WhatsApp notifications using Twilio
"""
import json
import logging
import re
from enum import Enum
from typing import Protocol
from twilio.rest import Client
from groombook.config import settings
from groombook.database import SessionLocal
from groombook.models import Booking

logger = logging.getLogger(__name__)


class BookingEvent(str, Enum):
    CREATED = "booking_created"
    RESCHEDULED = "booking_rescheduled"
    CANCELLED = "booking_cancelled"
    STARTED = "service_started"
    COMPLETED = "booking_completed"
    REMINDER = "booking_reminder"
    FEEDBACK_REQUEST = "feedback_request"


class Notifier(Protocol):
    """Fire-and-forget sink for booking status events"""

    def send(self, booking_id: int, event_type: BookingEvent) -> None:
        ...


class NullNotifier:
    """Drops every event"""

    def send(self, booking_id: int, event_type: BookingEvent) -> None:
        return None


def format_whatsapp_number(raw_number: str, country_code: str | None = None) -> str:
    """
    Normalize a contact number to E.164.

    Numbers starting with "+" are kept, numbers starting with the bare
    country code get a "+", anything else gets the code prepended.
    Spaces, dashes and parentheses are stripped.
    """
    country_code = country_code or settings.default_country_code
    digits_code = country_code.lstrip("+")
    number = re.sub(r"[\s()\-]", "", raw_number or "")

    if number.startswith("+"):
        return number
    if number.startswith(digits_code):
        return f"+{number}"
    return f"{country_code}{number}"


_MESSAGES = {
    BookingEvent.CREATED: "Hi {customer}, {dog} is booked at {shop} on {date} at {time}. See you soon!",
    BookingEvent.RESCHEDULED: "Hi {customer}, {dog}'s grooming at {shop} has moved to {date} at {time}.",
    BookingEvent.CANCELLED: "Hi {customer}, your booking for {dog} at {shop} on {date} has been cancelled.",
    BookingEvent.STARTED: "Hi {customer}, {dog}'s grooming session at {shop} has started.",
    BookingEvent.COMPLETED: "Hi {customer}, {dog} is all done and ready for pickup at {shop}!",
    BookingEvent.REMINDER: "Reminder: {dog} has a grooming appointment at {shop} on {date} at {time}.",
    BookingEvent.FEEDBACK_REQUEST: "Thank you for visiting {shop}! We would love to hear how {dog}'s grooming went.",
}


class WhatsAppNotifier:
    """Send booking notifications as WhatsApp messages through Twilio"""

    def __init__(self, session_factory=SessionLocal):
        self.account_sid = settings.twilio_account_sid
        self.auth_token = settings.twilio_auth_token
        self.phone_number = settings.twilio_phone_number
        self.content_sid = settings.twilio_content_sid
        self.session_factory = session_factory
        self.client = None
        self._init_client()

    def _init_client(self):
        """Initialize Twilio client"""
        try:
            if self.account_sid and self.auth_token:
                self.client = Client(self.account_sid, self.auth_token)
        except Exception as e:
            logger.warning("Failed to initialize Twilio: %s", e)

    def send(self, booking_id: int, event_type: BookingEvent) -> None:
        """
        Notify the customer of a booking event.

        Never raises: delivery problems are logged and dropped.
        """
        event_name = getattr(event_type, "value", event_type)
        try:
            event_type = BookingEvent(event_type)
            db = self.session_factory()
            try:
                booking = db.get(Booking, booking_id)
                if booking is None:
                    logger.warning("Skipping %s for missing booking %s", event_name, booking_id)
                    return
                variables = self.template_variables(booking)
                to_number = format_whatsapp_number(booking.contact_number)
            finally:
                db.close()

            if event_type == BookingEvent.CREATED and self.content_sid:
                result = self.send_whatsapp(to_number, content_variables=variables)
            else:
                message = _MESSAGES[event_type].format(
                    customer=variables["1"],
                    date=variables["2"],
                    shop=variables["3"],
                    time=variables["4"],
                    dog=variables["5"],
                )
                result = self.send_whatsapp(to_number, body=message)

            if result["status"] != "success":
                logger.warning("Notification %s for booking %s failed: %s",
                               event_name, booking_id, result.get("message"))
        except Exception as e:
            logger.warning("Error sending %s for booking %s: %s", event_name, booking_id, e)

    @staticmethod
    def template_variables(booking: Booking) -> dict:
        """Content template placeholders 1-7"""
        shop = booking.shop
        return {
            "1": booking.customer_name,
            "2": booking.booking_date.strftime("%d %B %Y"),
            "3": shop.name if shop else "",
            "4": booking.slot_time.strftime("%I:%M %p") if booking.slot_time else "walk-in",
            "5": booking.dog_name,
            "6": booking.dog_breed or "",
            "7": (shop.directions if shop else None) or "Contact shop for directions",
        }

    def send_whatsapp(self, to_number: str, body: str | None = None, content_variables: dict | None = None) -> dict:
        """
        Send a WhatsApp message using Twilio.

        Args:
            to_number: Recipient phone number in E.164
            body: Free-form message text
            content_variables: Template variables, sent with the configured content SID

        Returns:
            dict with message status
        """
        try:
            if not self.client:
                logger.info("Twilio not configured - would send to %s: %s", to_number, body or content_variables)
                return {
                    "status": "success",
                    "to": to_number,
                    "message": body,
                    "note": "Twilio not configured - running in test mode"
                }

            params = {
                "from_": f"whatsapp:{self.phone_number}",
                "to": f"whatsapp:{to_number}",
            }
            if content_variables is not None:
                params["content_sid"] = self.content_sid
                params["content_variables"] = json.dumps(content_variables)
            else:
                params["body"] = body

            msg = self.client.messages.create(**params)

            return {
                "status": "success",
                "to": to_number,
                "message": body,
                "sid": msg.sid
            }

        except Exception as e:
            return {
                "status": "error",
                "message": f"Error sending WhatsApp message: {str(e)}"
            }


# Global instance
_notifier = None


def get_notifier() -> WhatsAppNotifier:
    """Get or create notifier instance"""
    global _notifier
    if _notifier is None:
        _notifier = WhatsAppNotifier()
    return _notifier
