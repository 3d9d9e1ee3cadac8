from datetime import datetime, timedelta

import requests
from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from bathroom_scheduler.extensions import db
from bathroom_scheduler.models import Booking, User
from bathroom_scheduler.utils.timeutils import utcnow, to_local

class ReminderService:
    """
    Sends a Slack message shortly before each booking starts.

    Run periodically (see `flask send-reminders`). A booking is only marked
    as reminded after Slack accepted the message, so a failed delivery is
    retried on the next run.
    """

    @staticmethod
    def find_due_bookings(now: datetime = None):
        """Bookings not yet reminded that start within the lead window but are still in the future."""
        now = now or utcnow()
        lead = timedelta(minutes=current_app.config['REMINDER_LEAD_MINUTES'])
        return Booking.query.filter(
            Booking.reminder_sent == False,
            Booking.start_time <= now + lead,
            Booking.start_time > now
        ).order_by(Booking.start_time).all()

    @staticmethod
    def format_message(booking: Booking, user: User = None) -> str:
        if user is not None and user.email:
            who = user.email
        else:
            who = f"User ID: {booking.user_id}"

        start = to_local(booking.start_time).strftime("%H:%M")
        end = to_local(booking.end_time).strftime("%H:%M")
        lead = current_app.config['REMINDER_LEAD_MINUTES']
        return (
            f"\U0001F6BD Reminder: Bathroom booking for *{who}* "
            f"from *{start}* to *{end}* is starting in ~{lead} minutes."
        )

    @staticmethod
    def send_reminder(booking: Booking) -> bool:
        """
        Post one reminder. Returns True when Slack accepted the message,
        even if recording reminder_sent afterwards failed.
        """
        webhook_url = current_app.config.get('SLACK_WEBHOOK_URL')
        try:
            user = db.session.get(User, booking.user_id)
        except SQLAlchemyError as e:
            db.session.rollback()
            current_app.logger.error(f"Error fetching user {booking.user_id}: {e}")
            user = None
        if user is None:
            current_app.logger.info(f"No user record for {booking.user_id}, using user id in reminder")

        message = ReminderService.format_message(booking, user)
        current_app.logger.info(f"Sending Slack reminder for booking {booking.id}: {message}")

        try:
            response = requests.post(webhook_url, json={'text': message}, timeout=10)
            response.raise_for_status()
        except requests.RequestException as e:
            current_app.logger.error(f"Error sending Slack reminder for booking {booking.id}: {e}")
            return False

        try:
            booking.reminder_sent = True
            db.session.commit()
        except SQLAlchemyError as e:
            # Message already went out; a duplicate next run is acceptable.
            db.session.rollback()
            current_app.logger.error(f"Error marking reminder_sent for booking {booking.id}: {e}")
        return True

    @staticmethod
    def send_due_reminders(now: datetime = None):
        if not current_app.config.get('SLACK_WEBHOOK_URL'):
            raise RuntimeError("SLACK_WEBHOOK_URL is not configured.")

        now = now or utcnow()
        bookings = ReminderService.find_due_bookings(now)
        if not bookings:
            current_app.logger.info("No upcoming bookings need a reminder.")
            return {'bookings_found': 0, 'reminders_sent': 0}

        current_app.logger.info(f"Found {len(bookings)} upcoming bookings needing a reminder.")
        sent = 0
        for booking in bookings:
            if ReminderService.send_reminder(booking):
                sent += 1

        return {'bookings_found': len(bookings), 'reminders_sent': sent}
