import unittest
from unittest.mock import patch, MagicMock
from datetime import datetime

import requests
from sqlalchemy.exc import OperationalError

from bathroom_scheduler import create_app, db
from bathroom_scheduler.config import TestingConfig
from bathroom_scheduler.models import Booking, User
from bathroom_scheduler.services.reminder_service import ReminderService

NOW = datetime(2030, 5, 6, 7, 0)

def at(hour, minute=0):
    return datetime(2030, 5, 6, hour, minute)

class TestReminderService(unittest.TestCase):
    def setUp(self):
        self.app = create_app(TestingConfig)
        self.app_context = self.app.app_context()
        self.app_context.push()
        db.create_all()

        self.user = User(username='alice', email='alice@home.local')
        db.session.add(self.user)
        db.session.commit()

    def tearDown(self):
        db.session.remove()
        db.drop_all()
        self.app_context.pop()

    def add_booking(self, start, end, user_id=None, reminder_sent=False):
        booking = Booking(user_id=user_id or self.user.id, start_time=start, end_time=end,
                          purpose='shower', reminder_sent=reminder_sent)
        db.session.add(booking)
        db.session.commit()
        return booking.id

    def ok_response(self):
        response = MagicMock()
        response.raise_for_status.return_value = None
        return response

    def test_due_window(self):
        due_soon = self.add_booking(at(7, 5), at(7, 30))
        due_edge = self.add_booking(at(7, 10), at(7, 20))
        self.add_booking(at(7, 0), at(7, 5))         # already started
        self.add_booking(at(7, 30), at(7, 45))       # too far ahead
        self.add_booking(at(7, 8), at(7, 9), reminder_sent=True)

        due = ReminderService.find_due_bookings(NOW)
        self.assertEqual([b.id for b in due], [due_soon, due_edge])

    def test_message_uses_email_or_user_id(self):
        booking_id = self.add_booking(at(7, 5), at(7, 30))
        booking = db.session.get(Booking, booking_id)

        message = ReminderService.format_message(booking, self.user)
        self.assertIn('*alice@home.local*', message)
        self.assertIn('from *07:05* to *07:30*', message)
        self.assertIn('~10 minutes', message)

        self.assertIn('*User ID: ghost*', ReminderService.format_message(
            Booking(user_id='ghost', start_time=at(7, 5), end_time=at(7, 30))))

    def test_message_times_in_booking_timezone(self):
        self.app.config['BOOKING_TIMEZONE'] = 'Europe/Paris'
        booking = Booking(user_id='ghost', start_time=at(7, 5), end_time=at(7, 30))
        self.assertIn('from *09:05* to *09:30*', ReminderService.format_message(booking))

    @patch('bathroom_scheduler.services.reminder_service.requests.post')
    def test_successful_delivery_marks_reminder_sent(self, mock_post):
        mock_post.return_value = self.ok_response()
        booking_id = self.add_booking(at(7, 5), at(7, 30))

        summary = ReminderService.send_due_reminders(NOW)

        self.assertEqual(summary, {'bookings_found': 1, 'reminders_sent': 1})
        args, kwargs = mock_post.call_args
        self.assertEqual(args[0], TestingConfig.SLACK_WEBHOOK_URL)
        self.assertIn('alice@home.local', kwargs['json']['text'])
        self.assertTrue(db.session.get(Booking, booking_id).reminder_sent)

        # Second run finds nothing left to remind
        self.assertEqual(ReminderService.send_due_reminders(NOW)['bookings_found'], 0)
        self.assertEqual(mock_post.call_count, 1)

    @patch('bathroom_scheduler.services.reminder_service.requests.post')
    def test_failed_delivery_is_retried_next_run(self, mock_post):
        failing = MagicMock()
        failing.raise_for_status.side_effect = requests.HTTPError("500 Server Error")
        mock_post.return_value = failing
        booking_id = self.add_booking(at(7, 5), at(7, 30))

        summary = ReminderService.send_due_reminders(NOW)
        self.assertEqual(summary, {'bookings_found': 1, 'reminders_sent': 0})
        self.assertFalse(db.session.get(Booking, booking_id).reminder_sent)

        mock_post.return_value = self.ok_response()
        self.assertEqual(ReminderService.send_due_reminders(NOW)['reminders_sent'], 1)

    @patch('bathroom_scheduler.services.reminder_service.requests.post')
    def test_network_error_does_not_stop_other_reminders(self, mock_post):
        mock_post.side_effect = [requests.ConnectionError("boom"), self.ok_response()]
        self.add_booking(at(7, 2), at(7, 4))
        self.add_booking(at(7, 5), at(7, 30))

        summary = ReminderService.send_due_reminders(NOW)
        self.assertEqual(summary, {'bookings_found': 2, 'reminders_sent': 1})

    @patch('bathroom_scheduler.services.reminder_service.requests.post')
    def test_metadata_failure_after_delivery_still_counts_as_sent(self, mock_post):
        mock_post.return_value = self.ok_response()
        self.add_booking(at(7, 5), at(7, 30))

        failure = OperationalError("UPDATE bookings", {}, Exception("database is locked"))
        with patch('sqlalchemy.orm.Session.commit', side_effect=failure):
            summary = ReminderService.send_due_reminders(NOW)

        self.assertEqual(summary['reminders_sent'], 1)
        self.assertFalse(Booking.query.first().reminder_sent)

    @patch('bathroom_scheduler.services.reminder_service.requests.post')
    def test_user_lookup_failure_falls_back_to_user_id(self, mock_post):
        mock_post.return_value = self.ok_response()
        self.add_booking(at(7, 2), at(7, 4))
        self.add_booking(at(7, 5), at(7, 30))

        failure = OperationalError("SELECT users", {}, Exception("database is locked"))
        with patch('sqlalchemy.orm.Session.get', side_effect=[failure, self.user]):
            summary = ReminderService.send_due_reminders(NOW)

        self.assertEqual(summary, {'bookings_found': 2, 'reminders_sent': 2})
        texts = [c.kwargs['json']['text'] for c in mock_post.call_args_list]
        self.assertIn('User ID:', texts[0])
        self.assertIn('alice@home.local', texts[1])
        self.assertTrue(all(b.reminder_sent for b in Booking.query.all()))

    def test_missing_webhook_url(self):
        self.app.config['SLACK_WEBHOOK_URL'] = None
        with self.assertRaises(RuntimeError):
            ReminderService.send_due_reminders(NOW)

    @patch('bathroom_scheduler.services.reminder_service.requests.post')
    def test_cli_command(self, mock_post):
        runner = self.app.test_cli_runner()
        result = runner.invoke(args=['send-reminders'])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn('0 found', result.output)
        mock_post.assert_not_called()

        self.app.config['SLACK_WEBHOOK_URL'] = None
        result = runner.invoke(args=['send-reminders'])
        self.assertNotEqual(result.exit_code, 0)

if __name__ == '__main__':
    unittest.main()
