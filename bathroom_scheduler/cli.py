import click
from flask import current_app

from bathroom_scheduler.services.reminder_service import ReminderService

def register_commands(app):

    @app.cli.command('send-reminders')
    def send_reminders():
        """Send Slack reminders for bookings starting soon. Meant for cron."""
        try:
            summary = ReminderService.send_due_reminders()
        except RuntimeError as e:
            current_app.logger.error(str(e))
            raise click.ClickException(str(e))

        click.echo(
            f"Processed booking reminders: {summary['bookings_found']} found, "
            f"{summary['reminders_sent']} sent."
        )
