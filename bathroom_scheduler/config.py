import os
from dotenv import load_dotenv

load_dotenv(os.path.join(os.path.dirname(__file__), '.env'))

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'dev-secret-key-change-in-prod'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///bathroom_scheduler.db'
    SLACK_WEBHOOK_URL = os.environ.get('SLACK_WEBHOOK_URL')
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')

    # Single canonical clock: timestamps are stored in UTC, calendar dates
    # (list by date, reminder text) are evaluated in this zone.
    BOOKING_TIMEZONE = os.environ.get('BOOKING_TIMEZONE', 'UTC')

    # Business Rules Defaults
    REMINDER_LEAD_MINUTES = int(os.environ.get('REMINDER_LEAD_MINUTES', 10))
    TOKEN_EXPIRY_HOURS = 24
    BOOKING_PURPOSES = ('shower', 'bath', 'toilet', 'other')
    DEFAULT_PURPOSE = 'other'

class DevelopmentConfig(Config):
    DEBUG = True
    LOG_LEVEL = 'DEBUG'

class TestingConfig(Config):
    TESTING = True
    SECRET_KEY = 'testing-secret-key-long-enough-for-hs256-signing'
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    SLACK_WEBHOOK_URL = 'https://hooks.slack.test/services/T000/B000/XXXX'
    BOOKING_TIMEZONE = 'UTC'

class ProductionConfig(Config):
    DEBUG = False
    # In prod, rely on env vars strictly
