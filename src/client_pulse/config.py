import os
from dotenv import load_dotenv

load_dotenv()


def _env_flag(name, default=False):
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


class Config:
    """Base configuration settings."""
    SECRET_KEY = os.environ.get('SECRET_KEY', 'a-very-secret-key')
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')

    # Defaults to a transient in-memory database; point DATABASE_URL at a real one to persist.
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL', 'sqlite://')
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Mail transport. Without host, user and password every send is simulated.
    SMTP_HOST = os.environ.get('SMTP_HOST')
    SMTP_PORT = int(os.environ.get('SMTP_PORT', '587'))
    SMTP_SECURE = _env_flag('SMTP_SECURE')
    SMTP_USER = os.environ.get('SMTP_USER')
    SMTP_PASS = os.environ.get('SMTP_PASS')
    FROM_EMAIL = os.environ.get('FROM_EMAIL')
    SMTP_TIMEOUT = float(os.environ.get('SMTP_TIMEOUT', '30'))

    SCHEDULER_ENABLED = _env_flag('SCHEDULER_ENABLED', default=True)
    SCHEDULER_INTERVAL_SECONDS = float(os.environ.get('SCHEDULER_INTERVAL_SECONDS', '30'))
    REMINDER_TIMEZONE = os.environ.get('REMINDER_TIMEZONE', 'UTC')


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SCHEDULER_ENABLED = False
    SMTP_HOST = None
    SMTP_USER = None
    SMTP_PASS = None
