"""
Testing settings for Venue Booking.
"""

from .base import *

# Testing mode
DEBUG = True
TESTING = True

# Use file-backed SQLite with IMMEDIATE transactions for the threaded tests
DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': BASE_DIR / 'test_venue_booking.sqlite3',
        'OPTIONS': {
            'transaction_mode': 'IMMEDIATE',
            'timeout': 20,
        },
        'TEST': {
            'NAME': BASE_DIR / 'test_venue_booking.sqlite3',
        },
    }
}

# Faster password hashing for tests
PASSWORD_HASHERS = [
    'django.contrib.auth.hashers.MD5PasswordHasher',
]

# Disable migrations for faster tests
class DisableMigrations:
    def __contains__(self, item):
        return True

    def __getitem__(self, item):
        return None

MIGRATION_MODULES = DisableMigrations()

# Celery
CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True

# Email
EMAIL_BACKEND = 'django.core.mail.backends.locmem.EmailBackend'

# Stripe (test mode)
STRIPE_SECRET_KEY = 'sk_test_fake_key_for_testing'

# JWT
JWT_SETTINGS = {
    **JWT_SETTINGS,
    'SIGNING_KEY': 'test-signing-key',
    'VERIFYING_KEY': 'test-signing-key',
}

# Logging - minimal for tests
LOGGING = {
    'version': 1,
    'disable_existing_loggers': True,
    'handlers': {
        'null': {
            'class': 'logging.NullHandler',
        },
    },
    'root': {
        'handlers': ['null'],
        'level': 'CRITICAL',
    },
}
