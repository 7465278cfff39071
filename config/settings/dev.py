"""Development settings for the travel agency back office.

Debug on, every host allowed and verbose domain logs so attach, detach and
payment reconciliation steps show up in the runserver console.
"""

from .base import *  # noqa: F401,F403

DEBUG = True

ALLOWED_HOSTS = ['*']

CORS_ALLOW_ALL_ORIGINS = True

for _name in ('apps', 'shared'):
    LOGGING['loggers'][_name]['level'] = 'DEBUG'  # noqa: F405
