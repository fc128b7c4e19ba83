"""
Django settings for the mastore project.

Values come from environment variables; a `.env` file is loaded first when
DJANGO_ENV_FILE points at one (manage.py fills it in automatically).
"""

import os
from pathlib import Path

from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent.parent

_explicit_env_file = os.environ.get('DJANGO_ENV_FILE')
if _explicit_env_file:
    load_dotenv(_explicit_env_file)
else:
    load_dotenv(BASE_DIR / '.env')


def _env_bool(name, default=False):
    return os.environ.get(name, str(default)).lower() in ('1', 'true', 'yes')


SECRET_KEY = os.environ.get('SECRET_KEY', 'django-insecure-mastore-dev-key')

DEBUG = _env_bool('DEBUG', False)

_allowed_hosts_env = os.environ.get('ALLOWED_HOSTS', '')
ALLOWED_HOSTS = [h.strip() for h in _allowed_hosts_env.split(',') if h.strip()] or ['localhost', '127.0.0.1']

INSTALLED_APPS = [
    'storefront.apps.StorefrontConfig',
]

MIDDLEWARE = []

TIME_ZONE = os.environ.get('TIME_ZONE', 'UTC')
USE_TZ = True
LANGUAGE_CODE = 'en-us'

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

# Database: picked by DB_ENGINE (postgresql | mysql), SQLite otherwise
DB_ENGINE = os.environ.get('DB_ENGINE', '').lower()
if os.environ.get('DB_NAME') and os.environ.get('DB_USER') and DB_ENGINE.startswith('mysql'):
    DATABASES = {
        'default': {
            'ENGINE': 'django.db.backends.mysql',
            'NAME': os.environ['DB_NAME'],
            'USER': os.environ['DB_USER'],
            'PASSWORD': os.environ.get('DB_PASSWORD', ''),
            'HOST': os.environ.get('DB_HOST', 'localhost'),
            'PORT': os.environ.get('DB_PORT', '3306'),
            'CONN_MAX_AGE': int(os.environ.get('DB_CONN_MAX_AGE', '60')),
            'OPTIONS': {
                'charset': 'utf8mb4',
                'init_command': "SET sql_mode='STRICT_TRANS_TABLES'",
            },
        }
    }
elif os.environ.get('DB_NAME') and os.environ.get('DB_USER'):
    DATABASES = {
        'default': {
            'ENGINE': 'django.db.backends.postgresql',
            'NAME': os.environ['DB_NAME'],
            'USER': os.environ['DB_USER'],
            'PASSWORD': os.environ.get('DB_PASSWORD', ''),
            'HOST': os.environ.get('DB_HOST', 'localhost'),
            'PORT': os.environ.get('DB_PORT', '5432'),
            'CONN_MAX_AGE': int(os.environ.get('DB_CONN_MAX_AGE', '60')),
            'OPTIONS': {
                'sslmode': os.environ.get('DB_SSLMODE', 'require'),
            },
        }
    }
else:
    DATABASES = {
        'default': {
            'ENGINE': 'django.db.backends.sqlite3',
            'NAME': BASE_DIR / 'db.sqlite3',
        }
    }

# ===== Catalog =====
INVENTORY_DEFAULT_LOCATION = os.environ.get('INVENTORY_DEFAULT_LOCATION', 'main')
INVENTORY_DEFAULT_REORDER_LEVEL = int(os.environ.get('INVENTORY_DEFAULT_REORDER_LEVEL', '10'))
INVENTORY_LOW_STOCK_THRESHOLD = int(os.environ.get('INVENTORY_LOW_STOCK_THRESHOLD', '10'))
# Run the schema guard + backfill after every migrate
CATALOG_SCHEMA_GUARD_ON_MIGRATE = _env_bool('CATALOG_SCHEMA_GUARD_ON_MIGRATE', True)

# ===== Celery =====
CELERY_BROKER_URL = os.environ.get('CELERY_BROKER_URL', 'redis://localhost:6379/0')
CELERY_RESULT_BACKEND = os.environ.get('CELERY_RESULT_BACKEND', CELERY_BROKER_URL)
CELERY_TASK_ALWAYS_EAGER = _env_bool('CELERY_TASK_ALWAYS_EAGER', False)
CELERY_TIMEZONE = TIME_ZONE

# ===== Logging =====
LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
# File logging only when a directory is configured
LOG_DIR = Path(os.environ['LOG_DIR']) if os.environ.get('LOG_DIR') else None
LOG_HANDLERS = ['console', 'file'] if LOG_DIR else ['console']

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'verbose': {
            'format': '{asctime} {levelname} {name} {message}',
            'style': '{',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'verbose',
        },
    },
    'loggers': {
        'django': {
            'handlers': LOG_HANDLERS,
            'level': 'INFO',
            'propagate': True,
        },
        'storefront': {
            'handlers': LOG_HANDLERS,
            'level': LOG_LEVEL,
            'propagate': False,
        },
    },
}

if LOG_DIR:
    LOG_DIR.mkdir(parents=True, exist_ok=True)
    LOGGING['handlers']['file'] = {
        'level': 'INFO',
        'class': 'logging.handlers.RotatingFileHandler',
        'filename': LOG_DIR / 'mastore.log',
        'maxBytes': 5 * 1024 * 1024,
        'backupCount': 5,
        'formatter': 'verbose',
    }
