"""
Django settings for the blood bank API.

Values come from the environment (a local ``.env`` file is loaded first).
Mongo is the only datastore; Django's ORM is not used.
"""
import os
from pathlib import Path

from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent.parent

load_dotenv(BASE_DIR / '.env')


def env_bool(name, default=False):
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


def env_list(name, default=''):
    return [item.strip() for item in os.getenv(name, default).split(',') if item.strip()]


SECRET_KEY = os.getenv('SECRET_KEY', 'django-insecure-dev-only')
DEBUG = env_bool('DEBUG')
ALLOWED_HOSTS = env_list('ALLOWED_HOSTS', 'localhost,127.0.0.1')

INSTALLED_APPS = [
    'corsheaders',
    'rest_framework',
    'api',
]

MIDDLEWARE = [
    'corsheaders.middleware.CorsMiddleware',
    'django.middleware.security.SecurityMiddleware',
    'django.middleware.common.CommonMiddleware',
]

ROOT_URLCONF = 'config.urls'
WSGI_APPLICATION = 'config.wsgi.application'

# No relational database: every collection lives in MongoDB.
DATABASES = {}

USE_TZ = True
TIME_ZONE = 'UTC'
APPEND_SLASH = False

CORS_ALLOWED_ORIGINS = env_list('CORS_ALLOWED_ORIGINS', 'http://localhost:5173,http://localhost:3000')
CORS_ALLOW_CREDENTIALS = True

REST_FRAMEWORK = {
    'DEFAULT_AUTHENTICATION_CLASSES': [],
    'DEFAULT_PERMISSION_CLASSES': [],
    'DEFAULT_RENDERER_CLASSES': ['rest_framework.renderers.JSONRenderer'],
    'DEFAULT_PARSER_CLASSES': ['rest_framework.parsers.JSONParser'],
    'UNAUTHENTICATED_USER': None,
    'EXCEPTION_HANDLER': 'api.exceptions.api_exception_handler',
}

# MongoDB
MONGO_URI = os.getenv('MONGO_URI', 'mongodb://localhost:27017/')
MONGO_DB_NAME = os.getenv('MONGO_DB_NAME', 'blood_bank_db')
MONGO_CLIENT_CLASS = os.getenv('MONGO_CLIENT_CLASS', 'pymongo.MongoClient')

# Tokens
JWT_SECRET = os.getenv('JWT_SECRET')
JWT_LIFETIME_DAYS = int(os.getenv('JWT_LIFETIME_DAYS', '7'))

# Business rules
BLOOD_SHELF_LIFE_DAYS = int(os.getenv('BLOOD_SHELF_LIFE_DAYS', '42'))
_camp_duration = os.getenv('CAMP_DEFAULT_DURATION_DAYS')
CAMP_DEFAULT_DURATION_DAYS = int(_camp_duration) if _camp_duration else None
ALLOW_ADMIN_REGISTRATION = env_bool('ALLOW_ADMIN_REGISTRATION')
REQUIRE_FACILITY_APPROVAL = env_bool('REQUIRE_FACILITY_APPROVAL')
DONATION_INTERVAL_DAYS = int(os.getenv('DONATION_INTERVAL_DAYS', '90'))
HISTORY_LIMIT = int(os.getenv('HISTORY_LIMIT', '100'))

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'standard': {
            'format': '%(asctime)s %(levelname)s %(name)s: %(message)s',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'standard',
        },
    },
    'loggers': {
        'api': {
            'handlers': ['console'],
            'level': os.getenv('LOG_LEVEL', 'INFO'),
            'propagate': False,
        },
    },
    'root': {
        'handlers': ['console'],
        'level': 'WARNING',
    },
}
