import os
from decimal import Decimal
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent

SECRET_KEY = os.environ.get(
    'DJANGO_SECRET_KEY',
    'django-insecure-awc-backoffice-dev-key-change-me'
)

DEBUG = os.environ.get('DJANGO_DEBUG', 'True').lower() in ('1', 'true', 'yes')

_hosts_env = os.environ.get('DJANGO_ALLOWED_HOSTS', 'localhost,127.0.0.1,testserver')
ALLOWED_HOSTS = [h.strip() for h in _hosts_env.split(',') if h.strip()]

INSTALLED_APPS = [
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',
    'rest_framework',
    'rest_framework.authtoken',
    'accounts',
    'customers',
    'quotes',
    'invoices',
    'reports',
    'fx',
]

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
]

ROOT_URLCONF = 'backoffice.urls'

TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [],
        'APP_DIRS': True,
        'OPTIONS': {
            'context_processors': [
                'django.template.context_processors.debug',
                'django.template.context_processors.request',
                'django.contrib.auth.context_processors.auth',
                'django.contrib.messages.context_processors.messages',
            ],
        },
    },
]

WSGI_APPLICATION = 'backoffice.wsgi.application'

# Postgres (psycopg2) when POSTGRES_DB is set, otherwise a local SQLite file.
if os.environ.get('POSTGRES_DB'):
    DATABASES = {
        'default': {
            'ENGINE': 'django.db.backends.postgresql',
            'NAME': os.environ['POSTGRES_DB'],
            'USER': os.environ.get('POSTGRES_USER', 'postgres'),
            'PASSWORD': os.environ.get('POSTGRES_PASSWORD', ''),
            'HOST': os.environ.get('POSTGRES_HOST', '127.0.0.1'),
            'PORT': os.environ.get('POSTGRES_PORT', '5432'),
        }
    }
else:
    DATABASES = {
        'default': {
            'ENGINE': 'django.db.backends.sqlite3',
            'NAME': BASE_DIR / 'db.sqlite3',
        }
    }

AUTH_USER_MODEL = 'accounts.CustomUser'

AUTH_PASSWORD_VALIDATORS = [
    {'NAME': 'django.contrib.auth.password_validation.UserAttributeSimilarityValidator'},
    {'NAME': 'django.contrib.auth.password_validation.MinimumLengthValidator'},
    {'NAME': 'django.contrib.auth.password_validation.CommonPasswordValidator'},
    {'NAME': 'django.contrib.auth.password_validation.NumericPasswordValidator'},
]

LANGUAGE_CODE = 'en-us'
TIME_ZONE = os.environ.get('DJANGO_TIME_ZONE', 'Africa/Kigali')
USE_I18N = True
USE_TZ = True

STATIC_URL = '/static/'
STATIC_ROOT = BASE_DIR / 'staticfiles'

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

REST_FRAMEWORK = {
    'DEFAULT_AUTHENTICATION_CLASSES': [
        'rest_framework.authentication.TokenAuthentication',
        'rest_framework.authentication.SessionAuthentication',
    ],
    'DEFAULT_PERMISSION_CLASSES': [
        'rest_framework.permissions.IsAuthenticated',
    ],
    'COERCE_DECIMAL_TO_STRING': True,
}

# Invoicing
INVOICE_VAT_RATE = Decimal(os.environ.get('INVOICE_VAT_RATE', '0.18'))
INVOICE_PAYMENT_TERMS_DAYS = int(os.environ.get('INVOICE_PAYMENT_TERMS_DAYS', '30'))
INVOICE_NUMBER_PREFIX = os.environ.get('INVOICE_NUMBER_PREFIX', 'AWC')

# Reporting
REPORTING_CURRENCY = os.environ.get('REPORTING_CURRENCY', 'USD')
INCOME_TAX_RATE = Decimal(os.environ.get('INCOME_TAX_RATE', '0.21'))

# FX
FX_STALE_HOURS = float(os.environ.get('FX_STALE_HOURS', 24))
FX_ANOMALY_PCT = float(os.environ.get('FX_ANOMALY_PCT', 0.05))
BNR_FX_URL = os.environ.get('BNR_FX_URL', 'https://www.bnr.rw/currency/exchange-rate/')
# JSON table of mid rates, e.g. '{"USD": {"RWF": 1300}}'
FX_MID_RATES = os.environ.get('FX_MID_RATES', '{}')

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'simple': {'format': '%(asctime)s %(levelname)s %(name)s: %(message)s'},
    },
    'handlers': {
        'console': {'class': 'logging.StreamHandler', 'formatter': 'simple'},
    },
    'loggers': {
        'django': {'handlers': ['console'], 'level': 'INFO'},
        'django.request': {'handlers': ['console'], 'level': 'WARNING', 'propagate': True},
        'accounts': {'handlers': ['console'], 'level': os.environ.get('APP_LOG_LEVEL', 'INFO')},
        'customers': {'handlers': ['console'], 'level': os.environ.get('APP_LOG_LEVEL', 'INFO')},
        'backoffice': {'handlers': ['console'], 'level': os.environ.get('APP_LOG_LEVEL', 'INFO')},
        'quotes': {'handlers': ['console'], 'level': os.environ.get('APP_LOG_LEVEL', 'INFO')},
        'invoices': {'handlers': ['console'], 'level': os.environ.get('APP_LOG_LEVEL', 'INFO')},
        'reports': {'handlers': ['console'], 'level': os.environ.get('APP_LOG_LEVEL', 'INFO')},
        'pricing': {'handlers': ['console'], 'level': os.environ.get('APP_LOG_LEVEL', 'INFO')},
        'fx': {'handlers': ['console'], 'level': os.environ.get('APP_LOG_LEVEL', 'INFO')},
    },
}
