"""
Django settings for the balaji_store project.
"""

import os
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()
BASE_DIR = Path(__file__).resolve().parent.parent

# SECURITY WARNING: don't run with debug turned on in production!
DEBUG = os.getenv('DEBUG', 'True') == 'True'

# SECURITY WARNING: keep the secret key used in production secret!
SECRET_KEY = os.getenv('SECRET_KEY') or ('dev-only-balaji-store-key' if DEBUG else None)

ALLOWED_HOSTS = [
    host.strip()
    for host in os.getenv('ALLOWED_HOSTS', 'localhost,127.0.0.1,testserver').split(',')
    if host.strip()
]

CSRF_TRUSTED_ORIGINS = [
    'http://localhost:3000',
    'http://127.0.0.1:3000',
]

SITE_URL = os.getenv('SITE_URL', 'http://localhost:8000')

# ---------- Pricing ----------
GST_PERCENT = int(os.getenv('GST_PERCENT', '18'))
SHIPPING_FEE_PAISE = int(os.getenv('SHIPPING_FEE_PAISE', '0'))
MINIMUM_ORDER_AMOUNT_PAISE = int(os.getenv('MINIMUM_ORDER_AMOUNT_PAISE', '1000'))
CURRENCY = 'INR'

# Unpaid UPI orders older than this are cancelled the next time they are read
PENDING_PAYMENT_WINDOW_MINUTES = int(os.getenv('PENDING_PAYMENT_WINDOW_MINUTES', '15'))

# ---------- Razorpay ----------
RAZORPAY_BASE_URL = os.getenv('RAZORPAY_BASE_URL', 'https://api.razorpay.com/v1')
RAZORPAY_KEY_ID = os.getenv('RAZORPAY_KEY_ID')
RAZORPAY_KEY_SECRET = os.getenv('RAZORPAY_KEY_SECRET')
RAZORPAY_TIMEOUT = float(os.getenv('RAZORPAY_TIMEOUT', '10'))

# ---------- Delhivery API ----------
DELHIVERY_BASE_URL = os.getenv('DELHIVERY_BASE_URL', 'https://track.delhivery.com/api')
DELHIVERY_API_TOKEN = os.getenv('DELHIVERY_API_TOKEN', '')
DELHIVERY_AUTH_SCHEME = os.getenv('DELHIVERY_AUTH_SCHEME', 'Token')
DELHIVERY_RATE_PATH = os.getenv('DELHIVERY_RATE_PATH', '/kinko/v1/invoice/charges/')
DELHIVERY_TIMEOUT = float(os.getenv('DELHIVERY_TIMEOUT', '15'))
DELHIVERY_WEBHOOK_TOKEN = os.getenv('DELHIVERY_WEBHOOK_TOKEN', '')

# pickup pincode (used for rate quotes)
DELHIVERY_PICKUP_PIN = os.getenv('DELHIVERY_PICKUP_PIN', '').strip()
DELHIVERY_PICKUP_LOCATION = os.getenv('DELHIVERY_PICKUP_LOCATION', '')

# default parcel used when creating shipments
DELHIVERY_DEFAULT_WEIGHT_KG = float(os.getenv('DELHIVERY_DEFAULT_WEIGHT_KG', '0.5'))
DELHIVERY_DEFAULT_LENGTH_CM = float(os.getenv('DELHIVERY_DEFAULT_LENGTH_CM', '20'))
DELHIVERY_DEFAULT_WIDTH_CM = float(os.getenv('DELHIVERY_DEFAULT_WIDTH_CM', '15'))
DELHIVERY_DEFAULT_HEIGHT_CM = float(os.getenv('DELHIVERY_DEFAULT_HEIGHT_CM', '10'))

# Application definition
INSTALLED_APPS = [
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',
    'catalog',
    'orders',
    'enquiries',
    'blog',
]

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'balaji_store.middleware.SecurityHeadersMiddleware',
    'balaji_store.middleware.CacheControlMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
]

ROOT_URLCONF = 'balaji_store.urls'
WSGI_APPLICATION = 'balaji_store.wsgi.application'

TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [],
        'APP_DIRS': True,
        'OPTIONS': {
            'context_processors': [
                'django.template.context_processors.request',
                'django.contrib.auth.context_processors.auth',
                'django.contrib.messages.context_processors.messages',
            ],
        },
    },
]

# Database
if os.getenv('DB_NAME'):
    DATABASES = {
        'default': {
            'ENGINE': 'django.db.backends.postgresql_psycopg2',
            'NAME': os.getenv('DB_NAME'),
            'USER': os.getenv('DB_USER'),
            'PASSWORD': os.getenv('DB_PASSWORD'),
            'HOST': os.getenv('DB_HOST'),
            'PORT': os.getenv('DB_PORT'),
        }
    }
else:
    DATABASES = {
        'default': {
            'ENGINE': 'django.db.backends.sqlite3',
            'NAME': os.getenv('SQLITE_PATH', str(BASE_DIR / 'db.sqlite3')),
        }
    }

# Rate limit counters live in the cache; point REDIS_URL at a shared
# instance when running more than one web process.
if os.getenv('REDIS_URL'):
    CACHES = {
        'default': {
            'BACKEND': 'django.core.cache.backends.redis.RedisCache',
            'LOCATION': os.getenv('REDIS_URL'),
        }
    }
else:
    CACHES = {
        'default': {
            'BACKEND': 'django.core.cache.backends.locmem.LocMemCache',
            'LOCATION': 'balaji-store',
        }
    }

# Password validation
AUTH_PASSWORD_VALIDATORS = [
    {
        'NAME': 'django.contrib.auth.password_validation.UserAttributeSimilarityValidator',
    },
    {
        'NAME': 'django.contrib.auth.password_validation.MinimumLengthValidator',
    },
    {
        'NAME': 'django.contrib.auth.password_validation.CommonPasswordValidator',
    },
    {
        'NAME': 'django.contrib.auth.password_validation.NumericPasswordValidator',
    },
]

# Internationalization
LANGUAGE_CODE = 'en-us'
TIME_ZONE = 'Asia/Kolkata'
USE_I18N = True
USE_TZ = True

# Static files
STATIC_URL = '/static/'
STATIC_ROOT = BASE_DIR / 'staticfiles'

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

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
    'root': {
        'handlers': ['console'],
        'level': os.getenv('LOG_LEVEL', 'INFO'),
    },
    'loggers': {
        'django': {
            'handlers': ['console'],
            'level': os.getenv('DJANGO_LOG_LEVEL', 'WARNING'),
            'propagate': False,
        },
    },
}

SESSION_COOKIE_HTTPONLY = True
CSRF_COOKIE_SECURE = not DEBUG
SESSION_COOKIE_SECURE = not DEBUG
