from pathlib import Path
from decimal import Decimal
import os
import sys
BASE_DIR = Path(__file__).resolve().parent.parent
from dotenv import load_dotenv
load_dotenv()
SECRET_KEY = os.getenv("SECRET_KEY", "django-insecure-change-me")

DEBUG = os.getenv("DEBUG", "false").lower() == "true"

ALLOWED_HOSTS = os.getenv("ALLOWED_HOSTS", "localhost,127.0.0.1").split(",")

TESTING = "pytest" in sys.modules or os.getenv("TESTING") == "1"


# Application definition

INSTALLED_APPS = [
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',
    'channels',
    'rest_framework',
    'corsheaders',
    'accounts.apps.AccountsConfig',
    'wallets',
    'wagers',
    'engine',
    'coinflip',
    'mines',
    'limbo',
    'roulette',
    'upgrader',
    'jackpot',
]


MIDDLEWARE = [
    'corsheaders.middleware.CorsMiddleware',
    'django.middleware.security.SecurityMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
]

AUTH_USER_MODEL = 'accounts.User'

ROOT_URLCONF = 'casino.urls'

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

ASGI_APPLICATION = 'casino.asgi.application'

# Channels + Redis
REDIS_URL = os.getenv("REDIS_URL", "redis://127.0.0.1:6379/0")
CHANNEL_BACKEND = os.getenv("CHANNEL_BACKEND", "memory" if TESTING else "redis")

if CHANNEL_BACKEND == "redis":
    CHANNEL_LAYERS = {
        "default": {
            "BACKEND": "channels_redis.core.RedisChannelLayer",
            "CONFIG": {
                "hosts": [REDIS_URL],
            },
        },
    }
else:
    CHANNEL_LAYERS = {
        "default": {"BACKEND": "channels.layers.InMemoryChannelLayer"},
    }

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': os.getenv("DATABASE_PATH", BASE_DIR / 'db.sqlite3'),
        # writers queue on the database lock instead of failing on upgrade
        'OPTIONS': {
            'transaction_mode': 'IMMEDIATE',
            'timeout': 20,
        },
        # file-backed so concurrent connections in tests wait on the lock
        'TEST': {
            'NAME': BASE_DIR / 'test_db.sqlite3',
        },
    }
}


CORS_ALLOW_CREDENTIALS = True

CORS_ALLOWED_ORIGINS = [
    origin for origin in os.getenv(
        "CORS_ALLOWED_ORIGINS", "http://localhost:3000"
    ).split(",") if origin
]

CSRF_TRUSTED_ORIGINS = CORS_ALLOWED_ORIGINS

REST_FRAMEWORK = {
    'DEFAULT_AUTHENTICATION_CLASSES': [
        'rest_framework.authentication.SessionAuthentication',
    ],
    'DEFAULT_PERMISSION_CLASSES': [
        'rest_framework.permissions.IsAuthenticated',
    ],
    'EXCEPTION_HANDLER': 'engine.errors.api_exception_handler',
}


# CSRF settings
CSRF_COOKIE_HTTPONLY = False
CSRF_COOKIE_SAMESITE = 'Lax'
CSRF_COOKIE_SECURE = not DEBUG
CSRF_USE_SESSIONS = False

SESSION_ENGINE = "django.contrib.sessions.backends.db"
SESSION_COOKIE_HTTPONLY = True
SESSION_COOKIE_SAMESITE = "Lax"
SESSION_COOKIE_SECURE = not DEBUG


# Wagering core
# Money values are Decimals with two places everywhere.

MAX_BET = Decimal(os.getenv("MAX_BET", "10000.00"))
REFERRAL_PERCENT = Decimal(os.getenv("REFERRAL_PERCENT", "1"))
WAGER_REQUIREMENT_MULTIPLIER = Decimal(os.getenv("WAGER_REQUIREMENT_MULTIPLIER", "1"))

# Coinflip: win iff roll in [0, 100) is below this, payout 2x
COINFLIP_WIN_CHANCE = Decimal(os.getenv("COINFLIP_WIN_CHANCE", "47.5"))
LIMBO_HOUSE_EDGE = Decimal(os.getenv("LIMBO_HOUSE_EDGE", "0.01"))
LIMBO_MAX_MULTIPLIER = Decimal(os.getenv("LIMBO_MAX_MULTIPLIER", "1000000"))
MINES_HOUSE_EDGE = Decimal(os.getenv("MINES_HOUSE_EDGE", "0.01"))
UPGRADER_HOUSE_EDGE = Decimal(os.getenv("UPGRADER_HOUSE_EDGE", "0.08"))

# Wins at or above this multiplier are broadcast to everyone
HIGH_WIN_MULTIPLIER = Decimal(os.getenv("HIGH_WIN_MULTIPLIER", "10"))

JACKPOT_DELAY = float(os.getenv("JACKPOT_DELAY", "7"))  # seconds
JACKPOT_MIN_ENTRANTS = int(os.getenv("JACKPOT_MIN_ENTRANTS", "2"))

SESSION_IDLE_TIMEOUT = int(os.getenv("SESSION_IDLE_TIMEOUT", "600"))  # seconds
SESSION_SWEEP_INTERVAL = int(os.getenv("SESSION_SWEEP_INTERVAL", "60"))  # seconds
SESSION_SWEEP_LOCK_TTL = int(os.getenv("SESSION_SWEEP_LOCK_TTL", "30"))  # seconds

SESSION_STORE = {
    "BACKEND": os.getenv("SESSION_STORE_BACKEND", "engine.sessions.InMemorySessionStore"),
    "OPTIONS": {},
}

# total wagered needed to reach each level, level 1 starts at 0
LEVEL_THRESHOLDS = [
    Decimal(x) for x in os.getenv(
        "LEVEL_THRESHOLDS",
        "0,100,500,1000,2500,5000,10000,25000,50000,100000",
    ).split(",")
]


LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "standard": {
            "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "standard",
        },
    },
    "root": {
        "handlers": ["console"],
        "level": LOG_LEVEL,
    },
    "loggers": {
        "django": {
            "handlers": ["console"],
            "level": os.getenv("DJANGO_LOG_LEVEL", "WARNING"),
            "propagate": False,
        },
    },
}


AUTH_PASSWORD_VALIDATORS = [
    {
        'NAME': 'django.contrib.auth.password_validation.UserAttributeSimilarityValidator',
    },
    {
        'NAME': 'django.contrib.auth.password_validation.MinimumLengthValidator',
    },
]


# Internationalization

LANGUAGE_CODE = 'en-us'

TIME_ZONE = 'UTC'

USE_I18N = True

USE_TZ = True


# Static files (CSS, JavaScript, Images)

STATIC_URL = 'static/'
STATIC_ROOT = BASE_DIR / "staticfiles"

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'
