import os
import yaml

ROOT_PATH = os.path.dirname(__file__)
CONFIG_FILE_PATH = os.path.join(ROOT_PATH, "env.yaml")

if os.path.exists(CONFIG_FILE_PATH):
    with open(CONFIG_FILE_PATH, "r") as r_file:
        data = yaml.safe_load(r_file) or dict()
else:
    data = dict()


class ApplicationConfig:
    DB_URI = data.get("DB_URI", "sqlite+aiosqlite:///./commerce_iam.db")
    API_PORT = data.get("API_PORT", 8000)
    API_HOST = data.get("API_HOST", "0.0.0.0")
    CORS_ORIGINS = data.get("CORS_ORIGINS", [])
    CORS_ALLOW_CREDENTIALS = data.get("CORS_ALLOW_CREDENTIALS", True)
    LOG_LEVEL = data.get("LOG_LEVEL", "INFO")

    # Cache
    CACHE_BACKEND = data.get("CACHE_BACKEND", "redis")
    REDIS_URL = data.get("REDIS_URL", "redis://localhost:6379/0")
    CACHE_KEY_PREFIX = data.get("CACHE_KEY_PREFIX", "commerce")
    SESSION_CACHE_TTL = int(data.get("SESSION_CACHE_TTL", 30 * 24 * 60 * 60))

    # Tokens
    JWT_SECRET = data.get("JWT_SECRET", "dev-secret-key-change-in-production")
    JWT_EXPIRES_IN_DAYS = int(data.get("JWT_EXPIRES_IN_DAYS", 30))
    FRONTEND_URL = data.get("FRONTEND_URL", "http://localhost:3000")
    PASSWORD_RESET_TOKEN_TTL = int(data.get("PASSWORD_RESET_TOKEN_TTL", 5 * 60))
    PASSWORD_RESET_COOLDOWN = int(data.get("PASSWORD_RESET_COOLDOWN", 60))

    # Login throttle
    LOGIN_MAX_ATTEMPTS = int(data.get("LOGIN_MAX_ATTEMPTS", 5))
    LOGIN_LOCKOUT_SECONDS = int(data.get("LOGIN_LOCKOUT_SECONDS", 15 * 60))
    LOGIN_ATTEMPT_TTL = int(data.get("LOGIN_ATTEMPT_TTL", 60 * 60))

    # Outbound mail (unset host means messages are logged, not sent)
    SMTP_HOST = data.get("SMTP_HOST", "")
    SMTP_PORT = int(data.get("SMTP_PORT", 587))
    SMTP_USER = data.get("SMTP_USER", "")
    SMTP_PASSWORD = data.get("SMTP_PASSWORD", "")
    SMTP_USE_TLS = bool(data.get("SMTP_USE_TLS", True))
    MAIL_FROM = data.get("MAIL_FROM", "")
    MAIL_FROM_NAME = data.get("MAIL_FROM_NAME", "Commerce")
