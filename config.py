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
    DB_URI = data.get("DB_URI", "sqlite+aiosqlite:///./auth.db")
    DB_TIMEOUT_SECONDS = float(data.get("DB_TIMEOUT_SECONDS", 10))
    API_PORT = data.get("API_PORT", 8000)
    API_HOST = data.get("API_HOST", "0.0.0.0")
    CORS_ORIGINS = data.get("CORS_ORIGINS", [])
    CORS_ALLOW_CREDENTIALS = data.get("CORS_ALLOW_CREDENTIALS", True)
    LOG_LEVEL = data.get("LOG_LEVEL", "INFO")
    ENABLE_LOGGING_MIDDLEWARE = bool(data.get("ENABLE_LOGGING_MIDDLEWARE", 1))

    JWT_SECRET = data.get("JWT_SECRET", "dev-secret-key-change-in-production")
    JWT_ISSUER = data.get("JWT_ISSUER", "session-auth-service")
    JWT_AUDIENCE = data.get("JWT_AUDIENCE", "session-auth-api")
    ACCESS_TOKEN_TTL_MINUTES = int(data.get("ACCESS_TOKEN_TTL_MINUTES", 15))
    REFRESH_TOKEN_TTL_DAYS = int(data.get("REFRESH_TOKEN_TTL_DAYS", 7))
    REFRESH_REUSE_REVOKES_ALL = bool(data.get("REFRESH_REUSE_REVOKES_ALL", False))

    PASSWORD_HASH_MEMORY_KIB = int(data.get("PASSWORD_HASH_MEMORY_KIB", 65536))
    PASSWORD_HASH_ITERATIONS = int(data.get("PASSWORD_HASH_ITERATIONS", 3))
    PASSWORD_HASH_PARALLELISM = int(data.get("PASSWORD_HASH_PARALLELISM", 4))

    SESSION_SWEEP_INTERVAL_SECONDS = int(data.get("SESSION_SWEEP_INTERVAL_SECONDS", 3600))
    ADMIN_API_KEY = data.get("ADMIN_API_KEY", "test-admin-key-12345")
