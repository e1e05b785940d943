import os

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "edu_center_db"),
}

DEBUG = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

# Seconds; unset means issued tokens never expire.
TOKEN_MAX_AGE = int(os.getenv("TOKEN_MAX_AGE")) if os.getenv("TOKEN_MAX_AGE") else None

# Migration shim: show rows without a center name to every center.
ALLOW_UNTAGGED_RECORDS = bool(int(os.getenv("ALLOW_UNTAGGED_RECORDS", "0")))

# If enabled, app will apply schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))
# Optional: also seed the demo center on startup
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))
