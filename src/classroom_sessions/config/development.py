import os

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "classroom_sessions"),
}

DEBUG = True

# If enabled, app will apply schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))
# Optional: also seed demo courses on startup
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))

# Minutes before start / after end of a session during which attendance can still be marked
ATTENDANCE_EARLY_GRACE_MINUTES = int(os.getenv("ATTENDANCE_EARLY_GRACE_MINUTES", "10"))
ATTENDANCE_LATE_GRACE_MINUTES = int(os.getenv("ATTENDANCE_LATE_GRACE_MINUTES", "15"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")
