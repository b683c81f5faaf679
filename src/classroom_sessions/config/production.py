import os

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "classroom_sessions"),
}

DEBUG = False

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))

ATTENDANCE_EARLY_GRACE_MINUTES = int(os.getenv("ATTENDANCE_EARLY_GRACE_MINUTES", "10"))
ATTENDANCE_LATE_GRACE_MINUTES = int(os.getenv("ATTENDANCE_LATE_GRACE_MINUTES", "15"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
