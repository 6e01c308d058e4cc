import os

from config.defaults import COURSES, LEAVE_RATIO  # noqa: F401

SECRET_KEY = "test-secret"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "class_attendance_test"),
}

SEMESTER_START = "2025-07-27"
SEMESTER_END = "2025-11-22"

GOOGLE_CLIENT_ID = "test-client-id"
GOOGLE_CLIENT_SECRET = "test-client-secret"
GOOGLE_CALLBACK_URL = ""

DEBUG = False
TESTING = True

AUTO_INIT_DB = False
AUTO_SEED_DB = False
