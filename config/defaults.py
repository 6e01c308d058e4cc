"""Settings shared by every environment module."""

import os

SEMESTER_START = os.getenv("SEMESTER_START", "2025-07-27")
SEMESTER_END = os.getenv("SEMESTER_END", "2025-11-22")

# One allowed leave per LEAVE_RATIO conducted classes
LEAVE_RATIO = int(os.getenv("LEAVE_RATIO", "4"))

COURSES = [
    {"class_id": "cs301", "title": "Compiler Design", "faculty": "Dr. T. Sugritha"},
    {"class_id": "cs302", "title": "Database Management Systems", "faculty": "Dr. M. Ambika"},
]

# Google sign-in is enabled only when both credentials are set
GOOGLE_CLIENT_ID = os.getenv("GOOGLE_CLIENT_ID", "")
GOOGLE_CLIENT_SECRET = os.getenv("GOOGLE_CLIENT_SECRET", "")
GOOGLE_CALLBACK_URL = os.getenv("GOOGLE_CALLBACK_URL", "")
