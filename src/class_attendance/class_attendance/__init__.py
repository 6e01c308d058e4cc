"""Class attendance tracker.

This package is organized by feature modules (users, courses, attendance)
with a thin Flask controller layer over service/repository layers. The
attendance accounting itself lives in ``attendance.engine`` as pure functions.
"""
