"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

from datetime import timedelta

LESSON_EDIT_WINDOW = timedelta(hours=1)
USERNAME_SUGGESTION_COUNT = 3
MIN_PASSWORD_LENGTH = 3
SALARY_WARNING_MIN_DAYS = 2
SALARY_WARNING_MAX_DAYS = 7
# Month length used when wrapping the pay-day distance.
SALARY_MONTH_DAYS = 30
UNKNOWN_COURSE_NAME = "Unknown"
TOKEN_SALT = "edu-center-auth"
