# studio_calendar/config.py
SESSIONS_TAB = "Sessions"
SESSIONS_HEADERS = [
    "session_id",
    "date",                   # YYYY-MM-DD
    "day",                    # Monday/Tuesday...
    "time",                   # "9:30 AM" or "19:15:00"
    "class_name",
    "class_type",
    "trainer_name",
    "location",
    "capacity",
    "checked_in",
    "booked",
    "late_cancelled",
    "waitlisted",
    "non_paid",
    "revenue",
    "status",                 # computed (Active/Inactive)
    "fill_rate",              # computed (0-100)
]

ACTIVE_TAB = "Active"

WEEKDAYS = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]

# Calendar window
START_HOUR = 7
END_HOUR = 22
SLOT_MINUTES = 30
DEFAULT_DURATION_MINUTES = 60
WEEK_STARTS_ON = 0            # Python weekday: 0 = Monday, 6 = Sunday

# Status
TIMEZONE = "Asia/Kolkata"
RECENCY_WINDOW_DAYS = 30
STATUS_ACTIVE = "Active"
STATUS_INACTIVE = "Inactive"

# Recommendation thresholds
EMPTY_SESSION_RATIO_MAX = 0.2
LOW_FILL_RATE_PCT = 50.0
HIGH_FILL_RATE_PCT = 90.0
HIGH_CANCELLATION_RATE_PCT = 15.0
TREND_ALERT_PCT = 10.0
HIGH_WAITLIST_RATE_PCT = 10.0
REVENUE_PER_SEAT_FLOOR = 500.0

# AI insights
GEMINI_MODEL = "gemini-2.0-flash-lite"
MAX_INSIGHTS = 7
