"""Centralized constants for cardwise.

All magic numbers of the scheduling algorithm and the content rules live
here so every layer imports from a single source of truth.
"""

# ---------- Quality scores ----------
MIN_QUALITY = 0
MAX_QUALITY = 5
PASSING_QUALITY = 3

# ---------- Scheduling (SM-2) ----------
DEFAULT_EASE_FACTOR = 2.5
MIN_EASE_FACTOR = 1.3
DEFAULT_INTERVAL_DAYS = 1
FIRST_INTERVAL_DAYS = 1
SECOND_INTERVAL_DAYS = 6

# ---------- Mastery (accuracy percent thresholds) ----------
MASTERED_ACCURACY = 90
GOOD_ACCURACY = 70
LEARNING_ACCURACY = 50

# ---------- Content limits ----------
MAX_CARD_TEXT_LEN = 1000
MAX_STACK_TITLE_LEN = 100
MAX_STACK_DESCRIPTION_LEN = 500
MAX_CATEGORY_LEN = 50
MAX_TAG_LEN = 30

# ---------- Reporting ----------
DEFAULT_HISTORY_DAYS = 30
RECENT_ACTIVITY_DAYS = 7
TOP_STACKS_LIMIT = 5
