"""Central constants for Alarmist (light‑weight and local-use oriented).

Only put small, stable primitives here – avoid runtime/config dependent values.
"""

# Weekday labels indexed by the persisted weekday number (0=Sunday)
WEEKDAY_NAMES = ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")

# Label used when an alarm is created without one
DEFAULT_ALARM_LABEL = "Alarm"

# HH:MM (24h); single-digit hours are accepted on input
TIME_PATTERN = r"^([0-1]?[0-9]|2[0-3]):[0-5][0-9]$"

# Wake-ups earlier than this before the armed target are treated as spurious
EARLY_FIRE_TOLERANCE_SECONDS: float = 1.0

# Valid values for the one-shot handling policy
ONE_SHOT_POLICIES = ("deactivate", "roll")
