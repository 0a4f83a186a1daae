"""
Shared constants used across multiple modules.
Single source of truth for time windows, day labels and time-of-day bands.
"""

# Window selector -> days (None = no cutoff)
WINDOW_DAYS = {
    "7d": 7,
    "30d": 30,
    "90d": 90,
    "1y": 365,
    "all": None,
}

# ISO weekday (1 = Monday) -> label
DAY_LABELS = {
    1: "Monday",
    2: "Tuesday",
    3: "Wednesday",
    4: "Thursday",
    5: "Friday",
    6: "Saturday",
    7: "Sunday",
}

# Time-of-day periods: (key, start_hour, end_hour). Night wraps midnight.
TIME_PERIODS = [
    ("morning", 5, 12),
    ("afternoon", 12, 17),
    ("evening", 17, 21),
    ("night", 21, 5),
]

# Medication timing bands: (id, start_hour, end_hour, label), span 0-24h
MEDICATION_WINDOWS = [
    ("overnight", 0, 5, "Midnight - 5 AM"),
    ("early-morning", 5, 9, "5 AM - 9 AM"),
    ("late-morning", 9, 12, "9 AM - Noon"),
    ("early-afternoon", 12, 16, "Noon - 4 PM"),
    ("late-afternoon", 16, 19, "4 PM - 7 PM"),
    ("evening", 19, 23, "7 PM - 11 PM"),
    ("late-night", 23, 24, "11 PM - Midnight"),
]

# Label kinds scanned by the correlation layer: (kind, Entry attribute)
LABEL_KINDS = [
    ("trigger", "triggers"),
    ("symptom", "symptoms"),
    ("location", "locations"),
    ("activity", "activities"),
]

FLARE_TIMEFRAME = "24-48 hours"
FLARE_ACTIONS = [
    "Consider preventive medication",
    "Reduce strenuous activities",
    "Ensure adequate rest",
    "Monitor trigger exposure",
]
