"""Shared constants for live tracking and fitness math.

Centralizes the numbers the engine and helpers depend on so they are
documented and adjusted in one place.
"""

# Mean Earth radius used by the haversine formula
EARTH_RADIUS_KM = 6371.0

# Device speeds arrive in m/s; the engine works in km/h
MPS_TO_KMH = 3.6

# One timer tick adds exactly this many seconds of elapsed time
TICK_SECONDS = 1

# Default number of speed samples kept for the live chart
SPEED_CHART_WINDOW = 10

# Metabolic equivalents per sport and intensity (1 MET = 1 kcal/kg/hour).
MET_TABLE = {
    "RUNNING": {"LOW": 8.0, "MEDIUM": 11.0, "HIGH": 16.0},
    "CYCLING": {"LOW": 4.0, "MEDIUM": 8.0, "HIGH": 14.0},
    "WALKING": {"LOW": 2.5, "MEDIUM": 3.5, "HIGH": 5.0},
    "SWIMMING": {"LOW": 5.0, "MEDIUM": 8.0, "HIGH": 11.0},
    "HIKING": {"LOW": 4.0, "MEDIUM": 6.0, "HIGH": 8.0},
    "YOGA": {"LOW": 2.5, "MEDIUM": 3.5, "HIGH": 4.5},
    "GYM": {"LOW": 3.5, "MEDIUM": 5.0, "HIGH": 6.5},
    "OTHER": {"LOW": 3.0, "MEDIUM": 5.0, "HIGH": 8.0},
}

# Heart rate zone bounds as fractions of HR max.
# Z1: [0.50, 0.60), Z2: [0.60, 0.70), ..., Z5: [0.90, 1.00]
HR_ZONE_BOUNDS = [0.5, 0.6, 0.7, 0.8, 0.9, 1.0]

# Harris-Benedict activity multipliers
ACTIVITY_MULTIPLIERS = {
    "sedentary": 1.2,   # little or no exercise
    "light": 1.375,     # 1-3 days/week
    "moderate": 1.55,   # 3-5 days/week
    "active": 1.725,    # 6-7 days/week
    "very": 1.9,        # physical job or twice-a-day training
}
