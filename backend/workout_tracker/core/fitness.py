"""Fitness math: calorie burn, speed, BMI, heart rate and VO2 max.

All functions are pure. Calorie estimation uses the MET model:

    calories = MET(sport, intensity) * weight_kg * duration_hours

where 1 MET is roughly 1 kcal per kg of body weight per hour.
"""

from workout_tracker.core.constants import ACTIVITY_MULTIPLIERS, HR_ZONE_BOUNDS, MET_TABLE
from workout_tracker.schemas.workout import IntensityLevel, SportType


def met_value(sport_type, intensity) -> float:
    """MET for a sport/intensity pair. Unknown sports use the OTHER row."""
    sport = SportType.parse(sport_type)
    level = IntensityLevel.parse(intensity)
    return MET_TABLE[sport.value][level.value]


def calories_burned(sport_type, intensity, duration_minutes: float, weight_kg: float) -> float:
    """Calories burned over `duration_minutes` of activity."""
    duration_hours = duration_minutes / 60
    return met_value(sport_type, intensity) * weight_kg * duration_hours


def average_speed_kmh(distance_km: float, elapsed_seconds: int) -> float:
    if not elapsed_seconds:
        return 0.0
    return distance_km / (elapsed_seconds / 3600)


def bmi(weight_kg: float | None, height_cm: float | None) -> float:
    if not weight_kg or not height_cm:
        return 0.0
    height_m = height_cm / 100
    return weight_kg / (height_m * height_m)


def bmi_category(value: float) -> str:
    if value < 18.5:
        return "underweight"
    if value < 25:
        return "normal"
    if value < 30:
        return "overweight"
    return "obese"


def daily_calorie_needs(
    weight_kg: float,
    height_cm: float,
    age_years: int,
    gender: str,
    activity_level: str = "moderate",
) -> float:
    """Harris-Benedict BMR scaled by an activity multiplier.

    Unknown activity levels are treated as "moderate".
    """
    if gender.lower() == "male":
        bmr = 88.362 + (13.397 * weight_kg) + (4.799 * height_cm) - (5.677 * age_years)
    else:
        bmr = 447.593 + (9.247 * weight_kg) + (3.098 * height_cm) - (4.330 * age_years)

    multiplier = ACTIVITY_MULTIPLIERS.get(activity_level, ACTIVITY_MULTIPLIERS["moderate"])
    return bmr * multiplier


def max_heart_rate(age_years: int) -> int:
    return 220 - age_years


def heart_rate_zones(max_hr: int) -> list[dict]:
    """Five training zones as [{zone, min, max}] in bpm."""
    zones = []
    for i in range(len(HR_ZONE_BOUNDS) - 1):
        lo, hi = HR_ZONE_BOUNDS[i], HR_ZONE_BOUNDS[i + 1]
        zones.append(
            {
                "zone": i + 1,
                "min": round(max_hr * lo),
                "max": round(max_hr * hi),
            }
        )
    return zones


def vo2_max(distance_km: float) -> float:
    """Cooper test estimate from the distance covered in 12 minutes."""
    return (distance_km * 1000 - 504.9) / 44.73


# (age upper bound, [poor below, average below, good below]) per gender
_VO2_BANDS = {
    "male": [
        (30, (35, 42, 52)),
        (40, (32, 39, 49)),
        (50, (30, 36, 45)),
        (None, (25, 32, 40)),
    ],
    "female": [
        (30, (30, 36, 46)),
        (40, (28, 34, 42)),
        (50, (25, 32, 39)),
        (None, (22, 28, 35)),
    ],
}


def fitness_level(vo2: float, gender: str, age_years: int) -> str:
    bands = _VO2_BANDS["male" if gender.lower() == "male" else "female"]
    for max_age, (poor, average, good) in bands:
        if max_age is None or age_years < max_age:
            if vo2 < poor:
                return "poor"
            if vo2 < average:
                return "average"
            if vo2 < good:
                return "good"
            return "excellent"
    return "excellent"
