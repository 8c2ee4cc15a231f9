"""Age bands that route a child to a program"""
from datetime import date

from checkin_service.utils.timezone import local_today

PROGRAMS = ("daycare", "youth", "teen")
CHILD_PROGRAMS = ("daycare", "youth")

DAYS_PER_YEAR = 365.25
MIN_AGE = 0.25  # three months
DAYCARE_MAX_AGE = 10
YOUTH_MAX_AGE = 16
TEEN_MIN_AGE = 16
TEEN_MAX_AGE = 21


def calculate_age(date_of_birth: date, today: date | None = None) -> float:
    """Age in fractional years."""
    today = today or local_today()
    return (today - date_of_birth).days / DAYS_PER_YEAR


def eligible_program(date_of_birth: date, today: date | None = None) -> str:
    """
    Program a person of this age belongs to.

    Returns "none" under three months and over 21.
    """
    age = calculate_age(date_of_birth, today)
    if age < MIN_AGE:
        return "none"
    if age < DAYCARE_MAX_AGE:
        return "daycare"
    if age < YOUTH_MAX_AGE:
        return "youth"
    if age <= TEEN_MAX_AGE:
        return "teen"
    return "none"


def is_teen_age(age: float) -> bool:
    return TEEN_MIN_AGE <= age <= TEEN_MAX_AGE
