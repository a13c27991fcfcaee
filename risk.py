from collections import namedtuple
from datetime import datetime

HIGH_RISK = 'HIGH_RISK'
SAFE = 'SAFE'

HIGH_RISK_SCORE = 0.85
SAFE_SCORE = 0.15

HIGH_RISK_MESSAGE = 'High Risk: Night Travel Detected'
SAFE_MESSAGE = 'Safe Zone'

# Night window, inclusive on both ends: 22:00-05:59 local time.
NIGHT_STARTS = 22
NIGHT_ENDS = 5

RiskAssessment = namedtuple('RiskAssessment', ['classification', 'score', 'message'])


def current_hour():
    return datetime.now().hour


def is_night(hour):
    return hour >= NIGHT_STARTS or hour <= NIGHT_ENDS


def assess_risk(hour=None):
    """Classifies travel risk from the local hour of day only; location plays no part."""
    if hour is None:
        hour = current_hour()
    if not 0 <= hour <= 23:
        raise ValueError(f"hour must be between 0 and 23, got {hour}")
    if is_night(hour):
        return RiskAssessment(HIGH_RISK, HIGH_RISK_SCORE, HIGH_RISK_MESSAGE)
    return RiskAssessment(SAFE, SAFE_SCORE, SAFE_MESSAGE)
