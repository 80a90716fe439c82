"""Models package - Re-exports all models for convenient importing."""
from ellarises.extensions import db
from ellarises.models.user import User, ROLES, ELEVATED_ROLES, STATUSES
from ellarises.models.participant import Participant
from ellarises.models.event import (
    EventTemplate, EventOccurrence, Registration, EVENT_TYPES, ATTENDANCE_STATUSES
)
from ellarises.models.survey import Survey, SCORE_FIELDS
from ellarises.models.milestone import Milestone, MilestoneType
from ellarises.models.donation import Donation, DONATION_TYPES

__all__ = [
    'db', 'User', 'Participant', 'EventTemplate', 'EventOccurrence', 'Registration',
    'Survey', 'Milestone', 'MilestoneType', 'Donation',
    'ROLES', 'ELEVATED_ROLES', 'STATUSES', 'EVENT_TYPES', 'ATTENDANCE_STATUSES',
    'SCORE_FIELDS', 'DONATION_TYPES',
]
