# app/models/enums.py
"""
Closed vocabularies stored as plain strings in the database.
Each lifecycle enum is paired with its allowed-transition table in the owning service.
"""

from enum import Enum


class UserRole(str, Enum):
    ADMIN = "admin"
    COLLECTOR = "collector"
    CITIZEN = "citizen"


class PriorityLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def rank(self) -> int:
        return PRIORITY_RANK[self]


PRIORITY_RANK = {PriorityLevel.LOW: 0, PriorityLevel.MEDIUM: 1, PriorityLevel.HIGH: 2}


class ZoneType(str, Enum):
    RESIDENTIAL = "residential"
    COMMERCIAL = "commercial"
    INDUSTRIAL = "industrial"
    PUBLIC = "public"


class ReportStatus(str, Enum):
    PENDING = "pending"
    VERIFIED = "verified"
    RESOLVED = "resolved"
    REJECTED = "rejected"


class ReportActionType(str, Enum):
    CREATED = "created"
    VERIFIED = "verified"
    REJECTED = "rejected"
    RESOLVED = "resolved"
    COMMENTED = "commented"


class ScheduleStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


ACTIVE_SCHEDULE_STATUSES = (ScheduleStatus.PENDING.value, ScheduleStatus.IN_PROGRESS.value)


class ConditionType(str, Enum):
    REPORTS_COUNT = "reports_count"
    POINTS_EARNED = "points_earned"
    CONSECUTIVE_DAYS = "consecutive_days"
    ZONE_COVERAGE = "zone_coverage"


class NotificationType(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"
    ACHIEVEMENT = "achievement"
