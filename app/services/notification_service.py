# app/services/notification_service.py
"""
Notification sink for engine events (achievement_earned, report_resolved, schedule_assigned).
The engine publishes and forgets; DatabaseNotificationSink persists a UserNotification row
inside the caller's transaction. Delivery (email, SMS, push) reads from that table.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional
from sqlalchemy.orm import Session
from app.models.enums import NotificationType
from app.models.notification import UserNotification
from app.utils.logger import get_logger

logger = get_logger(__name__, "NOTIFY")

ACHIEVEMENT_EARNED = "achievement_earned"
REPORT_RESOLVED = "report_resolved"
SCHEDULE_ASSIGNED = "schedule_assigned"


@dataclass
class DomainEvent:
    event_type: str
    user_id: int
    title: str
    message: str
    data: dict = field(default_factory=dict)
    notification_type: str = NotificationType.INFO.value
    priority: str = "medium"
    action_url: Optional[str] = None


class NotificationSink:
    """Anything with publish(event). Subclass for other transports."""

    def publish(self, event: DomainEvent) -> None:
        raise NotImplementedError


class DatabaseNotificationSink(NotificationSink):
    def __init__(self, db: Session):
        self.db = db

    def publish(self, event: DomainEvent) -> None:
        self.db.add(UserNotification(
            user_id=event.user_id,
            event_type=event.event_type,
            title=event.title,
            message=event.message,
            type=event.notification_type,
            data=event.data,
            priority=event.priority,
            action_url=event.action_url,
            created_at=datetime.utcnow(),
        ))
        logger.info(f"{event.event_type} user={event.user_id} {event.title}")


class RecordingNotificationSink(NotificationSink):
    """Keeps events in memory. Used by scripts and tests."""

    def __init__(self):
        self.events: list[DomainEvent] = []

    def publish(self, event: DomainEvent) -> None:
        self.events.append(event)

    def of_type(self, event_type: str) -> list[DomainEvent]:
        return [e for e in self.events if e.event_type == event_type]


def resolve_sink(db: Session, notifier: Optional[NotificationSink]) -> NotificationSink:
    return notifier if notifier is not None else DatabaseNotificationSink(db)


def list_notifications(db: Session, user_id: int, unread_only: bool = False, limit: int = 50):
    q = db.query(UserNotification).filter(UserNotification.user_id == user_id)
    if unread_only:
        q = q.filter(UserNotification.read_at.is_(None))
    return q.order_by(UserNotification.created_at.desc(), UserNotification.id.desc()).limit(limit).all()


def mark_read(db: Session, notification: UserNotification):
    if notification.read_at is None:
        notification.read_at = datetime.utcnow()
        db.commit()
    return notification
