"""Shared enums for models and schemas."""
import enum


class TaskType(str, enum.Enum):
    differentiation = "differentiation"
    tier2_intervention = "tier2_intervention"


class SeverityLevel(str, enum.Enum):
    mild = "mild"
    moderate = "moderate"
    urgent = "urgent"


class SubmissionStatus(str, enum.Enum):
    pending = "pending"
    approved = "approved"
    urgent_flagged = "urgent_flagged"
    hold = "hold"
    cancelled = "cancelled"
    sending = "sending"
    auto_sent = "auto_sent"
    completed = "completed"


# Scheduler may claim from these, subject to timer and urgency
CLAIMABLE_STATUSES = (SubmissionStatus.pending, SubmissionStatus.approved)

# Admin may still edit, approve, hold, cancel or send manually
REVIEWABLE_STATUSES = (
    SubmissionStatus.pending,
    SubmissionStatus.approved,
    SubmissionStatus.urgent_flagged,
    SubmissionStatus.hold,
)


class NotificationType(str, enum.Enum):
    urgent = "urgent"
    reminder = "reminder"
    followup = "followup"


class NotificationStatus(str, enum.Enum):
    unread = "unread"
    read = "read"
    resolved = "resolved"


class NotificationPriority(str, enum.Enum):
    low = "low"
    normal = "normal"
    high = "high"
