from .models import (  # noqa: F401
    REQUESTED_AT_KEY,
    SCHEDULED_FOR_KEY,
    STEP_DELETE_USER,
    STEP_SEND_EMAIL,
    Active,
    DeletionState,
    Due,
    NotificationResult,
    Scheduled,
    ScheduleResult,
    SweepError,
    SweepReport,
    UserAccount,
    describe_state,
    format_timestamp,
    parse_timestamp,
    resolve_deletion_state,
)
