"""Order domain constants.

Defines the two order states, the transition table of the order state
machine and the classification attached to every lifecycle result.
"""

from django.db import models


class OrderState(models.TextChoices):
    DRAFT = "DRAFT", "Draft"
    SUBMITTED = "SUBMITTED", "Submitted"


# Draft -> Submitted through submit; Submitted -> Draft only through the
# administrative unsubmit.  Deletion is orthogonal to the state machine.
VALID_TRANSITIONS: dict[str, set[str]] = {
    OrderState.DRAFT: {OrderState.SUBMITTED},
    OrderState.SUBMITTED: {OrderState.DRAFT},
}


class ResultStatus(models.TextChoices):
    SUCCESS = "SUCCESS", "Success"
    WARNING = "WARNING", "Success with warnings"
    VALIDATION = "VALIDATION", "Validation error"
    NOT_FOUND = "NOT_FOUND", "Not found"
    CONFLICT = "CONFLICT", "Conflict"
    UNAUTHORIZED = "UNAUTHORIZED", "Unauthorized"
    PERSISTENCE = "PERSISTENCE", "Persistence error"
    UNEXPECTED = "UNEXPECTED", "Unexpected error"


SUCCESSFUL_STATUSES: set[str] = {ResultStatus.SUCCESS, ResultStatus.WARNING}


class RemovalReason(models.TextChoices):
    NOT_FOUND = "NOT_FOUND", "Not found in the catalog"
    UNAVAILABLE = "UNAVAILABLE", "Currently unavailable"
