"""User notifications for new reviews, review requests, and merge failures."""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass

from ..models import NewReview, NewReviewRequest, PullRequest
from ..utils import category_label

logger = logging.getLogger(__name__)

_REVIEW_STATE_LABELS = {
    "APPROVED": "Approved",
    "CHANGES_REQUESTED": "Changes requested",
    "COMMENTED": "Commented",
}


@dataclass(frozen=True)
class NotificationMessage:
    """A desktop-style notification."""

    title: str
    subtitle: str
    body: str


class Notifier(ABC):
    """Abstract notification sink."""

    @abstractmethod
    async def notify(self, message: NotificationMessage) -> None:
        """Deliver a notification.

        Args:
            message: Notification to show
        """
        pass


class LoggingNotifier(Notifier):
    """Notifier that writes to the log. Used when no desktop sink is wired."""

    def __init__(self) -> None:
        self.sent: list[NotificationMessage] = []

    async def notify(self, message: NotificationMessage) -> None:
        self.sent.append(message)
        logger.info(f"{message.title} | {message.subtitle} | {message.body}")


def review_state_label(state: str) -> str:
    return _REVIEW_STATE_LABELS.get(state, state.replace("_", " ").capitalize())


def review_notification(review: NewReview) -> NotificationMessage:
    return NotificationMessage(
        title=f"New Review on PR #{review.pr_number}",
        subtitle=f"{review_state_label(review.review_state)} by {review.reviewer}",
        body=review.pr_title,
    )


def review_request_notification(request: NewReviewRequest) -> NotificationMessage:
    return NotificationMessage(
        title=f"New Review Request #{request.pr_number}",
        subtitle=category_label(request.review_category),
        body=request.pr_title,
    )


def merge_error_notification(pr: PullRequest, reason: str) -> NotificationMessage:
    return NotificationMessage(
        title=f"Failed to Merge PR #{pr.number}",
        subtitle=pr.repo_full_name,
        body=reason,
    )
