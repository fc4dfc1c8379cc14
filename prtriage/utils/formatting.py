"""Share-message formatting for chat tools."""

import re

from ..models import PullRequest

TICKET_PATTERN = re.compile(r"([A-Z]+-\d+)")


def format_share_message(pr: PullRequest, ticket_url_template: str | None = None) -> str:
    """Build a one-line Markdown message announcing a PR.

    If the title mentions a ticket key such as ``ATM-1312`` and a template
    like ``https://tracker.example/browse/{ticket}`` is given, a ticket link
    is added before the title.
    """
    message = f":pr: [PR#{pr.number}]({pr.url}) ({pr.repo_name})"

    if ticket_url_template:
        match = TICKET_PATTERN.search(pr.title)
        if match:
            ticket = match.group(1)
            message += f" [{ticket}]({ticket_url_template.format(ticket=ticket)})"

    return f"{message} {pr.title}"
