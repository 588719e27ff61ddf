import logging
from typing import Optional

from refgate.config import IssueTrackerSettings
from refgate.errors import ServiceError
from refgate.host import HostClient

logger = logging.getLogger(__name__)


class IssueTracker:
    """
    Jira search over REST. Only the number of hits matters to the gate.
    """

    PATH = "/rest/api/2/search"

    def __init__(self, client: HostClient) -> None:
        self.client = client

    def count(self, jql: str) -> int:
        payload = self.client.get(self.PATH, params={"jql": jql, "maxResults": 0, "fields": "key"})
        if not isinstance(payload, dict) or not isinstance(payload.get("total"), int):
            raise ServiceError(f"Unexpected search response for {jql!r}: {payload!r}")
        logger.debug("JQL %r matched %d issue(s)", jql, payload["total"])
        return payload["total"]


def make_issue_tracker(settings: IssueTrackerSettings) -> Optional[IssueTracker]:
    if not settings.url:
        return None
    return IssueTracker(HostClient(settings.url, settings.username, settings.token))
