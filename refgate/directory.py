import abc
from typing import Iterable, List, Optional

from refgate.config import DirectorySettings
from refgate.host import HostClient
from refgate.model import Identity


class UserDirectory(abc.ABC):
    """
    The users known to the host. Lookups may go over the network and raise
    AuthenticationRequiredError or ServiceError.
    """

    @abc.abstractmethod
    def find_by_email(self, email: str) -> Optional[Identity]:
        raise NotImplementedError()

    @abc.abstractmethod
    def find_by_name(self, name: str) -> Optional[Identity]:
        raise NotImplementedError()


class StaticUserDirectory(UserDirectory):
    """Users listed in the configuration file."""

    def __init__(self, users: Iterable[Identity] = ()) -> None:
        self.users: List[Identity] = list(users)

    def find_by_email(self, email: str) -> Optional[Identity]:
        wanted = email.strip().lower()
        return next((u for u in self.users if u.email.lower() == wanted), None)

    def find_by_name(self, name: str) -> Optional[Identity]:
        wanted = name.strip().lower()
        return next((u for u in self.users if u.name.lower() == wanted), None)


class HttpUserDirectory(UserDirectory):
    """
    Bitbucket-style user listing: GET /rest/api/1.0/users?filter=<text> returns
    {"values": [{"name", "displayName", "emailAddress"}, ...]}.
    """

    PATH = "/rest/api/1.0/users"

    def __init__(self, client: HostClient) -> None:
        self.client = client

    def _search(self, text: str) -> List[dict]:
        payload = self.client.get(self.PATH, params={"filter": text, "limit": 100})
        values = payload.get("values", []) if isinstance(payload, dict) else []
        return [v for v in values if isinstance(v, dict)]

    @staticmethod
    def _identity(user: dict) -> Identity:
        return Identity(user.get("displayName") or user.get("name") or "", user.get("emailAddress") or "")

    def find_by_email(self, email: str) -> Optional[Identity]:
        wanted = email.strip().lower()
        for user in self._search(email):
            if (user.get("emailAddress") or "").lower() == wanted:
                return self._identity(user)
        return None

    def find_by_name(self, name: str) -> Optional[Identity]:
        wanted = name.strip().lower()
        for user in self._search(name):
            names = {(user.get("displayName") or "").lower(), (user.get("name") or "").lower()}
            if wanted in names:
                return self._identity(user)
        return None


def make_directory(settings: DirectorySettings) -> UserDirectory:
    if settings.url:
        return HttpUserDirectory(HostClient(settings.url, settings.username, settings.token))
    return StaticUserDirectory(Identity(u.name, u.email) for u in settings.users)
