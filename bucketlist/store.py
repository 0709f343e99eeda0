"""Client-side mirror of users and destinations.

The stores keep a local copy of what the API returned plus the current
filter selections. Mutations go to the server first; the local lists are
patched (insert, replace or remove by id) only once the server confirms,
so a failed request leaves local state untouched.
"""

import enum
import logging
from typing import Any, Callable, Dict, List, Optional

import requests

from .client import ApiClient, ApiError
from .filters import (
    EMPTY_STATS,
    DestinationFilter,
    filter_destinations,
    is_visible,
)
from .schemas import is_object_id

logger = logging.getLogger(__name__)

Record = Dict[str, Any]


class MutationState(enum.Enum):
    IDLE = "idle"
    PENDING = "pending"
    APPLIED = "applied"
    FAILED = "failed"


class _MirrorStore:
    """Runs server calls through the Idle/Pending/Applied/Failed cycle."""

    def __init__(self, api: ApiClient):
        self.api = api
        self.state = MutationState.IDLE
        self.is_loading = False
        self.last_error: Optional[Exception] = None

    def _run(self, request: Callable[[], Any], apply: Callable[[Any], Any]) -> Any:
        self.state = MutationState.PENDING
        self.is_loading = True
        try:
            result = request()
        except (ApiError, requests.RequestException) as exc:
            self.state = MutationState.FAILED
            self.last_error = exc
            raise
        else:
            self.state = MutationState.APPLIED
            self.last_error = None
            return apply(result)
        finally:
            self.is_loading = False
            self.state = MutationState.IDLE


class AuthStore(_MirrorStore):
    """Current user and, for administrators, the list of all users."""

    def __init__(self, api: ApiClient):
        super().__init__(api)
        self.user: Optional[Record] = None
        self.users: List[Record] = []

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None

    @property
    def is_admin(self) -> bool:
        return bool(self.user) and self.user.get("role") == "admin"

    def _set_user(self, user: Record) -> Record:
        self.user = {k: v for k, v in user.items() if k not in ("accessToken", "tokenType")}
        return self.user

    def login(self, email: str, password: str) -> Record:
        return self._run(lambda: self.api.login(email, password), self._set_user)

    def register(
        self, name: str, email: str, password: str, role: str = "user"
    ) -> Record:
        """Create the account, then sign in with it."""
        self._run(lambda: self.api.register(name, email, password, role), lambda user: user)
        return self.login(email, password)

    def logout(self) -> None:
        self.user = None
        self.api.clear_auth_token()

    def delete_account(self) -> None:
        if not self.user:
            return
        user_id = self.user["id"]

        def apply(_):
            self.users = [u for u in self.users if u["id"] != user_id]
            self.logout()

        self._run(lambda: self.api.delete_user(user_id), apply)

    def update_profile(self, **changes) -> Optional[Record]:
        """Change name, email or avatar of the current user."""
        if not self.user:
            return None
        user_id = self.user["id"]

        def apply(updated: Record) -> Record:
            self.users = [updated if u["id"] == user_id else u for u in self.users]
            return self._set_user(updated)

        return self._run(lambda: self.api.update_user(user_id, changes), apply)

    def refresh_user(self) -> Optional[Record]:
        """Reload the signed-in user's profile from the server."""
        if not self.api.token:
            return None
        return self._run(self.api.get_me, self._set_user)

    def get_all_users(self) -> List[Record]:
        def apply(users: List[Record]) -> List[Record]:
            self.users = users
            return users

        return self._run(self.api.get_users, apply)

    def delete_user(self, user_id: str) -> None:
        def apply(_):
            self.users = [u for u in self.users if u["id"] != user_id]

        self._run(lambda: self.api.delete_user(user_id), apply)


class DestinationStore(_MirrorStore):
    """Local destinations plus search, status, country and sort selections."""

    def __init__(self, api: ApiClient):
        super().__init__(api)
        self.destinations: List[Record] = []
        self.search_query = ""
        self.status_filter = "all"
        self.country_filter = ""
        self.sort_by = "newest"

    def set_search_query(self, query: str) -> None:
        self.search_query = query

    def set_status_filter(self, status: str) -> None:
        self.status_filter = status

    def set_country_filter(self, country: str) -> None:
        self.country_filter = country

    def set_sort_by(self, sort: str) -> None:
        self.sort_by = sort

    @property
    def criteria(self) -> DestinationFilter:
        return DestinationFilter(
            search=self.search_query,
            status=self.status_filter,
            country=self.country_filter,
            sort=self.sort_by,
        )

    def _replace(self, updated: Record) -> Record:
        self.destinations = [
            updated if d["id"] == updated["id"] else d for d in self.destinations
        ]
        return updated

    def _insert(self, created: Record) -> Record:
        self.destinations = [created, *self.destinations]
        return created

    def _remove(self, destination_id: str) -> None:
        self.destinations = [d for d in self.destinations if d["id"] != destination_id]

    def fetch_destinations(self, user: Optional[Record]) -> List[Record]:
        """
        Replace the local list with what the server returns for ``user``.

        Non-admins get their own destinations plus admin-created ones;
        administrators get everything.
        """
        if not user:
            logger.warning("No logged-in user, clearing destinations")
            self.destinations = []
            return self.destinations

        params: Dict[str, Any] = {"sort": self.sort_by}
        if user.get("role") != "admin":
            params.update(userId=user["id"], includeAdmin="true")
        if self.search_query:
            params["search"] = self.search_query
        if self.status_filter != "all":
            params["status"] = self.status_filter
        if self.country_filter:
            params["country"] = self.country_filter

        def apply(result: Record) -> List[Record]:
            self.destinations = result["data"]
            return self.destinations

        return self._run(lambda: self.api.get_destinations(**params), apply)

    def fetch_destination(self, destination_id: str) -> Record:
        """Reload one destination and patch it into the local list."""

        def apply(result: Record) -> Record:
            record = result["data"]
            if any(d["id"] == record["id"] for d in self.destinations):
                return self._replace(record)
            return self._insert(record)

        return self._run(lambda: self.api.get_destination(destination_id), apply)

    def add_destination(self, destination: Record) -> Record:
        return self._run(
            lambda: self.api.create_destination(destination),
            lambda result: self._insert(result["data"]),
        )

    def update_destination(self, destination_id: str, updates: Record) -> Record:
        if not is_object_id(destination_id):
            raise ValueError(f"Invalid destination ID: {destination_id!r}")
        return self._run(
            lambda: self.api.update_destination(destination_id, updates),
            lambda result: self._replace(result["data"]),
        )

    def delete_destination(self, destination_id: str) -> None:
        self._run(
            lambda: self.api.delete_destination(destination_id),
            lambda _: self._remove(destination_id),
        )

    def toggle_featured(self, destination_id: str) -> Record:
        return self._run(
            lambda: self.api.toggle_featured(destination_id),
            lambda result: self._replace(result["data"]),
        )

    def delete_destination_by_admin(self, destination_id: str) -> None:
        """Admin removal; like every mutation it waits for the server."""
        self.delete_destination(destination_id)

    def copy_admin_destination(
        self, admin_destination_id: str, user_id: Optional[str] = None
    ) -> Record:
        """Fork an admin-created destination into a personal copy."""
        return self._run(
            lambda: self.api.copy_destination(admin_destination_id, user_id),
            lambda result: self._insert(result["data"]),
        )

    def get_user_stats(self, user_id: str) -> Record:
        """Progress numbers from the server, all zero if the call fails."""
        try:
            return self.api.get_user_stats(user_id)["data"]
        except (ApiError, requests.RequestException):
            logger.exception("Failed to fetch stats for user %s", user_id)
            return dict(EMPTY_STATS)

    def get_filtered_destinations(self, owner_id: Optional[str] = None) -> List[Record]:
        """
        Re-derive the visible, filtered and sorted view from local state.

        Without ``owner_id`` (admin view) every local record is a
        candidate, otherwise the owner's records and admin-created ones.
        """
        candidates = [d for d in self.destinations if is_visible(d, owner_id)]
        return filter_destinations(candidates, self.criteria)

    def get_destinations_for_user(self, user_id: str) -> List[Record]:
        """
        The user's personal copies, then admin-created destinations the
        user has not copied, then the user's own destinations.
        """
        copies = [
            d
            for d in self.destinations
            if d.get("parentDestinationId") and d.get("userId") == user_id
        ]
        copied = {d["parentDestinationId"] for d in copies}
        admin_destinations = [
            d
            for d in self.destinations
            if d.get("isAdminCreated") and d["id"] not in copied
        ]
        own = [
            d
            for d in self.destinations
            if d.get("userId") == user_id and not d.get("parentDestinationId")
        ]
        return [*copies, *admin_destinations, *own]
