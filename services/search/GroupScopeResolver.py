"""Resolves the set of groups a user may search in."""

from shared.clients.db.DBClientInterface import DBClientInterface
from shared.helper.HelperConfig import HelperConfig


class GroupScopeResolver:
    """The authorization boundary for search: a user only ever sees items of their own groups."""

    def __init__(self, helper_config: HelperConfig, db_client: DBClientInterface) -> None:
        self.logging = helper_config.get_logger()
        self._db = db_client

    async def resolve_group_ids(self, user_id: str) -> set[str]:
        """Return the ids of all groups the user belongs to.

        An empty set is a valid result (the user is in no group), not an error.

        Raises:
            DatabaseError: If the membership lookup fails.
        """
        group_ids = set(await self._db.do_fetch_group_ids(user_id))
        self.logging.debug("User %s belongs to %d group(s)", user_id, len(group_ids))
        return group_ids
