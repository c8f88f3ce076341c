from abc import abstractmethod

import httpx
from httpx._types import QueryParamTypes
from typing import Any
from shared.clients.ClientInterface import ClientInterface
from shared.exceptions import AuthError, BridgeError, DatabaseError
from shared.helper.HelperConfig import HelperConfig
from shared.models.item import Item
from shared.models.search import ScoredItem
from pydantic import ValidationError as PydanticValidationError


class DBClientInterface(ClientInterface):
    """Item store: auth lookup, group memberships, item catalog, embedding column, match RPC."""

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self.page_size = 1000

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_client_type(self) -> str:
        """
        Returns the type of the client. E.g. "db"
        """
        return "db"

    def _get_error_type(self) -> type[BridgeError]:
        return DatabaseError

    ################ ENDPOINTS ##################
    @abstractmethod
    def _get_endpoint_auth_user(self) -> str:
        """
        Returns the endpoint that resolves a user access token to a user (e.g. "/auth/v1/user").
        """
        pass

    @abstractmethod
    def _get_endpoint_group_members(self) -> str:
        """
        Returns the endpoint for group membership rows (e.g. "/rest/v1/group_members").
        """
        pass

    @abstractmethod
    def _get_endpoint_items(self) -> str:
        """
        Returns the endpoint for item rows (e.g. "/rest/v1/items").
        """
        pass

    @abstractmethod
    def _get_endpoint_match_items(self) -> str:
        """
        Returns the endpoint of the nearest-neighbour RPC (e.g. "/rest/v1/rpc/match_items_by_embedding").
        """
        pass

    ################ PAYLOAD BUILDER ##################
    @abstractmethod
    def get_user_token_headers(self, access_token: str) -> dict:
        """Headers that authenticate a request as the end user instead of the service."""
        pass

    @abstractmethod
    def get_group_members_params(self, user_id: str) -> QueryParamTypes:
        """Query params selecting the group ids of one user."""
        pass

    @abstractmethod
    def get_embeddable_items_params(self, offset: int, limit: int) -> QueryParamTypes:
        """Query params selecting one page of items with a non-null, non-empty title."""
        pass

    @abstractmethod
    def get_update_embedding_params(self, item_id: str) -> QueryParamTypes:
        """Query params targeting exactly one item row by id."""
        pass

    @abstractmethod
    def get_update_embedding_headers(self) -> dict:
        """Headers that make the backend return the updated rows."""
        pass

    @abstractmethod
    def get_match_items_payload(self, query_embedding: list[float], match_count: int, group_ids: list[str]) -> dict:
        """Body of the nearest-neighbour RPC."""
        pass

    ################ RESPONSE PARSER ##################
    @abstractmethod
    def extract_user_id(self, response_data: dict) -> str | None:
        """User id from the auth endpoint response, None if absent."""
        pass

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def do_fetch_user_id(self, access_token: str) -> str:
        """Resolve a bearer access token to the id of the authenticated user.

        Args:
            access_token (str): The raw token (without the "Bearer " prefix).

        Returns:
            str: The user id.

        Raises:
            AuthError: If the backend rejects the token or returns no user.
            DatabaseError: If the auth backend cannot be reached or fails.
        """
        if not access_token:
            raise AuthError("Missing bearer token")
        response = await self.do_request(
            method="GET",
            endpoint=self._get_endpoint_auth_user(),
            additional_headers=self.get_user_token_headers(access_token),
        )
        if response.status_code in (401, 403):
            raise AuthError("Invalid or missing user")
        if response.status_code >= 300:
            raise DatabaseError(
                f"Auth lookup failed with status {response.status_code}",
                details=self._extract_error_details(response),
            )
        user_id = self.extract_user_id(self._parse_json(response))
        if not user_id:
            raise AuthError("Invalid or missing user")
        return str(user_id)

    async def do_fetch_group_ids(self, user_id: str) -> list[str]:
        """Fetch the ids of all groups the user is a member of.

        Returns:
            list[str]: Group ids, possibly empty.

        Raises:
            DatabaseError: If the membership lookup fails.
        """
        response = await self.do_request(
            method="GET",
            endpoint=self._get_endpoint_group_members(),
            params=self.get_group_members_params(user_id),
            raise_on_error=True,
        )
        rows = self._parse_rows(response)
        return [str(row["group_id"]) for row in rows if row.get("group_id") is not None]

    async def do_fetch_embeddable_items(self) -> list[Item]:
        """Fetch every item eligible for embedding, page by page.

        Returns:
            list[Item]: All items with a non-null, non-empty title, ordered by id.

        Raises:
            DatabaseError: If any page fails to load or contains malformed rows.
        """
        items: list[Item] = []
        page = 1
        offset = 0
        while True:
            response = await self.do_request(
                method="GET",
                endpoint=self._get_endpoint_items(),
                params=self.get_embeddable_items_params(offset=offset, limit=self.page_size),
                raise_on_error=True,
            )
            rows = self._parse_rows(response)
            try:
                page_items = [Item.model_validate(row) for row in rows]
            except PydanticValidationError as exc:
                raise DatabaseError("Item catalog returned malformed rows", details=str(exc)) from exc
            # the backend filters already, this guards against backends that ignore the empty-string filter
            items.extend(item for item in page_items if item.is_embeddable())
            self.logging.info(
                "Fetched items page %d from %s, total items so far: %d",
                page, self.get_engine_name(), len(items),
            )
            if len(rows) < self.page_size:
                break
            offset += self.page_size
            page += 1
        return items

    async def do_update_item_embedding(self, item_id: str, embedding: list[float]) -> None:
        """Overwrite the embedding column of one item. Last write wins.

        Raises:
            DatabaseError: If the item does not exist or the backend rejects the write
                (e.g. dimension mismatch with the vector column).
        """
        response = await self.do_request(
            method="PATCH",
            endpoint=self._get_endpoint_items(),
            params=self.get_update_embedding_params(item_id),
            json={"embedding": embedding},
            additional_headers=self.get_update_embedding_headers(),
            raise_on_error=True,
        )
        if not self._parse_rows(response):
            raise DatabaseError(f"Item {item_id} not found")

    async def do_match_items(self, query_embedding: list[float], match_count: int, group_ids: list[str]) -> list[ScoredItem]:
        """Ask the store for the nearest items within the given groups.

        Args:
            query_embedding (list[float]): The query vector.
            match_count (int): Maximum number of candidates to return.
            group_ids (list[str]): Groups the candidates must belong to.

        Returns:
            list[ScoredItem]: Candidates in the store's order (descending similarity).

        Raises:
            DatabaseError: If the RPC fails or returns malformed rows.
        """
        response = await self.do_request(
            method="POST",
            endpoint=self._get_endpoint_match_items(),
            json=self.get_match_items_payload(query_embedding, match_count, group_ids),
            raise_on_error=True,
        )
        rows = self._parse_rows(response)
        try:
            return [ScoredItem.model_validate(row) for row in rows]
        except PydanticValidationError as exc:
            raise DatabaseError("Match RPC returned malformed rows", details=str(exc)) from exc

    ##########################################
    ############### HELPERS ##################
    ##########################################

    def _parse_json(self, response: httpx.Response) -> Any:
        """Decode a JSON body.

        Raises:
            DatabaseError: If the body is not valid JSON.
        """
        try:
            return response.json()
        except ValueError as exc:
            raise DatabaseError("Store returned invalid JSON", details=response.text[:200]) from exc

    def _parse_rows(self, response: httpx.Response) -> list[dict]:
        """Decode a JSON array of row objects.

        Raises:
            DatabaseError: If the body is not a JSON array of objects.
        """
        rows = self._parse_json(response)
        if rows is None:
            return []
        if not isinstance(rows, list) or not all(isinstance(row, dict) for row in rows):
            raise DatabaseError("Store returned an unexpected payload", details=str(rows)[:200])
        return rows
