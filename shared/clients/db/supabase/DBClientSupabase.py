from httpx._types import QueryParamTypes

import httpx
from shared.helper.HelperConfig import HelperConfig
from shared.clients.db.DBClientInterface import DBClientInterface
from shared.models.config import EnvConfig

MATCH_ITEMS_RPC = "match_items_by_embedding"


class DBClientSupabase(DBClientInterface):
    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self._base_url = self.get_config_val("BASE_URL", default=None, val_type="string")
        self._service_key = self.get_config_val("SERVICE_ROLE_KEY", default=None, val_type="string")

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_engine_name(self) -> str:
        return "Supabase"

    ################ CONFIG ##################
    def _get_required_config(self) -> list[EnvConfig]:
        return [
            EnvConfig(env_key="BASE_URL", val_type="string", default=None),
            EnvConfig(env_key="SERVICE_ROLE_KEY", val_type="string", default=None),
        ]

    ################ AUTH ##################
    def _get_auth_header(self) -> dict:
        # service role bypasses row level security, scoping is done by group_ids
        return {
            "apikey": self._service_key,
            "Authorization": f"Bearer {self._service_key}",
        }

    def get_user_token_headers(self, access_token: str) -> dict:
        return {"Authorization": f"Bearer {access_token}"}

    ################ ENDPOINTS ##################
    def _get_base_url(self) -> str:
        return self._base_url

    def _get_endpoint_healthcheck(self) -> str:
        return "/auth/v1/health"

    def _get_endpoint_auth_user(self) -> str:
        return "/auth/v1/user"

    def _get_endpoint_group_members(self) -> str:
        return "/rest/v1/group_members"

    def _get_endpoint_items(self) -> str:
        return "/rest/v1/items"

    def _get_endpoint_match_items(self) -> str:
        return f"/rest/v1/rpc/{MATCH_ITEMS_RPC}"

    ##########################################
    ########### PAYLOAD BUILDER ##############
    ##########################################

    def get_group_members_params(self, user_id: str) -> QueryParamTypes:
        return {"select": "group_id", "user_id": f"eq.{user_id}"}

    def get_embeddable_items_params(self, offset: int, limit: int) -> QueryParamTypes:
        # PostgREST: repeated keys are AND-ed, "neq." compares against the empty string
        return [
            ("select", "id,title,details,category,location"),
            ("title", "not.is.null"),
            ("title", "neq."),
            ("order", "id.asc"),
            ("limit", str(limit)),
            ("offset", str(offset)),
        ]

    def get_update_embedding_params(self, item_id: str) -> QueryParamTypes:
        return {"id": f"eq.{item_id}", "select": "id"}

    def get_update_embedding_headers(self) -> dict:
        return {"Prefer": "return=representation"}

    def get_match_items_payload(self, query_embedding: list[float], match_count: int, group_ids: list[str]) -> dict:
        return {
            "query_embedding": query_embedding,
            "match_count": match_count,
            "group_ids": group_ids,
        }

    ##########################################
    ########### RESPONSE PARSER ##############
    ##########################################

    def extract_user_id(self, response_data: dict) -> str | None:
        if not isinstance(response_data, dict):
            return None
        return response_data.get("id")

    def _extract_error_details(self, response: httpx.Response) -> str:
        # PostgREST errors: {"code": "...", "message": "...", "details": "...", "hint": "..."}
        try:
            body = response.json()
        except ValueError:
            return response.text
        if isinstance(body, dict):
            message = body.get("message") or body.get("msg") or body.get("error_description")
            if message:
                return f"{message} ({body['details']})" if body.get("details") else message
        return response.text
