from shared.clients.embed.EmbedClientInterface import EmbedClientInterface
from shared.exceptions import ProviderError
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig

import httpx

DEFAULT_BASE_URL = "https://api.openai.com/v1"


class EmbedClientOpenai(EmbedClientInterface):
    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self._base_url = self.get_config_val("BASE_URL", default=DEFAULT_BASE_URL, val_type="string")
        self._api_key = self.get_config_val("API_KEY", default=None, val_type="string")

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_engine_name(self) -> str:
        return "Openai"

    ################ CONFIG ##################
    def _get_required_config(self) -> list[EnvConfig]:
        return [
            EnvConfig(env_key="BASE_URL", val_type="string", default=DEFAULT_BASE_URL),
            EnvConfig(env_key="API_KEY", val_type="string", default=None),
        ]

    ################ AUTH ##################
    def _get_auth_header(self) -> dict:
        return {"Authorization": f"Bearer {self._api_key}"}

    ################ ENDPOINTS ##################
    def _get_base_url(self) -> str:
        return self._base_url

    def _get_endpoint_healthcheck(self) -> str:
        # model listing doubles as a credential check
        return "/models"

    def get_endpoint_embedding(self) -> str:
        return "/embeddings"

    ################ PAYLOAD BUILDER ##################
    def get_embed_payload(self, text: str) -> dict:
        """Build the OpenAI embedding request body.

        Returns:
            dict: {"input": "...", "model": "..."}
        """
        return {"input": text, "model": self.embed_model}

    ##########################################
    ################# OTHER ##################
    ##########################################

    def extract_embedding_from_response(self, response_data: dict) -> list[float]:
        """Extract the vector from an OpenAI /embeddings response.

        Format: {"data": [{"embedding": [...], "index": 0}], "model": "...", ...}
        """
        data = response_data.get("data") if isinstance(response_data, dict) else None
        if not data or not isinstance(data, list):
            raise ProviderError(
                "Embedding response does not contain any data",
                details=f"Response keys: {list(response_data.keys()) if isinstance(response_data, dict) else type(response_data).__name__}",
            )
        embedding = data[0].get("embedding") if isinstance(data[0], dict) else None
        if not embedding or not isinstance(embedding, list):
            raise ProviderError("Embedding response does not contain a vector", details=str(embedding)[:200])
        try:
            return [float(x) for x in embedding]
        except (TypeError, ValueError) as exc:
            raise ProviderError("Embedding vector contains non-numeric values", details=str(exc)) from exc

    def _extract_error_details(self, response: httpx.Response) -> str:
        # OpenAI errors look like {"error": {"message": "...", "type": "...", "code": ...}}
        try:
            body = response.json()
        except ValueError:
            return response.text
        error = body.get("error") if isinstance(body, dict) else None
        if isinstance(error, dict) and error.get("message"):
            return error["message"]
        return response.text
