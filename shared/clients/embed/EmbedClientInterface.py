from abc import abstractmethod

from shared.clients.ClientInterface import ClientInterface
from shared.exceptions import BridgeError, ProviderError, ValidationError

from shared.helper.HelperConfig import HelperConfig

DEFAULT_EMBED_MODEL = "text-embedding-3-small"


class EmbedClientInterface(ClientInterface):
    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)

        # model and embedding config. One model for items and queries, vectors of
        # different models are not comparable.
        self.embed_model = helper_config.get_string_val(f"{self.get_client_type().upper()}_MODEL", default=DEFAULT_EMBED_MODEL)
        self.embed_dimensions = helper_config.get_number_val(f"{self.get_client_type().upper()}_DIMENSIONS", default=0)

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_client_type(self) -> str:
        """
        Returns the type of the client. E.g. "embed"
        """
        return "embed"

    def _get_error_type(self) -> type[BridgeError]:
        return ProviderError

    ################ ENDPOINTS ##################
    @abstractmethod
    def get_endpoint_embedding(self) -> str:
        """
        Returns the endpoint path for embedding requests.

        Returns:
            str: The endpoint path for embedding requests (e.g. "/embeddings")
        """
        pass

    ################ PAYLOAD BUILDER ##################
    @abstractmethod
    def get_embed_payload(self, text: str) -> dict:
        """Build the backend-specific request body for an embedding request.

        Args:
            text (str): The text to embed, passed through unchanged.

        Returns:
            dict: JSON-serialisable request body (e.g. {"input": "...", "model": "..."}).
        """
        pass

    ##########################################
    ################# OTHER ##################
    ##########################################

    @abstractmethod
    def extract_embedding_from_response(self, response_data: dict) -> list[float]:
        """Extract the embedding vector from a raw embedding API response.

        Args:
            response_data (dict): The parsed JSON response body.

        Returns:
            list[float]: The embedding vector.

        Raises:
            ProviderError: If the response does not contain a valid embedding.
        """
        pass

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def do_embed(self, text: str) -> list[float]:
        """Embed a single text and return its vector.

        The text is sent exactly as given. Callers build item text with
        Item.to_embedding_text(); search queries are sent verbatim.

        Args:
            text (str): The text to embed. Must be non-empty after trimming.

        Returns:
            list[float]: The embedding vector.

        Raises:
            ValidationError: If the text is empty.
            ProviderError: If the request fails, returns a non-2xx status, the
                response carries no vector, or the vector has the wrong dimension.
        """
        if not text or not text.strip():
            raise ValidationError("Cannot embed empty text")

        response = await self.do_request(
            method="POST",
            endpoint=self.get_endpoint_embedding(),
            json=self.get_embed_payload(text),
        )
        if response.status_code != 200:
            self.logging.error(
                "Embedding request failed: status %d, body: %s",
                response.status_code,
                response.text[:200],
            )
            raise ProviderError(
                f"Embedding provider returned status {response.status_code}",
                details=self._extract_error_details(response),
            )

        try:
            response_data = response.json()
        except ValueError as exc:
            raise ProviderError("Embedding provider returned invalid JSON", details=response.text[:200]) from exc

        vector = self.extract_embedding_from_response(response_data)
        if self.embed_dimensions and len(vector) != self.embed_dimensions:
            raise ProviderError(
                f"Embedding has {len(vector)} dimensions, expected {self.embed_dimensions}"
            )
        return vector
