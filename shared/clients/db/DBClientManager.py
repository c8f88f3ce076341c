from shared.helper.HelperConfig import HelperConfig
from shared.clients.db.DBClientInterface import DBClientInterface

DEFAULT_ENGINE = "supabase"


class DBClientManager:
    """
    Manager class to instantiate the item store client selected by DB_ENGINE.
    """

    def __init__(self, helper_config: HelperConfig):
        self.helper_config = helper_config
        self.logging = helper_config.get_logger()
        self.client = self._initialize_client()

    def _get_engine_from_env(self) -> str:
        """
        Reads the store engine from ENV configuration.

        Returns:
            str: The engine name, capitalised (e.g. "Supabase").
        """
        engine = self.helper_config.get_string_val("DB_ENGINE", default=DEFAULT_ENGINE)
        return engine.strip().lower().capitalize()

    def _initialize_client(self) -> DBClientInterface:
        """
        Initializes the store client based on the engine specified in the configuration.

        Raises:
            ValueError: If the configured engine has no client implementation.
        """
        engine = self._get_engine_from_env()
        className = f"DBClient{engine}"
        try:
            module = __import__(
                f"shared.clients.db.{engine.lower()}.{className}",
                fromlist=[className],
            )
            client_class = getattr(module, className)
        except (ImportError, AttributeError) as e:
            raise ValueError(f"Unsupported DB engine specified: '{engine}'. Error: {e}")

        client = client_class(helper_config=self.helper_config)
        self.logging.debug("Instantiated DB client for engine: %s", engine)
        return client

    def get_client(self) -> DBClientInterface:
        """
        Returns the instantiated store client.
        """
        return self.client
