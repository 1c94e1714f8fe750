from shared.clients.ClientInterface import ClientInterface
from shared.helper.HelperConfig import HelperConfig


class ClientManager:
    """
    Resolves engine names from the environment to client classes.

    The class for engine "qdrant" of client type "rag" is looked up as
    shared.clients.rag.qdrant.RAGClientQdrant.RAGClientQdrant.
    """

    # set by subclasses
    client_type: str = ""
    class_prefix: str = ""

    def __init__(self, helper_config: HelperConfig):
        self.helper_config = helper_config
        self.logging = helper_config.get_logger()

    @staticmethod
    def _normalize_engine(engine: str) -> str:
        #lowercase all and uppercase first letter for the class lookup
        return engine.strip().lower().capitalize()

    def _create_client(self, engine: str) -> ClientInterface:
        """
        Imports and instantiates the client of an engine.

        Args:
            engine (str): The engine name, any case (e.g. "Qdrant").

        Returns:
            ClientInterface: The configured, not yet booted client.

        Raises:
            ValueError: If the engine has no client implementation.
        """
        engine = self._normalize_engine(engine)
        class_name = f"{self.class_prefix}{engine}"
        try:
            module = __import__(
                f"shared.clients.{self.client_type}.{engine.lower()}.{class_name}",
                fromlist=[class_name],
            )
            client_class = getattr(module, class_name)
        except (ImportError, AttributeError) as e:
            raise ValueError(f"Unsupported {self.client_type} engine specified: '{engine}'. Error: {e}")

        client = client_class(helper_config=self.helper_config)
        self.logging.debug(f"Instantiated {self.client_type} client for engine: {engine}")
        return client
