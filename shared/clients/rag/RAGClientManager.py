from shared.clients.ClientManager import ClientManager
from shared.clients.rag.RAGClientInterface import RAGClientInterface
from shared.helper.HelperConfig import HelperConfig


class RAGClientManager(ClientManager):
    """
    Builds one vector index client per entry of RAG_ENGINES (default "[qdrant]").

    Ingestion writes to all of them, queries are served by the first.
    """

    client_type = "rag"
    class_prefix = "RAGClient"

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        engines = self.helper_config.get_list_val("RAG_ENGINES", default=["qdrant"])
        if not engines:
            raise ValueError("No RAG engines specified in configuration.")
        self.clients: list[RAGClientInterface] = [self._create_client(engine) for engine in engines]

    def get_clients(self) -> list[RAGClientInterface]:
        return self.clients
