from shared.clients.ClientManager import ClientManager
from shared.clients.embed.EmbedClientInterface import EmbedClientInterface
from shared.helper.HelperConfig import HelperConfig


class EmbedClientManager(ClientManager):
    """Builds the single embedding client named by EMBED_ENGINE (default "ollama")."""

    client_type = "embed"
    class_prefix = "EmbedClient"

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        engine = self.helper_config.get_string_val("EMBED_ENGINE", default="ollama")
        self.client: EmbedClientInterface = self._create_client(engine)

    def get_client(self) -> EmbedClientInterface:
        return self.client
