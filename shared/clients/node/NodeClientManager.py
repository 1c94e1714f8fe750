from shared.clients.ClientManager import ClientManager
from shared.clients.node.NodeClientInterface import NodeClientInterface
from shared.helper.HelperConfig import HelperConfig


class NodeClientManager(ClientManager):
    """Builds the relay client named by NODE_ENGINE (default "nostr")."""

    client_type = "node"
    class_prefix = "NodeClient"

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        engine = self.helper_config.get_string_val("NODE_ENGINE", default="nostr")
        self.client: NodeClientInterface = self._create_client(engine)

    def get_client(self) -> NodeClientInterface:
        return self.client
