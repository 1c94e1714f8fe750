from typing import Any

from pydantic import BaseModel, ConfigDict


class NodeConnection(BaseModel):
    """Open connection to a single relay, returned by NodeClientInterface.connect()."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    url: str
    transport: Any = None

    @property
    def is_open(self) -> bool:
        return self.transport is not None and not getattr(self.transport, "closed", True)
