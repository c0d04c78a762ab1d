__version__ = "0.1.0"

from .config import Config, ConfigError  # noqa: E402
from .pinecone import PineconeClient, PineconeError  # noqa: E402
from .router import PineconeAssistantRouter  # noqa: E402
from .server import AssistantMcpServer  # noqa: E402

__all__ = [
  "AssistantMcpServer",
  "Config",
  "ConfigError",
  "PineconeAssistantRouter",
  "PineconeClient",
  "PineconeError",
]
