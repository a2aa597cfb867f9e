"""Chat assistant served over the Redis message stream."""

from .config import AssistantStreamConfig
from .connections import ConnectionRegistry
from .service import FALLBACK_MESSAGE, AssistantReply, AssistantService
from .stream import AssistantStreamError, AssistantStreamProcessor

__all__ = [
    "AssistantStreamConfig",
    "ConnectionRegistry",
    "AssistantReply",
    "AssistantService",
    "FALLBACK_MESSAGE",
    "AssistantStreamError",
    "AssistantStreamProcessor",
]
