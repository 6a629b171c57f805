"""acai: a command-line assistant driving a tool-using turn loop."""

__version__ = "0.1.0"

from acai.client import ApiClient, StubClient, TurnResponse  # noqa: E402
from acai.errors import (  # noqa: E402
    AcaiError,
    ApiError,
    ProtocolError,
    RateLimitError,
    SessionCancelledError,
    ToolExecutionError,
    ToolValidationError,
)
from acai.events import EventEmitter, JsonLinesWriter, ResultEvent  # noqa: E402
from acai.items import (  # noqa: E402
    ConversationItem,
    FunctionCall,
    FunctionCallOutput,
    Message,
    ReasoningStep,
    Role,
)
from acai.session import Session, SessionOutcome  # noqa: E402
from acai.session_config import SessionConfig, SessionState  # noqa: E402
from acai.tools import ToolDispatcher, ToolRegistry, default_registry  # noqa: E402
from acai.usage import UsageAccumulator, UsageStats  # noqa: E402

__all__ = [
    # Core orchestrator
    "Session",
    "SessionConfig",
    "SessionOutcome",
    "SessionState",
    # API client
    "ApiClient",
    "StubClient",
    "TurnResponse",
    # Conversation items
    "ConversationItem",
    "FunctionCall",
    "FunctionCallOutput",
    "Message",
    "ReasoningStep",
    "Role",
    # Tools
    "ToolDispatcher",
    "ToolRegistry",
    "default_registry",
    # Events
    "EventEmitter",
    "JsonLinesWriter",
    "ResultEvent",
    # Usage
    "UsageAccumulator",
    "UsageStats",
    # Errors
    "AcaiError",
    "ApiError",
    "ProtocolError",
    "RateLimitError",
    "SessionCancelledError",
    "ToolExecutionError",
    "ToolValidationError",
]
