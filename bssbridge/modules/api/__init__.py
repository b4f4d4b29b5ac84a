"""
API Module - Black Box Interface

Purpose: HTTP routing and request validation
Interface: create_queue_router(), request/response models
Hidden: Error mapping, input sanitising, dependency wiring

The API module only orchestrates - it contains no queue logic.
All logic is delegated to the queue and auth modules.
"""

from .models import (
    ClearQueueResponse,
    CommandType,
    CompleteCommandRequest,
    CompleteCommandResponse,
    ErrorCode,
    ErrorResponse,
    PolledCommand,
    PollResponse,
    StatusResponse,
    SubmitCommandRequest,
    SubmitCommandResponse,
    sanitize_player_name,
    validation_error_code,
)
from .routes import create_queue_router, error_response

__all__ = [
    "ClearQueueResponse",
    "CommandType",
    "CompleteCommandRequest",
    "CompleteCommandResponse",
    "ErrorCode",
    "ErrorResponse",
    "PolledCommand",
    "PollResponse",
    "StatusResponse",
    "SubmitCommandRequest",
    "SubmitCommandResponse",
    "create_queue_router",
    "error_response",
    "sanitize_player_name",
    "validation_error_code",
]
