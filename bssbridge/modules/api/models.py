"""
bssbridge API data models.

These models define the wire format between the producer script, the
mobile client and the queue. Input sanitising happens here so the queue
engine can trust what it receives.
"""

import re
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple

from pydantic import BaseModel, ConfigDict, Field, StrictBool, field_validator

# Enums


class CommandType(str, Enum):
    """Commands the mobile client knows how to execute."""

    KICK = "kick"
    BAN = "ban"


class ErrorCode(str, Enum):
    """Error kinds returned in the `error` field of failed responses."""

    MISSING_REQUIRED_FIELDS = "MISSING_REQUIRED_FIELDS"
    INVALID_COMMAND_TYPE = "INVALID_COMMAND_TYPE"
    INVALID_PLAYER_NAME = "INVALID_PLAYER_NAME"
    INVALID_TIMESTAMP = "INVALID_TIMESTAMP"
    INVALID_COMMAND_ID = "INVALID_COMMAND_ID"
    INVALID_ERROR_FIELD = "INVALID_ERROR_FIELD"
    DUPLICATE_COMMAND = "DUPLICATE_COMMAND"
    QUEUE_FULL = "QUEUE_FULL"
    INTERNAL_SERVER_ERROR = "INTERNAL_SERVER_ERROR"


_PLAYER_DISALLOWED = re.compile(r"[^a-zA-Z0-9\s]")


def sanitize_player_name(player: str) -> str:
    """Trim and strip everything except ASCII letters, digits and whitespace."""
    return _PLAYER_DISALLOWED.sub("", player.strip())


# Request Models (API Input)


class SubmitCommandRequest(BaseModel):
    """Command submitted by the monitoring script."""

    type: CommandType = Field(..., description="Command to run against the player")
    player: str = Field(..., description="Player name, sanitized before queueing")
    timestamp: int = Field(..., gt=0, strict=True, description="Client-side timestamp")

    @field_validator("player")
    @classmethod
    def validate_player(cls, v: str) -> str:
        """Reject empty names and strip characters the client can't type."""
        if not v.strip():
            raise ValueError("Player name must be a non-empty string")
        sanitized = sanitize_player_name(v)
        if not sanitized:
            raise ValueError("Player name contains only invalid characters")
        return sanitized


class CompleteCommandRequest(BaseModel):
    """Completion acknowledgment sent by the mobile client."""

    model_config = ConfigDict(populate_by_name=True)

    command_id: str = Field(..., alias="commandId", description="Command identifier")
    success: StrictBool = Field(..., description="Whether the command was executed")
    error: Optional[str] = Field(None, description="Client error message, if any")

    @field_validator("command_id")
    @classmethod
    def validate_command_id(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Command ID must be a non-empty string")
        return v

    @field_validator("error", mode="before")
    @classmethod
    def validate_error(cls, v: Any) -> Any:
        if v is not None and not isinstance(v, str):
            raise ValueError("Error field must be null or a string")
        return v


# Response Models (API Output)


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class SubmitCommandResponse(_CamelModel):
    success: bool = True
    command_id: str = Field(..., alias="commandId")
    queue_position: int = Field(..., alias="queuePosition")


class PolledCommand(BaseModel):
    """Command as seen by the mobile client."""

    id: str
    type: CommandType
    player: str
    timestamp: int
    attempts: int = 0


class PollResponse(_CamelModel):
    has_command: bool = Field(..., alias="hasCommand")
    command: Optional[PolledCommand] = None


class CompleteCommandResponse(_CamelModel):
    success: bool = True
    removed: bool
    command_id: str = Field(..., alias="commandId")
    message: Optional[str] = None


class StatusResponse(_CamelModel):
    """Queue status plus process information, times in seconds."""

    status: str = "online"
    queue_size: int = Field(..., alias="queueSize")
    max_queue_size: int = Field(..., alias="maxQueueSize")
    cooldown_count: int = Field(..., alias="cooldownCount")
    oldest_command_age: int = Field(..., alias="oldestCommandAge")
    uptime: int
    version: str
    timestamp: int


class ClearQueueResponse(BaseModel):
    success: bool = True
    cleared: int


class ErrorResponse(BaseModel):
    success: bool = False
    error: str
    message: str


# Validation error mapping

FIELD_ERROR_CODES: Dict[str, ErrorCode] = {
    "type": ErrorCode.INVALID_COMMAND_TYPE,
    "player": ErrorCode.INVALID_PLAYER_NAME,
    "timestamp": ErrorCode.INVALID_TIMESTAMP,
    "commandId": ErrorCode.INVALID_COMMAND_ID,
    "success": ErrorCode.MISSING_REQUIRED_FIELDS,
    "error": ErrorCode.INVALID_ERROR_FIELD,
}

FIELD_ERROR_MESSAGES: Dict[ErrorCode, str] = {
    ErrorCode.INVALID_COMMAND_TYPE: 'Command type must be "kick" or "ban"',
    ErrorCode.INVALID_PLAYER_NAME: "Player name must be a non-empty string",
    ErrorCode.INVALID_TIMESTAMP: "Timestamp must be a positive number",
    ErrorCode.INVALID_COMMAND_ID: "Command ID must be a non-empty string",
    ErrorCode.MISSING_REQUIRED_FIELDS: "Required fields are missing or malformed",
    ErrorCode.INVALID_ERROR_FIELD: "Error field must be null or a string",
}


# Sent but empty ("", 0, null) counts as missing for these fields.
REQUIRED_FIELDS = ("type", "player", "timestamp", "commandId")


def validation_error_code(errors: Sequence[Dict[str, Any]]) -> Tuple[ErrorCode, str]:
    """
    Map pydantic validation errors onto an error code and message.

    Missing or empty required fields win; otherwise the first failing
    field decides. Anything unrecognised is reported as missing/malformed
    input.
    """
    fields = _missing_fields(errors)
    if fields or any(err.get("type") == "missing" for err in errors):
        message = "Required fields missing"
        if fields:
            message = f"Required fields missing: {', '.join(fields)}"
        return ErrorCode.MISSING_REQUIRED_FIELDS, message

    for err in errors:
        field = _field_name(err)
        code = FIELD_ERROR_CODES.get(field) if field else None
        if code:
            message = FIELD_ERROR_MESSAGES[code]
            # Custom validators carry a more precise message.
            if err.get("type") == "value_error":
                message = str(err.get("msg", message)).removeprefix("Value error, ")
            return code, message

    return ErrorCode.MISSING_REQUIRED_FIELDS, FIELD_ERROR_MESSAGES[ErrorCode.MISSING_REQUIRED_FIELDS]


def _field_name(err: Dict[str, Any]) -> Optional[str]:
    loc = err.get("loc") or ()
    field = loc[-1] if loc else None
    return field if isinstance(field, str) else None


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, (str, int, float)) and not value)


def _missing_fields(errors: Sequence[Dict[str, Any]]) -> List[str]:
    fields = []
    for err in errors:
        field = _field_name(err)
        if not field or field == "body":
            continue
        if err.get("type") == "missing" or (field in REQUIRED_FIELDS and _is_blank(err.get("input"))):
            fields.append(field)
    return fields
