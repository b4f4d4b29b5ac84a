"""
Queue endpoints for the bssbridge API.

Thin adapter: translates HTTP requests into CommandQueue calls and
engine result kinds into HTTP status codes. No queue logic lives here.
"""

import logging
import time
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Query, Request
from fastapi.responses import JSONResponse

from bssbridge.modules.auth import ApiKeyAuth, AuthResult
from bssbridge.modules.queue import CommandQueue, QueueErrorKind

from .models import (
    ClearQueueResponse,
    CompleteCommandRequest,
    CompleteCommandResponse,
    ErrorResponse,
    PolledCommand,
    PollResponse,
    StatusResponse,
    SubmitCommandRequest,
    SubmitCommandResponse,
)

logger = logging.getLogger(__name__)

SUBMIT_ERROR_STATUS = {
    QueueErrorKind.DUPLICATE_COMMAND: 409,
    QueueErrorKind.QUEUE_FULL: 503,
}


def error_response(status_code: int, error: str, message: str) -> JSONResponse:
    """Build the JSON error body shared by every endpoint."""
    body = ErrorResponse(error=error, message=message)
    return JSONResponse(status_code=status_code, content=body.model_dump())


# Dependency injection helpers


def get_queue(request: Request) -> CommandQueue:
    queue = getattr(request.app.state, "command_queue", None)
    if queue is None:
        raise HTTPException(503, "Service not initialized")
    return queue


def get_auth(request: Request) -> ApiKeyAuth:
    auth = getattr(request.app.state, "auth", None)
    if auth is None:
        raise HTTPException(503, "Service not initialized")
    return auth


async def verify_api_key(
    x_api_key: Optional[str] = Header(None, description="Shared secret"),
    auth: ApiKeyAuth = Depends(get_auth),
) -> AuthResult:
    """Reject the request before any queue call unless the API key checks out."""
    result = auth.verify(x_api_key)
    if not result.ok:
        raise HTTPException(
            status_code=result.status_code,
            detail={"error": result.error.value, "message": result.message},
        )
    return result


def create_queue_router() -> APIRouter:
    """
    Create the queue router.

    Returns:
        FastAPI router with /api/command, /api/poll, /api/complete,
        /api/status and /api/queue
    """
    router = APIRouter(prefix="/api", tags=["queue"], dependencies=[Depends(verify_api_key)])

    @router.post(
        "/command",
        response_model=SubmitCommandResponse,
        responses={409: {"model": ErrorResponse}, 503: {"model": ErrorResponse}},
    )
    async def submit_command(payload: SubmitCommandRequest, queue: CommandQueue = Depends(get_queue)):
        """
        Queue a kick/ban command from the monitoring script.

        Returns:
            200: Command queued with its id and position
            400: Malformed input
            409: Same player already has a command inside the cooldown window
            503: Queue is full
        """
        result = queue.submit(payload.type.value, payload.player, payload.timestamp)

        if not result.success:
            return error_response(
                SUBMIT_ERROR_STATUS[result.error], result.error.value, result.message
            )

        return SubmitCommandResponse(
            command_id=result.command_id, queue_position=result.queue_position
        )

    @router.get("/poll", response_model=PollResponse, response_model_exclude_none=True)
    async def poll_command(
        device_id: Optional[str] = Query(None, alias="deviceId", description="Polling device"),
        queue: CommandQueue = Depends(get_queue),
    ):
        """
        Return the oldest pending command, or hasCommand=false.

        The command stays queued until /api/complete acknowledges it.
        """
        result = queue.poll(device_id)
        if not result.has_command:
            return PollResponse(has_command=False)

        return PollResponse(
            has_command=True, command=PolledCommand(**result.command.to_polled())
        )

    @router.post("/complete", response_model=CompleteCommandResponse, response_model_exclude_none=True)
    async def complete_command(
        payload: CompleteCommandRequest, queue: CommandQueue = Depends(get_queue)
    ):
        """
        Acknowledge a polled command.

        Unknown or already completed ids still answer 200 with removed=false.
        """
        result = queue.complete(payload.command_id, payload.success, payload.error)

        return CompleteCommandResponse(
            removed=result.removed,
            command_id=result.command_id,
            message=result.message,
        )

    @router.get("/status", response_model=StatusResponse)
    async def queue_status(request: Request, queue: CommandQueue = Depends(get_queue)):
        """Queue occupancy, uptime and version."""
        status = queue.status()
        started_at = getattr(request.app.state, "started_at", time.time())
        now = time.time()

        return StatusResponse(
            queue_size=status.queue_size,
            max_queue_size=status.max_queue_size,
            cooldown_count=status.cooldown_count,
            oldest_command_age=status.oldest_command_age_ms // 1000,
            uptime=int(now - started_at),
            version=getattr(request.app.state, "version", "1.0.0"),
            timestamp=int(now),
        )

    @router.delete("/queue", response_model=ClearQueueResponse)
    async def clear_queue(queue: CommandQueue = Depends(get_queue)):
        """
        Drop every pending command and cooldown.

        Used to reset an environment between test runs or deployments.
        """
        cleared = queue.clear()
        return ClearQueueResponse(cleared=cleared)

    return router
