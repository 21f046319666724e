"""
API routes for the chat relay.
"""

import time

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, StreamingResponse
from starlette.background import BackgroundTask

from ..gateway import ChatRelay
from ..providers.registry import ProviderRegistry

router = APIRouter()


# Dependency injection functions
async def get_chat_relay(request: Request) -> ChatRelay:
    """Get chat relay from app state."""
    return request.app.state.chat_relay


async def get_provider_registry(request: Request) -> ProviderRegistry:
    """Get provider registry from app state."""
    return request.app.state.provider_registry


@router.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "service": "chat-relay"}


@router.post("/chat/completions")
async def chat_completions(
    request: Request,
    chat_relay: ChatRelay = Depends(get_chat_relay),
):
    """
    OpenAI-compatible chat completions endpoint.

    Relays the request to Cohere or Bing depending on the model name.
    Relay errors are rendered by the application's exception handlers.
    A streamed reply releases its upstream once the response ends, even
    when the client disconnects before the first frame.
    """
    body = await request.body()
    result = await chat_relay.handle(request.headers.get("Authorization"), body)

    if isinstance(result, dict):
        return JSONResponse(content=result)

    return StreamingResponse(
        result,
        media_type="text/event-stream",
        background=BackgroundTask(result.aclose),
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )


@router.get("/models")
async def list_models(
    provider_registry: ProviderRegistry = Depends(get_provider_registry),
):
    """List every model the relay can route."""
    created = int(time.time())
    bing_model = provider_registry.config.bing.model
    return {
        "object": "list",
        "data": [
            {
                "id": model,
                "object": "model",
                "created": created,
                "owned_by": "bing" if model == bing_model else "cohere",
            }
            for model in provider_registry.list_models()
        ],
    }


@router.get("/providers")
async def list_providers(
    provider_registry: ProviderRegistry = Depends(get_provider_registry),
):
    """List configured upstream providers."""
    return {"providers": provider_registry.list_providers()}
