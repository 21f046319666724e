"""
Translation gateway: relays one OpenAI chat request to its provider.
"""

import json
from typing import Any, AsyncGenerator, Dict, Optional, Union

from pydantic import ValidationError
import structlog

from .auth import extract_bearer_credential
from .config import AppConfig
from .errors import InvalidRequest, RelayError
from .models import ChatCompletionRequest
from .providers.cohere_provider import UpstreamStream
from .providers.registry import BingRoute, CohereRoute, ProviderRegistry
from .translator.openai_format import CompletionContext, sse_done, sse_event
from .translator.registry import TranslatorRegistry

logger = structlog.get_logger(__name__)

RelayResult = Union[Dict[str, Any], "RelayStream"]


def parse_request(body: Union[bytes, str, Dict[str, Any]]) -> ChatCompletionRequest:
    """
    Parse an inbound request body.

    Raises:
        InvalidRequest: Body is not JSON or does not match the request schema
    """
    if isinstance(body, (bytes, str)):
        try:
            body = json.loads(body)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise InvalidRequest(f"Invalid JSON: {e}") from e

    try:
        return ChatCompletionRequest.model_validate(body)
    except ValidationError as e:
        raise InvalidRequest(f"Invalid request: {e.errors(include_url=False)}") from e


class RelayStream:
    """
    SSE frames of one streamed completion.

    Owns the upstream stream, if any: ``aclose()`` releases it even when
    the frames were never pulled.
    """

    def __init__(self, frames: AsyncGenerator[str, None], upstream: Optional[UpstreamStream] = None):
        self.frames = frames
        self.upstream = upstream

    def __aiter__(self) -> "RelayStream":
        return self

    async def __anext__(self) -> str:
        return await self.frames.__anext__()

    async def aclose(self) -> None:
        try:
            await self.frames.aclose()
        finally:
            if self.upstream is not None:
                await self.upstream.aclose()


class ChatRelay:
    """
    Relays OpenAI chat completion requests to Cohere or Bing.

    Holds only configuration and registries; every call builds its own
    provider and request objects.
    """

    def __init__(
        self,
        config: AppConfig,
        provider_registry: ProviderRegistry,
        translator_registry: TranslatorRegistry,
    ):
        self.config = config
        self.providers = provider_registry
        self.translators = translator_registry

    async def handle(
        self,
        authorization: Optional[str],
        body: Union[bytes, str, Dict[str, Any]],
    ) -> RelayResult:
        """
        Handle one chat completion request.

        The credential is checked first, so no upstream call is made for an
        unauthenticated request. In streaming mode the upstream stream is
        opened before this returns.

        Args:
            authorization: Raw Authorization header value
            body: Request body

        Returns:
            Completion dict, or a RelayStream of SSE frames when streaming
        """
        credential = extract_bearer_credential(authorization)
        request = parse_request(body)
        route = self.providers.resolve(request.model)

        context = CompletionContext(
            model=request.model,
            system_fingerprint=self.config.system_fingerprint,
        )

        logger.info(
            "Relaying chat completion",
            model=request.model,
            route=type(route).__name__,
            stream=bool(request.stream),
            messages=len(request.messages),
        )

        if isinstance(route, CohereRoute):
            return await self._relay_cohere(request, route, credential, context)
        if isinstance(route, BingRoute):
            return await self._relay_bing(request, credential, context)
        raise TypeError(f"Unhandled route {route!r}")

    async def _relay_cohere(self, request, route: CohereRoute, credential, context) -> RelayResult:
        translator = self.translators.cohere
        cohere_request = translator.translate_request(
            request,
            base_model=route.base_model,
            use_internet=route.use_internet,
        )
        provider = self.providers.cohere(credential)

        if request.stream:
            upstream = await provider.chat_stream(cohere_request)
            return RelayStream(self._stream_cohere(upstream, context), upstream)

        text = await provider.chat(cohere_request)
        return translator.translate_response(text, context)

    async def _stream_cohere(
        self,
        upstream: UpstreamStream,
        context: CompletionContext,
    ) -> AsyncGenerator[str, None]:
        """Forward one chunk per text-generation event, in upstream order."""
        translator = self.translators.cohere
        chunks = 0
        try:
            async for event in upstream:
                chunk = translator.translate_stream_event(event, context)
                if chunk is None:
                    continue
                chunks += 1
                yield sse_event(chunk)
            yield sse_done()
            logger.info("Stream completed", model=context.model, chunks=chunks)
        except RelayError as e:
            logger.error("Stream failed", model=context.model, chunks=chunks, error=e.message)
            yield sse_event(e.to_dict())
        finally:
            await upstream.aclose()

    async def _relay_bing(self, request, credential, context) -> RelayResult:
        translator = self.translators.bing
        prompt = translator.translate_request(request)
        provider = self.providers.bing(credential)
        text = await provider.send_message(prompt, tone_style=self.config.bing.tone_style)

        if request.stream:
            return RelayStream(self._stream_single(translator.translate_reply_chunk(text, context)))
        return translator.translate_response(text, context)

    async def _stream_single(self, chunk: Dict[str, Any]) -> AsyncGenerator[str, None]:
        yield sse_event(chunk)
        yield sse_done()
