"""Tests for the ChatRelay translation gateway."""

import json

import httpx
import pytest

from relay.errors import (
    InvalidRequest,
    MalformedCredential,
    MissingContent,
    MissingCredential,
    UnsupportedModel,
    UpstreamFailure,
)
from relay.gateway import parse_request

from conftest import TrackedStream, parse_sse

AUTH = "Bearer cohere-key"


def body(model="command", stream=False, messages=None, **kwargs):
    return {
        "model": model,
        "stream": stream,
        "messages": messages or [{"role": "user", "content": "Hello"}],
        **kwargs,
    }


async def collect(stream):
    return "".join([frame async for frame in stream])


class TestParseRequest:
    """Tests for inbound body parsing."""

    def test_bytes_body(self):
        request = parse_request(json.dumps(body()).encode())
        assert request.model == "command"
        assert request.stream is False

    def test_invalid_json(self):
        with pytest.raises(InvalidRequest, match="Invalid JSON"):
            parse_request(b"{not json")

    @pytest.mark.parametrize(
        "data",
        [
            {"messages": [{"role": "user", "content": "hi"}]},
            {"model": "command", "messages": []},
            {"model": "command", "messages": [{"role": "tool", "content": "x"}]},
        ],
    )
    def test_invalid_schema(self, data):
        with pytest.raises(InvalidRequest):
            parse_request(data)

    def test_unknown_fields_ignored(self):
        request = parse_request(dict(body(), top_p=0.5, user="u"))
        assert request.model == "command"


class TestBatchMode:
    """Tests for non-streaming relaying."""

    @pytest.mark.asyncio
    async def test_cohere_completion(self, relay, upstream):
        upstream.on("/v1/chat", lambda r: httpx.Response(200, json={"text": "Hi there", "finish_reason": "COMPLETE"}))

        result = await relay.handle(AUTH, body(model="command-internet", temperature=0.7))

        assert result["object"] == "chat.completion"
        assert result["model"] == "command-internet"
        assert result["system_fingerprint"] == "fp_44709d6fcb"
        assert result["choices"][0]["message"] == {"role": "assistant", "content": "Hi there"}
        assert result["choices"][0]["finish_reason"] == "stop"

        (sent,) = upstream.requests
        assert sent.headers["Authorization"] == "Bearer cohere-key"
        payload = json.loads(sent.content)
        assert payload["model"] == "command"
        assert payload["message"] == "Hello"
        assert payload["stream"] is False
        assert payload["temperature"] == 0.7
        assert payload["connectors"] == [{"id": "web-search"}]

    @pytest.mark.asyncio
    async def test_completion_ids_differ_per_call(self, relay, upstream):
        upstream.on("/v1/chat", lambda r: httpx.Response(200, json={"text": "x"}))

        first = await relay.handle(AUTH, body())
        second = await relay.handle(AUTH, body())
        assert first["id"] != second["id"]

    @pytest.mark.asyncio
    async def test_upstream_error_status(self, relay, upstream):
        upstream.on("/v1/chat", lambda r: httpx.Response(401, json={"message": "invalid api token"}))

        with pytest.raises(UpstreamFailure) as exc_info:
            await relay.handle(AUTH, body())
        assert exc_info.value.upstream_status == 401
        assert exc_info.value.status_code == 502

    @pytest.mark.asyncio
    async def test_upstream_transport_error(self, relay, upstream):
        def fail(request):
            raise httpx.ConnectError("connection refused", request=request)

        upstream.on("/v1/chat", fail)

        with pytest.raises(UpstreamFailure, match="connection refused"):
            await relay.handle(AUTH, body())

    @pytest.mark.asyncio
    async def test_upstream_invalid_body(self, relay, upstream):
        upstream.on("/v1/chat", lambda r: httpx.Response(200, json={"unexpected": True}))

        with pytest.raises(UpstreamFailure, match="Invalid response format"):
            await relay.handle(AUTH, body())


class TestRejections:
    """Requests rejected before any upstream call."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("header,error", [(None, MissingCredential), ("Basic abc", MalformedCredential)])
    async def test_credential_checked_first(self, relay, upstream, header, error):
        with pytest.raises(error):
            await relay.handle(header, body())
        assert upstream.requests == []

    @pytest.mark.asyncio
    async def test_credential_checked_before_body(self, relay, upstream):
        with pytest.raises(MissingCredential):
            await relay.handle(None, b"{not json")

    @pytest.mark.asyncio
    async def test_unsupported_model(self, relay, upstream):
        with pytest.raises(UnsupportedModel):
            await relay.handle(AUTH, body(model="llama-3"))
        assert upstream.requests == []

    @pytest.mark.asyncio
    async def test_missing_content(self, relay, upstream):
        with pytest.raises(MissingContent):
            await relay.handle(AUTH, body(messages=[{"role": "user", "content": []}]))
        assert upstream.requests == []


class TestStreamingMode:
    """Tests for event-stream relaying."""

    @pytest.mark.asyncio
    async def test_text_events_relayed_in_order(self, relay, upstream):
        events = TrackedStream([
            {"is_finished": False, "event_type": "stream-start", "generation_id": "g1"},
            {"is_finished": False, "event_type": "text-generation", "text": "a"},
            {"is_finished": False, "event_type": "text-generation", "text": "b"},
            {"is_finished": False, "event_type": "search-results", "documents": []},
            {"is_finished": False, "event_type": "text-generation", "text": "c"},
            {"is_finished": True, "event_type": "stream-end", "finish_reason": "COMPLETE"},
        ])
        upstream.on("/v1/chat", lambda r: httpx.Response(200, stream=events))

        stream = await relay.handle(AUTH, body(stream=True))
        frames = parse_sse(await collect(stream))

        chunks, done = frames[:-1], frames[-1]
        assert done == "[DONE]"
        assert [c["choices"][0]["delta"]["content"] for c in chunks] == ["a", "b", "c"]
        assert all(c["choices"][0]["finish_reason"] is None for c in chunks)
        assert all(c["object"] == "chat.completion.chunk" for c in chunks)
        assert len({c["id"] for c in chunks}) == 1
        assert events.closed

        payload = upstream.json_bodies()[0]
        assert payload["stream"] is True

    @pytest.mark.asyncio
    async def test_upstream_refusal_raised_before_streaming(self, relay, upstream):
        upstream.on("/v1/chat", lambda r: httpx.Response(429, json={"message": "rate limited"}))

        with pytest.raises(UpstreamFailure) as exc_info:
            await relay.handle(AUTH, body(stream=True))
        assert exc_info.value.upstream_status == 429

    @pytest.mark.asyncio
    async def test_abnormal_stream_end(self, relay, upstream):
        events = TrackedStream([
            {"is_finished": False, "event_type": "text-generation", "text": "a"},
            {"is_finished": True, "event_type": "stream-end", "finish_reason": "ERROR"},
        ])
        upstream.on("/v1/chat", lambda r: httpx.Response(200, stream=events))

        stream = await relay.handle(AUTH, body(stream=True))
        frames = parse_sse(await collect(stream))

        assert frames[0]["choices"][0]["delta"]["content"] == "a"
        assert frames[1]["error"]["type"] == "upstream_error"
        assert "[DONE]" not in frames
        assert events.closed

    @pytest.mark.asyncio
    async def test_undecodable_event(self, relay, upstream):
        events = TrackedStream(["{broken"])
        upstream.on("/v1/chat", lambda r: httpx.Response(200, stream=events))

        stream = await relay.handle(AUTH, body(stream=True))
        frames = parse_sse(await collect(stream))

        assert len(frames) == 1
        assert frames[0]["error"]["code"] == "upstream_failure"
        assert events.closed

    @pytest.mark.asyncio
    @pytest.mark.parametrize("line", ["null", "123", "[1, 2]", "\"text\""])
    async def test_non_object_event(self, relay, upstream, line):
        events = TrackedStream([{"event_type": "text-generation", "text": "a"}, line])
        upstream.on("/v1/chat", lambda r: httpx.Response(200, stream=events))

        stream = await relay.handle(AUTH, body(stream=True))
        frames = parse_sse(await collect(stream))

        assert frames[0]["choices"][0]["delta"]["content"] == "a"
        assert frames[1]["error"]["type"] == "upstream_error"
        assert len(frames) == 2
        assert events.closed

    @pytest.mark.asyncio
    async def test_upstream_released_when_never_iterated(self, relay, upstream):
        events = TrackedStream([{"event_type": "text-generation", "text": "a"}])
        upstream.on("/v1/chat", lambda r: httpx.Response(200, stream=events))

        stream = await relay.handle(AUTH, body(stream=True))
        await stream.aclose()

        assert events.closed
        assert stream.upstream.closed

    @pytest.mark.asyncio
    async def test_aclose_after_exhaustion_is_harmless(self, relay, upstream):
        events = TrackedStream([{"event_type": "text-generation", "text": "a"}])
        upstream.on("/v1/chat", lambda r: httpx.Response(200, stream=events))

        stream = await relay.handle(AUTH, body(stream=True))
        frames = parse_sse(await collect(stream))
        await stream.aclose()

        assert frames[-1] == "[DONE]"
        assert events.closed

    @pytest.mark.asyncio
    async def test_upstream_released_on_early_close(self, relay, upstream):
        events = TrackedStream([
            {"is_finished": False, "event_type": "text-generation", "text": str(i)}
            for i in range(100)
        ])
        upstream.on("/v1/chat", lambda r: httpx.Response(200, stream=events))

        stream = await relay.handle(AUTH, body(stream=True))
        first = await stream.__anext__()
        await stream.aclose()

        assert parse_sse(first)[0]["choices"][0]["delta"]["content"] == "0"
        assert events.closed
        assert events.sent < 100


class TestBingPath:
    """Tests for the Bing provider branch."""

    @pytest.mark.asyncio
    async def test_forwards_user_message_with_cookie(self, relay, upstream):
        upstream.on("/conversation", lambda r: httpx.Response(200, json={"response": "A poem about cats"}))

        result = await relay.handle(
            "Bearer bing-session",
            body(model="gpt-4", messages=[
                {"role": "system", "content": "be nice"},
                {"role": "user", "content": "Write a short poem about dogs"},
            ]),
        )

        assert result["choices"][0]["message"]["content"] == "A poem about cats"
        assert result["model"] == "gpt-4"

        (sent,) = upstream.requests
        assert sent.headers["Cookie"] == "_U=bing-session"
        assert "Authorization" not in sent.headers
        assert json.loads(sent.content) == {
            "message": "Write a short poem about dogs",
            "toneStyle": "precise",
        }

    @pytest.mark.asyncio
    async def test_streaming_reply_is_single_chunk(self, relay, upstream):
        upstream.on("/conversation", lambda r: httpx.Response(200, json={"response": "Hello"}))

        stream = await relay.handle("Bearer s", body(model="gpt-4", stream=True))
        frames = parse_sse(await collect(stream))

        assert len(frames) == 2
        assert frames[0]["choices"][0]["delta"] == {"role": "assistant", "content": "Hello"}
        assert frames[0]["choices"][0]["finish_reason"] is None
        assert frames[1] == "[DONE]"

    @pytest.mark.asyncio
    async def test_streaming_reply_closed_unread(self, relay, upstream):
        upstream.on("/conversation", lambda r: httpx.Response(200, json={"response": "Hello"}))

        stream = await relay.handle("Bearer s", body(model="gpt-4", stream=True))
        await stream.aclose()

        assert stream.upstream is None
        with pytest.raises(StopAsyncIteration):
            await stream.__anext__()

    @pytest.mark.asyncio
    async def test_bing_failure(self, relay, upstream):
        upstream.on("/conversation", lambda r: httpx.Response(503, text="unavailable"))

        with pytest.raises(UpstreamFailure):
            await relay.handle("Bearer s", body(model="gpt-4"))
