"""
Mindtrail Backend - Summarization Unit Tests (Mocked HTTP)
===========================================================

What:  OpenAIChatClient against httpx.MockTransport, and SummaryService's
       per-call transcripts and fail-soft behavior.
How:   No network: every OpenAI response is scripted by a transport handler.

What we test:
    ✅ The full transcript (system + user) is POSTed and the reply extracted
    ✅ Non-2xx, timeouts, transport errors, bad payloads → SummarizationError
    ✅ Missing API key fails before any request is made
    ✅ Concurrent summaries never see each other's turns
    ✅ A failed call returns a degraded result and leaves the transcript as it was
"""

import asyncio
import json

import httpx
import pytest

from app.exceptions import SummarizationError
from app.services.openai_service import OpenAIChatClient
from app.services.summary_service import SYSTEM_PROMPT, SummaryService, Transcript

from conftest import FakeChatClient


def completion(content: str) -> dict:
    return {"choices": [{"index": 0, "message": {"role": "assistant", "content": content}}]}


def make_client(handler, api_key: str = "sk-test", timeout_seconds: float = 5.0) -> OpenAIChatClient:
    return OpenAIChatClient(
        api_key=api_key,
        model="gpt-test",
        api_url="https://api.openai.test/v1/chat/completions",
        timeout_seconds=timeout_seconds,
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )


class TestOpenAIChatClient:

    @pytest.mark.asyncio
    async def test_posts_transcript_and_returns_reply(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["auth"] = request.headers["Authorization"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json=completion("  A concise summary.  "))

        client = make_client(handler)
        messages = Transcript().with_user_turn("I felt calm afterwards.")
        reply = await client.complete(messages)

        assert reply == "A concise summary."
        assert seen["auth"] == "Bearer sk-test"
        assert seen["body"]["model"] == "gpt-test"
        assert [m["role"] for m in seen["body"]["messages"]] == ["system", "user"]
        assert seen["body"]["messages"][0]["content"] == SYSTEM_PROMPT

    @pytest.mark.asyncio
    async def test_http_error_status(self):
        client = make_client(lambda request: httpx.Response(429, text="rate limited"))
        with pytest.raises(SummarizationError) as exc_info:
            await client.complete([{"role": "user", "content": "hi"}])
        assert exc_info.value.reason.startswith("HTTP 429")
        assert "rate limited" in exc_info.value.reason

    @pytest.mark.asyncio
    async def test_malformed_payload(self):
        client = make_client(lambda request: httpx.Response(200, json={"choices": []}))
        with pytest.raises(SummarizationError) as exc_info:
            await client.complete([{"role": "user", "content": "hi"}])
        assert exc_info.value.reason == "malformed completion payload"

    @pytest.mark.asyncio
    async def test_empty_completion(self):
        client = make_client(lambda request: httpx.Response(200, json=completion("   ")))
        with pytest.raises(SummarizationError) as exc_info:
            await client.complete([{"role": "user", "content": "hi"}])
        assert exc_info.value.reason == "empty completion"

    @pytest.mark.asyncio
    async def test_transport_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client = make_client(handler)
        with pytest.raises(SummarizationError) as exc_info:
            await client.complete([{"role": "user", "content": "hi"}])
        assert exc_info.value.reason.startswith("transport error: ConnectError")

    @pytest.mark.asyncio
    async def test_timeout(self):
        async def handler(request: httpx.Request) -> httpx.Response:
            await asyncio.sleep(1)
            return httpx.Response(200, json=completion("too late"))

        client = make_client(handler, timeout_seconds=0.05)
        with pytest.raises(SummarizationError) as exc_info:
            await client.complete([{"role": "user", "content": "hi"}])
        assert exc_info.value.reason.startswith("timeout after")

    @pytest.mark.asyncio
    async def test_missing_api_key_makes_no_request(self):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(200, json=completion("unused"))

        client = make_client(handler, api_key="")
        assert client.configured is False
        with pytest.raises(SummarizationError) as exc_info:
            await client.complete([{"role": "user", "content": "hi"}])
        assert "OPENAI_API_KEY" in exc_info.value.reason
        assert calls == []

    @pytest.mark.asyncio
    async def test_health_check_lists_models(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/v1/models"
            return httpx.Response(200, json={"data": []})

        assert await make_client(handler).health_check() is True
        assert await make_client(handler, api_key="").health_check() is False


class TestSummaryService:

    @pytest.mark.asyncio
    async def test_successful_summary_records_exchange(self):
        service = SummaryService(FakeChatClient())
        result = await service.summarize("Slept well, felt lighter.")

        assert result.degraded is False
        assert result.text == "Summary: Slept well, felt lighter."
        roles = [turn["role"] for turn in result.transcript.messages]
        assert roles == ["system", "user", "assistant"]

    @pytest.mark.asyncio
    async def test_concurrent_calls_do_not_share_turns(self):
        async def handler(request: httpx.Request) -> httpx.Response:
            body = json.loads(request.content)
            await asyncio.sleep(0.01)
            return httpx.Response(200, json=completion(f"Summary of {body['messages'][-1]['content']}"))

        service = SummaryService(make_client(handler))
        first, second = await asyncio.gather(
            service.summarize("first account"),
            service.summarize("second account"),
        )

        assert first.text == "Summary of first account"
        assert second.text == "Summary of second account"
        for result, text in ((first, "first account"), (second, "second account")):
            turns = result.transcript.messages
            assert len(turns) == 3
            assert turns[1] == {"role": "user", "content": text}
            assert turns[2]["content"] == result.text

    @pytest.mark.asyncio
    async def test_each_call_sends_only_its_own_turn(self):
        fake = FakeChatClient()
        service = SummaryService(fake)
        await service.summarize("one")
        await service.summarize("two")

        assert [len(call) for call in fake.calls] == [2, 2]
        assert fake.calls[1][-1]["content"] == "two"

    @pytest.mark.asyncio
    async def test_explicit_transcript_continues_session(self):
        service = SummaryService(FakeChatClient())
        transcript = Transcript()
        await service.summarize("one", transcript)
        await service.summarize("two", transcript)
        assert len(transcript) == 5

    @pytest.mark.asyncio
    async def test_failure_is_degraded_not_raised(self):
        service = SummaryService(FakeChatClient(fail_reason="HTTP 500: upstream"))
        transcript = Transcript()
        result = await service.summarize("anything", transcript)

        assert result.degraded is True
        assert result.text is None
        assert result.error == "HTTP 500: upstream"
        assert len(transcript) == 1
