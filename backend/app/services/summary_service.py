"""
Mindtrail Backend - Summary Service (Summarization Client)
===========================================================

What:  Turns a user's free-text post-experience account into a concise,
       clinically phrased summary via a chat-completion provider.
How:   Each call works on its own Transcript (system prompt + turns). A
       caller may pass an existing Transcript to continue a session; turns
       are only appended once the provider has answered, so a failed call
       leaves the transcript as it was.
Who:   Called by RecordService.save_audio().

Failure policy:
    The call fails soft. Any SummarizationError is logged with its real
    reason and returned as a degraded SummaryResult; the caller stores a
    record marked 'degraded' and shows SUMMARY_UNAVAILABLE_MESSAGE.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from app.exceptions import SummarizationError
from app.services.llm_base import ChatCompletionClient
from app.services.openai_service import openai_client

logger = logging.getLogger(__name__)

SUMMARY_UNAVAILABLE_MESSAGE = (
    "I'm sorry, but there was an error processing your request. Please try again."
)

SYSTEM_PROMPT = """You are a professional medical summarization assistant. Your role is to \
summarize user-provided experiences into concise, clear, and medically relevant summaries. \
The summaries should focus on key symptoms, emotions, behaviors, and any notable medical or \
psychological details mentioned by the user.

Guidelines:
1. Extract the most important details from the text and organize them in a coherent, logical order.
2. Avoid including unnecessary conversational details or filler words.
3. If the text contains medical or psychological terminology, ensure accurate and professional phrasing.
4. Structure the summary in a way that is easy for healthcare professionals to understand.
5. Keep the summary under 100 words, unless the input text requires more detail to be precise.
6. Provide a professional tone and avoid speculation or assumptions beyond what is stated.

Example Input:
"I've been feeling really anxious lately. My heart races when I think about work, and I've been \
getting these headaches almost every day. I tried sleeping more, but it doesn't seem to help much. \
I also feel like my appetite is gone, and I just don't enjoy eating anymore. I don't know what's wrong."

Example Summary:
"The user reports experiencing persistent anxiety with symptoms including racing heart, daily \
headaches, reduced appetite, and loss of enjoyment in eating. Sleep adjustments have not \
alleviated these symptoms. The user is seeking insight into potential causes.\""""


class Transcript:
    """
    Ordered conversational turns sent to the provider.

    Always starts with the system prompt. Owned by one request (or one
    explicit caller session); never shared through module state.
    """

    def __init__(self, system_prompt: str = SYSTEM_PROMPT):
        self._turns: List[Dict[str, str]] = [{"role": "system", "content": system_prompt}]

    @property
    def messages(self) -> List[Dict[str, str]]:
        return [dict(turn) for turn in self._turns]

    def with_user_turn(self, content: str) -> List[Dict[str, str]]:
        """The messages to send for a new user turn, without recording it yet."""
        return self.messages + [{"role": "user", "content": content}]

    def record_exchange(self, user_content: str, assistant_content: str) -> None:
        self._turns.append({"role": "user", "content": user_content})
        self._turns.append({"role": "assistant", "content": assistant_content})

    def __len__(self) -> int:
        return len(self._turns)


@dataclass
class SummaryResult:
    """Outcome of one summarize() call."""

    text: Optional[str]
    transcript: Transcript
    error: Optional[str] = None

    @property
    def degraded(self) -> bool:
        return self.text is None


class SummaryService:
    def __init__(self, client: ChatCompletionClient):
        self.client = client

    async def summarize(
        self, free_text: str, transcript: Optional[Transcript] = None
    ) -> SummaryResult:
        """
        Summarize `free_text`.

        Args:
            free_text: the user's account, sent verbatim as the user turn
            transcript: an existing session transcript to continue; a fresh
                one is created when omitted

        Returns:
            SummaryResult with the reply text, or degraded with the reason.
            Never raises for provider failures.
        """
        transcript = transcript if transcript is not None else Transcript()

        try:
            reply = await self.client.complete(transcript.with_user_turn(free_text))
        except SummarizationError as e:
            logger.error("Summarization degraded: %s", e.reason)
            return SummaryResult(text=None, transcript=transcript, error=e.reason)

        transcript.record_exchange(free_text, reply)
        return SummaryResult(text=reply, transcript=transcript)


# ── Singleton Instance ────────────────────────────────────────────────────
summary_service = SummaryService(openai_client)


def get_summary_service() -> SummaryService:
    """FastAPI dependency returning the process-wide SummaryService."""
    return summary_service
