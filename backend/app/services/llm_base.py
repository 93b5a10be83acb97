"""
Mindtrail Backend - Abstract Chat Completion Interface
=======================================================

What:  Abstract base class for chat-completion providers used to summarize
       free text.
How:   Concrete implementations inherit from ChatCompletionClient and
       implement complete() and health_check().
Who:   Called by SummaryService; OpenAIChatClient is the production provider
       and the test suite substitutes in-memory doubles.
"""

from abc import ABC, abstractmethod
from typing import Dict, List


class ChatCompletionClient(ABC):
    """
    Abstract interface for a chat-completion provider.

    Contract:
        - complete() receives the full ordered transcript and returns the
          assistant's reply text
        - Implementations hold no conversation state between calls
        - Every provider-specific failure is raised as SummarizationError
    """

    @abstractmethod
    async def complete(self, messages: List[Dict[str, str]]) -> str:
        """
        Send a transcript and return the assistant reply.

        Args:
            messages: Ordered turns, each {"role": "system"|"user"|"assistant",
                      "content": str}. Never mutated.

        Returns:
            Non-empty reply text.

        Raises:
            SummarizationError: transport failure, timeout, non-2xx status,
                malformed payload, or missing credentials.
        """
        ...

    @abstractmethod
    async def health_check(self) -> bool:
        """
        Lightweight connectivity test that does not consume completion quota.

        Returns: True if the provider is reachable and accepts our credentials.
        """
        ...

    async def close(self) -> None:
        """Release pooled connections. Called at application shutdown."""
        return None
