"""
LLM Client - turns a session's history into the next assistant reply.
"""

import logging
from typing import List, Sequence

from ..errors import LLMUnavailableError
from ..models import Message
from .base import LLMMessage, LLMProvider

logger = logging.getLogger(__name__)


class LLMClient:
    """
    Stateless adapter between sessions and an LLMProvider.

    One attempt per user turn unless ``max_retries`` is configured; only
    LLMUnavailableError is retried, protocol errors are returned at once.
    """

    def __init__(self, provider: LLMProvider, max_retries: int = 0):
        self.provider = provider
        self.max_retries = max(0, max_retries)

    @staticmethod
    def build_messages(system_prompt: str, history: Sequence[Message]) -> List[LLMMessage]:
        messages = [LLMMessage.text("system", system_prompt)]
        messages.extend(LLMMessage.text(m.role.value, m.text) for m in history)
        return messages

    async def complete(self, system_prompt: str, history: Sequence[Message]) -> str:
        """
        Produce the next assistant message.

        Args:
            system_prompt: Always sent as the first message
            history: Conversation so far, oldest first, forwarded unmodified

        Returns:
            The assistant text

        Raises:
            LLMUnavailableError, LLMProtocolError
        """
        messages = self.build_messages(system_prompt, history)
        attempt = 0
        while True:
            try:
                response = await self.provider.chat_completion(messages)
                return response.content
            except LLMUnavailableError as e:
                if attempt >= self.max_retries:
                    raise
                attempt += 1
                logger.warning(f"LLM unavailable, retrying ({attempt}/{self.max_retries}): {e}")
