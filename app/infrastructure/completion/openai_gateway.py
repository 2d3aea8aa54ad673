import logging
from typing import Optional

from openai import AsyncOpenAI, OpenAIError

from app.core.config import Settings
from app.core.exceptions import ExternalServiceFailure
from app.infrastructure.completion.base import CompletionGateway, PromptMessages

logger = logging.getLogger(__name__)


class OpenAICompletionGateway(CompletionGateway):
    """Chat completions over the OpenAI API"""

    def __init__(
        self,
        api_key: Optional[str],
        model: str = "gpt-4o-mini",
        timeout: Optional[float] = None,
        client: Optional[AsyncOpenAI] = None,
    ):
        self.model = model
        self._api_key = api_key
        self._timeout = timeout
        self._client = client

    @classmethod
    def from_settings(cls, settings: Settings) -> "OpenAICompletionGateway":
        return cls(
            api_key=settings.openai_api_key,
            model=settings.openai_model,
            timeout=settings.openai_timeout,
        )

    def _get_client(self) -> AsyncOpenAI:
        # built lazily so the app starts without an API key
        if self._client is None:
            if not self._api_key:
                logger.error("OPENAI_API_KEY is not configured")
                raise ExternalServiceFailure()
            self._client = AsyncOpenAI(
                api_key=self._api_key, timeout=self._timeout, max_retries=0
            )
        return self._client

    async def complete(self, messages: PromptMessages, max_tokens: int) -> Optional[str]:
        client = self._get_client()
        try:
            completion = await client.chat.completions.create(
                model=self.model,
                messages=messages,
                max_tokens=max_tokens,
            )
        except OpenAIError as e:
            logger.error(f"Completion request to {self.model} failed: {e}")
            raise ExternalServiceFailure() from e

        if not completion.choices:
            return None
        message = completion.choices[0].message
        return message.content if message else None
