from abc import ABC, abstractmethod
from typing import Dict, List, Optional

PromptMessages = List[Dict[str, str]]


class CompletionGateway(ABC):
    """External service turning a conversation into a single reply"""

    @abstractmethod
    async def complete(self, messages: PromptMessages, max_tokens: int) -> Optional[str]:
        """Return the best reply text, or None when the service produced nothing.

        Raises ExternalServiceFailure when the service cannot be reached or errors out.
        """
