from app.infrastructure.completion.base import CompletionGateway, PromptMessages
from app.infrastructure.completion.openai_gateway import OpenAICompletionGateway

__all__ = [
    "CompletionGateway",
    "PromptMessages",
    "OpenAICompletionGateway",
]
