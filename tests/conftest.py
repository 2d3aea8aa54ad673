from typing import List, Optional

import pytest
from fastapi.testclient import TestClient

from app.core.config import Settings
from app.core.security import PasswordHasher, TokenSigner
from app.domains.chats.services import ChatService
from app.domains.identity.services import IdentityService
from app.infrastructure.completion import CompletionGateway, PromptMessages
from app.infrastructure.storage import InMemoryStore
from app.main import create_app


class FakeGateway(CompletionGateway):
    """Records prompts and answers with a canned reply or error"""

    def __init__(self, reply: Optional[str] = "Olá! Como posso ajudar?"):
        self.reply = reply
        self.error: Optional[Exception] = None
        self.calls: List[tuple] = []

    async def complete(self, messages: PromptMessages, max_tokens: int) -> Optional[str]:
        self.calls.append((messages, max_tokens))
        if self.error:
            raise self.error
        return self.reply


@pytest.fixture
def settings():
    return Settings(
        jwt_secret="test-secret",
        bcrypt_rounds=4,
        database_path="unused.json",
        static_dir="",
        rate_limit_max=1000,
        openai_api_key=None,
    )


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def identity_service(store, settings):
    return IdentityService(
        store, PasswordHasher(settings.bcrypt_rounds), TokenSigner.from_settings(settings)
    )


@pytest.fixture
def chat_service(store, gateway, settings):
    return ChatService.from_settings(store, gateway, settings)


@pytest.fixture
def app(settings, store, gateway):
    return create_app(settings, store=store, gateway=gateway)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def auth_headers(client):
    """Register and log in a user, returning a factory of Authorization headers"""

    def _login(email: str = "a@x.com", senha: str = "pw123") -> dict:
        client.post("/auth/register", json={"email": email, "senha": senha})
        response = client.post("/auth/login", json={"email": email, "senha": senha})
        assert response.status_code == 200
        return {"Authorization": f"Bearer {response.json()['token']}"}

    return _login
