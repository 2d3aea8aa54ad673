import logging
from typing import Optional, Tuple

from app.core.exceptions import DuplicateEmail, InvalidInput, UserNotFound, WrongPassword
from app.core.security import PasswordHasher, TokenSigner
from app.domains.identity.entities import AuthenticatedUser, TokenVerification, User
from app.infrastructure.storage import ChatStore, Document

logger = logging.getLogger(__name__)


class IdentityService:
    """Registration, login and bearer token checks"""

    def __init__(self, store: ChatStore, hasher: PasswordHasher, signer: TokenSigner):
        self.store = store
        self.hasher = hasher
        self.signer = signer

    def register(self, email: Optional[str], password: Optional[str]) -> User:
        """Register a new user with a hashed password"""
        if not email or not password:
            raise InvalidInput()

        # hashed before taking the writer lock
        password_hash = self.hasher.hash(password)

        with self.store.transaction() as document:
            if self._find_by_email(document, email):
                raise DuplicateEmail()

            user = User.create_user(Document.next_id(document.users), email, password_hash)
            document.users.append(user)

        logger.info(f"Registered user {user.id}")
        return user

    def login(self, email: Optional[str], password: Optional[str]) -> Tuple[str, User]:
        """Check credentials and issue an access token"""
        if not email or not password:
            raise InvalidInput()

        user = self._find_by_email(self.store.snapshot(), email)
        if not user:
            raise UserNotFound()

        if not self.hasher.verify(password, user.password):
            logger.info(f"Wrong password for user {user.id}")
            raise WrongPassword()

        token = self.signer.create_access_token({"id": user.id, "email": user.email})
        logger.info(f"User {user.id} logged in")
        return token, user

    def verify(self, token: Optional[str]) -> TokenVerification:
        """Never raises: anything but a valid, unexpired token is reported as invalid"""
        claims = self.signer.decode(token) if token else None
        if claims is None:
            return TokenVerification(valid=False)
        return TokenVerification(valid=True, claims=claims)

    def authenticate(self, token: Optional[str]) -> Optional[AuthenticatedUser]:
        """Identity carried by a token, or None"""
        verification = self.verify(token)
        if not verification.valid:
            return None

        user_id = verification.claims.get("id")
        if not isinstance(user_id, int) or isinstance(user_id, bool):
            return None

        return AuthenticatedUser(id=user_id, email=verification.claims.get("email", ""))

    @staticmethod
    def _find_by_email(document: Document, email: str) -> Optional[User]:
        return next((u for u in document.users if u.email == email), None)
