"""Session guard - resolves a bearer credential to a live user."""

from src.app.core.exceptions import UnauthorizedError
from src.app.models import User
from src.app.repositories import UserRepository
from src.app.services.token_service import TokenService


class SessionGuard:
    """Request-scoped gate in front of every protected operation.

    A valid signature is not enough: the user named by the token must still
    exist, so deleting a user cuts off their outstanding access tokens.
    """

    def __init__(self, token_service: TokenService, user_repo: UserRepository):
        self.token_service = token_service
        self.user_repo = user_repo

    async def resolve(self, credential: str | None) -> User:
        if not credential:
            raise UnauthorizedError("Unauthorized request: No token provided.")

        claims = self.token_service.verify_access(credential)
        user = await self.user_repo.get_by_id(claims.user_id)
        if user is None:
            raise UnauthorizedError("Unauthorized request: Invalid token.")
        return user
