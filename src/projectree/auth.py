from abc import ABC, abstractmethod
from typing import Optional

from .models import UserRef


class AuthService(ABC):
    """Source of the currently signed-in user."""

    @abstractmethod
    def current_user_id(self) -> Optional[str]:
        """Id of the signed-in user, or None when nobody is signed in."""
        ...

    def current_user(self) -> Optional[UserRef]:
        user_id = self.current_user_id()
        return UserRef(id=user_id) if user_id else None


class StaticAuthService(AuthService):
    """A fixed user, typically taken from configuration."""

    def __init__(self, user: Optional[UserRef] = None):
        self._user = user

    @classmethod
    def from_settings(cls, settings) -> 'StaticAuthService':
        if not settings.user_id:
            return cls(None)
        return cls(UserRef(id=settings.user_id, full_name=settings.user_name, email=settings.user_email))

    def current_user_id(self) -> Optional[str]:
        return self._user.id if self._user else None

    def current_user(self) -> Optional[UserRef]:
        return self._user
