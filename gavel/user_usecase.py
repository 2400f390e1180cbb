"""Use case for looking up users."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from gavel.entities import UserRepositoryProtocol


@dataclass(frozen=True)
class UserOutput:
    """A user as returned to clients."""

    id: str
    name: str

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON body for this user."""
        return {"id": self.id, "name": self.name}


class UserUseCase:
    """Looks users up by id."""

    def __init__(self, user_repository: UserRepositoryProtocol) -> None:
        self.user_repository = user_repository

    def find_user_by_id(self, user_id: str) -> UserOutput:
        """Return the user with this id; raises InternalError when it fails."""
        user = self.user_repository.find_user_by_id(user_id)
        return UserOutput(id=user.id, name=user.name)