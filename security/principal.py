from __future__ import annotations

from pydantic import BaseModel


class AuthPrincipal(BaseModel):
    user_id: str
    email: str | None = None
    role: str | None = None
    jwt_token: str

    @property
    def display_name(self) -> str:
        return self.email or self.user_id
