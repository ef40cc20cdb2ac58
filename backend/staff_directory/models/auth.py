from __future__ import annotations

from pydantic import BaseModel


class UserInfo(BaseModel):
    id: str | None = None
    name: str | None = None
    email: str | None = None
    roles: list[str] = []

    def has_any_role(self, roles: list[str] | tuple[str, ...]) -> bool:
        wanted = {r.lower() for r in roles}
        return any(r.lower() in wanted for r in self.roles)
