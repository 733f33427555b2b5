"""
Pydantic schemas for request payloads.
"""

from __future__ import annotations

from pydantic import BaseModel

from userapi.errors import ValidationError


class UserRequest(BaseModel):
    """Body of ``POST /users`` and ``PUT /users/{id}``."""

    name: str = ""
    email: str = ""

    def validate_fields(self, is_update: bool = False) -> None:
        if not is_update:
            if not self.name:
                raise ValidationError("name is required")
            if not self.email:
                raise ValidationError("email is required")
        elif not self.name and not self.email:
            raise ValidationError("no fields to update")
