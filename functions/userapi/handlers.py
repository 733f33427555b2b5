"""
Request handlers for the user resource and the root/health endpoints.

Handlers take a canonical ``Request`` and return a ``Response``; failures are
raised as ``ApiError`` subclasses and turned into responses by the router.
"""

from __future__ import annotations

import logging
from dataclasses import replace

from pydantic import ValidationError as PydanticValidationError

from userapi.errors import ValidationError
from userapi.messages import Request, Response, json_response
from userapi.models import User
from userapi.repository import UserRepository
from userapi.schemas import UserRequest

logger = logging.getLogger(__name__)


def root(request: Request) -> Response:
    return json_response(200, {"message": "Welcome to the Go Lambda API"})


def health(request: Request) -> Response:
    return json_response(200, {"message": "Health Check OK"})


def _parse_user_request(body: str) -> UserRequest:
    try:
        return UserRequest.model_validate_json(body or "")
    except PydanticValidationError as exc:
        errors = exc.errors()
        detail = errors[0]["msg"] if errors else str(exc)
        raise ValidationError(f"invalid request body: {detail}") from exc


def _require_user_id(request: Request) -> str:
    user_id = request.path_params.get("id", "")
    if not user_id:
        raise ValidationError("user ID is required")
    return user_id


class UserHandler:
    """CRUD handlers bound to one repository."""

    def __init__(self, repo: UserRepository):
        self.repo = repo

    def create(self, request: Request) -> Response:
        payload = _parse_user_request(request.body)
        payload.validate_fields(is_update=False)

        user = self.repo.create(User.new(name=payload.name, email=payload.email))
        logger.info("Created user %s", user.id)
        return json_response(201, user.as_dict())

    def get(self, request: Request) -> Response:
        user = self.repo.get_by_id(_require_user_id(request))
        return json_response(200, user.as_dict())

    def list(self, request: Request) -> Response:
        return json_response(200, [user.as_dict() for user in self.repo.list()])

    def update(self, request: Request) -> Response:
        user_id = _require_user_id(request)
        payload = _parse_user_request(request.body)
        payload.validate_fields(is_update=True)

        existing = self.repo.get_by_id(user_id)
        # Empty fields keep the stored value; id and created_at never change.
        updated = replace(
            existing,
            name=payload.name or existing.name,
            email=payload.email or existing.email,
        )
        updated = self.repo.update(updated)
        logger.info("Updated user %s", updated.id)
        return json_response(200, updated.as_dict())

    def delete(self, request: Request) -> Response:
        user_id = _require_user_id(request)
        self.repo.delete(user_id)
        logger.info("Deleted user %s", user_id)
        return json_response(204)
