"""
Request dependencies: caller identity and the services on app.state.

Identity comes from the ``X-User-Id`` header. When ``FOCUSLOG_API_KEY`` is
set, ``Authorization: Bearer <key>`` is required as well. Either failure
is a 401 before any service code runs.
"""

import hmac
import os

from fastapi import Header, HTTPException, Request, status

from focuslog.logging_config import bind_request_context
from focuslog.services.routine_service import RoutineService
from focuslog.services.summary_service import SummaryService
from focuslog.storage.base import RecordStore


API_KEY_ENV = "FOCUSLOG_API_KEY"


async def get_user_id(
    x_user_id: str | None = Header(default=None),
    authorization: str | None = Header(default=None),
) -> str:
    api_key = os.environ.get(API_KEY_ENV)
    if api_key:
        expected = f"Bearer {api_key}"
        if not authorization or not hmac.compare_digest(authorization.encode(), expected.encode()):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid or missing API key",
            )

    if not x_user_id or not x_user_id.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )
    user_id = x_user_id.strip()
    bind_request_context(user_id)
    return user_id


def get_routine_service(request: Request) -> RoutineService:
    return request.app.state.routine_service


def get_summary_service(request: Request) -> SummaryService:
    return request.app.state.summary_service


def get_store(request: Request) -> RecordStore:
    return request.app.state.store
