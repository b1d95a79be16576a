from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Response, status

from edutrack.api.dependencies import current_user, get_scope, require_any_role, require_user
from edutrack.api.schemas import (
    CountOut,
    DelayCheckOut,
    MessageOut,
    NotificationOut,
    NotifySgIn,
    UserOut,
)
from edutrack.models.principal import Principal
from edutrack.models.user import ADMIN, FOUNDER, INSPECTOR, TEACHER
from edutrack.repos.store import store
from edutrack.services import notification_service, users_service
from edutrack.services.visibility import AccessScope

logger = logging.getLogger(__name__)

router = APIRouter(tags=["notifications"])

AnyUser = Annotated[Principal, Depends(require_user)]


@router.get("/api/notifications", response_model=list[NotificationOut])
def list_notifications(
    principal: AnyUser,
    limit: Annotated[int, Query(ge=1, le=100)] = notification_service.DEFAULT_LIMIT,
) -> list[NotificationOut]:
    rows = notification_service.list_for_user(store, principal.user_id, limit=limit)
    return [NotificationOut.of(n) for n in rows]


@router.get("/api/notifications/count", response_model=CountOut)
def count_unread(principal: AnyUser) -> CountOut:
    return CountOut(count=notification_service.unread_count(store, principal.user_id))


@router.post("/api/notifications/read-all", response_model=CountOut)
def read_all(principal: AnyUser) -> CountOut:
    return CountOut(count=notification_service.mark_all_read(store, principal.user_id))


@router.post("/api/notifications/check-delays", response_model=DelayCheckOut)
def check_delays(scope: Annotated[AccessScope, Depends(get_scope)]) -> DelayCheckOut:
    result = notification_service.check_delays(store, scope)
    return DelayCheckOut(
        message=f"{result.delays} delay(s) and {result.reminders} reminder(s) notified",
        delays=result.delays,
        reminders=result.reminders,
    )


@router.post("/api/notifications/{notification_id}/read", response_model=NotificationOut)
def read_one(notification_id: int, principal: AnyUser) -> NotificationOut:
    return NotificationOut.of(
        notification_service.mark_read(store, principal.user_id, notification_id)
    )


@router.delete("/api/notifications/{notification_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_one(notification_id: int, principal: AnyUser) -> Response:
    notification_service.delete(store, principal.user_id, notification_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/api/notify-sg", response_model=MessageOut)
def notify_sg(body: NotifySgIn, principal: AnyUser) -> MessageOut:
    sent = notification_service.notify_sg(
        store,
        current_user(principal),
        title=body.title,
        message=body.message,
        priority=body.priority,
    )
    return MessageOut(message=f"Notification sent to {sent} SG user(s)")


@router.get("/api/sg-users", response_model=list[UserOut])
def list_sg_users(
    _principal: Annotated[
        Principal, Depends(require_any_role({TEACHER, INSPECTOR, FOUNDER, ADMIN}))
    ],
) -> list[UserOut]:
    return [UserOut.of(u) for u in users_service.list_sg_users(store)]
