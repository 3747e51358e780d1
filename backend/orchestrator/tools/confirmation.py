# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Confirmation Gate

In-memory two-phase approval for destructive tool calls. A pending
confirmation is consumed at most once: confirmed, cancelled, or expired.
"""

import threading
import time
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from orchestrator.core.errors import ToolError, ToolErrorCategory
from orchestrator.core.logging import get_service_logger
from orchestrator.tools.context import Severity, ToolContext

logger = get_service_logger("confirmation")

DEFAULT_TTL_SECONDS = 300.0


class PendingConfirmation(BaseModel):
    """A destructive action waiting for the user's decision"""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    confirmation_id: str = Field(alias="confirmationId")
    action: str
    target: str
    severity: Severity
    tool_name: str = Field(alias="toolName")
    params: Dict[str, Any] = {}
    created_at: datetime = Field(alias="createdAt")
    expires_at: datetime = Field(alias="expiresAt")

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at

    def matches(
        self,
        tool_name: Optional[str] = None,
        action: Optional[str] = None,
        target: Optional[str] = None,
    ) -> bool:
        """Whether this confirmation was issued for the given call. None skips a field."""
        return (
            (tool_name is None or tool_name == self.tool_name)
            and (action is None or action == self.action)
            and (target is None or target == self.target)
        )


class ConfirmationRequest(BaseModel):
    """Tool result data telling the host to ask the user before proceeding"""
    model_config = ConfigDict(populate_by_name=True)

    requires_confirmation: bool = Field(default=True, alias="requiresConfirmation")
    confirmation_id: str = Field(alias="confirmationId")
    confirmation_prompt: str = Field(alias="confirmationPrompt")
    severity: Severity
    message: Optional[str] = None


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ConfirmationGate:
    """
    Store of pending confirmations keyed by generated id.

    Args:
        ttl_seconds: How long a confirmation stays valid
        clock: Returns the current time (injectable for tests)
    """

    def __init__(self, ttl_seconds: float = DEFAULT_TTL_SECONDS, clock: Callable[[], datetime] = _utcnow):
        self.ttl = timedelta(seconds=ttl_seconds)
        self._clock = clock
        self._pending: Dict[str, PendingConfirmation] = {}
        self._lock = threading.Lock()

    def request_confirmation(
        self,
        action: str,
        target: str,
        severity: Severity,
        tool_name: str,
        params: Optional[Dict[str, Any]] = None,
    ) -> str:
        """Store a pending confirmation and return its id. Nothing is executed."""
        now = self._clock()
        confirmation_id = f"confirm_{int(time.time() * 1000)}_{uuid.uuid4().hex[:8]}"
        pending = PendingConfirmation(
            confirmation_id=confirmation_id,
            action=action,
            target=target,
            severity=severity,
            tool_name=tool_name,
            params=dict(params or {}),
            created_at=now,
            expires_at=now + self.ttl,
        )

        with self._lock:
            self._pending[confirmation_id] = pending

        logger.info(
            "Confirmation requested",
            extra={
                "confirmation_id": confirmation_id,
                "tool_name": tool_name,
                "action": action,
                "target": target,
                "severity": severity,
            },
        )
        return confirmation_id

    def get_pending(self, confirmation_id: str) -> Optional[PendingConfirmation]:
        """Look up a live confirmation; expired entries are purged and reported as absent."""
        with self._lock:
            pending = self._pending.get(confirmation_id)
            if pending is None:
                return None
            if pending.is_expired(self._clock()):
                del self._pending[confirmation_id]
                return None
            return pending

    def confirm_action(
        self,
        confirmation_id: str,
        tool_name: Optional[str] = None,
        action: Optional[str] = None,
        target: Optional[str] = None,
    ) -> bool:
        """
        Consume a confirmation.

        When tool_name, action or target are given, the pending entry must
        have been issued for them; a mismatch leaves it pending.

        Returns:
            True once for a live, matching id; False for unknown, expired,
            already consumed or mismatched ids
        """
        with self._lock:
            pending = self._pending.get(confirmation_id)
            if pending is None:
                return False
            expired = pending.is_expired(self._clock())
            mismatched = not expired and not pending.matches(tool_name, action, target)
            if not mismatched:
                del self._pending[confirmation_id]

        if expired:
            logger.info("Confirmation expired", extra={"confirmation_id": confirmation_id})
            return False
        if mismatched:
            logger.warning(
                "Confirmation used for a different action",
                extra={
                    "confirmation_id": confirmation_id,
                    "issued_for": pending.tool_name,
                    "tool_name": tool_name,
                    "action": action,
                    "target": target,
                },
            )
            return False

        logger.info(
            "Confirmation consumed",
            extra={"confirmation_id": confirmation_id, "tool_name": pending.tool_name},
        )
        return True

    def cancel_action(self, confirmation_id: str) -> None:
        """Drop a confirmation. Idempotent."""
        with self._lock:
            removed = self._pending.pop(confirmation_id, None)
        if removed is not None:
            logger.info("Confirmation cancelled", extra={"confirmation_id": confirmation_id})

    def list_pending(self) -> List[PendingConfirmation]:
        self.purge_expired()
        with self._lock:
            return sorted(self._pending.values(), key=lambda p: p.created_at)

    def purge_expired(self) -> int:
        """Remove expired confirmations. Returns how many were removed."""
        now = self._clock()
        with self._lock:
            expired = [cid for cid, p in self._pending.items() if p.is_expired(now)]
            for cid in expired:
                del self._pending[cid]
        return len(expired)

    def count(self) -> int:
        with self._lock:
            return len(self._pending)


def guard_destructive_action(
    context: ToolContext,
    gate: ConfirmationGate,
    tool_name: str,
    params: Dict[str, Any],
    action: str,
    target: str,
    confirmation_id: Optional[str] = None,
    prompt: Optional[str] = None,
) -> Optional[ConfirmationRequest]:
    """
    Two-phase check a tool runs before mutating external state.

    Returns:
        None when the tool may proceed (safe call, or a valid confirmation
        id was consumed); a ConfirmationRequest the tool should return as its
        data when the user must be asked first.

    Raises:
        ToolError: OPERATION_FAILED when confirmation_id is expired, invalid,
            or was issued for another tool, action or target
    """
    classification = context.classify_destructive(tool_name, params)
    if classification is None:
        return None

    if confirmation_id is None:
        new_id = gate.request_confirmation(
            action=action,
            target=target,
            severity=classification.severity,
            tool_name=tool_name,
            params=params,
        )
        return ConfirmationRequest(
            confirmation_id=new_id,
            confirmation_prompt=prompt or f'This will {action.lower()} "{target}". Do you want to proceed?',
            severity=classification.severity,
            message=f'Are you sure you want to {action.lower()} "{target}"?',
        )

    pending = gate.get_pending(confirmation_id)
    if pending is not None and not pending.matches(tool_name, action, target):
        raise ToolError(
            "Confirmation does not match this action",
            ToolErrorCategory.OPERATION_FAILED,
            f'The confirmation was issued to {pending.action.lower()} "{pending.target}". '
            "Please request confirmation for this action.",
            {"confirmation_id": confirmation_id, "tool_name": tool_name},
        )

    if not gate.confirm_action(confirmation_id, tool_name=tool_name, action=action, target=target):
        raise ToolError(
            "Confirmation expired or invalid",
            ToolErrorCategory.OPERATION_FAILED,
            "The confirmation has expired or is invalid. Please request the action again.",
            {"confirmation_id": confirmation_id},
        )

    return None
