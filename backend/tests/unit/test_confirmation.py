# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Unit tests for the confirmation gate
"""

import re
import threading

import pytest

from orchestrator.core.errors import ToolError, ToolErrorCategory
from orchestrator.tools.confirmation import ConfirmationGate, ConfirmationRequest, guard_destructive_action


def _request(gate, **overrides):
    kwargs = {
        "action": "Remove",
        "target": "Dune.2021.2160p",
        "severity": "medium",
        "tool_name": "manage_downloads",
        "params": {"action": "remove", "downloadId": "abc"},
    }
    kwargs.update(overrides)
    return gate.request_confirmation(**kwargs)


class TestRequestConfirmation:
    def test_id_format_and_pending_entry(self, gate, clock):
        confirmation_id = _request(gate)

        assert re.fullmatch(r"confirm_\d+_[0-9a-f]{8}", confirmation_id)

        pending = gate.get_pending(confirmation_id)
        assert pending is not None
        assert pending.tool_name == "manage_downloads"
        assert pending.params == {"action": "remove", "downloadId": "abc"}
        assert pending.created_at == clock.now
        assert (pending.expires_at - pending.created_at).total_seconds() == 300

    def test_ids_are_unique(self, gate):
        ids = {_request(gate) for _ in range(50)}
        assert len(ids) == 50
        assert gate.count() == 50

    def test_params_are_copied(self, gate):
        params = {"action": "remove"}
        confirmation_id = _request(gate, params=params)
        params["action"] = "pause"

        assert gate.get_pending(confirmation_id).params == {"action": "remove"}

    def test_serializes_with_camel_case(self, gate):
        pending = gate.get_pending(_request(gate))
        data = pending.model_dump(mode="json", by_alias=True)

        assert {"confirmationId", "toolName", "createdAt", "expiresAt"} <= set(data)


class TestConfirmAndCancel:
    def test_confirm_succeeds_exactly_once(self, gate):
        confirmation_id = _request(gate)

        assert gate.confirm_action(confirmation_id) is True
        assert gate.confirm_action(confirmation_id) is False
        assert gate.get_pending(confirmation_id) is None

    def test_confirm_for_other_call_keeps_entry(self, gate):
        confirmation_id = _request(gate)

        assert gate.confirm_action(confirmation_id, tool_name="bulk_delete_media") is False
        assert gate.confirm_action(confirmation_id, tool_name="manage_downloads", target="Arrival") is False
        assert gate.get_pending(confirmation_id) is not None

        assert gate.confirm_action(
            confirmation_id, tool_name="manage_downloads", action="Remove", target="Dune.2021.2160p",
        ) is True

    def test_unknown_id(self, gate):
        assert gate.confirm_action("confirm_0_deadbeef") is False
        assert gate.get_pending("confirm_0_deadbeef") is None

    def test_cancel_after_confirm_is_noop(self, gate):
        confirmation_id = _request(gate)
        gate.confirm_action(confirmation_id)

        gate.cancel_action(confirmation_id)

        assert gate.count() == 0

    def test_cancel_prevents_confirm(self, gate):
        confirmation_id = _request(gate)

        gate.cancel_action(confirmation_id)
        gate.cancel_action(confirmation_id)

        assert gate.confirm_action(confirmation_id) is False

    def test_concurrent_confirm_consumes_once(self, gate):
        """Only one thread wins the race for a confirmation"""
        confirmation_id = _request(gate)
        outcomes = []
        barrier = threading.Barrier(8)

        def worker():
            barrier.wait()
            outcomes.append(gate.confirm_action(confirmation_id))

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert outcomes.count(True) == 1


class TestExpiry:
    def test_still_valid_before_ttl(self, gate, clock):
        confirmation_id = _request(gate)
        clock.advance(seconds=299)

        assert gate.get_pending(confirmation_id) is not None
        assert gate.confirm_action(confirmation_id) is True

    def test_expired_confirmation_fails(self, gate, clock):
        confirmation_id = _request(gate)
        clock.advance(minutes=5, seconds=1)

        assert gate.confirm_action(confirmation_id) is False
        assert gate.count() == 0

    def test_get_pending_purges_expired(self, gate, clock):
        confirmation_id = _request(gate)
        clock.advance(minutes=6)

        assert gate.get_pending(confirmation_id) is None
        assert gate.count() == 0

    def test_purge_and_list(self, gate, clock):
        old = _request(gate)
        clock.advance(minutes=4)
        fresh = _request(gate)
        clock.advance(minutes=2)

        assert [p.confirmation_id for p in gate.list_pending()] == [fresh]
        assert gate.get_pending(old) is None
        assert gate.purge_expired() == 0

    def test_custom_ttl(self, clock):
        gate = ConfirmationGate(ttl_seconds=10, clock=clock)
        confirmation_id = _request(gate)
        clock.advance(seconds=10)

        assert gate.confirm_action(confirmation_id) is False


class TestGuardDestructiveAction:
    """Two-phase flow a destructive tool runs through"""

    def test_safe_call_proceeds(self, context, gate):
        outcome = guard_destructive_action(
            context, gate, "manage_downloads", {"action": "list"}, action="List", target="downloads",
        )

        assert outcome is None
        assert gate.count() == 0

    def test_first_call_requests_confirmation(self, context, gate):
        params = {"action": "remove", "downloadId": "abc"}

        outcome = guard_destructive_action(
            context, gate, "manage_downloads", params, action="Remove", target="Dune.2021.2160p",
        )

        assert isinstance(outcome, ConfirmationRequest)
        assert outcome.requires_confirmation is True
        assert outcome.severity == "medium"
        assert outcome.confirmation_prompt == 'This will remove "Dune.2021.2160p". Do you want to proceed?'

        payload = outcome.model_dump(by_alias=True)
        assert payload["requiresConfirmation"] is True
        assert payload["confirmationId"] == outcome.confirmation_id

        pending = gate.get_pending(outcome.confirmation_id)
        assert pending.tool_name == "manage_downloads"
        assert pending.params == params

    def test_second_call_with_id_consumes(self, context, gate):
        params = {"action": "remove", "downloadId": "abc"}
        request = guard_destructive_action(context, gate, "manage_downloads", params, "Remove", "Dune")

        outcome = guard_destructive_action(
            context, gate, "manage_downloads", params, "Remove", "Dune",
            confirmation_id=request.confirmation_id,
        )

        assert outcome is None
        assert gate.get_pending(request.confirmation_id) is None

    def test_id_for_another_action_is_rejected(self, context, gate):
        """An id approved for one delete can't authorize a different tool or target"""
        request = guard_destructive_action(
            context, gate, "manage_media", {"action": "delete", "mediaId": 7}, "Delete", "Dune",
        )

        with pytest.raises(ToolError) as exc_info:
            guard_destructive_action(
                context, gate, "bulk_delete_media", {"mediaIds": [1, 2, 3]}, "Delete", "Everything",
                confirmation_id=request.confirmation_id,
            )

        assert exc_info.value.category == ToolErrorCategory.OPERATION_FAILED
        assert exc_info.value.message == "Confirmation does not match this action"
        assert '"Dune"' in exc_info.value.actionable_hint
        assert gate.get_pending(request.confirmation_id) is not None

    def test_same_tool_other_target_is_rejected(self, context, gate):
        params = {"action": "delete", "mediaId": 7}
        request = guard_destructive_action(context, gate, "manage_media", params, "Delete", "Dune")

        with pytest.raises(ToolError, match="does not match"):
            guard_destructive_action(
                context, gate, "manage_media", {"action": "delete", "mediaId": 8}, "Delete", "Arrival",
                confirmation_id=request.confirmation_id,
            )

        outcome = guard_destructive_action(
            context, gate, "manage_media", params, "Delete", "Dune", confirmation_id=request.confirmation_id,
        )
        assert outcome is None

    def test_reused_id_raises(self, context, gate):
        params = {"action": "delete", "mediaId": 7}
        request = guard_destructive_action(context, gate, "manage_media", params, "Delete", "Dune")
        guard_destructive_action(
            context, gate, "manage_media", params, "Delete", "Dune", confirmation_id=request.confirmation_id,
        )

        with pytest.raises(ToolError) as exc_info:
            guard_destructive_action(
                context, gate, "manage_media", params, "Delete", "Dune", confirmation_id=request.confirmation_id,
            )

        assert exc_info.value.category == ToolErrorCategory.OPERATION_FAILED
        assert exc_info.value.message == "Confirmation expired or invalid"

    def test_custom_prompt(self, context, gate):
        outcome = guard_destructive_action(
            context, gate, "delete_files", {}, "Delete", "/media/old",
            prompt="Delete every file under /media/old?",
        )

        assert outcome.confirmation_prompt == "Delete every file under /media/old?"
        assert outcome.severity == "high"
