"""
Unit tests for leave requests.

These tests cover:
- Date range and decision validation
- Filing a leave request
- Deciding pending requests only, recording the acting profile
"""

from datetime import date
from types import SimpleNamespace
from unittest.mock import AsyncMock, patch
from uuid import uuid4

import pytest
from pydantic import ValidationError

from sasm_ims.core.errors import AppError
from sasm_ims.modules.leaves.models import Leave, LeaveStatus
from sasm_ims.modules.leaves.schemas import LeaveCreate, LeaveDecision
from sasm_ims.modules.leaves.service import (
    LeaveNotFoundError,
    decide_leave,
    list_leaves,
    submit_leave,
)

SERVICE = "sasm_ims.modules.leaves.service"


def leave_payload(**overrides) -> dict:
    payload = {
        "name": "Juan Cruz",
        "school_dept": "College of Engineering",
        "course_year": "BSCE 3",
        "type_of_leave": "Sick leave",
        "date_from": date(2026, 10, 20),
        "date_to": date(2026, 10, 21),
        "days_hours": "2 days",
        "reasons": "Fever",
        "signature_name": "Juan Cruz",
        "signature_date": date(2026, 10, 19),
    }
    payload.update(overrides)
    return payload


def make_leave(status=LeaveStatus.PENDING) -> Leave:
    leave = Leave(account_id=uuid4(), status=status, **leave_payload())
    leave.id = uuid4()
    return leave


class TestLeaveSchemas:
    """Tests for leave request validation."""

    def test_single_day_leave(self):
        data = LeaveCreate(**leave_payload(date_to=date(2026, 10, 20)))
        assert data.date_from == data.date_to

    def test_date_to_before_date_from(self):
        with pytest.raises(ValidationError) as exc_info:
            LeaveCreate(**leave_payload(date_to=date(2026, 10, 19)))
        assert "date_to cannot be before date_from" in str(exc_info.value)

    def test_decision_cannot_be_pending(self):
        with pytest.raises(ValidationError):
            LeaveDecision(status=LeaveStatus.PENDING)

    def test_decision_defaults(self):
        decision = LeaveDecision(status=LeaveStatus.APPROVED)
        assert decision.allow_resubmit is False
        assert decision.remarks is None


class TestSubmitLeave:
    @pytest.mark.asyncio
    async def test_files_pending_leave(self, mock_db, student_user):
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.create = AsyncMock(side_effect=lambda db, leave: leave)

            leave = await submit_leave(mock_db, student_user, LeaveCreate(**leave_payload()))

        assert leave.account_id == student_user.id
        assert leave.status == LeaveStatus.PENDING
        assert leave.type_of_leave == "Sick leave"

    @pytest.mark.asyncio
    async def test_list_pagination(self, mock_db):
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_leaves = AsyncMock(return_value=([], 21))

            result = await list_leaves(mock_db, status_filter=LeaveStatus.PENDING, page=2)

        assert result["total_pages"] == 2
        mock_repo.get_leaves.assert_called_once_with(
            mock_db, status=LeaveStatus.PENDING, skip=20, limit=20
        )


class TestDecideLeave:
    """Tests for decide_leave function."""

    @pytest.mark.asyncio
    async def test_not_found(self, mock_db, hr_user):
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_by_id = AsyncMock(return_value=None)

            with pytest.raises(LeaveNotFoundError):
                await decide_leave(
                    mock_db, hr_user, uuid4(), LeaveDecision(status=LeaveStatus.APPROVED)
                )

    @pytest.mark.asyncio
    async def test_already_decided(self, mock_db, hr_user):
        leave = make_leave(LeaveStatus.APPROVED)
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_by_id = AsyncMock(return_value=leave)

            with pytest.raises(AppError) as exc_info:
                await decide_leave(
                    mock_db, hr_user, leave.id, LeaveDecision(status=LeaveStatus.DISAPPROVED)
                )

        assert exc_info.value.error_code == "LEAVE_ALREADY_DECIDED"
        assert leave.status == LeaveStatus.APPROVED
        mock_db.commit.assert_not_called()

    @pytest.mark.asyncio
    async def test_profile_decision_is_recorded(self, mock_db, office_user):
        leave = make_leave()
        account = SimpleNamespace(id=office_user.id, email="registrar@school.edu")
        with (
            patch(f"{SERVICE}.repository") as mock_repo,
            patch(
                f"{SERVICE}.describe_actor",
                new_callable=AsyncMock,
                return_value=(account, "Maria", office_user.profile_id),
            ),
            patch(f"{SERVICE}.create_audit_log", new_callable=AsyncMock) as mock_audit,
        ):
            mock_repo.get_by_id = AsyncMock(return_value=leave)

            result = await decide_leave(
                mock_db,
                office_user,
                leave.id,
                LeaveDecision(
                    status=LeaveStatus.DISAPPROVED,
                    remarks="Missing medical certificate",
                    allow_resubmit=True,
                ),
            )

        assert result.status == LeaveStatus.DISAPPROVED
        assert result.decided_by == office_user.id
        assert result.decided_by_profile == "Maria"
        assert result.allow_resubmit is True
        assert result.decided_at is not None
        mock_db.commit.assert_called_once()

        audit = mock_audit.call_args.kwargs
        assert audit["profile_id"] == office_user.profile_id
        assert audit["action"] == "DECIDE_LEAVE"
        assert audit["new_value"] == {"status": "disapproved"}

    @pytest.mark.asyncio
    async def test_hr_decision_has_no_profile(self, mock_db, hr_user):
        leave = make_leave()
        account = SimpleNamespace(id=hr_user.id, email="hr@school.edu")
        with (
            patch(f"{SERVICE}.repository") as mock_repo,
            patch(
                f"{SERVICE}.describe_actor",
                new_callable=AsyncMock,
                return_value=(account, "HR Admin", None),
            ),
            patch(f"{SERVICE}.create_audit_log", new_callable=AsyncMock),
        ):
            mock_repo.get_by_id = AsyncMock(return_value=leave)

            result = await decide_leave(
                mock_db, hr_user, leave.id, LeaveDecision(status=LeaveStatus.APPROVED)
            )

        assert result.status == LeaveStatus.APPROVED
        assert result.decided_by_profile is None
