"""
Unit tests for the admin side of the applications service.
"""

from unittest.mock import AsyncMock, patch
from uuid import uuid4

import pytest

from app.modules.applications.models import ApplicationStatus
from app.modules.applications.service import (
    ApplicationNotFoundError,
    InvalidApplicationStateError,
    LiveTokensExistError,
    admin_get_application_detail,
    admin_get_applications_list,
    admin_get_dashboard_stats,
    admin_resend_review_request,
)

SERVICE = "app.modules.applications.service"


class TestAdminGetApplicationsList:
    @pytest.mark.asyncio
    async def test_passes_filters_to_repository(self, mock_db, sample_application_model):
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_applications_for_admin = AsyncMock(
                return_value=([sample_application_model], 1)
            )

            result = await admin_get_applications_list(
                mock_db,
                status=ApplicationStatus.PENDING,
                search="  green ",
                sort_order="asc",
                skip=0,
                limit=20,
            )

            mock_repo.get_applications_for_admin.assert_called_once_with(
                mock_db,
                status=ApplicationStatus.PENDING,
                search="green",
                sort_order="asc",
                skip=0,
                limit=20,
            )
            assert result["total"] == 1
            assert result["applications"] == [sample_application_model]

    @pytest.mark.asyncio
    async def test_limit_and_skip_are_clamped(self, mock_db):
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_applications_for_admin = AsyncMock(return_value=([], 0))

            result = await admin_get_applications_list(mock_db, skip=-5, limit=500)

            assert result["limit"] == 100
            assert result["skip"] == 0


class TestAdminGetDashboardStats:
    @pytest.mark.asyncio
    async def test_returns_repository_counts(self, mock_db):
        counts = {"all": 4, "pending": 2, "approved": 1, "rejected": 1}
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_dashboard_stats = AsyncMock(return_value=counts)

            assert await admin_get_dashboard_stats(mock_db) == counts


class TestAdminGetApplicationDetail:
    @pytest.mark.asyncio
    async def test_returns_application_with_tokens(
        self, mock_db, sample_application_model, approve_token, reject_token
    ):
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_by_id = AsyncMock(return_value=sample_application_model)
            mock_repo.get_tokens_for_application = AsyncMock(
                return_value=[approve_token, reject_token]
            )

            application, tokens = await admin_get_application_detail(
                mock_db, sample_application_model.id
            )

            assert application is sample_application_model
            assert tokens == [approve_token, reject_token]

    @pytest.mark.asyncio
    async def test_not_found(self, mock_db):
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_by_id = AsyncMock(return_value=None)

            with pytest.raises(ApplicationNotFoundError):
                await admin_get_application_detail(mock_db, uuid4())


class TestAdminResendReviewRequest:
    @pytest.mark.asyncio
    async def test_reissues_when_no_live_tokens(
        self, mock_db, mock_notifier, sample_application_model, sample_centre
    ):
        with (
            patch(f"{SERVICE}.repository") as mock_repo,
            patch(f"{SERVICE}.IncubationCentreRepository") as mock_centres,
        ):
            mock_repo.get_by_id = AsyncMock(return_value=sample_application_model)
            mock_repo.count_live_tokens = AsyncMock(return_value=0)
            mock_repo.create_token_pair = AsyncMock()
            mock_centres.get_by_name = AsyncMock(return_value=sample_centre)

            issued = await admin_resend_review_request(
                mock_db, sample_application_model.id, mock_notifier
            )

            assert issued.application_id == sample_application_model.id
            assert issued.reviewer_email == "reviewer@bangalorehub.org"
            mock_repo.create_token_pair.assert_called_once()
            mock_notifier.dispatch.assert_called_once()

    @pytest.mark.asyncio
    async def test_refused_while_live_tokens_exist(
        self, mock_db, mock_notifier, sample_application_model
    ):
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_by_id = AsyncMock(return_value=sample_application_model)
            mock_repo.count_live_tokens = AsyncMock(return_value=2)
            mock_repo.create_token_pair = AsyncMock()

            with pytest.raises(LiveTokensExistError) as exc_info:
                await admin_resend_review_request(
                    mock_db, sample_application_model.id, mock_notifier
                )

            assert exc_info.value.status_code == 409
            mock_repo.create_token_pair.assert_not_called()
            mock_notifier.dispatch.assert_not_called()

    @pytest.mark.asyncio
    async def test_refused_for_decided_application(
        self, mock_db, mock_notifier, sample_application_model
    ):
        sample_application_model.status = ApplicationStatus.APPROVED
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_by_id = AsyncMock(return_value=sample_application_model)
            mock_repo.count_live_tokens = AsyncMock()

            with pytest.raises(InvalidApplicationStateError):
                await admin_resend_review_request(
                    mock_db, sample_application_model.id, mock_notifier
                )

            mock_repo.count_live_tokens.assert_not_called()

    @pytest.mark.asyncio
    async def test_not_found(self, mock_db, mock_notifier):
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_by_id = AsyncMock(return_value=None)

            with pytest.raises(ApplicationNotFoundError):
                await admin_resend_review_request(mock_db, uuid4(), mock_notifier)
