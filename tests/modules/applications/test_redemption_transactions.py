"""
Redemption against a real async session.

The service tests mock the repository; these run redeem_token through
SQLAlchemy on an aiosqlite file database so commit, rollback and
instance expiry behave as they do in production.
"""

from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, patch

import pytest
import pytest_asyncio
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.core.database import Base
from app.modules.applications import repository
from app.modules.applications.models import Application, ApplicationStatus, ApprovalToken
from app.modules.applications.service import (
    DecisionPersistenceError,
    TokenAlreadyUsedError,
    _hash_token,
    redeem_token,
)
from app.modules.incubation_centres.models import IncubationCentre  # noqa: F401

APPROVE_PLAIN = "approve-plain-token"
REJECT_PLAIN = "reject-plain-token"


@pytest_asyncio.fixture
async def session_maker(tmp_path):
    # A file database gives each session its own connection
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'redemption.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, expire_on_commit=False)

    await engine.dispose()


@pytest_asyncio.fixture
async def application_id(session_maker, sample_application_create):
    """A pending application with a live approve/reject pair."""
    async with session_maker() as session:
        application = await repository.create(session, sample_application_create)
        await repository.create_token_pair(
            session,
            application_id=application.id,
            approve_token=_hash_token(APPROVE_PLAIN),
            reject_token=_hash_token(REJECT_PLAIN),
            expires_at=datetime.now(UTC) + timedelta(days=7),
        )
        return application.id


async def _stored_state(session_maker, application_id, plain_token):
    async with session_maker() as session:
        application = await session.get(Application, application_id)
        result = await session.execute(
            select(ApprovalToken).where(ApprovalToken.token == _hash_token(plain_token))
        )
        return application, result.scalar_one()


@pytest.mark.asyncio
class TestRedemptionTransactions:
    async def test_approve_link_approves_and_consumes_token(
        self, session_maker, application_id, mock_notifier
    ):
        async with session_maker() as session:
            result = await redeem_token(session, APPROVE_PLAIN, mock_notifier)

        assert result.status == ApplicationStatus.APPROVED

        application, token = await _stored_state(session_maker, application_id, APPROVE_PLAIN)
        assert application.status == ApplicationStatus.APPROVED
        assert application.approved_at is not None
        assert application.rejected_at is None
        assert token.used is True
        assert token.used_at is not None
        mock_notifier.dispatch.assert_called_once()

    async def test_replayed_link_is_refused(self, session_maker, application_id, mock_notifier):
        async with session_maker() as session:
            await redeem_token(session, REJECT_PLAIN, mock_notifier)

        async with session_maker() as session:
            with pytest.raises(TokenAlreadyUsedError):
                await redeem_token(session, REJECT_PLAIN, mock_notifier)

        application, _ = await _stored_state(session_maker, application_id, REJECT_PLAIN)
        assert application.status == ApplicationStatus.REJECTED
        assert mock_notifier.dispatch.call_count == 1

    async def test_losing_a_concurrent_claim_reports_already_used(
        self, session_maker, application_id, mock_notifier
    ):
        """Another session consumes the token between validation and the claim."""
        record_decision = repository.record_decision

        async def claimed_elsewhere_first(db, **kwargs):
            async with session_maker() as other:
                other_application = await other.get(Application, kwargs["application"].id)
                assert await record_decision(
                    other, **{**kwargs, "application": other_application}
                )
            return await record_decision(db, **kwargs)

        with patch.object(repository, "record_decision", side_effect=claimed_elsewhere_first):
            async with session_maker() as session:
                with pytest.raises(TokenAlreadyUsedError):
                    await redeem_token(session, APPROVE_PLAIN, mock_notifier)

        application, token = await _stored_state(session_maker, application_id, APPROVE_PLAIN)
        assert application.status == ApplicationStatus.APPROVED
        assert token.used is True
        mock_notifier.dispatch.assert_not_called()

    async def test_failed_commit_leaves_token_usable(
        self, session_maker, application_id, mock_notifier
    ):
        async with session_maker() as session:
            with (
                patch.object(
                    AsyncSession, "commit", AsyncMock(side_effect=RuntimeError("disk full"))
                ),
                pytest.raises(DecisionPersistenceError),
            ):
                await redeem_token(session, APPROVE_PLAIN, mock_notifier)

        application, token = await _stored_state(session_maker, application_id, APPROVE_PLAIN)
        assert application.status == ApplicationStatus.PENDING
        assert application.approved_at is None
        assert token.used is False
        mock_notifier.dispatch.assert_not_called()

        async with session_maker() as session:
            result = await redeem_token(session, APPROVE_PLAIN, mock_notifier)

        assert result.status == ApplicationStatus.APPROVED
