"""
Unit tests for the database session dependency.

The progress repository owns commit and rollback, so get_db() must only
open and close the session.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from progress_engine.db.base import Base, get_db


def _session_factory(session: MagicMock) -> MagicMock:
    context = MagicMock()
    context.__aenter__ = AsyncMock(return_value=session)
    context.__aexit__ = AsyncMock(return_value=False)
    return MagicMock(return_value=context)


class TestGetDb:
    @pytest.mark.asyncio
    async def test_yields_session_without_committing(self, mock_db_session):
        factory = _session_factory(mock_db_session)

        with patch("progress_engine.db.base.async_session_maker", factory):
            gen = get_db()
            session = await gen.__anext__()
            with pytest.raises(StopAsyncIteration):
                await gen.__anext__()

        assert session is mock_db_session
        mock_db_session.commit.assert_not_awaited()
        mock_db_session.rollback.assert_not_awaited()
        factory.return_value.__aexit__.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_request_errors_propagate_and_close_session(self, mock_db_session):
        factory = _session_factory(mock_db_session)

        with patch("progress_engine.db.base.async_session_maker", factory):
            gen = get_db()
            await gen.__anext__()
            with pytest.raises(RuntimeError):
                await gen.athrow(RuntimeError("handler failed"))

        mock_db_session.commit.assert_not_awaited()
        factory.return_value.__aexit__.assert_awaited_once()


class TestMetadata:
    def test_progress_table_is_registered(self):
        assert "learner_progress" in Base.metadata.tables
