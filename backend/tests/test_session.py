import pytest

import app.db.session as db_session


@pytest.mark.asyncio
async def test_tool_session_requires_registered_factory(monkeypatch):
    monkeypatch.setattr(db_session, "_global_session_factory", None)

    with pytest.raises(RuntimeError):
        async with db_session.tool_db_session():
            pass


@pytest.mark.asyncio
async def test_tool_session_uses_registered_factory(monkeypatch):
    opened = []

    class FakeSession:
        async def __aenter__(self):
            opened.append(self)
            return self

        async def __aexit__(self, *exc):
            return False

    monkeypatch.setattr(db_session, "_global_session_factory", None)
    db_session.set_global_session_factory(FakeSession)

    async with db_session.tool_db_session() as session:
        assert session is opened[0]
