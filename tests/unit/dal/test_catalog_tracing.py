import pytest

from dal.tracing import trace_enabled, trace_query_operation


def test_trace_enabled_flag(monkeypatch):
    """Tracing follows DAL_TRACE_QUERIES and ignores unparseable values."""
    assert trace_enabled() is False
    monkeypatch.setenv("DAL_TRACE_QUERIES", "true")
    assert trace_enabled() is True
    monkeypatch.setenv("DAL_TRACE_QUERIES", "sometimes")
    assert trace_enabled() is False


@pytest.mark.asyncio
@pytest.mark.parametrize("flag", ["0", "1"])
async def test_trace_query_operation_returns_result(monkeypatch, flag):
    """The wrapped operation's result is returned with tracing on or off."""
    monkeypatch.setenv("DAL_TRACE_QUERIES", flag)

    async def operation():
        return [{"Field": "id"}]

    result = await trace_query_operation("dal.schema.query", "mysql", "SHOW TRIGGERS", operation())
    assert result == [{"Field": "id"}]


@pytest.mark.asyncio
async def test_trace_query_operation_reraises(monkeypatch):
    """Failures inside a traced span propagate unchanged."""
    monkeypatch.setenv("DAL_TRACE_QUERIES", "1")

    async def operation():
        raise LookupError("missing")

    with pytest.raises(LookupError):
        await trace_query_operation("dal.schema.query", "mysql", None, operation())
