# tests/domain/test_run.py
from domain.run import RunContext


class TestRunContext:
    def test_create_empty_run_context(self):
        ctx = RunContext()
        assert ctx.run_id == ""
        assert ctx.vars == {}
        assert ctx.results == []

    def test_run_context_with_vars(self):
        ctx = RunContext(vars={"key1": "value1", "key2": 123})
        assert ctx.vars == {"key1": "value1", "key2": 123}

    def test_reset_clears_store_in_place(self):
        store = {"jobId": "j-1"}
        ctx = RunContext(run_id="run-1", vars=store, results=["r"])

        ctx.reset()

        assert ctx.vars is store
        assert store == {}
        assert ctx.results == []
        assert ctx.run_id == ""
