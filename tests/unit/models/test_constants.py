"""Unit tests for models.constants module."""

from hostresolve.models import ResolveOperation, ServiceName


class TestServiceName:
    def test_values(self):
        assert {s.value for s in ServiceName} == {"repairer", "sweeper", "flusher"}

    def test_str_compatible(self):
        assert ServiceName.REPAIRER == "repairer"
        assert f"{ServiceName.SWEEPER}" == "sweeper"


class TestResolveOperation:
    def test_values(self):
        assert {op.value for op in ResolveOperation} == {
            "write_resolved",
            "write_resolved_rejected",
            "write_unresolved",
            "read_resolved",
            "read_unresolved",
            "read_resolved_all",
        }
