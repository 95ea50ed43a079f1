"""
Unit tests for the identity registry.
"""

from RelayChat.core.server.identity import IdentityRegistry


class TestIdentityRegistry:
    """Tests for IdentityRegistry."""

    def setup_method(self):
        self.registry = IdentityRegistry()

    def test_bind_then_lookup(self):
        self.registry.bind("c1", "alice")
        assert self.registry.lookup("c1") == "alice"
        assert "c1" in self.registry

    def test_lookup_unknown(self):
        assert self.registry.lookup("missing") is None

    def test_rebind_overwrites(self):
        self.registry.bind("c1", "alice")
        self.registry.bind("c1", "alicia")

        assert self.registry.lookup("c1") == "alicia"
        assert len(self.registry) == 1

    def test_bind_is_idempotent(self):
        self.registry.bind("c1", "alice")
        self.registry.bind("c1", "alice")
        assert self.registry.names() == ["alice"]

    def test_names_need_not_be_unique(self):
        self.registry.bind("c1", "alice")
        self.registry.bind("c2", "alice")

        assert self.registry.lookup("c1") == self.registry.lookup("c2") == "alice"
        assert len(self.registry) == 2

    def test_unbind_then_lookup(self):
        self.registry.bind("c1", "alice")

        assert self.registry.unbind("c1") == "alice"
        assert self.registry.lookup("c1") is None
        assert "c1" not in self.registry

    def test_unbind_unknown_is_noop(self):
        assert self.registry.unbind("missing") is None
        assert len(self.registry) == 0
