"""Tests for the in-memory identity registry."""

from __future__ import annotations

from snackroom.identity import InMemoryIdentityRegistry


class TestInMemoryIdentityRegistry:
    def test_bind_and_resolve(self) -> None:
        reg = InMemoryIdentityRegistry()
        reg.bind("h1", "d1")

        assert reg.resolve("h1") == "d1"
        assert reg.latest_handle("d1") == "h1"

    def test_latest_handle_wins(self) -> None:
        reg = InMemoryIdentityRegistry()
        reg.bind("h1", "d1")
        reg.bind("h2", "d1")

        assert reg.latest_handle("d1") == "h2"
        # The old handle still resolves until it is unbound.
        assert reg.resolve("h1") == "d1"

    def test_unbind_old_handle_keeps_latest(self) -> None:
        reg = InMemoryIdentityRegistry()
        reg.bind("h1", "d1")
        reg.bind("h2", "d1")

        reg.unbind("h1")

        assert reg.resolve("h1") is None
        assert reg.latest_handle("d1") == "h2"

    def test_unbind_latest_clears_reverse_edge(self) -> None:
        reg = InMemoryIdentityRegistry()
        reg.bind("h1", "d1")

        reg.unbind("h1")

        assert reg.latest_handle("d1") is None
        assert len(reg) == 0

    def test_durable_id_can_be_rebound(self) -> None:
        reg = InMemoryIdentityRegistry()
        reg.bind("h1", "d1")
        reg.unbind("h1")
        reg.bind("h2", "d1")

        assert reg.latest_handle("d1") == "h2"

    def test_handle_switching_identity(self) -> None:
        reg = InMemoryIdentityRegistry()
        reg.bind("h1", "d1")
        reg.bind("h1", "d2")

        assert reg.resolve("h1") == "d2"
        assert reg.latest_handle("d1") is None
        assert reg.latest_handle("d2") == "h1"

    def test_unbind_unknown_is_noop(self) -> None:
        reg = InMemoryIdentityRegistry()
        reg.unbind("nope")
        assert len(reg) == 0
