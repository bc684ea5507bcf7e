import pytest

from chat_gateway.services.chat_service.context_store import ContextStore


class TestContextStore:
    def setup_method(self):
        self.store = ContextStore()

    def test_unknown_session_is_empty(self):
        assert self.store.get("nope") == []
        assert "nope" not in self.store

    def test_append_labels_turns(self):
        snapshot = self.store.append("s1", "hola", "¡hola!")
        assert snapshot == ["Usuario: hola", "Asistente: ¡hola!"]
        assert self.store.get("s1") == snapshot

    @pytest.mark.parametrize("exchanges", [1, 2, 3, 4, 7])
    def test_length_is_bounded(self, exchanges):
        for i in range(exchanges):
            self.store.append("s1", f"q{i}", f"a{i}")

        messages = self.store.get("s1")
        assert len(messages) == min(2 * exchanges, 6)
        kept = min(exchanges, 3)
        expected = []
        for i in range(exchanges - kept, exchanges):
            expected += [f"Usuario: q{i}", f"Asistente: a{i}"]
        assert messages == expected

    def test_sessions_are_isolated(self):
        self.store.append("a", "q", "r")
        assert self.store.get("b") == []
        assert len(self.store) == 1

    def test_get_returns_a_copy(self):
        self.store.append("s1", "q", "r")
        self.store.get("s1").append("mutated")
        assert len(self.store.get("s1")) == 2

    def test_clear(self):
        self.store.append("s1", "q", "r")
        assert self.store.clear("s1") is True
        assert self.store.get("s1") == []

    def test_clear_absent_session_is_noop(self):
        assert self.store.clear("never-created") is False
        assert len(self.store) == 0

    def test_invalid_capacity(self):
        with pytest.raises(ValueError):
            ContextStore(max_turn_pairs=0)
