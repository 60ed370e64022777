"""Tests for materialize()."""

from membrain._index import DependencyIndex
from membrain.membrane import ReadView
from membrain.snapshot import materialize


class TestMaterialize:
    def test_leaves_pass_through(self):
        assert materialize(5) == 5
        assert materialize("x") == "x"
        assert materialize(None) is None

    def test_copies_view(self):
        state = {"a": {"b": [1, 2]}}
        result = materialize(ReadView(state, "g", DependencyIndex()))
        assert result == state
        assert result is not state
        assert result["a"] is not state["a"]
        assert result["a"]["b"] is not state["a"]["b"]

    def test_records_nothing(self):
        idx = DependencyIndex()
        materialize(ReadView({"a": {"b": 1}}, "g", idx))
        assert len(idx) == 0

    def test_views_nested_in_plain_results(self):
        idx = DependencyIndex()
        view = ReadView({"user": {"name": "ada"}}, "g", idx)
        result = materialize({"who": view.user, "tags": (view.user,)})
        assert result == {"who": {"name": "ada"}, "tags": ({"name": "ada"},)}
        assert not isinstance(result["who"], ReadView)

    def test_mutating_copy_leaves_source_alone(self):
        state = {"a": {"b": 1}}
        result = materialize(state)
        result["a"]["b"] = 2
        assert state["a"]["b"] == 1

    def test_shared_nodes_stay_shared(self):
        shared = {"x": 1}
        result = materialize({"left": shared, "right": shared})
        assert result["left"] is result["right"]

    def test_cycles(self):
        state = {"name": "loop"}
        state["self"] = state
        result = materialize(state)
        assert result["self"] is result
        assert result is not state
