"""Tests for flowspine.flow.reducer — top-N collapse into Other."""

import pytest

from flowspine.flow.indexer import LabelIndexer
from flowspine.flow.models import RawLink
from flowspine.flow.reducer import TopNReducer


def _indexer(labels: dict[str, list[str]]) -> LabelIndexer:
    idx = LabelIndexer()
    for column, values in labels.items():
        idx.add_column(column, values)
    return idx


def _links(pairs: list[tuple[str, str, float]]) -> list[RawLink]:
    return [RawLink("solver", "builder", s, t, v) for s, t, v in pairs]


class TestTopNReducer:
    def test_rejects_zero(self):
        with pytest.raises(ValueError):
            TopNReducer(0)

    def test_ranks_by_score(self):
        idx = _indexer({"solver": ["s1", "s2", "s3"], "builder": ["b1"]})
        links = _links([("s1", "b1", 1), ("s2", "b1", 5), ("s3", "b1", 3)])
        r = TopNReducer(20).reduce(["solver", "builder"], idx, links)
        assert r.labels["solver"] == ["s2", "s3", "s1"]
        assert r.other == {}

    def test_score_counts_both_endpoints(self):
        idx = _indexer({"frontend": ["f1", "f2"], "solver": ["s1"], "builder": ["b1"]})
        links = [
            RawLink("frontend", "solver", "f1", "s1", 2),
            RawLink("solver", "builder", "s1", "b1", 2),
            RawLink("frontend", "builder", "f2", "b1", 3),
        ]
        r = TopNReducer(20).reduce(["frontend", "solver", "builder"], idx, links)
        assert r.scores[("solver", "s1")] == 4
        assert r.scores[("builder", "b1")] == 5
        assert r.labels["frontend"] == ["f2", "f1"]

    def test_scores_are_per_column(self):
        """A label shared by two columns is scored separately in each."""
        idx = _indexer({"solver": ["x", "s2"], "builder": ["x", "b2"]})
        links = _links([("s2", "x", 10), ("x", "b2", 1)])
        r = TopNReducer(1).reduce(["solver", "builder"], idx, links)
        assert r.labels["solver"] == ["s2", "Other (solvers)"]
        assert r.labels["builder"] == ["x", "Other (builder)"]

    def test_real_label_named_like_bucket(self):
        idx = _indexer({"solver": ["s00", "s01", "s02", "Other (solvers)"], "builder": ["b1"]})
        links = _links(
            [("s00", "b1", 3), ("s01", "b1", 2), ("s02", "b1", 1), ("Other (solvers)", "b1", 100)]
        )
        r = TopNReducer(2).reduce(["solver", "builder"], idx, links)

        assert r.labels["solver"] == ["Other (solvers)", "s00", "Other (solvers) #2"]
        assert r.collapse("solver", "Other (solvers)") == "Other (solvers)"
        assert r.collapse("solver", "s01") == "Other (solvers) #2"
        assert not r.is_other("solver", "Other (solvers)")
        assert r.is_other("solver", "Other (solvers) #2")

    def test_tie_break_lexical(self):
        idx = _indexer({"solver": ["c", "a", "b"], "builder": ["z"]})
        links = _links([("a", "z", 1), ("b", "z", 1), ("c", "z", 1)])
        r = TopNReducer(2).reduce(["solver", "builder"], idx, links)
        assert r.labels["solver"] == ["a", "b", "Other (solvers)"]
        assert r.collapse("solver", "c") == "Other (solvers)"

    def test_zero_score_labels_still_mapped(self):
        idx = _indexer({"solver": ["s1", "lonely"], "builder": ["b1"]})
        r = TopNReducer(20).reduce(["solver", "builder"], idx, _links([("s1", "b1", 1)]))
        assert r.collapse("solver", "lonely") == "lonely"
        assert r.labels["solver"] == ["s1", "lonely"]

    def test_exactly_n_has_no_other(self):
        labels = [f"s{i:02d}" for i in range(20)]
        idx = _indexer({"solver": labels, "builder": ["b"]})
        r = TopNReducer(20).reduce(["solver", "builder"], idx, _links([(s, "b", 1) for s in labels]))
        assert "solver" not in r.other
        assert len(r.labels["solver"]) == 20

    def test_n_plus_one_has_single_other(self):
        labels = [f"s{i:02d}" for i in range(21)]
        idx = _indexer({"solver": labels, "builder": ["b"]})
        links = _links([(s, "b", 100 - i) for i, s in enumerate(labels)])
        r = TopNReducer(20).reduce(["solver", "builder"], idx, links)
        assert r.labels["solver"][-1] == "Other (solvers)"
        assert len(r.labels["solver"]) == 21
        assert r.collapse("solver", "s20") == "Other (solvers)"
        assert r.is_other("solver", "Other (solvers)")
        assert not r.is_other("solver", "s00")
