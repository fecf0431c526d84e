"""
Tests for the Template Store
=============================
"""

import threading

import pytest
import numpy as np

from fingerspell.core.events import EventBus, Events
from fingerspell.core.types import UNKNOWN
from fingerspell.modules.recognition.template_store import TemplateStore, DEFAULT_NN_THRESHOLD


def vec(first=0.0, fill=0.0):
    """18-dim vector with ``first`` in slot 0."""
    v = np.full(18, fill, dtype=np.float64)
    v[0] = first
    return v


class TestNearestNeighbor:
    """Test suite for mean-vector lookup."""

    @pytest.fixture
    def store(self):
        s = TemplateStore()
        s.add("A", vec(0.0))
        return s

    def test_default_threshold(self):
        assert TemplateStore().threshold == DEFAULT_NN_THRESHOLD == 0.45

    def test_within_threshold(self, store):
        """Test a query 0.4 from the mean resolves to the letter."""
        prediction = store.nearest_neighbor(vec(0.4))

        assert prediction.letter == "A"
        assert prediction.score == pytest.approx(0.4)
        assert prediction.source == "templates"

    def test_beyond_threshold(self, store):
        """Test a query 0.5 from the mean is unknown but keeps its distance."""
        prediction = store.nearest_neighbor(vec(0.5))

        assert prediction.letter == UNKNOWN
        assert prediction.is_unknown
        assert prediction.score == pytest.approx(0.5)

    def test_empty_store(self):
        """Test an empty store always answers unknown with infinite score."""
        prediction = TemplateStore().nearest_neighbor(vec())

        assert prediction.letter == UNKNOWN
        assert prediction.score == float("inf")

    def test_malformed_query(self, store):
        """Test a wrong-length query is unknown instead of an error."""
        prediction = store.nearest_neighbor(np.zeros(5))

        assert prediction.is_unknown
        assert prediction.score == float("inf")

    def test_uses_mean(self):
        """Test lookup compares against the per-letter mean, not samples."""
        store = TemplateStore()
        store.add("B", vec(0.0))
        store.add("B", vec(1.0))

        prediction = store.nearest_neighbor(vec(0.5))
        assert prediction.letter == "B"
        assert prediction.score == pytest.approx(0.0)

    def test_closest_letter_wins(self):
        store = TemplateStore({"A": [vec(0.0)], "B": [vec(0.3)]})

        assert store.nearest_neighbor(vec(0.25)).letter == "B"
        assert store.nearest_neighbor(vec(0.1)).letter == "A"

    def test_tie_goes_to_first_inserted(self):
        """Test equal distances resolve to the earlier letter."""
        store = TemplateStore({"B": [vec(-0.1)], "A": [vec(0.1)]})

        assert store.nearest_neighbor(vec(0.0)).letter == "B"

    def test_cleared_letter_skipped(self):
        """Test a letter with no samples is never predicted."""
        store = TemplateStore({"A": [vec(0.0)], "B": [vec(1.0)]})
        store.clear("A")

        assert store.nearest_neighbor(vec(0.0)).is_unknown
        assert store.nearest_neighbor(vec(0.9)).letter == "B"

    def test_custom_threshold(self):
        store = TemplateStore({"A": [vec(0.0)]}, threshold=1.0)

        assert store.nearest_neighbor(vec(0.9)).letter == "A"

    def test_predict_contract(self, store):
        """Test predict() ignores landmarks and always answers."""
        assert store.predict(vec(0.1), landmarks=None).letter == "A"
        assert store.predict(vec(5.0)).is_unknown


class TestTemplateMutation:
    """Test suite for add / clear / import / export."""

    def test_add_returns_count(self):
        store = TemplateStore()

        assert store.add("A", vec()) == 1
        assert store.add("a", vec(0.1)) == 2
        assert store.sample_count("A") == 2
        assert len(store) == 2
        assert "A" in store

    def test_add_rejects_bad_letter(self):
        store = TemplateStore()

        with pytest.raises(ValueError):
            store.add("AB", vec())
        with pytest.raises(ValueError):
            store.add("1", vec())

    def test_add_rejects_bad_vector(self):
        """Test wrong shapes and non-finite values are rejected."""
        store = TemplateStore()

        with pytest.raises(ValueError):
            store.add("A", np.zeros(17))
        with pytest.raises(ValueError):
            store.add("A", vec(np.nan))
        with pytest.raises(ValueError):
            store.add("A", ["x"] * 18)
        assert store.count() == 0

    def test_stored_samples_are_copies(self):
        """Test later changes to the caller's array do not leak into the store."""
        store = TemplateStore()
        features = vec(0.2)
        store.add("A", features)
        features[0] = 9.0

        assert store.export()["A"][0][0] == pytest.approx(0.2)

    def test_clear_one_letter(self):
        store = TemplateStore({"A": [vec()], "B": [vec(1.0)]})
        store.clear("A")

        assert store.export() == {"A": [], "B": [vec(1.0).tolist()]}
        assert store.labels() == ["B"]
        assert "A" not in store

    def test_clear_all(self):
        store = TemplateStore({"A": [vec()], "B": [vec(1.0)]})
        store.clear()

        assert store.export() == {}
        assert store.count() == 0

    def test_export_import_round_trip(self):
        """Test export → import gives an equal store, order included."""
        store = TemplateStore()
        store.add("C", vec(0.3))
        store.add("A", vec(0.1))
        store.add("C", vec(0.4))

        restored = TemplateStore()
        restored.import_templates(store.export())

        assert restored == store
        assert list(restored.export()) == ["C", "A"]

    def test_import_replaces(self):
        """Test import drops letters absent from the payload."""
        store = TemplateStore({"A": [vec()]})
        store.import_templates({"B": [vec(1.0)]})

        assert store.labels() == ["B"]

    def test_import_invalid_leaves_store_untouched(self):
        store = TemplateStore({"A": [vec()]})

        with pytest.raises(ValueError):
            store.import_templates({"B": [vec(1.0)], "C": [[1, 2, 3]]})
        with pytest.raises(ValueError):
            store.import_templates({"B": "not samples"})
        with pytest.raises(ValueError):
            store.import_templates([["A", vec()]])

        assert store.labels() == ["A"]

    def test_import_lowercase_letters(self):
        store = TemplateStore({"b": [vec()]})

        assert store.labels() == ["B"]

    def test_means(self):
        store = TemplateStore({"A": [vec(0.0), vec(2.0)], "B": []})
        means = store.means()

        assert list(means) == ["A"]
        assert means["A"][0] == pytest.approx(1.0)

    def test_equality(self):
        assert TemplateStore({"A": [vec()]}) == TemplateStore({"A": [vec()]})
        assert TemplateStore({"A": [vec()]}) != TemplateStore({"A": [vec(0.1)]})


class TestTemplateEvents:
    """Test suite for store notifications."""

    def test_events_emitted(self):
        bus = EventBus()
        received = []
        bus.subscribe(Events.TEMPLATE_ADDED, lambda **kw: received.append(("added", kw)))
        bus.subscribe(Events.TEMPLATES_CLEARED, lambda **kw: received.append(("cleared", kw)))
        bus.subscribe(Events.TEMPLATES_IMPORTED, lambda **kw: received.append(("imported", kw)))

        store = TemplateStore(event_bus=bus)
        store.add("A", vec())
        store.clear("A")
        store.import_templates({"B": [vec(), vec(1.0)]})

        assert received == [
            ("added", {"letter": "A", "count": 1}),
            ("cleared", {"letter": "A"}),
            ("imported", {"letters": 1, "samples": 2}),
        ]


class TestTemplateConcurrency:
    """Test suite for concurrent capture and lookup."""

    def test_concurrent_add_and_lookup(self):
        """Test adds from several threads are never lost or torn."""
        store = TemplateStore()
        errors = []

        def writer(letter):
            for i in range(50):
                store.add(letter, vec(i / 100.0))

        def reader():
            try:
                for _ in range(100):
                    prediction = store.nearest_neighbor(vec(0.2))
                    assert prediction.letter in ("A", "B", UNKNOWN)
            except AssertionError as e:
                errors.append(e)

        threads = [threading.Thread(target=writer, args=(l,)) for l in ("A", "B")]
        threads.append(threading.Thread(target=reader))
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert not errors
        assert store.sample_count("A") == 50
        assert store.sample_count("B") == 50
