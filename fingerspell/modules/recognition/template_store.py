"""
Per-letter template store with mean-vector nearest-neighbor lookup.

Holds the captured feature vectors for each letter in insertion order. A
single re-entrant lock serializes every mutation and the mean computation so
a capture triggered from a UI thread can never expose a half-written sample to
the classifier thread.
"""

import logging
import threading
from typing import Dict, List, Optional

import numpy as np

from fingerspell.core.events import EventBus, Events
from fingerspell.core.types import FEATURE_DIM, Prediction, normalize_letter
from fingerspell.models.feature_extractor import is_valid_features

logger = logging.getLogger(__name__)

DEFAULT_NN_THRESHOLD = 0.45


def _as_sample(features) -> np.ndarray:
    """Copy one feature vector into a read-only float64 array."""
    try:
        sample = np.array(features, dtype=np.float64)
    except (TypeError, ValueError):
        raise ValueError("Template sample is not numeric: %r" % (features,))
    if sample.shape != (FEATURE_DIM,):
        raise ValueError("Expected %d-element feature vector, got shape %s"
                         % (FEATURE_DIM, sample.shape))
    if not np.all(np.isfinite(sample)):
        raise ValueError("Template sample contains non-finite values")
    sample.flags.writeable = False
    return sample


def _as_letter(letter) -> str:
    normalized = normalize_letter(letter)
    if normalized is None:
        raise ValueError("Template letter must be a single A-Z character, got %r" % (letter,))
    return normalized


class TemplateStore:
    """Mapping letter → ordered list of captured feature vectors.

    Usage::

        store = TemplateStore()
        store.add("A", features)
        prediction = store.nearest_neighbor(features)
    """

    name = "templates"

    def __init__(self, templates: Optional[Dict[str, list]] = None,
                 threshold: float = DEFAULT_NN_THRESHOLD,
                 event_bus: Optional[EventBus] = None):
        self._lock = threading.RLock()
        self._templates: Dict[str, List[np.ndarray]] = {}
        self._threshold = threshold
        self._bus = event_bus
        if templates:
            self.import_templates(templates)

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def add(self, letter: str, features) -> int:
        """Append a captured sample for ``letter``.

        Returns:
            Number of samples now stored for the letter.

        Raises:
            ValueError: letter is not A-Z or the vector is not 18 numbers.
        """
        letter = _as_letter(letter)
        sample = _as_sample(features)
        with self._lock:
            samples = self._templates.setdefault(letter, [])
            samples.append(sample)
            count = len(samples)
        logger.debug("Template added for %s (%d samples)", letter, count)
        self._emit(Events.TEMPLATE_ADDED, letter=letter, count=count)
        return count

    def clear(self, letter: Optional[str] = None):
        """Remove the samples for one letter, or every letter."""
        with self._lock:
            if letter is None:
                self._templates.clear()
            else:
                self._templates[_as_letter(letter)] = []
        logger.info("Templates cleared: %s", letter or "all letters")
        self._emit(Events.TEMPLATES_CLEARED, letter=letter)

    def import_templates(self, templates: Dict[str, list]):
        """Replace the whole store with ``templates`` (no merge).

        Validates everything before swapping so a bad payload leaves the
        current templates untouched.

        Raises:
            ValueError: on invalid letters or samples.
        """
        if not isinstance(templates, dict):
            raise ValueError("Template set must be a mapping, got %s" % type(templates).__name__)
        replacement = {}
        for letter, samples in templates.items():
            key = _as_letter(letter)
            if samples is None:
                samples = []
            if isinstance(samples, (str, bytes)) or not hasattr(samples, "__iter__"):
                raise ValueError("Samples for %s must be a list of vectors" % key)
            replacement.setdefault(key, []).extend(_as_sample(s) for s in samples)

        with self._lock:
            self._templates = replacement
            total = sum(len(s) for s in replacement.values())
        logger.info("Imported %d samples across %d letters", total, len(replacement))
        self._emit(Events.TEMPLATES_IMPORTED, letters=len(replacement), samples=total)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def export(self) -> Dict[str, List[List[float]]]:
        """Snapshot as plain JSON-compatible data (insertion order kept)."""
        with self._lock:
            return {
                letter: [sample.tolist() for sample in samples]
                for letter, samples in self._templates.items()
            }

    def labels(self) -> List[str]:
        """Letters with at least one sample, in insertion order."""
        with self._lock:
            return [letter for letter, samples in self._templates.items() if samples]

    def sample_count(self, letter: str) -> int:
        with self._lock:
            return len(self._templates.get(_as_letter(letter), []))

    def count(self) -> int:
        """Total number of stored samples."""
        with self._lock:
            return sum(len(s) for s in self._templates.values())

    def means(self) -> Dict[str, np.ndarray]:
        """Per-letter mean vectors for letters with samples."""
        with self._lock:
            return {
                letter: np.mean(np.stack(samples), axis=0)
                for letter, samples in self._templates.items() if samples
            }

    def nearest_neighbor(self, features) -> Prediction:
        """Closest per-letter mean by Euclidean distance.

        Returns UNKNOWN (still carrying the distance) when the best match is
        farther than the threshold, and UNKNOWN with an infinite score when
        the store is empty or the query is malformed.
        """
        if not is_valid_features(features):
            return Prediction.unknown(source=self.name)
        try:
            query = np.asarray(features, dtype=np.float64)
        except (TypeError, ValueError):
            return Prediction.unknown(source=self.name)

        best_letter, best_score = None, float("inf")
        for letter, mean in self.means().items():
            score = float(np.linalg.norm(query - mean))
            # strict comparison: first letter in insertion order wins ties
            if score < best_score:
                best_letter, best_score = letter, score

        if best_letter is None or best_score > self._threshold:
            return Prediction.unknown(best_score, source=self.name)
        return Prediction(best_letter, best_score, source=self.name)

    def predict(self, features, landmarks=None) -> Prediction:
        """Classifier-chain contract; always answers, possibly UNKNOWN."""
        return self.nearest_neighbor(features)

    @property
    def threshold(self) -> float:
        return self._threshold

    def __len__(self):
        return self.count()

    def __contains__(self, letter):
        letter = normalize_letter(letter)
        with self._lock:
            return bool(letter and self._templates.get(letter))

    def __eq__(self, other):
        if not isinstance(other, TemplateStore):
            return NotImplemented
        return list(self.export().items()) == list(other.export().items())

    __hash__ = None

    def __repr__(self):
        return "TemplateStore(letters=%d, samples=%d)" % (len(self.labels()), self.count())

    def _emit(self, event_name, **kwargs):
        if self._bus is not None:
            self._bus.emit(event_name, **kwargs)
