"""
Per-frame classification pipeline.

Architecture:
    landmarks -> LetterFeatureExtractor
    -> [ModelClassifier, RuleClassifier, TemplateStore]  (first answer wins)
    -> StabilityFilter -> display letter

Every classifier in the chain shares one contract:
``predict(features, landmarks) -> Prediction | None``. The template store is
always last and always answers, so the chain can only end in a letter or the
UNKNOWN marker.

The pipeline owns no account state: the caller hands it a TemplateStore and
may swap it with :meth:`ClassificationPipeline.set_template_store`.
"""

import time
import logging
from typing import Optional

from fingerspell.core.events import EventBus, Events
from fingerspell.core.types import BLANK, Prediction
from fingerspell.models.feature_extractor import LetterFeatureExtractor, is_valid_features
from fingerspell.modules.recognition.rule_classifier import RuleClassifier
from fingerspell.modules.recognition.stability_filter import StabilityFilter
from fingerspell.modules.recognition.template_store import TemplateStore

logger = logging.getLogger(__name__)


def _hand_present(landmarks) -> bool:
    if landmarks is None:
        return False
    try:
        return len(landmarks) > 0
    except TypeError:
        return True


class FrameResult:
    """Result of a single pipeline iteration."""

    __slots__ = ("hand_detected", "features", "prediction", "display", "latency_ms")

    def __init__(self):
        self.hand_detected = False
        self.features = None
        self.prediction: Optional[Prediction] = None
        self.display = BLANK
        self.latency_ms = 0.0

    def __repr__(self):
        return "FrameResult(display=%r, prediction=%r)" % (self.display, self.prediction)


class ClassificationPipeline:
    """Orchestrates extraction, the classifier chain and stabilization.

    Usage::

        pipeline = ClassificationPipeline(store, model_classifier=model)
        for landmarks in frames:
            text = pipeline.classify_frame(landmarks)
    """

    def __init__(
        self,
        template_store: TemplateStore,
        model_classifier=None,
        rule_classifier: Optional[RuleClassifier] = None,
        stability_filter: Optional[StabilityFilter] = None,
        extractor: Optional[LetterFeatureExtractor] = None,
        event_bus: Optional[EventBus] = None,
    ):
        self._store = template_store
        self._model = model_classifier
        self._rules = rule_classifier or RuleClassifier()
        self._filter = stability_filter or StabilityFilter()
        self._extractor = extractor or LetterFeatureExtractor()
        self._bus = event_bus or EventBus()

        self._frame_count = 0
        self._source_counts = {}

    @classmethod
    def from_config(cls, config, template_store, model_classifier=None, event_bus=None):
        """Build a pipeline from a loaded :class:`Config`."""
        from fingerspell.modules.recognition.rule_classifier import RuleThresholds
        return cls(
            template_store,
            model_classifier=model_classifier,
            rule_classifier=RuleClassifier(RuleThresholds.from_dict(config.rules)),
            stability_filter=StabilityFilter.from_dict(config.recognition),
            event_bus=event_bus,
        )

    # ------------------------------------------------------------------
    # Per-frame API
    # ------------------------------------------------------------------

    def classify_frame(self, landmarks) -> str:
        """Classify one frame and return the debounced display letter."""
        return self.process(landmarks).display

    def process(self, landmarks) -> FrameResult:
        """Run one full pipeline iteration.

        Args:
            landmarks: 21 hand landmarks, or None when no hand is visible

        Returns:
            FrameResult with features (for explicit sample capture), the
            winning prediction and the display output.
        """
        start = time.perf_counter()
        result = FrameResult()
        self._frame_count += 1

        if not _hand_present(landmarks):
            was_showing = self._filter.output != BLANK or self._filter.held_letter is not None
            self._filter.update(None)
            if was_showing:
                self._bus.emit(Events.HAND_LOST)
            result.latency_ms = (time.perf_counter() - start) * 1000
            return result

        result.hand_detected = True
        features = self._extractor.extract(landmarks)
        result.features = features if is_valid_features(features) else None

        prediction = self._run_chain(features, landmarks)
        result.prediction = prediction
        self._source_counts[prediction.source] = self._source_counts.get(prediction.source, 0) + 1
        self._bus.emit(Events.LETTER_PREDICTED, prediction=prediction)

        previous = self._filter.output
        result.display = self._filter.update(prediction.letter)
        if result.display != previous:
            self._bus.emit(Events.LETTER_STABLE, letter=result.display,
                           score=prediction.score, source=prediction.source)

        result.latency_ms = (time.perf_counter() - start) * 1000
        return result

    def _run_chain(self, features, landmarks) -> Prediction:
        """First classifier that answers wins."""
        if not is_valid_features(features):
            return Prediction.unknown()

        for classifier in self.classifiers:
            try:
                prediction = classifier.predict(features, landmarks)
            except Exception as e:
                logger.warning("%s classifier failed: %s",
                               getattr(classifier, "name", type(classifier).__name__), e)
                continue
            if prediction is not None:
                return prediction
        return Prediction.unknown()

    # ------------------------------------------------------------------
    # Wiring
    # ------------------------------------------------------------------

    @property
    def classifiers(self) -> list:
        """Classifier chain in priority order."""
        chain = []
        if self._model is not None and getattr(self._model, "available", True):
            chain.append(self._model)
        chain.append(self._rules)
        chain.append(self._store)
        return chain

    def set_template_store(self, store: TemplateStore):
        """Swap the template store (e.g. on profile switch) and reset stability."""
        self._store = store
        self._filter.reset()
        logger.info("Template store switched: %r", store)

    def set_model_classifier(self, model_classifier):
        self._model = model_classifier

    def reset(self):
        self._filter.reset()

    @property
    def template_store(self) -> TemplateStore:
        return self._store

    @property
    def stability_filter(self) -> StabilityFilter:
        return self._filter

    @property
    def event_bus(self) -> EventBus:
        return self._bus

    @property
    def display(self) -> str:
        return self._filter.output

    @property
    def frame_count(self) -> int:
        return self._frame_count

    @property
    def stats(self) -> dict:
        """How often each classifier produced the winning prediction."""
        return {"frames": self._frame_count, "sources": dict(self._source_counts)}
