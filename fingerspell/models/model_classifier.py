"""
ModelClassifier: optional learned classifier consulted before the rules.

Wraps a trained :class:`LetterNet` checkpoint. When the checkpoint is missing,
PyTorch is not installed, or loading/inference fails, the classifier simply
reports itself unavailable and the pipeline falls through to the rules.
"""

import os
import logging
from typing import Optional

import numpy as np

from fingerspell.core.events import Events
from fingerspell.core.types import Prediction
from fingerspell.models.feature_extractor import is_valid_features

logger = logging.getLogger(__name__)

DEFAULT_MODEL_DIR = "models/weights"
DEFAULT_CHECKPOINT = "letter_net.pth"


class ModelClassifier:
    """Learned classifier with the chain contract ``predict(features, landmarks)``.

    Usage::

        model = ModelClassifier(config.get_section("model"))
        if model.available:
            prediction = model.predict(features)
    """

    name = "model"

    def __init__(self, config=None, model=None, event_bus=None):
        """
        Args:
            config: ``model`` section from config.yaml
            model: an already constructed LetterNet (skips loading from disk)
            event_bus: optional EventBus notified with ``model_loaded``
        """
        config = config or {}
        self._bus = event_bus
        model_dir = config.get("model_dir", DEFAULT_MODEL_DIR)
        self._path = os.path.join(model_dir, config.get("checkpoint", DEFAULT_CHECKPOINT))
        self._confidence_threshold = float(config.get("confidence_threshold", 0.0))
        self._device = config.get("device", "cpu")

        self._model = model
        self._calls = 0
        self._failures = 0

        if self._model is None and config.get("autoload", True):
            self.load()

    def load(self, path: Optional[str] = None) -> bool:
        """Try to load the checkpoint. Returns True when a model is ready."""
        path = path or self._path
        if not os.path.isfile(path):
            logger.info("No letter model at %s, using rules and templates", path)
            self._model = None
            return False

        try:
            from fingerspell.models.letter_net import LetterNet
            self._model = LetterNet.load_checkpoint(path, device=self._device)
            self._path = path
        except Exception as e:
            logger.warning("Letter model load failed (%s): %s", path, e)
            self._model = None
            return False

        logger.info("Letter model ready: %s", ", ".join(self._model.class_names))
        if self._bus is not None:
            self._bus.emit(Events.MODEL_LOADED, path=path, class_names=self.class_names)
        return True

    def reload(self) -> bool:
        """Re-read the checkpoint (e.g. after retraining)."""
        logger.info("Reloading letter model...")
        return self.load(self._path)

    def unload(self):
        self._model = None

    @property
    def available(self) -> bool:
        return self._model is not None

    @property
    def class_names(self):
        return list(self._model.class_names) if self._model is not None else []

    @property
    def stats(self):
        return {"available": self.available, "calls": self._calls, "failures": self._failures}

    # ------------------------------------------------------------------
    # Inference
    # ------------------------------------------------------------------

    def predict(self, features, landmarks=None) -> Optional[Prediction]:
        """Predict a letter, or None if unavailable / failed / not confident.

        The score is ``1 - max probability``.
        """
        if self._model is None or not is_valid_features(features):
            return None

        self._calls += 1
        try:
            import torch
            vector = np.asarray(features, dtype=np.float32).reshape(1, -1)
            tensor = torch.from_numpy(vector).to(self._device)
            probs = self._model.predict_proba(tensor).cpu().numpy().squeeze(0)

            class_idx = int(np.argmax(probs))
            confidence = float(probs[class_idx])
            letter = self._model.class_names[class_idx]
        except Exception as e:
            self._failures += 1
            logger.warning("Letter model inference error: %s", e)
            return None

        if confidence < self._confidence_threshold:
            logger.debug("Model confidence %.3f < %.3f, falling through",
                         confidence, self._confidence_threshold)
            return None

        return Prediction(letter, 1.0 - confidence, source=self.name)
