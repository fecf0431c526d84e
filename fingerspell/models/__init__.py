"""
Feature extraction and learned-model classification.

Provides:
    - LetterFeatureExtractor: landmarks → 18-dim feature vector
    - LetterNet: small MLP over the feature vector (PyTorch)
    - ModelClassifier: optional model stage of the classifier chain
"""

from .feature_extractor import LetterFeatureExtractor, is_valid_features
from .model_classifier import ModelClassifier

__all__ = [
    "LetterFeatureExtractor",
    "is_valid_features",
    "ModelClassifier",
]
