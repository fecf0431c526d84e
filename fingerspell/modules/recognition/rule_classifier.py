"""
Rule-based fingerspelling classifier.

A hand-tuned decision list over the feature vector and the raw landmarks.
Rules are evaluated top to bottom and the first one that matches wins, so the
specific fist variants must stay ahead of the single-finger checks and the
curvature checks must stay behind them.

Coordinates are image-relative: smaller y is higher in the frame.
"""

import logging
from collections import namedtuple
from dataclasses import dataclass, fields
from typing import Optional

import numpy as np

from fingerspell.core.types import LandmarkIndex as L, NUM_LANDMARKS, Prediction
from fingerspell.models.feature_extractor import (
    as_landmark_array, is_valid_features, NORM_EPSILON,
)

logger = logging.getLogger(__name__)


@dataclass
class RuleThresholds:
    """Empirically calibrated decision thresholds (normalized units)."""
    # Finger extended when the tip rises above its knuckle by this much ...
    extended_rise: float = 0.03
    # ... or sits this far from its knuckle
    extended_reach: float = 0.2
    # Index curled when its tip is this close to the joint below it
    curled_reach: float = 0.12
    # Thumb extended when its tip-to-wrist feature exceeds this
    thumb_extended: float = 0.55
    # Fist variants: thumb tip distance to the index/middle knuckles
    fist_a: float = 0.08
    fist_s: float = 0.12
    fist_t: float = 0.06
    fist_e: float = 0.06
    # Fingertips within this radius of the thumb tip count as covering it (M/N)
    fist_overlap: float = 0.09
    # Index/middle tip separation below which the pair reads as U, not V
    uv_separation: float = 0.18
    # Mean thumb-to-fingertip distance for the O and C shapes
    o_mean: float = 0.12
    c_mean: float = 0.22
    # Thumb and index tips touching
    f_touch: float = 0.08
    # Index/middle tips nearly on top of each other
    r_separation: float = 0.08

    @classmethod
    def from_dict(cls, config: dict) -> "RuleThresholds":
        """Create thresholds from the ``rules`` config section."""
        config = config or {}
        known = {f.name for f in fields(cls)}
        unknown = set(config) - known
        if unknown:
            logger.warning("Ignoring unknown rule thresholds: %s", sorted(unknown))
        return cls(**{k: float(v) for k, v in config.items() if k in known})


class HandShape(namedtuple("HandShape", [
    "extended",             # frozenset of extended finger names (thumb included)
    "index_curled",
    "thumb_to_index_mcp",
    "thumb_to_middle_mcp",
    "thumb_to_ring_mcp",
    "thumb_y",
    "index_tip_y",
    "middle_tip_y",
    "overlap_count",        # index/middle/ring tips close to the thumb tip
    "index_middle_gap",
    "mean_thumb_gap",       # mean thumb-tip to other fingertip distance
    "thumb_index_gap",
])):
    """Geometric summary of one hand, computed once per frame."""

    __slots__ = ()

    def has(self, *names) -> bool:
        return all(n in self.extended for n in names)

    def fingers_only(self, *names) -> bool:
        """Exactly ``names`` are extended among the four non-thumb fingers."""
        return (self.extended - {"thumb"}) == set(names)

    @property
    def is_fist(self) -> bool:
        return self.fingers_only()


def _fist_m_or_n(s, t, count):
    return (s.is_fist
            and s.thumb_to_middle_mcp < s.thumb_to_ring_mcp
            and s.thumb_to_middle_mcp < s.thumb_to_index_mcp
            and count(s.overlap_count))


def _index_middle_pair(s):
    return s.fingers_only("index", "middle")


Rule = namedtuple("Rule", ["letter", "predicate"])

# Order is significant: first match wins.
RULES = (
    # Fist variants
    Rule("A", lambda s, t: s.is_fist and s.thumb_to_index_mcp < t.fist_a
         and s.thumb_to_middle_mcp < t.fist_a),
    Rule("S", lambda s, t: s.is_fist and s.thumb_to_index_mcp < t.fist_s
         and s.thumb_y < s.index_tip_y),
    Rule("T", lambda s, t: s.is_fist and s.thumb_to_index_mcp < t.fist_t
         and s.thumb_y > s.index_tip_y),
    Rule("M", lambda s, t: _fist_m_or_n(s, t, lambda n: n >= 3)),
    Rule("N", lambda s, t: _fist_m_or_n(s, t, lambda n: n == 2)),
    Rule("E", lambda s, t: s.is_fist and s.thumb_to_index_mcp < t.fist_e),
    # Extended-finger patterns
    Rule("D", lambda s, t: s.extended == {"index"}),
    Rule("I", lambda s, t: s.extended == {"pinky"}),
    Rule("L", lambda s, t: s.extended == {"index", "thumb"}),
    Rule("U", lambda s, t: _index_middle_pair(s) and s.index_middle_gap < t.uv_separation),
    Rule("V", lambda s, t: _index_middle_pair(s)),
    Rule("W", lambda s, t: s.fingers_only("index", "middle", "ring")),
    Rule("Y", lambda s, t: s.extended == {"thumb", "pinky"}),
    # Curvature
    Rule("O", lambda s, t: s.mean_thumb_gap < t.o_mean),
    Rule("C", lambda s, t: s.mean_thumb_gap < t.c_mean),
    Rule("F", lambda s, t: s.thumb_index_gap < t.f_touch),
    Rule("R", lambda s, t: s.has("index", "middle") and s.index_middle_gap < t.r_separation),
    Rule("X", lambda s, t: s.index_curled
         and not (s.has("middle") or s.has("ring") or s.has("pinky"))),
    # Best-effort orientation checks
    Rule("P", lambda s, t: _index_middle_pair(s) and s.index_tip_y > s.middle_tip_y),
    Rule("K", lambda s, t: _index_middle_pair(s)),
    Rule("Q", lambda s, t: s.fingers_only("index") and s.index_tip_y > s.thumb_y),
)


def describe_hand(features, points, thresholds: RuleThresholds) -> HandShape:
    """Compute the boolean finger flags and thumb distances for one hand."""
    norm = float(np.linalg.norm(points[L.WRIST] - points[L.MIDDLE_MCP])) or NORM_EPSILON

    def dist(a, b):
        return float(np.linalg.norm(points[a] - points[b])) / norm

    def is_extended(tip, mcp):
        rise = (points[mcp][1] - points[tip][1]) / norm
        return rise > thresholds.extended_rise or dist(tip, mcp) > thresholds.extended_reach

    extended = {
        name for name, tip, mcp in (
            ("index", L.INDEX_TIP, L.INDEX_MCP),
            ("middle", L.MIDDLE_TIP, L.MIDDLE_MCP),
            ("ring", L.RING_TIP, L.RING_MCP),
            ("pinky", L.PINKY_TIP, L.PINKY_MCP),
        ) if is_extended(tip, mcp)
    }
    if features[0] > thresholds.thumb_extended:
        extended.add("thumb")

    thumb_gaps = [dist(L.THUMB_TIP, tip)
                  for tip in (L.INDEX_TIP, L.MIDDLE_TIP, L.RING_TIP, L.PINKY_TIP)]
    overlap = sum(1 for gap in thumb_gaps[:3] if gap < thresholds.fist_overlap)

    return HandShape(
        extended=frozenset(extended),
        index_curled=dist(L.INDEX_TIP, L.INDEX_DIP) < thresholds.curled_reach,
        thumb_to_index_mcp=dist(L.THUMB_TIP, L.INDEX_MCP),
        thumb_to_middle_mcp=dist(L.THUMB_TIP, L.MIDDLE_MCP),
        thumb_to_ring_mcp=dist(L.THUMB_TIP, L.RING_MCP),
        thumb_y=float(points[L.THUMB_TIP][1]),
        index_tip_y=float(points[L.INDEX_TIP][1]),
        middle_tip_y=float(points[L.MIDDLE_TIP][1]),
        overlap_count=overlap,
        index_middle_gap=dist(L.INDEX_TIP, L.MIDDLE_TIP),
        mean_thumb_gap=sum(thumb_gaps) / len(thumb_gaps),
        thumb_index_gap=dist(L.THUMB_TIP, L.INDEX_TIP),
    )


def classify_letter(features, landmarks,
                    thresholds: Optional[RuleThresholds] = None) -> Optional[str]:
    """Evaluate the rule list; return the first matching letter or None."""
    if not is_valid_features(features):
        return None
    try:
        features = np.asarray(features, dtype=np.float64)
    except (TypeError, ValueError):
        return None
    points = as_landmark_array(landmarks)
    if points is None or points.shape[0] < NUM_LANDMARKS:
        return None

    thresholds = thresholds or RuleThresholds()
    shape = describe_hand(features, points, thresholds)
    for rule in RULES:
        if rule.predicate(shape, thresholds):
            return rule.letter
    return None


class RuleClassifier:
    """Deterministic, stateless letter classifier.

    Example:
        >>> rules = RuleClassifier()
        >>> letter = rules.classify(features, landmarks)
    """

    name = "rules"

    def __init__(self, thresholds: Optional[RuleThresholds] = None):
        self.thresholds = thresholds or RuleThresholds()

    def classify(self, features, landmarks) -> Optional[str]:
        """Return the matched letter, or None when no rule fires."""
        return classify_letter(features, landmarks, self.thresholds)

    def predict(self, features, landmarks=None) -> Optional[Prediction]:
        """Classifier-chain contract. Rules carry no uncertainty (score 0)."""
        letter = self.classify(features, landmarks)
        if letter is None:
            return None
        return Prediction(letter, 0.0, source=self.name)
