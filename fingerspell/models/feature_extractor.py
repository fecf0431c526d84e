"""
Feature extraction: 21-point hand landmarks → 18-dim letter feature vector.

All distances are divided by the wrist → middle-knuckle length so the vector
does not change with hand size or camera distance.

Feature layout (18 dimensions):
    [0:5]    Tip-to-wrist distances (thumb, index, middle, ring, pinky)
    [5:10]   Tip-to-joint distances (curl: large when extended)
    [10:15]  Tip pairs (index,middle) (index,thumb) (middle,ring)
             (ring,pinky) (thumb,index)
    [15:18]  Joint angles of index, middle, ring in radians [0, pi]

Classifiers, stored templates and trained models all depend on this exact
order.
"""

import logging
import numpy as np

from fingerspell.core.types import LandmarkIndex as L, NUM_LANDMARKS, FEATURE_DIM

logger = logging.getLogger(__name__)

FINGER_TIPS = (L.THUMB_TIP, L.INDEX_TIP, L.MIDDLE_TIP, L.RING_TIP, L.PINKY_TIP)
FINGER_JOINTS = (L.THUMB_IP, L.INDEX_DIP, L.MIDDLE_DIP, L.RING_DIP, L.PINKY_DIP)

TIP_PAIRS = (
    (L.INDEX_TIP, L.MIDDLE_TIP),
    (L.INDEX_TIP, L.THUMB_TIP),
    (L.MIDDLE_TIP, L.RING_TIP),
    (L.RING_TIP, L.PINKY_TIP),
    (L.THUMB_TIP, L.INDEX_TIP),
)

# (wrist-side joint, vertex, tip) per measured finger
ANGLE_CHAINS = (
    (L.INDEX_MCP, L.INDEX_PIP, L.INDEX_TIP),
    (L.MIDDLE_MCP, L.MIDDLE_PIP, L.MIDDLE_TIP),
    (L.RING_MCP, L.RING_PIP, L.RING_TIP),
)

NORM_EPSILON = 1e-6


def as_landmark_array(landmarks):
    """Coerce landmarks into a float64 array of shape (N, 3).

    Accepts an (N, 3) array, a sequence of (x, y, z) tuples, or objects
    exposing ``.x/.y/.z`` (MediaPipe ``NormalizedLandmark``). Returns None if
    the input cannot be interpreted as 3D points.
    """
    if landmarks is None:
        return None
    try:
        if hasattr(landmarks, "landmark"):
            landmarks = landmarks.landmark
        if not isinstance(landmarks, np.ndarray):
            landmarks = [
                (lm.x, lm.y, lm.z) if hasattr(lm, "x") else tuple(lm)
                for lm in landmarks
            ]
        arr = np.asarray(landmarks, dtype=np.float64)
    except (TypeError, ValueError):
        return None
    if arr.ndim != 2 or arr.shape[1] != 3:
        return None
    return arr


def is_valid_features(features) -> bool:
    """True when ``features`` has the full 18-element layout."""
    return features is not None and len(features) == FEATURE_DIM


class LetterFeatureExtractor:
    """Converts raw hand landmarks to the fixed 18-element feature vector."""

    def __init__(self):
        self._feature_dim = FEATURE_DIM

    @property
    def feature_dim(self):
        return self._feature_dim

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def extract(self, landmarks):
        """Convert 21 landmarks → (18,) feature vector.

        Args:
            landmarks: (21, 3) array-like or landmark objects with x/y/z.

        Returns:
            Read-only np.ndarray of shape (18,). An empty array is returned
            instead of raising when fewer than 21 landmarks are supplied.
        """
        points = as_landmark_array(landmarks)
        if points is None or points.shape[0] < NUM_LANDMARKS:
            logger.debug("Invalid landmarks for feature extraction: %s",
                         None if points is None else points.shape)
            return self.invalid()

        features = np.zeros(self._feature_dim, dtype=np.float64)

        wrist = points[L.WRIST]
        norm = float(np.linalg.norm(wrist - points[L.MIDDLE_MCP])) or NORM_EPSILON

        # --- Tip-to-wrist distances (5 dims) --------------------------
        for i, tip in enumerate(FINGER_TIPS):
            features[i] = np.linalg.norm(points[tip] - wrist) / norm

        # --- Tip-to-joint curl distances (5 dims) ---------------------
        for i, (tip, joint) in enumerate(zip(FINGER_TIPS, FINGER_JOINTS)):
            features[5 + i] = np.linalg.norm(points[tip] - points[joint]) / norm

        # --- Tip pair distances (5 dims) ------------------------------
        for i, (a, b) in enumerate(TIP_PAIRS):
            features[10 + i] = np.linalg.norm(points[a] - points[b]) / norm

        # --- Joint angles (3 dims) ------------------------------------
        for i, (a, b, c) in enumerate(ANGLE_CHAINS):
            features[15 + i] = self._angle_3d(points[a], points[b], points[c])

        features.flags.writeable = False
        return features

    def extract_batch(self, landmarks_batch):
        """Extract features for a batch of (N, 21, 3) landmarks → (N, 18)."""
        out = np.zeros((len(landmarks_batch), self._feature_dim), dtype=np.float64)
        for i, landmarks in enumerate(landmarks_batch):
            features = self.extract(landmarks)
            if not is_valid_features(features):
                raise ValueError("Sample %d does not contain %d landmarks" % (i, NUM_LANDMARKS))
            out[i] = features
        return out

    @staticmethod
    def invalid():
        """The sentinel returned for unusable input."""
        empty = np.zeros(0, dtype=np.float64)
        empty.flags.writeable = False
        return empty

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _angle_3d(a, b, c):
        """Angle at b in the chain a-b-c, in radians. Degenerate → 0."""
        ba = a - b
        bc = c - b
        len_ba = np.linalg.norm(ba)
        len_bc = np.linalg.norm(bc)
        if len_ba == 0 or len_bc == 0:
            return 0.0
        cos_a = np.dot(ba, bc) / (len_ba * len_bc)
        return float(np.arccos(np.clip(cos_a, -1.0, 1.0)))
