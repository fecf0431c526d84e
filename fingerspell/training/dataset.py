"""
PyTorch Dataset over a TemplateStore.

Every stored sample becomes one ``(features, label)`` pair. The label order
is the store's letters-with-samples order at construction time and is saved
into the checkpoint, so later edits to the store cannot remap predictions.
"""

import logging
import numpy as np

import torch
from torch.utils.data import Dataset

logger = logging.getLogger(__name__)


class TemplateDataset(Dataset):
    """Each sample is a (features, label) pair where:
        - features: FloatTensor of shape (18,)
        - label: LongTensor scalar (index into ``class_names``)
    """

    def __init__(self, store, transform=None):
        """
        Args:
            store: TemplateStore to snapshot
            transform: Optional callable(features_tensor) → features_tensor
        """
        self._transform = transform
        templates = store.export()
        self._class_names = [letter for letter, samples in templates.items() if samples]

        features, labels = [], []
        for label, letter in enumerate(self._class_names):
            for sample in templates[letter]:
                features.append(sample)
                labels.append(label)

        if features:
            self._features = np.asarray(features, dtype=np.float32)
        else:
            self._features = np.zeros((0, 18), dtype=np.float32)
        self._labels = np.asarray(labels, dtype=np.int64)

        logger.info("TemplateDataset: %d samples across %d letters",
                    len(self._labels), len(self._class_names))

    def __len__(self):
        return len(self._labels)

    def __getitem__(self, idx):
        features = torch.from_numpy(self._features[idx])
        if self._transform is not None:
            features = self._transform(features)
        return features, torch.tensor(self._labels[idx], dtype=torch.long)

    @property
    def num_classes(self):
        return len(self._class_names)

    @property
    def class_names(self):
        return list(self._class_names)

    def class_weights(self):
        """Inverse-frequency class weights for imbalanced captures.

        Returns:
            FloatTensor of shape (num_classes,)
        """
        counts = np.bincount(self._labels, minlength=self.num_classes).astype(np.float32)
        counts = np.maximum(counts, 1.0)
        weights = 1.0 / counts
        weights = weights / weights.sum() * self.num_classes
        return torch.from_numpy(weights)
