"""
LetterNet: small MLP mapping the 18-dim feature vector to a letter.

Architecture:
    Input  : 18 features (from LetterFeatureExtractor)
    FC1    : 64 units, ReLU, Dropout(0.2)
    Output : num_classes (softmax applied externally or via loss fn)

The checkpoint stores the index → letter table next to the weights, so a
model keeps predicting the letters it was trained on even after the template
store it came from changes.
"""

import os
import logging

import torch
import torch.nn as nn

from fingerspell.core.types import FEATURE_DIM

logger = logging.getLogger(__name__)


class LetterNet(nn.Module):
    """Single-hidden-layer MLP for fingerspelling letters."""

    def __init__(self, class_names, input_dim=FEATURE_DIM, hidden_units=64, dropout=0.2):
        super(LetterNet, self).__init__()
        if not class_names:
            raise ValueError("LetterNet needs at least one class name")

        self.class_names = list(class_names)
        self.input_dim = input_dim
        self.hidden_units = hidden_units

        self.features = nn.Sequential(
            nn.Linear(input_dim, hidden_units),
            nn.ReLU(inplace=True),
            nn.Dropout(dropout),
        )
        self.classifier = nn.Linear(hidden_units, len(self.class_names))

        self._init_weights()

    def _init_weights(self):
        for m in self.modules():
            if isinstance(m, nn.Linear):
                nn.init.kaiming_normal_(m.weight, nonlinearity="relu")
                if m.bias is not None:
                    nn.init.zeros_(m.bias)

    @property
    def num_classes(self):
        return len(self.class_names)

    def forward(self, x):
        """Forward pass.

        Args:
            x: Tensor of shape (batch, 18)

        Returns:
            Tensor of shape (batch, num_classes) of raw logits
        """
        return self.classifier(self.features(x))

    def predict_proba(self, x):
        """Softmax probabilities for inference, shape (batch, num_classes)."""
        self.eval()
        with torch.no_grad():
            return torch.softmax(self.forward(x), dim=1)

    def save_checkpoint(self, path, **extra):
        """Save weights, architecture and the label table to ``path``."""
        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
        checkpoint = {
            "model_state_dict": self.state_dict(),
            "input_dim": self.input_dim,
            "hidden_units": self.hidden_units,
            "num_classes": self.num_classes,
            "class_names": self.class_names,
        }
        checkpoint.update(extra)
        torch.save(checkpoint, path)
        logger.info("Saved LetterNet (%d classes) to %s", self.num_classes, path)

    @classmethod
    def load_checkpoint(cls, path, device="cpu"):
        """Load a trained model from checkpoint.

        Args:
            path: Path to .pth checkpoint file
            device: Device to load onto ('cpu' or 'cuda')

        Returns:
            Loaded LetterNet in eval mode

        Raises:
            ValueError: checkpoint has no label table or it does not match
                the classifier layer.
        """
        checkpoint = torch.load(path, map_location=device)
        if not isinstance(checkpoint, dict) or "model_state_dict" not in checkpoint:
            raise ValueError("%s is not a LetterNet checkpoint" % path)

        class_names = checkpoint.get("class_names")
        if not class_names:
            raise ValueError("%s has no class_names label table" % path)

        state_dict = checkpoint["model_state_dict"]
        num_classes = state_dict["classifier.weight"].shape[0]
        if num_classes != len(class_names):
            raise ValueError("%s: %d outputs but %d class names"
                             % (path, num_classes, len(class_names)))

        model = cls(
            class_names,
            input_dim=checkpoint.get("input_dim", FEATURE_DIM),
            hidden_units=checkpoint.get("hidden_units", 64),
        )
        model.load_state_dict(state_dict)
        model.to(device)
        model.eval()
        logger.info("Loaded LetterNet (%d classes) from %s", num_classes, path)
        return model
