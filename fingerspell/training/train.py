#!/usr/bin/env python3
"""
Train LetterNet from captured templates.

Usage::

    # Train from a user's saved templates
    python -m fingerspell.training.train --user alice

    # From an exported template file, custom options
    python -m fingerspell.training.train --templates my_templates.json --epochs 80

The checkpoint (weights + letter table) is written to
``<model_dir>/<checkpoint>`` from config.yaml unless ``--output`` is given;
the pipeline picks it up on next start or after ``ModelClassifier.reload()``.
"""

import os
import sys
import json
import time
import logging
import argparse
import numpy as np

import torch
import torch.nn as nn
import torch.optim as optim
from torch.utils.data import DataLoader, random_split

from fingerspell.models.letter_net import LetterNet
from fingerspell.training.dataset import TemplateDataset
from fingerspell.modules.utils.logger import log_timing

logger = logging.getLogger(__name__)

# Below this many samples every sample is used for training and accuracy is
# reported on the training set.
MIN_SAMPLES_FOR_VALIDATION = 20


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Train the fingerspelling letter model")
    source = parser.add_mutually_exclusive_group()
    source.add_argument("--user", default=None,
                        help="Template profile to train on (default: config templates.default_user)")
    source.add_argument("--templates", default=None,
                        help="Exported template JSON file to train on")
    parser.add_argument("--config", default=None, help="Path to config.yaml")
    parser.add_argument("--output", default=None, help="Checkpoint path to write")
    parser.add_argument("--epochs", type=int, default=None, help="Number of training epochs")
    parser.add_argument("--batch-size", type=int, default=None, help="Training batch size")
    parser.add_argument("--lr", type=float, default=None, help="Learning rate")
    parser.add_argument("--val-split", type=float, default=0.2,
                        help="Fraction of data for validation")
    parser.add_argument("--seed", type=int, default=42, help="Random seed for reproducibility")
    return parser.parse_args(argv)


def run_epoch(model, loader, criterion, device, optimizer=None):
    """One pass over ``loader``; trains when an optimizer is given.

    Returns:
        (avg_loss, accuracy)
    """
    training = optimizer is not None
    model.train(training)
    running_loss = 0.0
    correct = 0
    total = 0

    with torch.set_grad_enabled(training):
        for features, labels in loader:
            features = features.to(device)
            labels = labels.to(device)

            if training:
                optimizer.zero_grad()
            outputs = model(features)
            loss = criterion(outputs, labels)
            if training:
                loss.backward()
                optimizer.step()

            running_loss += loss.item() * features.size(0)
            _, predicted = outputs.max(1)
            total += labels.size(0)
            correct += predicted.eq(labels).sum().item()

    return running_loss / max(total, 1), correct / max(total, 1)


@log_timing
def train_from_store(store, output_path=None, epochs=40, batch_size=16, lr=1e-3,
                     hidden_units=64, dropout=0.2, val_split=0.2, seed=42, device="cpu"):
    """Train a LetterNet on every sample in ``store``.

    Args:
        store: TemplateStore with at least one letter
        output_path: where to save the checkpoint (skipped when None)

    Returns:
        (model, history) where history holds per-epoch losses/accuracies.

    Raises:
        ValueError: the store has no samples.
    """
    torch.manual_seed(seed)
    np.random.seed(seed)

    dataset = TemplateDataset(store)
    if len(dataset) == 0:
        raise ValueError("No templates to train on")

    if val_split > 0 and len(dataset) >= MIN_SAMPLES_FOR_VALIDATION:
        val_size = max(1, int(len(dataset) * val_split))
        train_ds, val_ds = random_split(
            dataset, [len(dataset) - val_size, val_size],
            generator=torch.Generator().manual_seed(seed),
        )
    else:
        train_ds, val_ds = dataset, dataset

    train_loader = DataLoader(train_ds, batch_size=batch_size, shuffle=True, num_workers=0)
    val_loader = DataLoader(val_ds, batch_size=batch_size, shuffle=False, num_workers=0)

    model = LetterNet(dataset.class_names, hidden_units=hidden_units, dropout=dropout).to(device)
    criterion = nn.CrossEntropyLoss(weight=dataset.class_weights().to(device))
    optimizer = optim.Adam(model.parameters(), lr=lr)

    history = {"train_loss": [], "val_loss": [], "train_acc": [], "val_acc": []}
    start_time = time.time()
    logger.info("Training LetterNet: %d samples, %d letters, %d epochs",
                len(dataset), dataset.num_classes, epochs)

    for epoch in range(1, epochs + 1):
        train_loss, train_acc = run_epoch(model, train_loader, criterion, device, optimizer)
        val_loss, val_acc = run_epoch(model, val_loader, criterion, device)

        history["train_loss"].append(train_loss)
        history["val_loss"].append(val_loss)
        history["train_acc"].append(train_acc)
        history["val_acc"].append(val_acc)

        if epoch % 10 == 0 or epoch == 1 or epoch == epochs:
            logger.info("Epoch %3d/%d | Train: loss=%.4f acc=%.3f | Val: loss=%.4f acc=%.3f",
                        epoch, epochs, train_loss, train_acc, val_loss, val_acc)

    model.eval()
    logger.info("Training complete in %.1f seconds", time.time() - start_time)

    if output_path:
        model.save_checkpoint(
            output_path,
            epochs=epochs,
            val_acc=history["val_acc"][-1],
            total_samples=len(dataset),
        )
        log_path = os.path.splitext(output_path)[0] + "_training_log.json"
        with open(log_path, "w") as f:
            json.dump({"class_names": dataset.class_names, "history": history}, f, indent=2)
        logger.info("Training log saved to: %s", log_path)

    return model, history


def main(argv=None):
    from fingerspell.modules.storage.template_repository import (
        TemplateRepository, load_store_from_file,
    )
    from fingerspell.modules.utils.config import Config
    from fingerspell.modules.utils.logger import setup_logging

    args = parse_args(argv)
    config = Config().load(config_path=args.config)
    setup_logging(level=config.get("logging.level", "INFO"))
    train_cfg = config.training
    model_cfg = config.model

    if args.templates:
        store = load_store_from_file(args.templates)
    else:
        user = args.user or config.get("templates.default_user")
        store = TemplateRepository(config.templates).load(user)

    output = args.output or os.path.join(
        model_cfg.get("model_dir", "models/weights"),
        model_cfg.get("checkpoint", "letter_net.pth"),
    )

    try:
        train_from_store(
            store,
            output_path=output,
            epochs=args.epochs or train_cfg.get("epochs", 40),
            batch_size=args.batch_size or train_cfg.get("batch_size", 16),
            lr=args.lr or train_cfg.get("lr", 1e-3),
            hidden_units=train_cfg.get("hidden_units", 64),
            dropout=train_cfg.get("dropout", 0.2),
            val_split=args.val_split,
            seed=args.seed,
            device=model_cfg.get("device", "cpu"),
        )
    except ValueError as e:
        logger.error("Training failed: %s", e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
