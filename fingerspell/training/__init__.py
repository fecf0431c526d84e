"""
Training package for the letter model.

Provides:
    - TemplateDataset: PyTorch Dataset over a TemplateStore
    - train.py: standalone training script (python -m fingerspell.training.train)
"""
