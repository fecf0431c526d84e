"""
JSON persistence for per-profile template stores.

Each profile lives in ``<storage_dir>/asl_templates_<user>.json`` as a plain
``{"A": [[18 floats], ...], ...}`` mapping. A profile without a file starts
from the built-in seed templates. Switching profiles means loading a different
:class:`TemplateStore`; the classification core never knows which user is
active.
"""

import os
import re
import json
import logging
from typing import List, Optional

from fingerspell.modules.recognition.seed_templates import seed_templates
from fingerspell.modules.recognition.template_store import TemplateStore, DEFAULT_NN_THRESHOLD

logger = logging.getLogger(__name__)

_USER_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+$")
_FILE_PREFIX = "asl_templates_"


class TemplateFormatError(ValueError):
    """A persisted template file is not a valid template set."""


def read_template_file(path: str) -> dict:
    """Parse a template JSON file into a plain mapping.

    Raises:
        TemplateFormatError: unreadable JSON or not a mapping.
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise TemplateFormatError("%s is not valid JSON: %s" % (path, e)) from e
    if not isinstance(data, dict):
        raise TemplateFormatError("%s must contain a letter → samples mapping" % path)
    return data


def write_template_file(path: str, templates: dict):
    """Write a template set as JSON, replacing the file atomically."""
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    tmp_path = path + ".tmp"
    with open(tmp_path, "w", encoding="utf-8") as f:
        json.dump(templates, f)
    os.replace(tmp_path, path)


def load_store_from_file(path: str, threshold: float = DEFAULT_NN_THRESHOLD) -> TemplateStore:
    """Build a TemplateStore from any exported template file."""
    data = read_template_file(path)
    try:
        return TemplateStore(data, threshold=threshold)
    except ValueError as e:
        raise TemplateFormatError("%s: %s" % (path, e)) from e


class TemplateRepository:
    """Loads and saves one template store per user profile.

    Usage::

        repo = TemplateRepository(config.templates)
        store = repo.load("alice")
        store.add("A", features)
        repo.save("alice", store)
    """

    def __init__(self, config: Optional[dict] = None):
        config = config or {}
        self._storage_dir = config.get("storage_dir", "data/templates")
        self._seed_when_missing = config.get("seed_when_missing", True)
        self._threshold = float(config.get("nn_threshold", DEFAULT_NN_THRESHOLD))

    @property
    def storage_dir(self) -> str:
        return self._storage_dir

    def path_for(self, user: str) -> str:
        if not user or not _USER_PATTERN.match(user):
            raise ValueError("Invalid profile name: %r" % (user,))
        return os.path.join(self._storage_dir, "%s%s.json" % (_FILE_PREFIX, user))

    def guest_store(self) -> TemplateStore:
        """Unsaved store seeded with the built-in templates."""
        return TemplateStore(seed_templates(), threshold=self._threshold)

    def load(self, user: Optional[str]) -> TemplateStore:
        """Load the store for ``user``; None returns a guest store.

        A profile with no file yet is seeded (and the seed is written so the
        profile exists from then on).

        Raises:
            TemplateFormatError: the profile file is corrupt.
        """
        if user is None:
            return self.guest_store()

        path = self.path_for(user)
        if not os.path.isfile(path):
            store = self.guest_store() if self._seed_when_missing else \
                TemplateStore(threshold=self._threshold)
            self.save(user, store)
            logger.info("Created template profile '%s' (%d samples)", user, store.count())
            return store

        try:
            store = load_store_from_file(path, threshold=self._threshold)
        except TemplateFormatError as e:
            logger.error("Failed to load templates for '%s': %s", user, e)
            raise
        logger.info("Loaded %d samples for '%s' from %s", store.count(), user, path)
        return store

    def save(self, user: str, store: TemplateStore) -> str:
        """Persist ``store`` for ``user``; returns the written path."""
        path = self.path_for(user)
        templates = store.export()
        write_template_file(path, templates)
        logger.info("Saved %d samples for '%s'",
                    sum(len(s) for s in templates.values()), user)
        return path

    def delete(self, user: str) -> bool:
        path = self.path_for(user)
        try:
            os.remove(path)
        except FileNotFoundError:
            return False
        logger.info("Deleted template profile '%s'", user)
        return True

    def list_profiles(self) -> List[str]:
        """List profiles that have a saved template file."""
        profiles = []
        try:
            for name in sorted(os.listdir(self._storage_dir)):
                if name.startswith(_FILE_PREFIX) and name.endswith(".json"):
                    profiles.append(name[len(_FILE_PREFIX):-len(".json")])
        except FileNotFoundError:
            pass
        return profiles
