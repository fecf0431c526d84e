"""
Command-line entry point.

    fingerspell classify frames.jsonl     replay landmark frames through the pipeline
    fingerspell train --user alice        train the letter model
    fingerspell export alice out.json     write a profile's templates to a file
    fingerspell import alice in.json      replace a profile's templates from a file
    fingerspell clear alice [--letter A]  drop captured samples
    fingerspell stats [alice]             per-letter sample counts

Frame files hold one JSON value per line: a list of 21 ``[x, y, z]`` points,
or ``null`` / ``[]`` for a frame with no hand.
"""

import sys
import json
import logging
import argparse

from fingerspell import __version__
from fingerspell.core.events import EventBus, Events
from fingerspell.core.pipeline import ClassificationPipeline
from fingerspell.models.model_classifier import ModelClassifier
from fingerspell.modules.storage.template_repository import (
    TemplateRepository, TemplateFormatError, load_store_from_file, write_template_file,
)
from fingerspell.modules.utils.config import Config
from fingerspell.modules.utils.logger import setup_logging, LetterLogger

logger = logging.getLogger(__name__)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        prog="fingerspell",
        description="Static fingerspelling recognition from hand landmarks",
    )
    parser.add_argument("--config", type=str, default=None, help="Path to config.yaml")
    parser.add_argument("--log-level", type=str, default=None, help="Override logging.level")
    parser.add_argument("--version", action="version", version="%(prog)s " + __version__)
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("classify", help="Replay landmark frames through the pipeline")
    p.add_argument("frames", help="JSON-lines file of landmark frames")
    p.add_argument("--user", default=None, help="Template profile (default: guest seeds)")
    p.add_argument("--templates", default=None, help="Template file instead of a profile")
    p.add_argument("--no-model", action="store_true", help="Skip the learned model")

    p = sub.add_parser("train", help="Train the letter model")
    p.add_argument("train_args", nargs=argparse.REMAINDER,
                   help="Arguments forwarded to fingerspell.training.train")

    p = sub.add_parser("export", help="Write a profile's templates to a file")
    p.add_argument("user")
    p.add_argument("output")

    p = sub.add_parser("import", help="Replace a profile's templates from a file")
    p.add_argument("user")
    p.add_argument("input")

    p = sub.add_parser("clear", help="Remove captured samples from a profile")
    p.add_argument("user")
    p.add_argument("--letter", default=None, help="Only this letter")

    p = sub.add_parser("stats", help="Show per-letter sample counts")
    p.add_argument("user", nargs="?", default=None)

    return parser.parse_args(argv)


def read_frames(path):
    """Yield landmark frames (or None for no hand) from a JSON-lines file."""
    with open(path, "r", encoding="utf-8") as f:
        for line_no, line in enumerate(f, 1):
            line = line.strip()
            if not line:
                continue
            try:
                frame = json.loads(line)
            except json.JSONDecodeError as e:
                logger.warning("Skipping malformed frame on line %d: %s", line_no, e)
                continue
            yield frame or None


def _repository(config):
    repo_cfg = dict(config.templates)
    repo_cfg.setdefault("nn_threshold", config.get("recognition.nn_threshold", 0.45))
    return TemplateRepository(repo_cfg)


def cmd_classify(args, config):
    repo = _repository(config)
    if args.templates:
        store = load_store_from_file(args.templates,
                                     threshold=config.get("recognition.nn_threshold", 0.45))
    else:
        store = repo.load(args.user) if args.user else repo.guest_store()

    bus = EventBus()
    letters = LetterLogger()
    bus.subscribe(Events.LETTER_STABLE, letters.on_letter_stable)

    model = None if args.no_model else ModelClassifier(config.model, event_bus=bus)

    pipeline = ClassificationPipeline.from_config(config, store, model_classifier=model,
                                                  event_bus=bus)
    for frame in read_frames(args.frames):
        display = pipeline.classify_frame(frame)
        print(display or "-")

    logger.info("Processed %d frames: %s", pipeline.frame_count, pipeline.stats["sources"])
    print("transcript: %s" % letters.transcript)
    return 0


def cmd_train(args, config):
    from fingerspell.training.train import main as train_main
    forwarded = list(args.train_args)
    if args.config:
        forwarded = ["--config", args.config] + forwarded
    return train_main(forwarded)


def cmd_export(args, config):
    repo = _repository(config)
    store = repo.load(args.user)
    write_template_file(args.output, store.export())
    logger.info("Exported %d samples for '%s' to %s", store.count(), args.user, args.output)
    return 0


def cmd_import(args, config):
    repo = _repository(config)
    store = load_store_from_file(args.input)
    repo.save(args.user, store)
    return 0


def cmd_clear(args, config):
    repo = _repository(config)
    store = repo.load(args.user)
    store.clear(args.letter)
    repo.save(args.user, store)
    return 0


def cmd_stats(args, config):
    repo = _repository(config)
    store = repo.load(args.user) if args.user else repo.guest_store()
    for letter, samples in store.export().items():
        print("%s  %d" % (letter, len(samples)))
    print("total  %d" % store.count())
    return 0


COMMANDS = {
    "classify": cmd_classify,
    "train": cmd_train,
    "export": cmd_export,
    "import": cmd_import,
    "clear": cmd_clear,
    "stats": cmd_stats,
}


def main(argv=None):
    args = parse_args(argv)

    config = Config()
    config.load(config_path=args.config)

    log_cfg = config.get_section("logging")
    setup_logging(
        level=args.log_level or log_cfg.get("level", "INFO"),
        log_file=log_cfg.get("file"),
        max_size_mb=log_cfg.get("max_size_mb", 10),
        backup_count=log_cfg.get("backup_count", 3),
    )

    try:
        return COMMANDS[args.command](args, config)
    except (TemplateFormatError, ValueError, FileNotFoundError) as e:
        logger.error("%s failed: %s", args.command, e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
