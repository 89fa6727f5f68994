"""
CLI to classify a landmark frame or inspect the mood history -> JSON.

Usage:
    python scripts/cli.py classify --landmarks frame.json [--record]
    python scripts/cli.py history
"""
from __future__ import annotations
import argparse, json, logging, sys

from vibecraft.config import Settings
from vibecraft.errors import FrameError, PersistenceError
from vibecraft.features import extract
from vibecraft.classifier import classify
from vibecraft.history import JsonFileBackend, MoodHistoryStore, day_key
from vibecraft.models import LandmarkFrame


def _load_frame(path: str) -> LandmarkFrame:
    """Accept either {"points": [{x, y, z}, ...]} or a bare [[x, y(, z)], ...] list."""
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if isinstance(data, list):
        return LandmarkFrame.from_points(data)
    return LandmarkFrame.model_validate(data)


def _fail(e: Exception) -> int:
    print(json.dumps({"error": type(e).__name__, "detail": str(e)}, indent=2), file=sys.stderr)
    return 1


def main(argv=None) -> int:
    p = argparse.ArgumentParser(description="VibeCraft mood tools")
    sub = p.add_subparsers(dest="cmd", required=True)

    c = sub.add_parser("classify", help="Classify one landmark frame")
    c.add_argument("--landmarks", required=True, help="Path to landmark frame JSON")
    c.add_argument("--record", action="store_true", help="Also count the label in today's history")

    sub.add_parser("history", help="Print the stored mood history and summary")
    args = p.parse_args(argv)

    settings = Settings()
    logging.basicConfig(level=getattr(logging, settings.LOG_LEVEL))
    store = MoodHistoryStore(JsonFileBackend(settings.HISTORY_PATH), settings.HISTORY_DAYS)

    if args.cmd == "classify":
        try:
            features = extract(_load_frame(args.landmarks))
            label = classify(features)
            if args.record:
                store.increment(label, day_key())
        # OSError: unreadable file; ValueError / TypeError: bad JSON or point layout
        except (FrameError, PersistenceError, OSError, ValueError, TypeError) as e:
            return _fail(e)
        print(json.dumps({"features": features.model_dump(), "emotion": label.value}, indent=2))
        return 0

    result = {
        "history": [e.model_dump() for e in store.load()],
        "summary": store.summary().model_dump(mode="json"),
    }
    print(json.dumps(result, indent=2, ensure_ascii=False))
    return 0

if __name__ == "__main__":
    sys.exit(main())
