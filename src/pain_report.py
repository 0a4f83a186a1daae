"""
Pain Report CLI
===============
Reads a JSON array of pain-log entries and writes the analytics snapshot as
camelCase JSON.

Usage:
    pain-report --entries log.json                    # 30-day window, stdout
    pain-report --entries log.json --window 90d --output snapshot.json
    pain-report --entries - --now 2024-03-01T12:00    # entries on stdin

Thresholds can be overridden with PAIN_ENGINE_<FIELD> variables (a .env file
in the working directory is honoured).
"""

from __future__ import annotations

import argparse
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import TypeAdapter, ValidationError

from constants import WINDOW_DAYS
from engine_config import EngineConfig
from pain_engine import PainPatternEngine
from schema import Entry

log = logging.getLogger("pain_report")

ENTRY_LIST = TypeAdapter(List[Entry])


def load_entries(source: str) -> List[Entry]:
    """Parse entries from a file path, or stdin when ``source`` is ``-``."""
    raw = sys.stdin.read() if source == "-" else Path(source).read_text(encoding="utf-8")
    return ENTRY_LIST.validate_json(raw)


def run_report(entries_path: str, window: str = "30d", now: Optional[datetime] = None,
               output: Optional[str] = None, indent: Optional[int] = 2,
               config: Optional[EngineConfig] = None) -> int:
    """Compute and write one snapshot. Returns a process exit code."""
    try:
        entries = load_entries(entries_path)
    except ValidationError as e:
        log.error("Invalid entry payload (%d errors): %s", e.error_count(), e)
        return 1
    except OSError as e:
        log.error("Could not read entries: %s", e)
        return 1

    log.info("Loaded %d entries from %s", len(entries), entries_path)
    engine = PainPatternEngine(config or EngineConfig.from_env())
    snapshot = engine.analyze(entries, window=window, now=now)

    payload = snapshot.to_json(indent=indent)
    if output:
        Path(output).write_text(payload + "\n", encoding="utf-8")
        log.info("Snapshot written to %s (status=%s)", output, snapshot.analysis_status)
    else:
        sys.stdout.write(payload + "\n")
    return 0


# ═══════════════════════════════════════════════════════════════
#  CLI
# ═══════════════════════════════════════════════════════════════

def main(argv: Optional[List[str]] = None):
    parser = argparse.ArgumentParser(description="Pain pattern analytics snapshot")
    parser.add_argument("--entries", required=True,
                        help="JSON array of entries ('-' reads stdin)")
    parser.add_argument("--window", choices=list(WINDOW_DAYS), default="30d",
                        help="Analysis window (default: 30d)")
    parser.add_argument("--now", type=datetime.fromisoformat, default=None,
                        help="Reference time, ISO 8601 (default: wall clock)")
    parser.add_argument("--output", help="Write snapshot here instead of stdout")
    parser.add_argument("--indent", type=int, default=2,
                        help="JSON indent (default: 2)")
    args = parser.parse_args(argv)

    load_dotenv()
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s  %(levelname)-8s  %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
    )

    sys.exit(run_report(
        args.entries,
        window=args.window,
        now=args.now,
        output=args.output,
        indent=args.indent,
    ))


if __name__ == "__main__":
    main()
