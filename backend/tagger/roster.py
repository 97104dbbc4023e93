"""
Player roster parsing.

A roster is comma-delimited text. If the first line is a header with a
player_name column, names come from that column. Otherwise the first
column of every line is a name.

Names are UI hints for the player field. They never enter the ledger.
"""

import logging
import re
from pathlib import Path
from typing import List, Union

logger = logging.getLogger(__name__)


DEFAULT_ROSTER_FILE = Path("players.csv")
NAME_COLUMN = "player_name"

_LINE_SPLIT = re.compile(r"\r?\n")


def parse_roster(text: str) -> List[str]:
    """
    Extract player names from roster text.

    Blank lines and blank names are skipped. Duplicates are dropped,
    keeping the first appearance.
    """
    lines = [line.strip() for line in _LINE_SPLIT.split(text or "")]
    lines = [line for line in lines if line]
    if not lines:
        return []

    header = [h.strip().lower() for h in lines[0].split(",")]
    if NAME_COLUMN in header:
        idx = header.index(NAME_COLUMN)
        rows = lines[1:]
    else:
        idx = 0
        rows = lines

    names: List[str] = []
    seen = set()
    for line in rows:
        cols = line.split(",")
        name = cols[idx].strip() if idx < len(cols) else ""
        if name and name not in seen:
            seen.add(name)
            names.append(name)
    return names


def load_roster_file(path: Union[str, Path]) -> List[str]:
    """
    Read and parse a roster file.

    Raises:
        OSError: If the file cannot be read
        UnicodeDecodeError: If the file is not UTF-8 text
    """
    path = Path(path)
    text = path.read_text(encoding="utf-8-sig")
    names = parse_roster(text)
    logger.debug(f"Parsed {len(names)} players from {path}")
    return names
