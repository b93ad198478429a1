"""Keyword list parsing and keyword file import."""

import csv
import re
from pathlib import Path
from typing import Iterable, List, Union


_SPLIT_PATTERN = re.compile(r"[\n,]+")
_HEADER_MARKERS = ("keyword", "anahtar")


def dedupe_keywords(keywords: Iterable[str]) -> List[str]:
    """Strip keywords, drop blank ones and remove duplicates.
    
    The first occurrence wins, so the original order is kept.
    """
    seen = set()
    unique = []
    for keyword in keywords:
        keyword = (keyword or "").strip()
        if keyword and keyword not in seen:
            seen.add(keyword)
            unique.append(keyword)
    return unique


def parse_keywords(text: str) -> List[str]:
    """Parse a newline- or comma-separated keyword list.
    
    Example:
        >>> parse_keywords("shoes, sneakers\\n\\nrunning shoes\\nshoes")
        ['shoes', 'sneakers', 'running shoes']
    """
    return dedupe_keywords(_SPLIT_PATTERN.split(text or ""))


def _is_header(cell: str) -> bool:
    lowered = cell.lower()
    return any(marker in lowered for marker in _HEADER_MARKERS)


def read_keyword_file(path: Union[str, Path]) -> List[str]:
    """Read keywords from the first column of a CSV file.
    
    Both ``,`` and ``;`` separated files are accepted. Header-looking cells
    (containing "keyword" or "anahtar") and blank cells are skipped.
    
    Args:
        path: CSV file path
        
    Returns:
        De-duplicated keywords in file order
        
    Raises:
        ValueError: If the file is not a CSV file
    """
    path = Path(path)
    if path.suffix.lower() not in (".csv", ".txt"):
        raise ValueError(f"Only CSV keyword files are supported: {path.name}")
    
    keywords = []
    with open(path, newline="", encoding="utf-8-sig") as f:
        for row in csv.reader(f, delimiter=","):
            if not row:
                continue
            first_cell = row[0].split(";")[0].strip()
            if first_cell and not _is_header(first_cell):
                keywords.append(first_cell)
    
    return dedupe_keywords(keywords)
