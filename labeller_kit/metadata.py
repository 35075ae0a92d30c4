from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional, Union


def _strip_quotes(value: str) -> str:
    return value.strip().strip("'").strip('"')


def _from_ids(by_id: Dict[int, str]) -> List[str]:
    if not by_id:
        return []
    return [by_id.get(i, str(i)) for i in range(max(by_id) + 1)]


def _parse_inline(value: str) -> List[str]:
    """`[a, b]` flow list or `{0: a, 1: b}` flow mapping."""
    if value.startswith("[") and value.endswith("]"):
        return [_strip_quotes(v) for v in value[1:-1].split(",") if v.strip()]
    if value.startswith("{") and value.endswith("}"):
        by_id: Dict[int, str] = {}
        for item in value[1:-1].split(","):
            if ":" not in item:
                continue
            left, right = item.split(":", 1)
            if left.strip().isdigit():
                by_id[int(left.strip())] = _strip_quotes(right)
        return _from_ids(by_id)
    raise ValueError(f"Unsupported inline names value: {value!r}")


def _names_line(lines: List[str]) -> Optional[int]:
    for idx, raw in enumerate(lines):
        if raw.startswith("names:"):
            return idx
    return None


def load_class_names(path: Union[str, Path]) -> List[str]:
    """
    Load the ordered class-name table (index = class id).

    Two formats are accepted. A `classes.txt` style file with one name per line:

        person
        bicycle

    or the top-level `names:` key of a dataset yaml, as an id mapping, a list,
    or an inline `[person, bicycle]` / `{0: person, 1: bicycle}`:

        names:
          0: person
          1: bicycle

    Gaps in an id mapping are filled with the stringified id. This reader
    intentionally avoids adding a PyYAML dependency.
    """

    lines = Path(path).read_text(encoding="utf-8").splitlines()
    start = _names_line(lines)
    if start is None:
        return [
            line.strip()
            for line in lines
            if line.strip() and not line.strip().startswith("#")
        ]

    inline = lines[start][len("names:"):].split(" #", 1)[0].strip()
    if inline:
        return _parse_inline(inline)

    by_id: Dict[int, str] = {}
    listed: List[str] = []
    for raw in lines[start + 1 :]:
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        # a new top-level key ends the block
        if not raw[:1].isspace() and not line.startswith("-"):
            break

        if line.startswith("-"):
            listed.append(_strip_quotes(line[1:]))
            continue
        if ":" not in line:
            continue
        left, right = line.split(":", 1)
        left = left.strip()
        if not left.isdigit():
            continue
        by_id[int(left)] = _strip_quotes(right)

    if listed:
        return listed
    return _from_ids(by_id)
