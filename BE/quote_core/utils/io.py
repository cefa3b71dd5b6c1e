# BE/quote_core/utils/io.py
"""
File helpers for the persisted watchlist document.
- YAML in/out (mapping at the top level)
- Atomic text writes: a sibling temp file is renamed over the target, so a
  crash mid-write leaves the previous document intact

No runtime dependency on the rest of the app.
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Any, Dict

import yaml


def ensure_dir(path: Path | str) -> Path:
    directory = Path(path)
    directory.mkdir(parents=True, exist_ok=True)
    return directory


def read_yaml(path: Path | str) -> Dict[str, Any]:
    """
    Mapping stored at ``path``; {} when the file is absent or blank.

    `yaml.YAMLError` propagates. A document whose top level is not a mapping
    comes back as ``{"_": data}`` so callers can reject it by key lookup.
    """
    source = Path(path)
    if not source.is_file():
        return {}
    data = yaml.safe_load(source.read_text(encoding="utf-8"))
    if data is None:
        return {}
    return data if isinstance(data, dict) else {"_": data}


def atomic_write_text(path: Path | str, content: str) -> None:
    target = Path(path)
    ensure_dir(target.parent)
    fd, tmp_name = tempfile.mkstemp(dir=target.parent, prefix=f".{target.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        os.replace(tmp_name, target)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


def write_yaml(path: Path | str, data: Dict[str, Any]) -> None:
    """Block-style YAML, keys in insertion order, non-ASCII kept readable."""
    atomic_write_text(path, yaml.safe_dump(data, allow_unicode=True, sort_keys=False, default_flow_style=False))
