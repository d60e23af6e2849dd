"""Atomic TXT/JSON/CSV writers.

Files are written to a temp sibling and swapped in, so a text source polling
the file (OBS "Read from file") never sees a half-written value.
"""
from __future__ import annotations

import csv
import json
import logging
import os
import shutil
import time
from typing import Any, List

log = logging.getLogger(__name__)


def _atomic_replace(tmp: str, path: str, retries: int = 3, delay: float = 0.05):
    """Replace path with tmp, retrying while another reader holds the target.

    After the retries, fall back to copying tmp over the target (not atomic,
    but works when os.replace is blocked by an open handle on Windows).
    """
    for _ in range(retries):
        try:
            os.replace(tmp, path)
            return
        except PermissionError:
            time.sleep(delay)
    log.debug("os.replace kept failing for %s, copying instead", path)
    shutil.copyfile(tmp, path)
    os.remove(tmp)


def _ensure_parent(path: str):
    parent = os.path.dirname(path)
    if parent:
        os.makedirs(parent, exist_ok=True)


def atomic_write_text(path: str, text: str):
    _ensure_parent(path)
    tmp = path + ".tmp"
    with open(tmp, "w", encoding="utf-8", newline="") as f:
        f.write(text)
    _atomic_replace(tmp, path)


def atomic_write_json(path: str, obj: Any):
    _ensure_parent(path)
    tmp = path + ".tmp"
    with open(tmp, "w", encoding="utf-8") as f:
        json.dump(obj, f, ensure_ascii=False, indent=2)
    _atomic_replace(tmp, path)


def atomic_write_csv(path: str, rows: List[List[Any]]):
    _ensure_parent(path)
    tmp = path + ".tmp"
    with open(tmp, "w", encoding="utf-8", newline="") as f:
        w = csv.writer(f)
        w.writerows(rows)
    _atomic_replace(tmp, path)


STATUS_FIELDS = ("gameid", "score", "lines", "level", "preview")


def write_event(out_dir: str, event: dict, fmt: str = "txt"):
    """Write the latest dispatch in the chosen format.

    txt writes one file per status field; json writes the whole event;
    csv writes a header row and a value row for the status fields.
    """
    fmt = fmt.lower()
    if fmt == "txt":
        for name in STATUS_FIELDS:
            value = event.get(name)
            atomic_write_text(os.path.join(out_dir, f"{name}.txt"), "" if value is None else f"{value}\n")
    elif fmt == "json":
        atomic_write_json(os.path.join(out_dir, "event.json"), event)
    elif fmt == "csv":
        atomic_write_csv(
            os.path.join(out_dir, "event.csv"),
            [list(STATUS_FIELDS), [event.get(name) for name in STATUS_FIELDS]],
        )
    else:
        raise ValueError(f"unknown output format {fmt!r}")
