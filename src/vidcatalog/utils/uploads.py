"""Staging of incoming files under the temporary upload directory."""

from __future__ import annotations

import random
import re
import shutil
import time
from pathlib import Path
from typing import Callable, Optional

_NON_WORD = re.compile(r"\W+")


def staged_filename(
    original_name: str,
    *,
    clock: Callable[[], float] = time.time,
    rng: Optional[random.Random] = None,
) -> str:
    """Return ``<base>_<epochSeconds>_<rand><ext>`` for an uploaded file name.

    Runs of non-word characters in the base name collapse to a single underscore; the
    extension (including its leading dot) is kept as-is.
    """

    name = Path(original_name).name
    path = Path(name)
    base = _NON_WORD.sub("_", path.stem)
    suffix = path.suffix
    random_part = (rng or random).randrange(10000)
    return f"{base}_{int(clock())}_{random_part}{suffix}"


def stage_upload(source: Path, temp_dir: Path) -> Path:
    """Copy ``source`` into ``temp_dir`` under a collision-resistant name."""

    temp_dir.mkdir(parents=True, exist_ok=True)
    destination = temp_dir / staged_filename(source.name)
    shutil.copyfile(source, destination)
    return destination


__all__ = ["stage_upload", "staged_filename"]
