from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

MARKER_NAME = ".ignore"


class DotIgnoreRule:
    """Prunes a directory that contains an empty ``.ignore`` marker.

    A non-empty marker is left alone; pattern lists are not interpreted.
    """

    name = "dot_ignore"

    def should_ignore_directory(self, path: Path, parent: Optional[Path]) -> bool:
        marker = path / MARKER_NAME
        try:
            st = marker.stat()
        except FileNotFoundError:
            return False
        except OSError as exc:
            logger.debug("Cannot inspect %s: %s", marker, exc)
            return False
        return st.st_size == 0

    def should_ignore_file(self, path: Path, parent: Optional[Path]) -> bool:
        return False
