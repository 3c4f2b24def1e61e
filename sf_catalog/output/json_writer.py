"""JSON file output for catalog documents.

Every document is written whole: serialized to a temporary file in the
target directory, then renamed over the destination, so a reader (or an
interrupted run) never sees a half-written file.
"""

import json
import os
import tempfile
from typing import Any


class JSONWriter:
    """Reads and atomically writes catalog JSON documents.

    Args:
        pretty: Whether to indent JSON with 2 spaces (default True).
    """

    def __init__(self, pretty: bool = True) -> None:
        self._indent = 2 if pretty else None

    def write(self, path: str, data: Any) -> None:
        directory = os.path.dirname(path) or '.'
        os.makedirs(directory, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=directory, prefix='.tmp-', suffix='.json')
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                json.dump(data, f, indent=self._indent, ensure_ascii=False, default=str)
            os.replace(tmp_path, path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

    @staticmethod
    def read(path: str) -> Any:
        with open(path, encoding='utf-8') as f:
            return json.load(f)
