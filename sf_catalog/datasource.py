"""
Read-only access to a published catalog.

Provides a uniform interface for reading catalog JSON (``index.json``,
cloud indexes and object documents) from either the local filesystem or a
GitHub repository, plus the lookups the MCP server and web API share.
"""

from __future__ import annotations

import json
import os
from abc import ABC, abstractmethod
from collections import OrderedDict
from pathlib import Path
from urllib.error import HTTPError
from urllib.request import Request, urlopen

from sf_catalog.config import INDEX_FILE
from sf_catalog.store.object_store import ObjectStore


class DataSource(ABC):
    """Abstract interface for reading catalog documents."""

    @abstractmethod
    def read_json(self, rel_path: str) -> dict | list:
        """Read and parse a JSON file. Raises FileNotFoundError if missing."""

    # ── Catalog lookups ──────────────────────────────────────────────

    def index(self) -> dict:
        return self.read_json(INDEX_FILE)

    def clouds(self) -> dict[str, dict]:
        """The ``clouds`` section of the index, keyed by file key."""
        return self.index().get("clouds", {})

    def cloud(self, key: str) -> dict:
        """A cloud index document by file key (``sales-cloud``) or cloud name."""
        clouds = self.clouds()
        summary = clouds.get(key)
        if summary is None:
            summary = next((c for c in clouds.values() if c.get("cloud", "").lower() == key.lower()), None)
        if summary is None:
            raise FileNotFoundError(f"Unknown cloud: {key}")
        return self.read_json(summary["fileName"])

    def get_object(self, name: str) -> dict:
        """The object record for ``name`` (unwrapped from its envelope)."""
        entry = self.index().get("objects", {}).get(name)
        rel_path = entry["file"] if entry else ObjectStore.relative_path(name)
        doc = self.read_json(rel_path)
        if not isinstance(doc, dict) or name not in doc:
            raise FileNotFoundError(f"Object not found: {name}")
        return doc[name]

    def search(self, query: str, cloud: str | None = None, limit: int = 50) -> list[dict]:
        """Index entries whose name or label contains ``query`` (case-insensitive)."""
        query_lower = query.lower()
        results = []
        for name, entry in self.index().get("objects", {}).items():
            if cloud and cloud not in (entry.get("clouds") or [entry.get("cloud")]):
                continue
            label = entry.get("label") or ""
            if query_lower in name.lower() or query_lower in label.lower():
                results.append({"name": name, **entry})
        results.sort(key=lambda r: (r["name"].lower() != query_lower, len(r["name"]), r["name"]))
        return results[:limit]


class LocalDataSource(DataSource):
    """Reads a catalog from a local directory."""

    def __init__(self, data_dir: str):
        self._root = Path(data_dir)
        if not self._root.is_dir():
            raise FileNotFoundError(f"Data directory not found: {self._root}")

    def _path(self, rel_path: str) -> Path:
        path = (self._root / rel_path).resolve()
        try:
            path.relative_to(self._root.resolve())
        except ValueError:
            raise FileNotFoundError(f"Outside the catalog: {rel_path}")
        return path

    def read_json(self, rel_path: str) -> dict | list:
        path = self._path(rel_path)
        if not path.is_file():
            raise FileNotFoundError(f"Not found: {rel_path}")
        with open(path, encoding="utf-8") as f:
            return json.load(f)


class GitHubDataSource(DataSource):
    """Reads a catalog from a GitHub repository via raw content URLs.

    Uses LRU caching to avoid repeated fetches. ``index.json`` is pinned
    and never evicted.
    """

    _PINNED_FILES = {INDEX_FILE}

    def __init__(self, owner: str, repo: str, branch: str = "main",
                 token: str | None = None, data_prefix: str = "doc",
                 maxsize: int = 500):
        self._owner = owner
        self._repo = repo
        self._branch = branch
        self._token = token or os.environ.get("GITHUB_TOKEN", "")
        self._prefix = data_prefix.strip("/")
        self._maxsize = maxsize
        self._pinned: dict[str, dict | list] = {}
        self._cache: OrderedDict[str, dict | list] = OrderedDict()

    def _raw_url(self, path: str) -> str:
        return f"https://raw.githubusercontent.com/{self._owner}/{self._repo}/{self._branch}/{path}"

    def _headers(self) -> dict[str, str]:
        h: dict[str, str] = {"Accept": "application/vnd.github.v3.raw"}
        if self._token:
            h["Authorization"] = f"token {self._token}"
        return h

    def _full_path(self, rel_path: str) -> str:
        return f"{self._prefix}/{rel_path}" if self._prefix else rel_path

    def _fetch_raw(self, path: str) -> bytes:
        req = Request(self._raw_url(path), headers=self._headers())
        try:
            with urlopen(req, timeout=30) as resp:
                return resp.read()
        except HTTPError as e:
            if e.code == 404:
                raise FileNotFoundError(f"Not found on GitHub: {path}")
            raise

    def read_json(self, rel_path: str) -> dict | list:
        path = self._full_path(rel_path)
        if path in self._pinned:
            return self._pinned[path]
        if path in self._cache:
            self._cache.move_to_end(path)
            return self._cache[path]

        data = json.loads(self._fetch_raw(path))

        if rel_path in self._PINNED_FILES:
            self._pinned[path] = data
        else:
            self._cache[path] = data
            if len(self._cache) > self._maxsize:
                self._cache.popitem(last=False)
        return data
