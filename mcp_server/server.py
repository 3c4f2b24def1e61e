"""
Salesforce Object Catalog: MCP Server.

Exposes the object catalog (clouds, objects, fields, picklist values,
relationships) to LLM clients via the Model Context Protocol.

Usage:
    # Local mode (reads from filesystem)
    sf-catalog-mcp --data-dir /path/to/doc

    # GitHub mode (reads from a GitHub repo)
    sf-catalog-mcp --github owner/repo [--branch main] [--data-prefix doc]

    Requires GITHUB_TOKEN env var for private repos (or to avoid rate limits).
"""

from __future__ import annotations

import json
import sys

from mcp.server.fastmcp import FastMCP

from sf_catalog.datasource import DataSource, GitHubDataSource, LocalDataSource

# ── Globals ─────────────────────────────────────────────────────────────

_ds: DataSource | None = None
mcp = FastMCP("sf-object-catalog")


def _datasource() -> DataSource:
    if _ds is None:
        raise RuntimeError("Data source not initialized")
    return _ds


def _truncate(data: dict | list, max_chars: int = 80_000) -> dict | list:
    text = json.dumps(data, ensure_ascii=False)
    if len(text) <= max_chars:
        return data
    return {
        "_truncated": True,
        "_message": f"Response too large ({len(text):,} chars). Use get_field for individual fields.",
    }


# ── Tools ───────────────────────────────────────────────────────────────


@mcp.tool()
def catalog_overview() -> dict:
    """Get catalog-wide totals: version, generation time, object and cloud counts.

    Call this first to see what the catalog covers.
    """
    index = _datasource().index()
    return {
        "version": index.get("version"),
        "generated": index.get("generated"),
        "totalObjects": index.get("totalObjects"),
        "totalClouds": index.get("totalClouds"),
    }


@mcp.tool()
def list_clouds() -> list[dict]:
    """List Salesforce clouds (product areas) with descriptions and object counts."""
    return [{"key": key, **summary} for key, summary in _datasource().clouds().items()]


@mcp.tool()
def get_cloud(cloud: str) -> dict:
    """Get the sorted list of objects in one cloud.

    Args:
        cloud: Cloud file key (e.g. "sales-cloud") or cloud name (e.g. "Sales Cloud").
    """
    return _datasource().cloud(cloud)


@mcp.tool()
def search_objects(query: str, cloud: str | None = None, limit: int = 50) -> list[dict]:
    """Search objects by API name or label.

    Exact name matches come first, then shorter names.

    Args:
        query: Case-insensitive substring to match.
        cloud: Optional cloud name to restrict results to.
        limit: Maximum results (default 50).
    """
    return _datasource().search(query, cloud=cloud, limit=limit)


@mcp.tool()
def get_object(name: str, include_fields: bool = True) -> dict:
    """Get the full definition of an object.

    Args:
        name: Object API name (e.g. "Account").
        include_fields: When False, returns field names only instead of full descriptors.
    """
    record = _datasource().get_object(name)
    if not include_fields:
        record = {**record, "properties": sorted(record.get("properties", {}))}
    return _truncate(record)


@mcp.tool()
def get_field(object_name: str, field_name: str) -> dict:
    """Get one field's descriptor (type, description, picklist values, references).

    Args:
        object_name: Object API name.
        field_name: Field API name (case-insensitive).
    """
    properties = _datasource().get_object(object_name).get("properties", {})
    if field_name in properties:
        return {"name": field_name, **properties[field_name]}
    for name, descriptor in properties.items():
        if name.lower() == field_name.lower():
            return {"name": name, **descriptor}
    raise ValueError(f"{object_name} has no field {field_name}")


# ── Entry point ─────────────────────────────────────────────────────────

def main():
    import argparse

    parser = argparse.ArgumentParser(description="Salesforce Object Catalog MCP Server")
    group = parser.add_mutually_exclusive_group(required=True)
    group.add_argument("--data-dir", help="Local catalog directory (contains index.json)")
    group.add_argument("--github", metavar="OWNER/REPO", help="GitHub repository holding the catalog")
    parser.add_argument("--branch", default="main", help="Git branch (default: main)")
    parser.add_argument("--data-prefix", default="doc", help="Path prefix of the catalog in the repo (default: doc)")

    args = parser.parse_args()

    global _ds
    if args.data_dir:
        import os
        data_dir = os.path.abspath(args.data_dir)
        if not os.path.isdir(data_dir):
            print(f"Error: {data_dir} is not a directory", file=sys.stderr)
            sys.exit(1)
        _ds = LocalDataSource(data_dir)
    else:
        parts = args.github.split("/", 1)
        if len(parts) != 2:
            print("Error: --github must be OWNER/REPO format", file=sys.stderr)
            sys.exit(1)
        _ds = GitHubDataSource(
            owner=parts[0],
            repo=parts[1],
            branch=args.branch,
            data_prefix=args.data_prefix,
        )

    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
