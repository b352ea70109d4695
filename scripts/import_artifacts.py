#!/usr/bin/env python3
"""Bulk-load templates and projects from JSON and vectorize them.

Usage:
    python scripts/import_artifacts.py artifacts.json
    python scripts/import_artifacts.py artifacts.json --db /tmp/search.db --no-embed

The JSON file holds two lists:

    {"templates": [{"title": "...", "categories": [...], ...}],
     "projects":  [{"title": "...", "artifact_type": "social", ...}]}

Records whose "id" already exists are skipped. Vectorization failures are
reported and left pending; retry them with
`search_maintain rebuild_embeddings`.
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any

from design_search.config import get_embedding_dim, get_embedding_provider
from design_search.db.connection import create_connection
from design_search.models.artifact import SourceKind
from design_search.search.embeddings import create_embedder
from design_search.search.sync import IndexSync
from design_search.search.vector import VectorIndex
from design_search.store.artifact_store import ArtifactStore

_TEMPLATE_FIELDS = {
    "title",
    "artifact_type",
    "description",
    "slug",
    "aspect_ratio",
    "categories",
    "tags",
    "popularity",
    "status",
    "thumbnail_url",
}
_PROJECT_FIELDS = {
    "title",
    "artifact_type",
    "description",
    "aspect_ratio",
    "categories",
    "tags",
    "owner_id",
    "starred",
    "thumbnail",
}


def _pick(record: dict[str, Any], fields: set[str]) -> dict[str, Any]:
    return {k: v for k, v in record.items() if k in fields}


async def main() -> int:
    """Run the import."""
    parser = argparse.ArgumentParser(description="Import templates and projects into design-search")
    parser.add_argument("path", help="JSON file with 'templates' and/or 'projects' lists")
    parser.add_argument(
        "--db", default=None, help="Database path (default: DS_DB_PATH env or the user data dir)"
    )
    parser.add_argument("--no-embed", action="store_true", help="Load documents only")
    args = parser.parse_args()

    source = Path(args.path)
    if not source.exists():
        print(f"Error: {source} not found")
        return 1
    data = json.loads(source.read_text())

    db = await create_connection(args.db)
    store = ArtifactStore(db)
    embedder = None if args.no_embed else create_embedder(get_embedding_provider())
    sync = IndexSync(store, VectorIndex(db, dim=get_embedding_dim()), embedder)

    if embedder is not None and not await embedder.is_available():
        print("Embedding service is not available. Documents will be loaded without vectors.")
        await embedder.close()
        embedder = None
        sync.embedder = None

    loaded = skipped = indexed = 0
    try:
        for record in data.get("templates", []):
            existing_id = record.get("id")
            if existing_id and await store.get(existing_id, SourceKind.TEMPLATE):
                skipped += 1
                continue
            template = await store.create_template(
                template_id=existing_id, **_pick(record, _TEMPLATE_FIELDS)
            )
            loaded += 1
            if embedder is not None and await sync.template_saved(template):
                indexed += 1

        for record in data.get("projects", []):
            existing_id = record.get("id")
            if existing_id and await store.get(existing_id, SourceKind.PROJECT):
                skipped += 1
                continue
            project = await store.create_project(
                project_id=existing_id, **_pick(record, _PROJECT_FIELDS)
            )
            loaded += 1
            if embedder is not None and await sync.project_saved(project):
                indexed += 1
    finally:
        if embedder is not None:
            await embedder.close()
        await db.close()

    print(f"Loaded {loaded} artifact(s), skipped {skipped} existing, vectorized {indexed}.")
    if embedder is None:
        print("Vectors pending: run search_maintain rebuild_embeddings when the service is up.")
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
