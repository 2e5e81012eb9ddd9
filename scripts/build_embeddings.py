#!/usr/bin/env python
"""Build the embeddings cache file ahead of deployment.

Usage:
    python scripts/build_embeddings.py            # reuse a valid cache if present
    python scripts/build_embeddings.py --force    # always recompute
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from config.settings import get_settings
from services.knowledge_base import KnowledgeBase


async def build(force: bool) -> int:
    settings = get_settings()
    kb = KnowledgeBase.from_settings(settings)

    print("=" * 60)
    print("BUILD EMBEDDINGS")
    print("=" * 60)
    print(f"Documents dir:   {settings.documents_dir}")
    print(f"Embeddings file: {settings.embeddings_file}")
    print(f"Model:           {settings.embed_model}")

    await kb.initialize(use_cache=not force)

    if not kb.is_ready:
        print("\nFAILED — knowledge base not initialized (see log above)")
        return 1

    print(f"\nOK — {kb.count} documents, computed at {kb.computed_at}")
    for category, count in sorted(kb.category_counts().items()):
        print(f"  {category:<28} {count}")
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(description="Precompute knowledge-base embeddings")
    parser.add_argument("--force", action="store_true", help="ignore any existing cache file")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    sys.exit(asyncio.run(build(args.force)))


if __name__ == "__main__":
    main()
