#!/usr/bin/env python3
"""Build knowledge sections (and optionally embeddings) and dump them as JSON.

This script loads the pregnancy knowledge document, flattens it into
sections, embeds them when an OpenAI key is available, and writes the result.
With --query it also prints the similarity of every section to the query,
including those below the retrieval threshold.

Usage:
    python scripts/dump_sections.py [--source PATH_OR_URL] [--out sections.json]
    python scripts/dump_sections.py --query "is ibuprofen safe?"

Environment variables:
    OPENAI_API_KEY: Enables embeddings (keyword-only otherwise)
    KNOWLEDGE_DOCUMENT_SOURCE: Default document location
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path

# Add project root to path for imports
project_dir = Path(__file__).parent.parent
sys.path.insert(0, str(project_dir))

from dotenv import load_dotenv  # noqa: E402

env_path = project_dir / ".env"
if env_path.exists():
    load_dotenv(env_path)
    print(f"Loaded environment from: {env_path}")


async def main(args: argparse.Namespace) -> int:
    """Build sections and write them out."""
    from companion.core.config import get_settings
    from companion.knowledge.embeddings import cosine_similarity, generate_embedding
    from companion.knowledge.models import OutcomeStatus
    from companion.knowledge.service import create_knowledge_service, create_openai_client

    settings = get_settings()
    source = args.source or settings.knowledge_document_source
    print(f"Loading knowledge document from: {source}")

    service = await create_knowledge_service(settings, source=source)
    if not service.sections:
        print("No sections built. Check the document source.")
        return 1

    print(f"Built {len(service.sections)} sections")

    if args.no_embed or not service.index.is_configured:
        print("Skipping embeddings (disabled or OPENAI_API_KEY not set)")
    else:
        print(f"\nGenerating embeddings with {settings.openai_embedding_model}...")
        report = await service.wait_for_index()
        print(f"Index build: {report.status.value} (embedded={report.embedded}, failed={report.failed})")
        if report.status is OutcomeStatus.FAILED:
            print(f"Reason: {report.reason}")

    sections_data = [section.model_dump() for section in service.sections]
    with open(args.out, "w", encoding="utf-8") as f:
        json.dump(sections_data, f, ensure_ascii=False, indent=2)
    print(f"Saved sections to: {args.out}")

    if args.query:
        retrieval = await service.retriever.search(args.query, settings.retrieval_top_k)
        print(f"\nRetrieval for {args.query!r}: mode={retrieval.mode.value} status={retrieval.status.value}")
        for result in retrieval.results:
            print(f"  {result.section.id}  score={result.score}")

        if service.index.is_ready:
            query_vector = await generate_embedding(
                create_openai_client(settings), args.query, settings.openai_embedding_model
            )
            scored = sorted(
                (
                    (cosine_similarity(query_vector, section.embedding), section.id)
                    for section in service.sections
                ),
                reverse=True,
            )
            print(f"\nAll similarities (threshold {settings.similarity_threshold}):")
            for score, section_id in scored:
                print(f"  {score:.4f}  {section_id}")

    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Dump knowledge sections")
    parser.add_argument("--source", help="Knowledge document path or URL")
    parser.add_argument("--out", default="sections.json", help="Output JSON file")
    parser.add_argument("--query", help="Probe retrieval with a query")
    parser.add_argument("--no-embed", action="store_true", help="Skip embedding generation")
    sys.exit(asyncio.run(main(parser.parse_args())))
