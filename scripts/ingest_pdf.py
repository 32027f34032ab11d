#!/usr/bin/env python
"""Load the guide PDF once and report what the assistant will see.

Usage:
    python scripts/ingest_pdf.py                       # Configured PDF_SOURCE
    python scripts/ingest_pdf.py --source guide.pdf    # Another file or URL
    python scripts/ingest_pdf.py --verbose             # List every page chunk
"""
import argparse
import asyncio
import sys
from pathlib import Path
from datetime import datetime

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from guide_qa import config
from guide_qa.rag.ingest import IngestError, IngestPipeline
from guide_qa.rag.store import DocumentStore
import structlog

logger = structlog.get_logger()


class ProgressReporter:
    """Simple progress reporter for CLI."""

    def __init__(self):
        self.start_time = None

    def start(self, message: str):
        """Start progress reporting."""
        self.start_time = datetime.now()
        print(f"\n{'=' * 60}")
        print(f"  {message}")
        print(f"{'=' * 60}\n")

    def update(self, current: int, total: int):
        """Update progress."""
        percentage = (current / total) * 100 if total > 0 else 0
        bar_length = 40
        filled = int(bar_length * current / total) if total > 0 else 0
        bar = "█" * filled + "░" * (bar_length - filled)

        print(
            f"\r  [{bar}] {percentage:5.1f}% (page {current}/{total})",
            end="",
            flush=True,
        )

    def finish(self, stats: dict):
        """Finish progress reporting."""
        print("\n")
        elapsed_seconds = (datetime.now() - self.start_time).total_seconds()

        print(f"{'=' * 60}")
        print(f"  Ingestion Complete!")
        print(f"{'=' * 60}\n")
        print(f"  📄 Pages in PDF:         {stats['pages_total']}")
        print(f"  📝 Pages indexed:        {stats['pages_indexed']}")
        print(f"  ⬜ Blank pages skipped:  {stats['pages_skipped']}")
        print(f"  🔤 Characters indexed:   {stats['chars_indexed']}")
        print(f"  ⏱️  Time elapsed:         {elapsed_seconds:.1f}s")

        # Every page goes into each selection prompt
        if stats["chars_indexed"] > config.SELECTION_CORPUS_WARN_CHARS:
            print(
                f"\n⚠️  Corpus exceeds {config.SELECTION_CORPUS_WARN_CHARS} characters;"
                " selection prompts will be large."
            )

        print(f"\n{'=' * 60}\n")


async def main():
    """Main entry point for the ingest script."""
    parser = argparse.ArgumentParser(
        description="Load the guide PDF and report page statistics",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python scripts/ingest_pdf.py
  python scripts/ingest_pdf.py --source https://example.org/guide.pdf
  python scripts/ingest_pdf.py --verbose
        """,
    )

    parser.add_argument(
        "--source",
        default=None,
        help=f"PDF path or URL (default: {config.PDF_SOURCE})",
    )

    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Print a preview of every page chunk",
    )

    args = parser.parse_args()

    progress = ProgressReporter()

    try:
        source = args.source or config.PDF_SOURCE
        title = Path(source).name if args.source else config.DOCUMENT_TITLE

        print("\n📋 Configuration:")
        print(f"   Source:           {source}")
        print(f"   Title:            {title}")

        progress.start("Loading PDF")

        store = DocumentStore()
        pipeline = IngestPipeline(store, source=source, title=title)
        chunks = await pipeline.ingest(progress_callback=progress.update)

        progress.finish(pipeline.stats)

        if args.verbose:
            for chunk in chunks:
                preview = chunk.content[:70].replace("\n", " ")
                print(f"  {chunk.id}: {preview}")
            print()

        if not chunks:
            print("⚠️  No page contained extractable text.\n")
            sys.exit(1)

    except KeyboardInterrupt:
        print("\n\n⚠️  Ingestion cancelled by user.\n")
        sys.exit(1)

    except IngestError as e:
        print(f"\n❌ Error: {e}\n")
        logger.error("ingest_script_failed", error=str(e), error_type=type(e).__name__)
        sys.exit(1)


if __name__ == "__main__":
    asyncio.run(main())
