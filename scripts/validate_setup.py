#!/usr/bin/env python
"""Validate setup - check dependencies, configuration, the PDF and Gemini."""
import sys
import asyncio
from pathlib import Path

# Color codes for terminal output
GREEN = "\033[92m"
RED = "\033[91m"
YELLOW = "\033[93m"
BLUE = "\033[94m"
RESET = "\033[0m"

def print_success(msg):
    print(f"{GREEN}✓{RESET} {msg}")

def print_error(msg):
    print(f"{RED}✗{RESET} {msg}")

def print_info(msg):
    print(f"{BLUE}ℹ{RESET} {msg}")

def print_warning(msg):
    print(f"{YELLOW}⚠{RESET} {msg}")

def print_section(title):
    print(f"\n{BLUE}{'='*60}{RESET}")
    print(f"{BLUE}{title:^60}{RESET}")
    print(f"{BLUE}{'='*60}{RESET}\n")

async def main():
    print_section("Guide Q&A - Setup Validation")

    errors = []
    warnings = []

    # 1. Python version check
    print_section("1. Python Environment")
    python_version = f"{sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}"
    print_info(f"Python version: {python_version}")
    if sys.version_info >= (3, 10):
        print_success("Python version >= 3.10")
    else:
        print_error("Python version < 3.10 (required)")
        errors.append("Python version too old")

    # 2. Import core dependencies
    print_section("2. Core Dependencies")

    dependencies = [
        ("quart", "Quart web framework"),
        ("hypercorn", "Hypercorn ASGI server"),
        ("httpx", "HTTP client"),
        ("fitz", "PyMuPDF text extraction"),
        ("pydantic", "Data validation"),
        ("structlog", "Structured logging"),
        ("pytest", "Testing framework"),
    ]

    for module_name, description in dependencies:
        try:
            __import__(module_name)
            print_success(f"{description:30} ({module_name})")
        except ImportError as e:
            print_error(f"{description:30} ({module_name}) - {e}")
            errors.append(f"Missing: {module_name}")

    # 3. Test configuration
    print_section("3. Configuration")

    try:
        # Add parent directory to path to import guide_qa
        sys.path.insert(0, str(Path(__file__).parent.parent))
        from guide_qa import config

        print_success(f"Config loaded successfully")
        print_info(f"  Chat model: {config.CHAT_MODEL}")
        print_info(f"  Gemini URL: {config.GEMINI_BASE_URL}")
        print_info(f"  PDF source: {config.PDF_SOURCE}")
        print_info(f"  Document title: {config.DOCUMENT_TITLE}")

        if config.GEMINI_API_KEY:
            print_success("Gemini API key is set")
        else:
            print_error("Gemini API key missing (set GEMINI_API_KEY or API_KEY)")
            errors.append("API key missing")

    except Exception as e:
        print_error(f"Failed to load config: {e}")
        errors.append("Config loading failed")
        return errors, warnings

    # 4. Load the PDF
    print_section("4. Source PDF")

    try:
        from guide_qa.rag.ingest import IngestError, IngestPipeline
        from guide_qa.rag.store import DocumentStore

        pipeline = IngestPipeline(DocumentStore())
        chunks = await pipeline.ingest()
        stats = pipeline.stats

        print_success(f"PDF loaded: {stats['pages_total']} pages")
        if chunks:
            print_success(f"Pages with text: {stats['pages_indexed']}")
        else:
            print_error("No page contains extractable text (scanned PDF?)")
            errors.append("PDF has no text")

        if stats["pages_skipped"]:
            print_warning(f"Blank pages skipped: {stats['pages_skipped']}")
            warnings.append("Blank pages")

        if stats["chars_indexed"] > config.SELECTION_CORPUS_WARN_CHARS:
            print_warning("Corpus is large; every question sends all pages to the model")
            warnings.append("Large corpus")

    except IngestError as e:
        print_error(f"PDF could not be loaded: {e}")
        errors.append("PDF not loadable")

    # 5. Gemini service
    print_section("5. Gemini Service")

    if config.GEMINI_API_KEY:
        from guide_qa.llm_client import GeminiClient, LLMError

        client = GeminiClient()
        try:
            models = await client.list_models()
            print_success(f"Gemini reachable ({len(models)} models visible)")

            if config.CHAT_MODEL in models:
                print_success(f"Chat model available: {config.CHAT_MODEL}")
            else:
                print_error(f"Chat model missing: {config.CHAT_MODEL}")
                errors.append(f"Missing chat model: {config.CHAT_MODEL}")

        except LLMError as e:
            print_error(f"Gemini check failed: {e}")
            errors.append(f"Gemini error: {e}")
    else:
        print_info("Skipped (no API key)")

    # 6. Summary
    print_section("Summary")

    if not errors:
        print_success(f"All checks passed! ✨")
        print_info(f"\n  Start the app: hypercorn guide_qa.main:app --bind 0.0.0.0:5000")
    else:
        print_error(f"Found {len(errors)} error(s):")
        for i, error in enumerate(errors, 1):
            print(f"  {i}. {error}")

    if warnings:
        print_warning(f"\nFound {len(warnings)} warning(s):")
        for i, warning in enumerate(warnings, 1):
            print(f"  {i}. {warning}")

    print()
    return errors, warnings

if __name__ == "__main__":
    errors, warnings = asyncio.run(main())
    sys.exit(1 if errors else 0)
