#!/usr/bin/env python3
"""
Run the policy comparison pipeline on local PDF files without starting the API.

What it does
- Extracts and normalizes the text of each PDF exactly like the API does
- Composes the comparison prompt and reports the selected branch
- With --dry-run, prints the prompt and stops (no Gemini call, no API key needed)
- Otherwise calls Gemini, decodes the response and prints the result JSON

Requirements
- The backend installed (pip install -e .)
- GEMINI_API_KEY in the environment or a .env file (not needed for --dry-run)

Usage examples (bash)
# Inspect the prompt for two policies
python scripts/compare_policies.py a.pdf b.pdf --dry-run

# Full comparison with preferences, result written to a file
python scripts/compare_policies.py a.pdf b.pdf --preferences '{"budget": "low"}' --output result.json
"""
from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import List

from fastapi import UploadFile

from policy_compare.config import get_settings
from policy_compare.exceptions import (
    DecodeError,
    FileValidationError,
    InputError,
    PayloadTooLargeError,
    StructuralError,
    UpstreamError,
)
from policy_compare.pipeline.normalization import normalize_documents
from policy_compare.pipeline.prompting import compose_prompt, select_branch
from policy_compare.services.extraction import TextExtractor
from policy_compare.services.llm import GeminiInvoker, build_http_client
from policy_compare.services.orchestration.comparison import ComparisonService, parse_preferences


def open_uploads(paths: List[Path]) -> List[UploadFile]:
    return [UploadFile(file=p.open("rb"), filename=p.name) for p in paths]


async def dry_run(paths: List[Path], preferences_raw: str | None) -> int:
    settings = get_settings()
    fragments = await normalize_documents(open_uploads(paths), TextExtractor(settings), settings)
    for i, frag in enumerate(fragments, start=1):
        print(f"# policy {i}: {frag.label} ({len(frag.text)} chars)", file=sys.stderr)
    if len(fragments) < 2:
        print(f"error: only {len(fragments)} usable document(s)", file=sys.stderr)
        return 2
    branch, marker_index = select_branch(fragments)
    print(f"# branch: {branch.value} (marker index {marker_index})", file=sys.stderr)
    print(compose_prompt(fragments, parse_preferences(preferences_raw), language=settings.PROMPT_LANGUAGE))
    return 0


async def run(paths: List[Path], preferences_raw: str | None, output: Path | None) -> int:
    settings = get_settings()
    async with build_http_client(settings) as client:
        service = ComparisonService(TextExtractor(settings), GeminiInvoker(client, settings), settings)
        try:
            result = await service.compare(open_uploads(paths), preferences_raw)
        except (InputError, FileValidationError, PayloadTooLargeError) as exc:
            print(f"error: {exc}", file=sys.stderr)
            return 2
        except (UpstreamError, DecodeError, StructuralError) as exc:
            print(f"error: {exc}", file=sys.stderr)
            return 1

    body = json.dumps(result.model_dump(), indent=2, ensure_ascii=False)
    if output:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(body, encoding="utf-8")
        print(f"Wrote {output}", file=sys.stderr)
    else:
        print(body)
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(description="Compare insurance policy PDFs with the local pipeline")
    parser.add_argument("pdfs", nargs="+", type=Path, help="Policy PDF files (two or more)")
    parser.add_argument("--preferences", type=str, default=None, help="JSON object of user preferences")
    parser.add_argument("--dry-run", action="store_true", help="Print the composed prompt and exit")
    parser.add_argument("--output", type=Path, default=None, help="Write the result JSON here")

    args = parser.parse_args()

    missing = [str(p) for p in args.pdfs if not p.is_file()]
    if missing:
        parser.error(f"file(s) not found: {', '.join(missing)}")

    if args.dry_run:
        code = asyncio.run(dry_run(args.pdfs, args.preferences))
    else:
        code = asyncio.run(run(args.pdfs, args.preferences, args.output))
    sys.exit(code)


if __name__ == "__main__":
    main()
