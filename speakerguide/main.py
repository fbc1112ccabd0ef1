"""CLI entrypoint for generating speaker guides from the terminal."""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv
from tqdm import tqdm

from . import __version__
from .errors import AuthenticationMissing, QuotaExceeded, SpeakerGuideError
from .extract_utils import extract_file
from .llm import LLMConfig, init_llm
from .logging_utils import setup_logging
from .pipeline import Pipeline, RunConfig
from .pipeline_render import Renderer

logger = logging.getLogger("speakerguide")
TQDM_NCOLS = 100


def print_helper() -> None:
    print("speakerguide help")
    print("")
    print("Quick start:")
    print('  speakerguide "pitch.pdf"')
    print('  speakerguide "pitch.pptx" --title "Acme Pitch" --out-dir ./guides')
    print('  speakerguide deck1.pdf deck2.pptx --retries 3 --teleprompter')
    print("  speakerguide serve --port 8000")
    print("")
    print("Configuration (environment or .env):")
    print("  SPEAKERGUIDE_API_KEY       Bearer key for the generation endpoint (or LOVABLE_API_KEY)")
    print("  SPEAKERGUIDE_API_URL       Chat-completions URL")
    print("  SPEAKERGUIDE_MODEL         Model name")
    print("  SPEAKERGUIDE_TIMEOUT       Request timeout in seconds (default 60)")
    print("  SPEAKERGUIDE_SERVICE_TOKEN Token required by `serve` clients (optional)")
    print("")
    print("Full options:")
    print("  speakerguide --help")
    print("  speakerguide serve --help")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="speakerguide", description="Generate speaker guides for PDF / PPTX slide decks.")
    p.add_argument("--version", action="version", version=f"speakerguide {__version__}")
    p.add_argument("files", nargs="+", help="PDF or PPTX files")
    p.add_argument("--title", default="", help="Deck title (default: file name)")
    p.add_argument("--model", default="", help="Model name (overrides SPEAKERGUIDE_MODEL)")
    p.add_argument("--api-url", default="", help="Chat-completions URL (overrides SPEAKERGUIDE_API_URL)")
    p.add_argument("--timeout", type=float, default=None, help="Request timeout in seconds")
    p.add_argument("--retries", type=int, default=0, help="Retries for rate-limited / unavailable upstream")
    p.add_argument("--out-dir", default=None, help="Write <title>.guides.json files here")
    p.add_argument("--teleprompter", action="store_true", help="Print a plain-text rehearsal script")
    p.add_argument("--extract-only", action="store_true", help="Print extracted slide text and exit")
    p.add_argument("--log-file", default=None, help="Also log to this file")
    p.add_argument("--verbose", action="store_true", help="Verbose logging")
    return p.parse_args(argv)


def parse_serve_args(argv: List[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="speakerguide serve", description="Run the guide-generation HTTP service.")
    p.add_argument("--host", default="127.0.0.1")
    p.add_argument("--port", type=int, default=8000)
    p.add_argument("--verbose", action="store_true", help="Verbose logging")
    return p.parse_args(argv)


def serve(argv: List[str]) -> int:
    import uvicorn

    from .server import create_app

    args = parse_serve_args(argv)
    setup_logging(args.verbose)
    uvicorn.run(create_app(), host=args.host, port=args.port, log_level="debug" if args.verbose else "info")
    return 0


def _print_extracted(paths: List[Path]) -> int:
    for path in paths:
        try:
            slides = extract_file(path)
        except SpeakerGuideError as exc:
            logger.error("%s: %s", path.name, exc.message)
            return 1
        print(f"== {path.name}: {len(slides)} slides")
        for s in slides:
            print(f"[{s.index}] {s.raw_text or '(empty)'}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    argv = list(sys.argv[1:] if argv is None else argv)
    if argv and argv[0] == "help":
        print_helper()
        return 0

    load_dotenv(Path.cwd() / ".env", override=False)
    if argv and argv[0] == "serve":
        return serve(argv[1:])

    args = parse_args(argv)
    setup_logging(args.verbose, log_path=Path(args.log_file) if args.log_file else None)

    paths = [Path(f).expanduser().resolve() for f in args.files]
    missing = [p for p in paths if not p.is_file()]
    if missing:
        logger.error("File not found: %s", ", ".join(str(p) for p in missing))
        return 2
    if args.extract_only:
        return _print_extracted(paths)

    config = LLMConfig.from_env(model=args.model, api_url=args.api_url, timeout=args.timeout)
    pipeline = Pipeline(RunConfig(retries=max(0, args.retries)), init_llm(config))
    renderer = Renderer()
    failures = 0

    for path in tqdm(paths, desc="Decks", ncols=TQDM_NCOLS, disable=len(paths) < 2):
        try:
            deck = pipeline.run_file(path, title=args.title or None)
        except (AuthenticationMissing, QuotaExceeded) as exc:
            logger.error("%s: %s", path.name, exc.message)
            return 1
        except SpeakerGuideError as exc:
            logger.error("%s: %s", path.name, exc.message)
            failures += 1
            continue
        if deck is None:
            continue
        renderer.print_deck(deck)
        if args.teleprompter:
            print(renderer.teleprompter_text(deck))
        if args.out_dir:
            out = renderer.write_json(deck, Path(args.out_dir).expanduser())
            logger.info("Saved guides: %s", out)

    return 1 if failures else 0


if __name__ == "__main__":
    raise SystemExit(main())
