#!/usr/bin/env python3
"""CLI: generate Mermaid source from a description, or sanitize rendered SVG."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

# Ensure the package is importable when running as a script
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "src"))

from mermaidflow import config
from mermaidflow.llm.errors import ProviderError, describe_failure
from mermaidflow.llm.orchestrator import generate_diagram
from mermaidflow.llm.provider import ProviderConfig
from mermaidflow.storage.settings_store import SettingsStore
from mermaidflow.svg.pipeline import SanitizationError, export_svg


def _load_provider_config(args: argparse.Namespace) -> ProviderConfig:
    """Stored settings, overridden by any flags given on the command line."""
    store = SettingsStore(config.SETTINGS_DB_PATH)
    store.init_db()
    settings = store.load(config.default_settings())
    store.close()
    for key in ("provider", "model", "api_key", "base_url"):
        value = getattr(args, key, None)
        if value:
            settings[key] = value
    return ProviderConfig.from_settings(settings)


def _cmd_generate(args: argparse.Namespace) -> int:
    try:
        cfg = _load_provider_config(args)
        source = asyncio.run(generate_diagram(args.description, cfg, timeout=args.timeout))
    except ProviderError as e:
        print(f"Error ({e.kind}): {describe_failure(e)}", file=sys.stderr)
        return 1
    if args.output:
        args.output.write_text(source + "\n", encoding="utf-8")
        print(f"Wrote {args.output}")
    else:
        print(source)
    return 0


def _cmd_sanitize(args: argparse.Namespace) -> int:
    if not args.input.is_file():
        print(f"Error: input file not found: {args.input}", file=sys.stderr)
        return 2
    raw = args.input.read_text(encoding="utf-8")
    source = args.source.read_text(encoding="utf-8") if args.source else None
    try:
        result = export_svg(raw, source)
    except SanitizationError as e:
        print(f"Error (sanitization): {e}", file=sys.stderr)
        return 1
    if result.fallback:
        print("Warning: used the minimal sanitizer; styling was dropped.", file=sys.stderr)
    output = args.output or args.input.with_suffix(".host.svg")
    output.write_text(result.svg, encoding="utf-8")
    print(f"Wrote {output}")
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(description="Mermaid Flow: text -> Mermaid -> host-ready SVG")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    gen = sub.add_parser("generate", help="Generate Mermaid source from a description")
    gen.add_argument("description", help="Natural-language description of the flow")
    gen.add_argument("--provider", choices=["openai", "openrouter", "gemini", "custom"], default=None)
    gen.add_argument("--model", default=None)
    gen.add_argument("--api-key", dest="api_key", default=None)
    gen.add_argument("--base-url", dest="base_url", default=None, help="Required for --provider custom")
    gen.add_argument("--timeout", type=float, default=config.GENERATE_TIMEOUT)
    gen.add_argument("-o", "--output", type=Path, default=None, help="Write source to this file")

    san = sub.add_parser("sanitize", help="Make rendered Mermaid SVG host-compatible")
    san.add_argument("input", type=Path, help="Rendered SVG file")
    san.add_argument("--source", type=Path, default=None, help="Mermaid source used for the render")
    san.add_argument("-o", "--output", type=Path, default=None, help="Output path (default: <input>.host.svg)")

    args = parser.parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else getattr(logging, config.LOG_LEVEL, logging.INFO),
        format="%(asctime)s %(levelname)-5s [%(name)s] %(message)s",
        datefmt="%H:%M:%S",
    )

    if args.command == "generate":
        sys.exit(_cmd_generate(args))
    sys.exit(_cmd_sanitize(args))


if __name__ == "__main__":
    main()
