from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from collections.abc import Callable, Coroutine
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from red_flag_radar.cli import output as out
from red_flag_radar.core.exceptions import RadarError
from red_flag_radar.core.types import Platform
from red_flag_radar.settings import (
    Settings,
    load_settings,
    save_settings,
    settings_exist,
    settings_path_display,
)

DESCRIPTION = """\
red-flag-radar: analyze chat exports for coercion and abuse patterns

Reads a WhatsApp, SMS, email or pasted chat export, detects its format,
parses the messages and asks an AI reasoning provider for a structured
risk assessment. Saved analyses can be compared to see whether a
situation is escalating.

Provider keys come from ANTHROPIC_API_KEY1, ANTHROPIC_API_KEY2 and
OPENAI_API_KEY, or from the config file."""

LOCAL_OWNER = "local"

_PLATFORM_CHOICES = ["auto", *(p.value for p in Platform)]


# ── Infrastructure helpers ──────────────────────────────────────────


def _build_radar(cfg: Settings):
    from red_flag_radar.facade.core import RedFlagRadar

    config = cfg.to_config_dict()
    # Local runs are single-user; no throttling.
    config.pop("rate_limit", None)
    return RedFlagRadar.from_config(config)


def _read_input(path: str) -> bytes:
    if path == "-":
        return sys.stdin.buffer.read()
    file_path = Path(path).expanduser()
    if not file_path.is_file():
        out.error(f"File not found: {path}")
        sys.exit(1)
    return file_path.read_bytes()


def _read_text(path: str) -> str:
    from red_flag_radar.facade.core import decode_chat_bytes

    return decode_chat_bytes(_read_input(path))


def _require_provider(cfg: Settings) -> None:
    if cfg.is_configured:
        return
    out.error(
        "No AI provider configured. Set ANTHROPIC_API_KEY1, ANTHROPIC_API_KEY2 "
        f"or OPENAI_API_KEY, or add keys to {settings_path_display()}."
    )
    sys.exit(1)


def _mask(key: str) -> str:
    if not key:
        return out.dim("not set")
    if len(key) <= 12:
        return "***"
    return key[:7] + "..." + key[-4:]


# ── config ──────────────────────────────────────────────────────────


async def cmd_config_show(args: argparse.Namespace) -> None:
    """Display current settings."""
    cfg = load_settings()
    source = settings_path_display() if settings_exist() else "defaults + env"

    out.header(f"Configuration ({source})")
    print()
    out.kv("Anthropic key 1", _mask(cfg.anthropic_api_key1))
    out.kv("Anthropic key 2", _mask(cfg.anthropic_api_key2))
    out.kv("Anthropic model", cfg.anthropic_model)
    out.kv("OpenAI key", _mask(cfg.openai_api_key))
    out.kv("OpenAI model", cfg.openai_model)
    out.kv("Provider timeout", f"{cfg.provider_timeout_seconds:g}s")
    out.kv("Request timeout", f"{cfg.request_timeout_seconds:g}s")
    print()


_KEY_SLOTS: dict[str, tuple[str, str]] = {
    "anthropic1": ("anthropic_api_key1", "Anthropic key 1"),
    "anthropic2": ("anthropic_api_key2", "Anthropic key 2"),
    "openai": ("openai_api_key", "OpenAI key"),
}


async def cmd_config_set_key(args: argparse.Namespace) -> None:
    """Prompt for and save one provider API key."""
    attr, label = _KEY_SLOTS[args.provider]
    cfg = load_settings()

    current = getattr(cfg, attr)
    if current:
        out.kv(f"Current {label}", _mask(current))

    key = input(f"  New {label}: ").strip()
    if not key:
        out.warn("No key entered, keeping current value.")
        return

    setattr(cfg, attr, key)
    path = save_settings(cfg)
    out.success(f"{label} saved to {path}")


async def cmd_config_path(args: argparse.Namespace) -> None:
    """Print config file location."""
    print(settings_path_display())


# ── detect / parse ──────────────────────────────────────────────────


async def cmd_detect(args: argparse.Namespace) -> None:
    from red_flag_radar.parsing.detector import detect

    metadata = detect(_read_text(args.path))
    if args.json:
        print(json.dumps(metadata.to_dict(), indent=2))
        return
    out.header("Detected format")
    out.kv("Platform", metadata.platform.value)
    out.kv("Format", metadata.detected_format)
    out.kv("Confidence", f"{metadata.confidence:.2f}")


async def cmd_parse(args: argparse.Namespace) -> None:
    from red_flag_radar.parsing.detector import resolve_platform
    from red_flag_radar.parsing.registry import parse

    text = _read_text(args.path)
    try:
        metadata = resolve_platform(text, args.platform)
    except RadarError as exc:
        out.error(exc.message)
        sys.exit(1)
    parsed = parse(text, metadata.platform)

    if args.json:
        print(json.dumps(parsed.to_dict(), indent=2, ensure_ascii=False))
        return

    out.header(f"Parsed {metadata.detected_format}")
    out.kv("Messages", parsed.total_messages)
    out.kv("Participants", ", ".join(parsed.participants) or out.dim("none"))
    if not parsed.date_range.is_empty:
        out.kv("Date range", f"{parsed.date_range.start} to {parsed.date_range.end}")
    media = sum(1 for m in parsed.messages if m.is_media)
    if media:
        out.kv("Media messages", media)
    if parsed.total_messages == 0:
        print()
        out.warn("No messages recognised. Try --platform manual for pasted text.")


# ── analyze / compare ───────────────────────────────────────────────


def _print_report(response: dict[str, Any]) -> None:
    analysis = response["analysis"]
    stats = analysis["chatStats"]

    out.header("Risk assessment")
    out.kv("Risk score", out.risk_score(analysis["riskScore"]))
    out.kv("Platform", analysis["platformMetadata"]["detectedFormat"])
    out.kv("Messages", stats["totalMessages"])
    out.kv("Participants", ", ".join(stats["participants"]))

    if analysis["redFlags"]:
        out.header(f"Red flags ({len(analysis['redFlags'])})")
        for flag in analysis["redFlags"]:
            out.info(f"{out.severity(flag['severity'])}  {flag['type']}")
            if flag["message"]:
                out.bullet(flag["message"])
            if flag["context"]:
                out.bullet(out.dim(f'"{flag["context"]}"'))

    out.header("Summary")
    for paragraph in analysis["summary"].split("\n"):
        if paragraph.strip():
            out.info(paragraph.strip())

    if analysis["recommendations"]:
        out.header("Recommendations")
        for rec in analysis["recommendations"]:
            out.bullet(rec, indent=2)
    print()


async def cmd_analyze(args: argparse.Namespace) -> None:
    from red_flag_radar.facade.types import UnparseableChat

    cfg = load_settings()
    _require_provider(cfg)
    radar = _build_radar(cfg)
    data = _read_input(args.path)

    try:
        report = await radar.analyze_file(
            data,
            owner_id=LOCAL_OWNER,
            platform=args.platform,
            filename=None if args.path == "-" else Path(args.path).name,
        )
    except RadarError as exc:
        out.error(exc.message)
        sys.exit(1)

    response = report.to_response()
    if isinstance(report, UnparseableChat):
        if args.json:
            print(json.dumps(response, indent=2, ensure_ascii=False))
        else:
            out.error(report.error)
            out.info(report.hint)
            for line in report.sample_lines:
                out.bullet(out.dim(line))
        sys.exit(2)

    if args.out:
        out_path = Path(args.out).expanduser()
        out_path.write_text(
            json.dumps(report.record.to_dict(), indent=2, ensure_ascii=False),
            encoding="utf-8",
        )

    if args.json:
        print(json.dumps(response, indent=2, ensure_ascii=False))
    else:
        _print_report(response)
        if args.out:
            out.success(f"Analysis saved to {args.out}")


async def cmd_compare(args: argparse.Namespace) -> None:
    from red_flag_radar.analysis.records import AnalysisRecord

    cfg = load_settings()
    _require_provider(cfg)
    radar = _build_radar(cfg)

    ids: list[str] = []
    for path in args.paths:
        try:
            record = AnalysisRecord.model_validate_json(_read_input(path))
        except ValidationError:
            out.error(f"{path} is not a saved analysis (use 'analyze --out').")
            sys.exit(1)
        record = record.model_copy(update={"owner_id": LOCAL_OWNER})
        await radar.store.save_analysis(record)
        ids.append(record.id)

    try:
        report = await radar.compare(ids, owner_id=LOCAL_OWNER)
    except RadarError as exc:
        out.error(exc.message)
        sys.exit(1)

    if args.json:
        print(json.dumps(report.to_response(), indent=2, ensure_ascii=False))
        return

    result = report.result
    out.header("Comparison")
    out.kv("Trend", result.trend)
    out.kv(
        "Risk trend",
        f"{result.risk_trend.direction} ({result.risk_trend.change:+g})",
    )
    out.kv("Escalation", out.red("yes") if result.escalation_detected else "no")
    if result.escalation_details:
        out.bullet(result.escalation_details.description)
    if result.common_patterns:
        out.header("Recurring patterns")
        for pattern in result.common_patterns:
            out.info(
                f"{out.severity(pattern.severity)}  {pattern.pattern} "
                f"(x{pattern.frequency})"
            )
    out.header("Summary")
    out.info(result.summary)
    if result.recommendations:
        out.header("Recommendations")
        for rec in result.recommendations:
            out.bullet(rec, indent=2)
    print()


# ── Parser ──────────────────────────────────────────────────────────


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="red-flag-radar",
        description=DESCRIPTION,
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  red-flag-radar detect chat.txt               "
            "Identify the export format\n"
            "  red-flag-radar parse chat.txt                "
            "Show what was parsed\n"
            "  red-flag-radar analyze chat.txt --out a.json "
            "Analyze and save the result\n"
            "  red-flag-radar compare a.json b.json         "
            "Compare saved analyses\n"
        ),
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show detailed progress logs (parsing, provider failover)",
    )
    sub = parser.add_subparsers(dest="command", title="commands")

    p_detect = sub.add_parser("detect", help="Detect the format of a chat export")
    p_detect.add_argument("path", help="Chat export file, or - for stdin")
    p_detect.add_argument("--json", action="store_true", help="Print JSON")

    p_parse = sub.add_parser("parse", help="Parse a chat export without analysis")
    p_parse.add_argument("path", help="Chat export file, or - for stdin")
    p_parse.add_argument(
        "--platform", choices=_PLATFORM_CHOICES, default="auto",
        help="Skip detection and treat the input as this platform",
    )
    p_parse.add_argument("--json", action="store_true", help="Print parsed messages")

    p_analyze = sub.add_parser("analyze", help="Run an AI risk analysis")
    p_analyze.add_argument("path", help="Chat export file, or - for stdin")
    p_analyze.add_argument(
        "--platform", choices=_PLATFORM_CHOICES, default="auto",
        help="Skip detection and treat the input as this platform",
    )
    p_analyze.add_argument("--out", help="Save the analysis record to this file")
    p_analyze.add_argument("--json", action="store_true", help="Print JSON")

    p_compare = sub.add_parser(
        "compare", help="Compare 2-5 analyses saved with 'analyze --out'"
    )
    p_compare.add_argument("paths", nargs="+", help="Saved analysis files")
    p_compare.add_argument("--json", action="store_true", help="Print JSON")

    p_cfg = sub.add_parser("config", help="View and change settings")
    cfg_sub = p_cfg.add_subparsers(dest="config_command", title="config commands")
    cfg_sub.add_parser("show", help="Show current settings")
    p_cfg_key = cfg_sub.add_parser("set-key", help="Save a provider API key")
    p_cfg_key.add_argument("provider", choices=list(_KEY_SLOTS))
    cfg_sub.add_parser("path", help="Print config file location")

    return parser


# ── Dispatch ────────────────────────────────────────────────────────

_CommandHandler = Callable[[argparse.Namespace], Coroutine[Any, Any, None]]

_COMMAND_MAP: dict[str, _CommandHandler] = {
    "detect": cmd_detect,
    "parse": cmd_parse,
    "analyze": cmd_analyze,
    "compare": cmd_compare,
}

_CONFIG_MAP: dict[str, _CommandHandler] = {
    "show": cmd_config_show,
    "set-key": cmd_config_set_key,
    "path": cmd_config_path,
}


def main(argv: list[str] | None = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(
            level=logging.INFO,
            format="  %(name)s: %(message)s",
        )
    logging.getLogger("LiteLLM").setLevel(logging.CRITICAL)
    logging.getLogger("litellm").setLevel(logging.CRITICAL)
    logging.getLogger("httpx").setLevel(logging.WARNING)

    if not args.command:
        parser.print_help()
        return

    if args.command == "config":
        if not args.config_command:
            parser.parse_args(["config", "--help"])
            return
        handler = _CONFIG_MAP.get(args.config_command)
    else:
        handler = _COMMAND_MAP.get(args.command)

    if handler is None:
        parser.print_help()
        return

    try:
        asyncio.run(handler(args))
    except KeyboardInterrupt:
        print()


if __name__ == "__main__":
    main()
