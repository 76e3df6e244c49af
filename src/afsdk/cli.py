from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List

from afsdk.clients import ArweaveGatewayClient, GatewayClient
from afsdk.config import ENDPOINT_SECTIONS, build_failover_config, load_config, resolve_log_level
from afsdk.failover import sort_endpoints
from afsdk.utils import load_dotenv_files, setup_logging

LOGGER = logging.getLogger("afsdk.cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="afsdk", description="Alternate Futures platform client tools")
    subparsers = parser.add_subparsers(dest="command", required=True)

    fetch_parser = subparsers.add_parser("fetch", help="Fetch content from the first reachable gateway")
    fetch_parser.add_argument("content_id", help="IPFS CID (or Arweave transaction ID with --arweave)")
    fetch_parser.add_argument("--config", default=None, help="Path to afsdk YAML config")
    fetch_parser.add_argument("--path", default="", help="Path inside the content root (IPFS directories).")
    fetch_parser.add_argument("--output", "-o", default="", help="Write content to this file instead of stdout.")
    fetch_parser.add_argument("--arweave", action="store_true", help="Use Arweave gateways instead of IPFS.")
    fetch_parser.add_argument(
        "--gateway",
        action="append",
        default=[],
        help="Gateway URL to try, in order. Repeat to add more; replaces the configured list.",
    )
    fetch_parser.add_argument("--max-retries", type=int, default=None, help="Attempts per gateway.")
    fetch_parser.add_argument("--retry-delay", type=float, default=None, help="Seconds between retries.")

    endpoints_parser = subparsers.add_parser("endpoints", help="Print the ranked endpoint list")
    endpoints_parser.add_argument("--config", default=None, help="Path to afsdk YAML config")
    endpoints_parser.add_argument(
        "--section",
        default="ipfs",
        choices=list(ENDPOINT_SECTIONS),
        help="Endpoint section to print.",
    )

    return parser


def main(argv: List[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    load_dotenv_files(Path.cwd())

    if args.command == "fetch":
        try:
            run_fetch(args)
        except Exception as err:
            raise SystemExit(f"afsdk fetch failed: {err}") from None
        return

    if args.command == "endpoints":
        try:
            run_endpoints(args)
        except Exception as err:
            raise SystemExit(f"afsdk endpoints failed: {err}") from None
        return

    parser.error(f"Unknown command: {args.command}")


def run_fetch(args: argparse.Namespace) -> None:
    cfg = load_config(args.config)
    _setup_logging(cfg)

    section = "arweave" if args.arweave else "ipfs"
    section_cfg: Dict[str, Any] = cfg[section]
    if args.gateway:
        section_cfg["endpoints"] = list(args.gateway)
    if args.max_retries is not None:
        section_cfg["max_retries"] = args.max_retries
    if args.retry_delay is not None:
        section_cfg["retry_delay_s"] = args.retry_delay

    client_cls = ArweaveGatewayClient if args.arweave else GatewayClient
    client = client_cls.from_config(cfg)
    result = client.fetch(args.content_id, path=args.path)

    if args.output:
        output = Path(args.output).expanduser()
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_bytes(result.data)
        LOGGER.info(f"[cli] wrote {len(result.data)} bytes to {output} via {result.endpoint}")
    else:
        sys.stdout.buffer.write(result.data)
        sys.stdout.flush()


def run_endpoints(args: argparse.Namespace) -> None:
    cfg = load_config(args.config)
    _setup_logging(cfg)
    failover_config = build_failover_config(cfg, args.section)
    for endpoint in sort_endpoints(failover_config.endpoints):
        timeout = f"{endpoint.timeout_s:g}s" if endpoint.timeout_s is not None else "-"
        print(f"{endpoint.priority}\t{endpoint.identifier}\t{timeout}")


def _setup_logging(cfg: Dict[str, Any]) -> None:
    logs_dir = str((cfg.get("logging", {}) or {}).get("dir") or "").strip()
    setup_logging(Path(logs_dir) if logs_dir else None, level=resolve_log_level(cfg))
