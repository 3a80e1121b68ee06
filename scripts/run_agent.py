#!/usr/bin/env python3
"""Run the farm automation agent until interrupted."""

import argparse
import logging
import os
import signal
import sys
import threading
from pathlib import Path
from typing import List, Mapping, Optional

from dotenv import load_dotenv

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from agent.automation import FarmAutomation
from agent.schemas import WHEAT_ITEM_ID, AgentConfig, ClientConfig
from api.auth import RequestSigner
from api.client import FarmClient
from api.endpoints import FarmApi

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"


def _env_flag(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def build_parser(env: Mapping[str, str]) -> argparse.ArgumentParser:
    """CLI flags, each defaulting to its environment variable."""
    _env = env.get
    parser = argparse.ArgumentParser(description="Run the farm automation agent.")
    parser.add_argument("--base-url", default=_env("BASE_URL", ""))
    parser.add_argument("--version-tag", default=_env("VERSION", ""), help="API version sent as 'fv'")
    parser.add_argument("--union-id", default=_env("UNION_ID", ""))
    parser.add_argument("--target-item", type=int, default=int(_env("FARM_TARGET_ITEM", str(WHEAT_ITEM_ID))))
    parser.add_argument("--reserve", type=int, default=int(_env("FARM_RESERVE", "10")))
    parser.add_argument(
        "--interval",
        type=float,
        default=float(_env("FARM_CYCLE_INTERVAL", "125")),
        help="Seconds between cycle starts",
    )
    timeout_env = _env("FARM_HTTP_TIMEOUT", "")
    parser.add_argument(
        "--timeout",
        type=float,
        default=float(timeout_env) if timeout_env else None,
        help="HTTP timeout in seconds (default: none)",
    )
    parser.add_argument(
        "--strict-results",
        action="store_true",
        default=_env_flag(_env("FARM_STRICT_RESULTS", "")),
        help="Treat a nonzero envelope result as a failed call",
    )
    parser.add_argument("--cycles", type=int, default=int(_env("FARM_CYCLES", "0")), help="0 = infinite")
    parser.add_argument("--log-level", default=_env("FARM_LOG_LEVEL", "INFO"))
    return parser


def parse_config(argv: Optional[List[str]] = None, env: Optional[Mapping[str, str]] = None):
    """Return ``(ClientConfig, AgentConfig, args)``; exits when required settings are missing."""
    env = os.environ if env is None else env
    parser = build_parser(env)
    args = parser.parse_args(argv)
    missing = [
        name
        for name, value in (("BASE_URL", args.base_url), ("VERSION", args.version_tag), ("UNION_ID", args.union_id))
        if not value
    ]
    if missing:
        parser.error(f"env {', '.join(missing)} is not set")

    client_config = ClientConfig(
        base_url=args.base_url,
        version=args.version_tag,
        union_id=args.union_id,
        timeout=args.timeout,
        strict_results=args.strict_results,
    )
    agent_config = AgentConfig(
        target_item_id=args.target_item,
        reserve=args.reserve,
        cycle_interval_seconds=args.interval,
    )
    return client_config, agent_config, args


def build_automation(client_config: ClientConfig, agent_config: AgentConfig) -> FarmAutomation:
    """Wire a signed client, the endpoint wrappers and the loop together."""
    client = FarmClient(
        client_config.base_url,
        default_params=client_config.default_params(),
        default_headers=client_config.headers,
        signer=RequestSigner.from_env(),
        timeout=client_config.timeout,
        strict_results=client_config.strict_results,
    )
    return FarmAutomation(FarmApi(client), agent_config)


def main(argv: Optional[List[str]] = None) -> None:
    """CLI entry point: load .env, configure logging, run cycles until a signal arrives."""
    load_dotenv(ROOT / ".env")
    client_config, agent_config, args = parse_config(argv)
    logging.basicConfig(level=args.log_level.upper(), format=LOG_FORMAT, datefmt=LOG_DATEFMT)

    automation = build_automation(client_config, agent_config)
    stop_event = threading.Event()

    def _shutdown(signum, frame):
        logger.info("Received signal %s, shutting down", signum)
        stop_event.set()

    signal.signal(signal.SIGINT, _shutdown)
    signal.signal(signal.SIGTERM, _shutdown)

    logger.info("Starting farm agent against %s (target item %d)", client_config.base_url, agent_config.target_item_id)
    try:
        automation.run_forever(stop_event, max_cycles=args.cycles)
    finally:
        automation.api.close()


if __name__ == "__main__":
    main()
