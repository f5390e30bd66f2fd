#!/usr/bin/env python3
# Copyright (c) 2025 The Cosmos Fundraiser developers
# Distributed under the MIT software license

"""
Cosmos Fundraiser - interactive donation tool

Usage:
    cosmos-fundraiser
    cosmos-fundraiser --config fundraiser.json --log-level DEBUG

Exit codes:
    0    Session finished (including when you choose to stop)
    1    Network, wallet or broadcast failure
    130  Interrupted
"""

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from . import __version__
from .config import load_config, setup_logging
from .console import ConsoleUI, TerminalPrompter
from .errors import BroadcastError, PaymentTimeout, ServiceError
from .orchestrator import DonationOrchestrator, RecallFailed
from .services import LiveServices
from .wallet import WalletError

log = logging.getLogger("fundraiser")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="cosmos-fundraiser",
        description="Donate BTC or ETH to the Cosmos fundraiser")
    parser.add_argument("--config", help="JSON file overriding default settings")
    parser.add_argument("--log-level", help="DEBUG, INFO, WARNING or ERROR (default: from config)")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)

    try:
        config = load_config(args.config)
    except (OSError, ValueError) as e:
        print(f"Config error: {e}", file=sys.stderr)
        return 1

    setup_logging(args.log_level or config.log_level)

    orchestrator = DonationOrchestrator(
        services=LiveServices(config),
        prompter=TerminalPrompter(),
        ui=ConsoleUI(),
        config=config,
    )

    try:
        ended = asyncio.run(orchestrator.run())
    except KeyboardInterrupt:
        print("\nAborted.", file=sys.stderr)
        return 130
    except BroadcastError as e:
        log.error(f"Broadcast failed: {e.message}")
        log.error("The transaction may still have been relayed. Check the "
                  "intermediate address before trying again.")
        return 1
    except (ServiceError, WalletError, RecallFailed, PaymentTimeout, ValueError) as e:
        log.error(str(e))
        return 1
    except EOFError:
        log.error("No interactive input available")
        return 1

    log.info(f"Session ended: {ended.value}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
