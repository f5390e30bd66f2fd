"""
Cosmos Fundraiser CLI

Interactive donation of BTC or ETH to the Cosmos fundraiser in exchange for
a recorded Atom allocation.

Architecture:
  - DonationOrchestrator drives the session (status, wallet, currency, rail)
  - DonationServices is the only door to the network and key material
  - BTC is custodied briefly on the donor's own intermediate address, then
    signed and broadcast here; ETH only yields a transaction to paste elsewhere

Usage:
    from fundraiser import DonationOrchestrator, LiveServices, load_config
    from fundraiser import ConsoleUI, TerminalPrompter

    config = load_config()
    orchestrator = DonationOrchestrator(LiveServices(config), TerminalPrompter(),
                                        ConsoleUI(), config)
    ended = asyncio.run(orchestrator.run())
"""

__version__ = "0.4.0"

from .config import Config, load_config, setup_logging
from .donation_types import (
    CampaignStatus, Currency, DonationInstruction, FinalTransaction,
    PaymentInputs, SessionEnd, SignedTransaction, StageResult, Utxo, Wallet,
)
from .errors import BroadcastError, PaymentTimeout, ServiceError
from .wallet import WalletError, derive_wallet, generate_mnemonic
from .services import DonationServices, LiveServices
from .console import ConsoleUI, Prompter, TerminalPrompter
from .orchestrator import DonationOrchestrator, RecallFailed

__all__ = [
    # Types
    "CampaignStatus", "Currency", "DonationInstruction", "FinalTransaction",
    "PaymentInputs", "SessionEnd", "SignedTransaction", "StageResult", "Utxo",
    "Wallet",
    # Errors
    "BroadcastError", "PaymentTimeout", "RecallFailed", "ServiceError", "WalletError",
    # Core
    "Config", "load_config", "setup_logging",
    "derive_wallet", "generate_mnemonic",
    "DonationServices", "LiveServices",
    "ConsoleUI", "Prompter", "TerminalPrompter",
    "DonationOrchestrator",
]
