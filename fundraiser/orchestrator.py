# Copyright (c) 2025 The Cosmos Fundraiser developers
# Distributed under the MIT software license

"""
Cosmos Fundraiser CLI - Donation Orchestrator

Flow (single pass, no stage is re-entered):
    1. Status gate      - warn and ask if the fundraiser is not running
    2. Wallet           - generate (with phrase recall check) or input existing
    3. Currency         - BTC or ETH
    4a. BTC             - wait for payment, fee, two consents, sign, broadcast
    4b. ETH             - print a transaction for the donor's own wallet

The BTC broadcast cannot be undone, so it needs both the Terms of Service
consent and the final confirmation, each defaulting to "no".
"""

import logging

from .bitcoin import SATS_PER_BTC
from .config import Config
from .console import ConsoleUI, Prompter
from .donation_types import (
    CampaignStatus, Currency, DonationInstruction, FinalTransaction,
    PaymentInputs, SessionEnd, StageResult, Wallet,
)
from .ethereum import atoms_per_eth
from .services import DonationServices

log = logging.getLogger(__name__)

# =============================================================================
# TEXT
# =============================================================================

WELCOME = """
Welcome to the Cosmos Fundraiser!

Thank you for your interest in donating funds for the development of The Cosmos Network.
Let's get started!
"""

INACTIVE_NOTICE = """NOTICE: The fundraiser has ended or has not yet started.
You may still donate, but you will NOT receive Atoms.
Continue anyway?"""

GENERATE_WALLET = "Generate wallet"
INPUT_WALLET = "Input existing wallet"
WALLET_CHOICES = (GENERATE_WALLET, INPUT_WALLET)

WALLET_TEMPLATE = """
Let's generate your Cosmos wallet. You will need this in the future to
access your Atoms.

Here is your wallet:

{mnemonic}

WRITE THIS DOWN AND DO NOT LOSE IT!

IF YOU LOSE THIS WALLET YOU LOSE YOUR ATOMS!

WARNING: DO NOT LOSE YOUR WALLET!
WARNING: DO NOT LOSE YOUR WALLET!
WARNING: DO NOT LOSE YOUR WALLET!
"""

RECALL_PROMPT = "Please re-enter your 12-word wallet phrase:"
RECALL_MISMATCH = "Incorrect. Try again or exit and restart"
TERMS_PROMPT = "Have you read and agreed to the Terms of Service and Donation Agreement?"
FINAL_PROMPT = "Finalize contribution? You will NOT be able undo this transaction:"


class RecallFailed(Exception):
    """Wallet phrase re-entry did not match within the configured attempts."""


def format_btc(sats: int) -> str:
    """Satoshis as a BTC string without trailing zeros (5000000 -> '0.05')"""
    text = f"{sats / SATS_PER_BTC:.8f}".rstrip("0").rstrip(".")
    return text or "0"


def recall_matches(entry: str, mnemonic: str) -> bool:
    """Exact match after trimming surrounding whitespace (no case folding)."""
    return entry.strip() == mnemonic


# =============================================================================
# ORCHESTRATOR
# =============================================================================

class DonationOrchestrator:
    """
    Drives one donation session.

    Usage:
        orchestrator = DonationOrchestrator(services, prompter, ui, config)
        ended = await orchestrator.run()
    """

    def __init__(self, services: DonationServices, prompter: Prompter,
                 ui: ConsoleUI, config: Config):
        self.services = services
        self.prompter = prompter
        self.ui = ui
        self.config = config

    async def run(self) -> SessionEnd:
        self.ui.show(WELCOME)

        gate = await self.check_status()
        if gate.aborted:
            return gate.reason

        wallet = await self.acquire_wallet()
        currency = await self.select_currency()
        log.info(f"Donating in {currency.value}")

        if currency is Currency.BTC:
            inputs = await self.wait_for_btc_payment(wallet.bitcoin)
            return await self.finalize_btc_donation(wallet, inputs)

        await self.make_eth_donation(wallet)
        return SessionEnd.INSTRUCTION_ISSUED

    # -------------------------------------------------------------------------
    # Status gate
    # -------------------------------------------------------------------------

    async def check_status(self) -> StageResult:
        with self.ui.progress("Checking fundraiser status..."):
            status: CampaignStatus = await self.services.fetch_status()
        log.info(f"Fundraiser status: started={status.started} ended={status.ended}")
        if status.active:
            return StageResult.proceed(status)

        donate_anyway = await self.prompter.confirm(INACTIVE_NOTICE, default=False)
        if not donate_anyway:
            log.info("Donor declined to continue with an inactive fundraiser")
            return StageResult.abort(SessionEnd.DECLINED_INACTIVE)
        self.ui.show()
        return StageResult.proceed(status)

    # -------------------------------------------------------------------------
    # Wallet acquisition
    # -------------------------------------------------------------------------

    async def acquire_wallet(self) -> Wallet:
        action = await self.prompter.select(
            "Generate a new wallet, or use an existing one?", list(WALLET_CHOICES))
        if action == GENERATE_WALLET:
            return await self.create_wallet()
        return await self.input_wallet()

    async def create_wallet(self) -> Wallet:
        mnemonic = await self.services.generate_mnemonic()

        lines = self.ui.show_secret(WALLET_TEMPLATE.format(mnemonic=mnemonic))
        await self.prompter.text("Please write down your wallet, then continue.")
        # +1 for the acknowledgement prompt line
        self.ui.erase(lines + 1)

        return await self.verify_recall(mnemonic)

    async def verify_recall(self, mnemonic: str) -> Wallet:
        """
        Ask for the phrase until it is typed back correctly.

        Unbounded unless config.recall_max_attempts > 0.

        Raises:
            RecallFailed: Attempts exhausted
        """
        limit = self.config.recall_max_attempts
        attempts = 0
        while True:
            attempts += 1
            entry = await self.prompter.text(RECALL_PROMPT)
            if recall_matches(entry, mnemonic):
                log.info(f"Wallet phrase confirmed after {attempts} attempt(s)")
                return await self.services.derive_wallet(mnemonic)
            self.ui.show(RECALL_MISMATCH)
            if limit and attempts >= limit:
                raise RecallFailed(f"Wallet phrase not confirmed after {attempts} attempts")

    async def input_wallet(self) -> Wallet:
        mnemonic = await self.prompter.text("Please enter your 12-word wallet phrase:")
        return await self.services.derive_wallet(mnemonic.strip())

    # -------------------------------------------------------------------------
    # Currency
    # -------------------------------------------------------------------------

    async def select_currency(self) -> Currency:
        answer = await self.prompter.select(
            "Which currency will you make your donation in?",
            [c.value for c in Currency])
        return Currency(answer)

    # -------------------------------------------------------------------------
    # BTC
    # -------------------------------------------------------------------------

    async def wait_for_btc_payment(self, address: str) -> PaymentInputs:
        self.ui.show(f"""
Suggested allocation rate: 1 BTC : {self.config.atoms_per_btc} ATOM
Minimum donation: {format_btc(self.config.btc_minimum_sats)} BTC

Your intermediate Bitcoin address is:
{address}

Send BTC to this address to continue with your contribution.
This address is owned by you, so you can get the coins back if you
change your mind.
""")
        with self.ui.progress("Waiting for a transaction...") as progress:
            inputs = await self.services.wait_for_payment(address)
            progress.succeed(f"Got payment of {format_btc(inputs.amount)} BTC")
        return inputs

    async def finalize_btc_donation(self, wallet: Wallet,
                                    inputs: PaymentInputs) -> SessionEnd:
        with self.ui.progress("Fetching BTC transaction fee rate..."):
            fee_rate = await self.services.fetch_fee_rate()
        final_tx: FinalTransaction = self.services.build_final_tx(
            inputs, fee_rate, wallet.cosmos)
        log.info(f"Final tx: paid={final_tx.paid_amount} fee={final_tx.fee_amount} "
                 f"rate={fee_rate} sat/vB")

        self.ui.show(f"""
Ready to finalize contribution:
  Donating: {format_btc(final_tx.paid_amount)} BTC
  Bitcoin transaction fee: {format_btc(final_tx.fee_amount)} BTC
  Suggested Atom Equivalent: {final_tx.atom_amount} ATOM
  Cosmos address: {wallet.cosmos}
""")

        if not await self.prompter.confirm(TERMS_PROMPT, default=False):
            self.ui.show(f"""
You can read the Terms of Service and Donation Agreement here:
{self.config.terms_url}
""")
            log.info("Donor declined the Terms of Service; nothing sent")
            return SessionEnd.DECLINED_TERMS

        if not await self.prompter.confirm(FINAL_PROMPT, default=False):
            log.info("Donor declined final confirmation; nothing sent")
            return SessionEnd.DECLINED_FINAL

        signed = await self.services.sign_final_tx(wallet, final_tx.tx)
        with self.ui.progress("Broadcasting transaction...") as progress:
            txid = await self.services.broadcast(signed)
            progress.succeed("Transaction sent!")
        self.ui.show(f"Bitcoin TXID: {txid}")
        self.ui.show("Thank you for participating in the Cosmos fundraiser!")
        return SessionEnd.BROADCAST

    # -------------------------------------------------------------------------
    # ETH
    # -------------------------------------------------------------------------

    async def make_eth_donation(self, wallet: Wallet) -> DonationInstruction:
        contract = self.config.fundraiser_contract
        instruction = self.services.build_instruction(wallet.cosmos, wallet.ethereum)

        with self.ui.progress("Fetching ATOM/ETH exchange rate..."):
            wei_per_atom = await self.services.fetch_atom_rate(contract)
        rate = atoms_per_eth(wei_per_atom)

        self.ui.show(f"""
  Suggested allocation rate: 1 ETH : {rate} ATOM
  Minimum donation: {self.config.eth_min_donation} ETH
  Your Cosmos address: {wallet.cosmos} (DO NOT SEND ETHER HERE!)

Here's your donation transaction:
{instruction.to_json()}

To make your donation, copy and paste this information into a wallet
such as MyEtherWallet or Mist. Be sure to include an amount of ETH to
donate! Your Cosmos address is included in the data, and the donation
will be recorded for that address in the smart contract.

Thank you for participating in the Cosmos Fundraiser!
""")
        return instruction
