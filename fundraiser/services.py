# Copyright (c) 2025 The Cosmos Fundraiser developers
# Distributed under the MIT software license

"""
Cosmos Fundraiser CLI - Collaborator Services

The orchestrator only talks to DonationServices: one coroutine per external
call. LiveServices adapts the blocking clients (requests, web3, PBKDF2) by
running them in the event loop's thread pool, and retries idempotent reads
(status, fee rate, Atom rate) with exponential backoff. Broadcast is never
retried.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Optional

import requests

from . import bitcoin, ethereum, wallet
from .config import Config
from .donation_types import (
    BitcoinTx, CampaignStatus, DonationInstruction, FinalTransaction,
    PaymentInputs, SignedTransaction, Wallet,
)
from .errors import PaymentTimeout, ServiceError

log = logging.getLogger(__name__)


# =============================================================================
# STATUS CLIENT
# =============================================================================

class StatusClient:
    """Fetches {"started": bool, "ended": bool} from the fundraiser API."""

    def __init__(self, url: str, timeout: int = 30):
        self.url = url
        self.timeout = timeout

    def fetch_status(self) -> CampaignStatus:
        try:
            response = requests.get(self.url, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except (requests.exceptions.RequestException, ValueError) as e:
            raise ServiceError("fetch_status", str(e))
        if not isinstance(data, dict):
            raise ServiceError("fetch_status", f"unexpected payload: {data!r}")
        return CampaignStatus.from_dict(data)


# =============================================================================
# INTERFACE
# =============================================================================

class DonationServices(ABC):
    """Everything the donation flow needs from the outside world."""

    @abstractmethod
    async def fetch_status(self) -> CampaignStatus: ...

    @abstractmethod
    async def generate_mnemonic(self) -> str: ...

    @abstractmethod
    async def derive_wallet(self, mnemonic: str) -> Wallet: ...

    @abstractmethod
    async def wait_for_payment(self, address: str) -> PaymentInputs: ...

    @abstractmethod
    async def fetch_fee_rate(self) -> float: ...

    @abstractmethod
    def build_final_tx(self, inputs: PaymentInputs, fee_rate: float,
                       cosmos_address: str) -> FinalTransaction: ...

    @abstractmethod
    async def sign_final_tx(self, wallet: Wallet, tx: BitcoinTx) -> SignedTransaction: ...

    @abstractmethod
    async def broadcast(self, signed: SignedTransaction) -> str: ...

    @abstractmethod
    async def fetch_atom_rate(self, contract: str) -> int: ...

    @abstractmethod
    def build_instruction(self, cosmos_address: str,
                          ethereum_address: str) -> DonationInstruction: ...


# =============================================================================
# LIVE ADAPTER
# =============================================================================

class LiveServices(DonationServices):
    """
    Production services backed by the fundraiser API, Esplora and an
    Ethereum JSON-RPC node.

    Usage:
        services = LiveServices(load_config())
        status = await services.fetch_status()
    """

    def __init__(self, config: Config,
                 status: Optional[StatusClient] = None,
                 btc: Optional[bitcoin.BitcoinClient] = None,
                 eth: Optional[ethereum.EthereumClient] = None):
        self.config = config
        self.status = status or StatusClient(config.status_url, config.http_timeout)
        self.btc = btc or bitcoin.BitcoinClient(config.esplora_url, timeout=config.http_timeout)
        self.eth = eth or ethereum.EthereumClient(config.ethereum_rpc, config.http_timeout)

    async def _run(self, fn: Callable, *args) -> Any:
        """Run a blocking call in the thread pool."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, lambda: fn(*args))

    async def _read(self, operation: str, fn: Callable, *args) -> Any:
        """Idempotent read with bounded retry and exponential backoff."""
        attempts = max(1, self.config.read_retries)
        for attempt in range(1, attempts + 1):
            try:
                return await self._run(fn, *args)
            except ServiceError as e:
                if attempt == attempts:
                    log.error(f"{operation} failed after {attempts} attempt(s): {e.message}")
                    raise
                delay = self.config.retry_backoff * (2 ** (attempt - 1))
                log.warning(f"{operation} failed (attempt {attempt}/{attempts}): "
                            f"{e.message} - retrying in {delay:.1f}s")
                await asyncio.sleep(delay)

    async def fetch_status(self) -> CampaignStatus:
        return await self._read("fetch_status", self.status.fetch_status)

    async def generate_mnemonic(self) -> str:
        return wallet.generate_mnemonic()

    async def derive_wallet(self, mnemonic: str) -> Wallet:
        return await self._run(wallet.derive_wallet, mnemonic)

    async def wait_for_payment(self, address: str) -> PaymentInputs:
        """
        Poll the intermediate address until funds arrive.

        Each poll is one short request in the thread pool and the pause between
        polls is an asyncio sleep, so cancelling the session (Ctrl-C) stops the
        wait at once. Waits forever unless config.payment_timeout > 0.

        Raises:
            PaymentTimeout: Deadline passed without funds
        """
        loop = asyncio.get_running_loop()
        timeout = self.config.payment_timeout
        deadline = loop.time() + timeout if timeout > 0 else None
        log.info(f"Waiting for payment to {address}")
        while True:
            try:
                utxos = await self._run(self.btc.fetch_utxos, address)
            except ServiceError as e:
                log.warning(f"UTXO poll failed, retrying: {e.message}")
                utxos = []
            if utxos:
                inputs = PaymentInputs.from_utxos(utxos)
                log.info(f"Payment received: {inputs.amount} sats in {len(utxos)} UTXO(s)")
                return inputs
            if deadline is not None and loop.time() >= deadline:
                raise PaymentTimeout(f"No payment to {address} after {timeout:.0f}s")
            await asyncio.sleep(self.config.payment_poll_interval)

    async def fetch_fee_rate(self) -> float:
        return await self._read("fetch_fee_rate", self.btc.fetch_fee_rate,
                                self.config.fee_target_blocks)

    def build_final_tx(self, inputs: PaymentInputs, fee_rate: float,
                       cosmos_address: str) -> FinalTransaction:
        return bitcoin.build_final_tx(inputs, fee_rate, cosmos_address,
                                      self.config.exodus_address,
                                      self.config.atoms_per_btc)

    async def sign_final_tx(self, wallet: Wallet, tx: BitcoinTx) -> SignedTransaction:
        return await self._run(bitcoin.sign_final_tx, wallet, tx)

    async def broadcast(self, signed: SignedTransaction) -> str:
        log.info(f"Broadcasting transaction {signed.txid}")
        node_txid = await self._run(self.btc.push_tx, signed.hex)
        if node_txid and node_txid != signed.txid:
            log.warning(f"Node reported txid {node_txid}, expected {signed.txid}")
        return signed.txid

    async def fetch_atom_rate(self, contract: str) -> int:
        return await self._read("fetch_atom_rate", self.eth.fetch_atom_rate, contract)

    def build_instruction(self, cosmos_address: str,
                          ethereum_address: str) -> DonationInstruction:
        return ethereum.build_instruction(cosmos_address, ethereum_address,
                                          self.config.fundraiser_contract,
                                          self.config.eth_gas_limit)
