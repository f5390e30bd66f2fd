"""
Shared fixtures: scripted prompts, captured output and a recording fake of
DonationServices.
"""
import io
from typing import List, Optional

import pytest

from fundraiser import bitcoin, ethereum
from fundraiser.config import Config
from fundraiser.console import ConsoleUI, Prompter
from fundraiser.donation_types import (
    CampaignStatus, PaymentInputs, SignedTransaction, Utxo,
)
from fundraiser.services import DonationServices
from fundraiser.wallet import P2PKH_VERSION, base58check_encode, derive_wallet

# BIP-39 test vector phrase
TEST_MNEMONIC = ("abandon abandon abandon abandon abandon abandon "
                 "abandon abandon abandon abandon abandon about")

EXODUS_ADDRESS = base58check_encode(P2PKH_VERSION, b"\x11" * 20)


class ScriptedPrompter(Prompter):
    """Answers prompts from a fixed list, in order, and records every question."""

    def __init__(self, answers):
        self.answers = list(answers)
        self.asked: List[tuple] = []

    def _next(self, kind: str, message: str):
        self.asked.append((kind, message))
        if not self.answers:
            raise AssertionError(f"Unexpected {kind} prompt: {message}")
        return self.answers.pop(0)

    async def confirm(self, message, default=False):
        return self._next("confirm", message)

    async def select(self, message, choices):
        answer = self._next("select", message)
        assert answer in choices
        return answer

    async def text(self, message):
        return self._next("text", message)

    def messages(self, kind: Optional[str] = None) -> List[str]:
        return [m for k, m in self.asked if kind is None or k == kind]


class CapturedUI(ConsoleUI):
    def __init__(self):
        super().__init__(io.StringIO())
        self.erased: List[int] = []

    def erase(self, lines):
        self.erased.append(lines)

    @property
    def output(self) -> str:
        return self.stream.getvalue()


class FakeServices(DonationServices):
    """Records collaborator calls; builders delegate to the real pure functions."""

    def __init__(self, config: Config, status=None, mnemonic=TEST_MNEMONIC,
                 payment_sats=5_000_000, fee_rate=10.0, wei_per_atom=10 ** 15):
        self.config = config
        self.status = status or CampaignStatus(started=True, ended=False)
        self.mnemonic = mnemonic
        self.payment_sats = payment_sats
        self.fee_rate = fee_rate
        self.wei_per_atom = wei_per_atom
        self.calls: List[tuple] = []

    def names(self) -> List[str]:
        return [c[0] for c in self.calls]

    async def fetch_status(self):
        self.calls.append(("fetch_status",))
        return self.status

    async def generate_mnemonic(self):
        self.calls.append(("generate_mnemonic",))
        return self.mnemonic

    async def derive_wallet(self, mnemonic):
        self.calls.append(("derive_wallet", mnemonic))
        return derive_wallet(mnemonic)

    async def wait_for_payment(self, address):
        self.calls.append(("wait_for_payment", address))
        utxo = Utxo(txid="ab" * 32, vout=0, value=self.payment_sats)
        return PaymentInputs.from_utxos([utxo])

    async def fetch_fee_rate(self):
        self.calls.append(("fetch_fee_rate",))
        return self.fee_rate

    def build_final_tx(self, inputs, fee_rate, cosmos_address):
        self.calls.append(("build_final_tx", inputs, fee_rate, cosmos_address))
        return bitcoin.build_final_tx(inputs, fee_rate, cosmos_address,
                                      self.config.exodus_address,
                                      self.config.atoms_per_btc)

    async def sign_final_tx(self, wallet, tx):
        self.calls.append(("sign_final_tx", tx))
        return SignedTransaction(hex="00", txid="f0" * 32)

    async def broadcast(self, signed):
        self.calls.append(("broadcast", signed))
        return signed.txid

    async def fetch_atom_rate(self, contract):
        self.calls.append(("fetch_atom_rate", contract))
        return self.wei_per_atom

    def build_instruction(self, cosmos_address, ethereum_address):
        self.calls.append(("build_instruction", cosmos_address, ethereum_address))
        return ethereum.build_instruction(cosmos_address, ethereum_address,
                                          self.config.fundraiser_contract,
                                          self.config.eth_gas_limit)


@pytest.fixture
def config():
    return Config(exodus_address=EXODUS_ADDRESS, read_retries=3, retry_backoff=0.0)


@pytest.fixture(scope="session")
def test_wallet():
    return derive_wallet(TEST_MNEMONIC)


@pytest.fixture
def ui():
    return CapturedUI()
