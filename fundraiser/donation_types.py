# Copyright (c) 2025 The Cosmos Fundraiser developers
# Distributed under the MIT software license

"""
Cosmos Fundraiser CLI - Data Types

Wallet, payment and transaction structures passed between the donation stages.
Everything here is immutable once built.
"""

import json
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, Optional, Tuple


class Currency(Enum):
    """Settlement rail chosen by the donor"""
    BTC = "BTC"   # hold-and-broadcast
    ETH = "ETH"   # instruction-only


class SessionEnd(Enum):
    """How a donation session finished (all exit 0)"""
    DECLINED_INACTIVE = "declined_inactive"
    DECLINED_TERMS = "declined_terms"
    DECLINED_FINAL = "declined_final"
    BROADCAST = "broadcast"
    INSTRUCTION_ISSUED = "instruction_issued"


@dataclass(frozen=True)
class CampaignStatus:
    started: bool
    ended: bool

    @property
    def active(self) -> bool:
        return self.started and not self.ended

    @classmethod
    def from_dict(cls, data: dict) -> "CampaignStatus":
        """Parse the status endpoint payload. A missing flag reads as started, not ended."""
        if "ended" not in data and "fundraiserEnded" in data:
            # Older endpoint only reports the combined flag
            ended = bool(data["fundraiserEnded"])
            return cls(started=True, ended=ended)
        return cls(started=bool(data.get("started", True)),
                   ended=bool(data.get("ended", False)))


@dataclass(frozen=True)
class Wallet:
    """
    Wallet derived from a mnemonic.

    addresses: {"cosmos": ..., "bitcoin": ..., "ethereum": ...}
    private_keys: 32-byte secp256k1 keys under the same names (never printed)
    """
    addresses: Mapping[str, str]
    private_keys: Mapping[str, bytes] = field(repr=False)

    def __post_init__(self):
        object.__setattr__(self, "addresses", MappingProxyType(dict(self.addresses)))
        object.__setattr__(self, "private_keys", MappingProxyType(dict(self.private_keys)))

    @property
    def cosmos(self) -> str:
        return self.addresses["cosmos"]

    @property
    def bitcoin(self) -> str:
        return self.addresses["bitcoin"]

    @property
    def ethereum(self) -> str:
        return self.addresses["ethereum"]


@dataclass(frozen=True)
class Utxo:
    """Unspent output credited to the intermediate BTC address"""
    txid: str   # display (big-endian) hex
    vout: int
    value: int  # satoshis

    @classmethod
    def from_dict(cls, data: dict) -> "Utxo":
        return cls(txid=data["txid"], vout=int(data["vout"]), value=int(data["value"]))


@dataclass(frozen=True)
class PaymentInputs:
    utxos: Tuple[Utxo, ...]
    amount: int  # satoshis

    @classmethod
    def from_utxos(cls, utxos) -> "PaymentInputs":
        utxos = tuple(utxos)
        return cls(utxos=utxos, amount=sum(u.value for u in utxos))


@dataclass(frozen=True)
class TxOutput:
    value: int       # satoshis
    script: bytes    # scriptPubKey


@dataclass(frozen=True)
class BitcoinTx:
    """Unsigned transaction spending every payment input"""
    inputs: Tuple[Utxo, ...]
    outputs: Tuple[TxOutput, ...]
    version: int = 1
    locktime: int = 0


@dataclass(frozen=True)
class FinalTransaction:
    tx: BitcoinTx
    paid_amount: int   # satoshis sent to the exodus address
    fee_amount: int    # satoshis left for miners
    atom_amount: float  # suggested Atom equivalent


@dataclass(frozen=True)
class SignedTransaction:
    hex: str
    txid: str


@dataclass(frozen=True)
class DonationInstruction:
    """
    ETH transaction the donor executes in their own wallet.

    The Cosmos address is embedded in `data`; an instruction without it could
    not be attributed, so construction refuses an empty one.
    """
    from_address: str
    to: str
    gas: int
    data: str
    cosmos_address: str

    def __post_init__(self):
        if not self.cosmos_address:
            raise ValueError("Donation instruction requires a Cosmos address")
        if self.cosmos_address.lower() not in self.data.lower():
            raise ValueError("Donation data does not reference the Cosmos address")

    def to_dict(self) -> dict:
        return {
            "from": self.from_address,
            "to": self.to,
            "gas": self.gas,
            "data": self.data,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=4)


@dataclass(frozen=True)
class StageResult:
    """Outcome of a gate stage: proceed with a value or end the session."""
    value: Any = None
    aborted: bool = False
    reason: Optional[SessionEnd] = None

    @classmethod
    def proceed(cls, value: Any = None) -> "StageResult":
        return cls(value=value)

    @classmethod
    def abort(cls, reason: SessionEnd) -> "StageResult":
        return cls(aborted=True, reason=reason)
