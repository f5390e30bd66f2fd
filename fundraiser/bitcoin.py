# Copyright (c) 2025 The Cosmos Fundraiser developers
# Distributed under the MIT software license

"""
Cosmos Fundraiser CLI - Bitcoin

The BTC donation is a two-step transfer:
  1. Donor sends BTC to their own intermediate P2PKH address
  2. This module spends every UTXO at that address to the fundraiser exodus
     address, with an OP_RETURN output recording the donor's Cosmos address

Usage:
    client = BitcoinClient("https://blockstream.info/api")
    inputs = PaymentInputs.from_utxos(client.fetch_utxos(wallet.bitcoin))
    final = build_final_tx(inputs, client.fetch_fee_rate(), wallet.cosmos, EXODUS)
    signed = sign_final_tx(wallet, final.tx)
    client.push_tx(signed.hex)
"""

import logging
import math
import struct
from typing import List, Optional, Sequence

import requests
from eth_keys import keys

from .donation_types import (
    BitcoinTx, FinalTransaction, PaymentInputs, SignedTransaction,
    TxOutput, Utxo, Wallet,
)
from .errors import BroadcastError, ServiceError
from .wallet import (
    P2PKH_VERSION, P2SH_VERSION, base58check_decode, hash160, public_key, sha256d,
)

log = logging.getLogger(__name__)

# =============================================================================
# CONSTANTS
# =============================================================================

SATS_PER_BTC = 100_000_000
SIGHASH_ALL = 1
SEQUENCE_FINAL = 0xFFFFFFFF

# Size estimate (bytes) for fee calculation
TX_OVERHEAD_SIZE = 10
P2PKH_INPUT_SIZE = 148
EXODUS_OUTPUT_SIZE = 34
OP_RETURN_OUTPUT_SIZE = 32

OP_DUP = 0x76
OP_HASH160 = 0xA9
OP_EQUALVERIFY = 0x88
OP_EQUAL = 0x87
OP_CHECKSIG = 0xAC
OP_RETURN = 0x6A

SECP256K1_N = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141


# =============================================================================
# SCRIPTS / SERIALIZATION
# =============================================================================

def varint(n: int) -> bytes:
    if n < 0xFD:
        return bytes([n])
    if n <= 0xFFFF:
        return b"\xfd" + struct.pack("<H", n)
    if n <= 0xFFFFFFFF:
        return b"\xfe" + struct.pack("<I", n)
    return b"\xff" + struct.pack("<Q", n)


def push_data(data: bytes) -> bytes:
    if len(data) >= 0x4C:
        raise ValueError(f"Push of {len(data)} bytes not supported")
    return bytes([len(data)]) + data


def p2pkh_script(pubkey_hash: bytes) -> bytes:
    return bytes([OP_DUP, OP_HASH160]) + push_data(pubkey_hash) + \
        bytes([OP_EQUALVERIFY, OP_CHECKSIG])


def address_to_script(address: str) -> bytes:
    """scriptPubKey for a base58 P2PKH or P2SH address"""
    version, payload = base58check_decode(address)
    if len(payload) != 20:
        raise ValueError(f"Unexpected payload length for {address}")
    if version == P2PKH_VERSION:
        return p2pkh_script(payload)
    if version == P2SH_VERSION:
        return bytes([OP_HASH160]) + push_data(payload) + bytes([OP_EQUAL])
    raise ValueError(f"Unsupported address version {version} for {address}")


def op_return_script(data: bytes) -> bytes:
    return bytes([OP_RETURN]) + push_data(data)


def serialize_tx(tx: BitcoinTx, script_sigs: Optional[Sequence[bytes]] = None) -> bytes:
    """
    Legacy (non-segwit) transaction encoding.

    Args:
        tx: Transaction to encode
        script_sigs: One scriptSig per input (empty scripts if omitted)
    """
    if script_sigs is None:
        script_sigs = [b""] * len(tx.inputs)
    out = struct.pack("<i", tx.version)
    out += varint(len(tx.inputs))
    for utxo, script in zip(tx.inputs, script_sigs):
        out += bytes.fromhex(utxo.txid)[::-1]
        out += struct.pack("<I", utxo.vout)
        out += varint(len(script)) + script
        out += struct.pack("<I", SEQUENCE_FINAL)
    out += varint(len(tx.outputs))
    for output in tx.outputs:
        out += struct.pack("<q", output.value)
        out += varint(len(output.script)) + output.script
    out += struct.pack("<I", tx.locktime)
    return out


def txid(raw: bytes) -> str:
    return sha256d(raw)[::-1].hex()


# =============================================================================
# FINAL TRANSACTION
# =============================================================================

def estimate_size(num_inputs: int) -> int:
    return TX_OVERHEAD_SIZE + P2PKH_INPUT_SIZE * num_inputs + \
        EXODUS_OUTPUT_SIZE + OP_RETURN_OUTPUT_SIZE


def build_final_tx(inputs: PaymentInputs, fee_rate: float, cosmos_address: str,
                   exodus_address: str, atoms_per_btc: int) -> FinalTransaction:
    """
    Build the unsigned donation transaction.

    Pure: identical arguments always give an identical result.

    Args:
        inputs: UTXOs received on the intermediate address
        fee_rate: satoshis per byte
        cosmos_address: 20-byte hex Cosmos address, recorded in OP_RETURN
        exodus_address: Fundraiser BTC address
        atoms_per_btc: Suggested allocation rate

    Raises:
        ValueError: No inputs, or the fee would consume the whole payment
    """
    if not inputs.utxos:
        raise ValueError("No payment inputs to spend")

    fee_amount = int(math.ceil(estimate_size(len(inputs.utxos)) * fee_rate))
    paid_amount = inputs.amount - fee_amount
    if paid_amount <= 0:
        raise ValueError(
            f"Payment of {inputs.amount / SATS_PER_BTC} BTC does not cover "
            f"the {fee_amount / SATS_PER_BTC} BTC fee")

    tx = BitcoinTx(
        inputs=tuple(inputs.utxos),
        outputs=(
            TxOutput(paid_amount, address_to_script(exodus_address)),
            TxOutput(0, op_return_script(bytes.fromhex(cosmos_address))),
        ),
    )
    atom_amount = paid_amount / SATS_PER_BTC * atoms_per_btc
    return FinalTransaction(tx=tx, paid_amount=paid_amount,
                            fee_amount=fee_amount, atom_amount=atom_amount)


def der_signature(r: int, s: int) -> bytes:
    """DER-encode an ECDSA signature, forcing low S"""
    if s > SECP256K1_N // 2:
        s = SECP256K1_N - s

    def encode_int(v: int) -> bytes:
        b = v.to_bytes((v.bit_length() + 7) // 8 or 1, "big")
        if b[0] & 0x80:
            b = b"\x00" + b
        return b"\x02" + bytes([len(b)]) + b

    body = encode_int(r) + encode_int(s)
    return b"\x30" + bytes([len(body)]) + body


def sign_final_tx(wallet: Wallet, tx: BitcoinTx) -> SignedTransaction:
    """
    Sign every input with the wallet's Bitcoin key (P2PKH, SIGHASH_ALL).

    All inputs belong to the intermediate address, so they share one
    scriptPubKey and one key.
    """
    private_key = wallet.private_keys["bitcoin"]
    pubkey = public_key(private_key)
    prev_script = p2pkh_script(hash160(pubkey))
    signer = keys.PrivateKey(private_key)

    script_sigs: List[bytes] = []
    for i in range(len(tx.inputs)):
        scripts = [prev_script if j == i else b"" for j in range(len(tx.inputs))]
        preimage = serialize_tx(tx, scripts) + struct.pack("<I", SIGHASH_ALL)
        sig = signer.sign_msg_hash(sha256d(preimage))
        der = der_signature(sig.r, sig.s) + bytes([SIGHASH_ALL])
        script_sigs.append(push_data(der) + push_data(pubkey))

    raw = serialize_tx(tx, script_sigs)
    return SignedTransaction(hex=raw.hex(), txid=txid(raw))


# =============================================================================
# ESPLORA CLIENT
# =============================================================================

class BitcoinClient:
    """
    Esplora HTTP client (blockstream.info / mempool.space compatible).

    Usage:
        client = BitcoinClient("https://blockstream.info/api")
        utxos = client.fetch_utxos("1Bo...")
        rate = client.fetch_fee_rate()
    """

    def __init__(self, base_url: str, timeout: int = 30):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = requests.Session()

    def _get(self, operation: str, path: str):
        try:
            response = self.session.get(f"{self.base_url}{path}", timeout=self.timeout)
            response.raise_for_status()
            return response.json()
        except (requests.exceptions.RequestException, ValueError) as e:
            raise ServiceError(operation, str(e))

    def fetch_utxos(self, address: str) -> List[Utxo]:
        """Unspent outputs at address, mempool included."""
        data = self._get("fetch_utxos", f"/address/{address}/utxo")
        return [Utxo.from_dict(u) for u in data]

    def fetch_fee_rate(self, target_blocks: int = 2) -> float:
        """Fee rate in sat/vB for confirmation within target_blocks."""
        estimates = self._get("fetch_fee_rate", "/fee-estimates")
        if not estimates:
            raise ServiceError("fetch_fee_rate", "empty fee estimates")
        targets = sorted(int(k) for k in estimates)
        chosen = next((t for t in targets if t >= target_blocks), targets[-1])
        rate = float(estimates[str(chosen)])
        log.debug(f"Fee rate {rate} sat/vB (target {chosen} blocks)")
        return rate

    def push_tx(self, tx_hex: str) -> str:
        """Broadcast a raw transaction. Returns the txid reported by the node."""
        try:
            response = self.session.post(f"{self.base_url}/tx", data=tx_hex,
                                         timeout=self.timeout)
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            detail = e.response.text.strip() if getattr(e, "response", None) is not None else str(e)
            raise BroadcastError(detail)
        return response.text.strip()
