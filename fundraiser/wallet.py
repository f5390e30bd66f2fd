# Copyright (c) 2025 The Cosmos Fundraiser developers
# Distributed under the MIT software license

"""
Cosmos Fundraiser CLI - Wallet

BIP-39 mnemonic generation and deterministic derivation of the donor's
Cosmos, Bitcoin and Ethereum keys (BIP-44 paths).

Usage:
    phrase = generate_mnemonic()
    wallet = derive_wallet(phrase)
    print(wallet.cosmos, wallet.bitcoin, wallet.ethereum)
"""

import hashlib
import logging
from typing import Dict

from Crypto.Hash import RIPEMD160
from eth_account import Account
from eth_account.hdaccount import key_from_seed
from eth_keys import keys
from mnemonic import Mnemonic

from .donation_types import Wallet

log = logging.getLogger(__name__)

# =============================================================================
# CONSTANTS
# =============================================================================

MNEMONIC_LANGUAGE = "english"
MNEMONIC_STRENGTH = 128  # bits -> 12 words

DERIVATION_PATHS: Dict[str, str] = {
    "cosmos": "m/44'/118'/0'/0/0",
    "bitcoin": "m/44'/0'/0'/0/0",
    "ethereum": "m/44'/60'/0'/0/0",
}

P2PKH_VERSION = 0x00
P2SH_VERSION = 0x05

BASE58_ALPHABET = "123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz"

_mnemonic = Mnemonic(MNEMONIC_LANGUAGE)


class WalletError(Exception):
    """Wallet phrase could not be turned into a wallet."""


# =============================================================================
# HASHING / ENCODING
# =============================================================================

def sha256d(data: bytes) -> bytes:
    """Double SHA-256 (Bitcoin txids and checksums)"""
    return hashlib.sha256(hashlib.sha256(data).digest()).digest()


def hash160(data: bytes) -> bytes:
    """RIPEMD160(SHA256(data))"""
    return RIPEMD160.new(hashlib.sha256(data).digest()).digest()


def base58check_encode(version: int, payload: bytes) -> str:
    raw = bytes([version]) + payload
    raw += sha256d(raw)[:4]
    n = int.from_bytes(raw, "big")
    out = ""
    while n > 0:
        n, rem = divmod(n, 58)
        out = BASE58_ALPHABET[rem] + out
    # Leading zero bytes are encoded as '1'
    pad = len(raw) - len(raw.lstrip(b"\x00"))
    return "1" * pad + out


def base58check_decode(address: str):
    """
    Decode a base58check string.

    Returns:
        (version, payload)

    Raises:
        ValueError: Bad character or checksum mismatch
    """
    n = 0
    for c in address:
        idx = BASE58_ALPHABET.find(c)
        if idx < 0:
            raise ValueError(f"Invalid base58 character {c!r} in {address}")
        n = n * 58 + idx
    body = n.to_bytes((n.bit_length() + 7) // 8, "big") if n else b""
    pad = len(address) - len(address.lstrip("1"))
    raw = b"\x00" * pad + body
    if len(raw) < 5:
        raise ValueError(f"Address too short: {address}")
    data, checksum = raw[:-4], raw[-4:]
    if sha256d(data)[:4] != checksum:
        raise ValueError(f"Bad checksum for address {address}")
    return data[0], data[1:]


# =============================================================================
# WALLET
# =============================================================================

def generate_mnemonic() -> str:
    """Generate a fresh 12-word English mnemonic."""
    return _mnemonic.generate(strength=MNEMONIC_STRENGTH)


def public_key(private_key: bytes) -> bytes:
    """Compressed secp256k1 public key (33 bytes)"""
    return keys.PrivateKey(private_key).public_key.to_compressed_bytes()


def cosmos_address(private_key: bytes) -> str:
    return hash160(public_key(private_key)).hex()


def bitcoin_address(private_key: bytes) -> str:
    return base58check_encode(P2PKH_VERSION, hash160(public_key(private_key)))


def derive_wallet(mnemonic: str) -> Wallet:
    """
    Derive the donor wallet from a mnemonic.

    Derivation is pure: the same phrase always yields the same addresses.

    Args:
        mnemonic: BIP-39 phrase (surrounding/repeated whitespace ignored)

    Returns:
        Wallet with cosmos, bitcoin and ethereum addresses and keys

    Raises:
        WalletError: Phrase is not a valid BIP-39 mnemonic
    """
    words = " ".join(mnemonic.split())
    if not _mnemonic.check(words):
        raise WalletError("Invalid wallet phrase (expected a valid 12-word BIP-39 mnemonic)")

    seed = Mnemonic.to_seed(words)
    private_keys = {name: key_from_seed(seed, path)
                    for name, path in DERIVATION_PATHS.items()}

    addresses = {
        "cosmos": cosmos_address(private_keys["cosmos"]),
        "bitcoin": bitcoin_address(private_keys["bitcoin"]),
        "ethereum": Account.from_key(private_keys["ethereum"]).address,
    }
    log.debug(f"Derived wallet for cosmos address {addresses['cosmos']}")
    return Wallet(addresses=addresses, private_keys=private_keys)
