# Copyright (c) 2025 The Cosmos Fundraiser developers
# Distributed under the MIT software license

"""
Cosmos Fundraiser CLI - Ethereum

ETH donations are never custodied by this tool. We only produce the
transaction the donor pastes into their own wallet (MyEtherWallet, Mist, ...):

    {"from": <donor ETH address>, "to": <fundraiser contract>,
     "gas": 150000, "data": donate(cosmosAddress, returnAddress, checksum)}
"""

import logging

import requests
from eth_abi import encode
from web3 import Web3
from web3.exceptions import Web3Exception

from .donation_types import DonationInstruction
from .errors import ServiceError

log = logging.getLogger(__name__)

# =============================================================================
# CONTRACT
# =============================================================================

WEI_PER_ETH = 10 ** 18

DONATE_SIGNATURE = "donate(address,address,bytes4)"

FUNDRAISER_ABI = [
    {
        "constant": True,
        "inputs": [],
        "name": "weiPerAtom",
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function"
    }
]


def _address_bytes(address: str) -> bytes:
    clean = address[2:] if address.startswith("0x") else address
    raw = bytes.fromhex(clean)
    if len(raw) != 20:
        raise ValueError(f"Expected a 20-byte address, got {address!r}")
    return raw


def donate_data(cosmos_address: str, return_address: str) -> str:
    """
    Calldata for donate(address _donor, address _returnAddress, bytes4 checksum).

    The checksum is keccak256(donor ++ returnAddress)[:4]; the contract rejects
    calls where it does not match, catching mistyped addresses.
    """
    donor = _address_bytes(cosmos_address)
    ret = _address_bytes(return_address)
    checksum = bytes(Web3.keccak(donor + ret))[:4]
    selector = bytes(Web3.keccak(text=DONATE_SIGNATURE))[:4]
    args = encode(["address", "address", "bytes4"], [donor, ret, checksum])
    return "0x" + (selector + args).hex()


def build_instruction(cosmos_address: str, ethereum_address: str,
                      contract: str, gas: int) -> DonationInstruction:
    """
    Build the donation transaction for the donor's own wallet.

    Args:
        cosmos_address: Donor's Cosmos address (where Atoms are recorded)
        ethereum_address: Donor's ETH address (sender and return address)
        contract: Fundraiser contract address
        gas: Gas limit to suggest
    """
    return DonationInstruction(
        from_address=ethereum_address,
        to=contract,
        gas=gas,
        data=donate_data(cosmos_address, ethereum_address),
        cosmos_address=cosmos_address,
    )


def atoms_per_eth(wei_per_atom: int) -> float:
    if wei_per_atom <= 0:
        raise ValueError(f"Invalid weiPerAtom rate: {wei_per_atom}")
    return WEI_PER_ETH / wei_per_atom


# =============================================================================
# RPC CLIENT
# =============================================================================

class EthereumClient:
    """
    Read-only access to the fundraiser contract.

    Usage:
        eth = EthereumClient("https://ethereum-rpc.publicnode.com")
        wei = eth.fetch_atom_rate("0xCF96...")
    """

    def __init__(self, rpc_url: str, timeout: int = 30):
        self.w3 = Web3(Web3.HTTPProvider(rpc_url, request_kwargs={"timeout": timeout}))

    def fetch_atom_rate(self, contract: str) -> int:
        """Current price of one Atom in wei."""
        fundraiser = self.w3.eth.contract(
            address=Web3.to_checksum_address(contract),
            abi=FUNDRAISER_ABI
        )
        try:
            rate = int(fundraiser.functions.weiPerAtom().call())
        except (Web3Exception, requests.exceptions.RequestException, ValueError) as e:
            raise ServiceError("fetch_atom_rate", str(e))
        log.debug(f"weiPerAtom = {rate}")
        return rate
