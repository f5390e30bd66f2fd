"""
Tests for the ETH donation instruction and the fundraiser contract client.
"""
from unittest import mock

import pytest
import requests
from web3 import Web3

from fundraiser import ethereum
from fundraiser.donation_types import DonationInstruction
from fundraiser.errors import ServiceError

CONTRACT = "0xCF965Cfe7C30323E9C9E41D4E398e2167506f764"


class TestDonateData:

    def test_layout(self, test_wallet):
        data = ethereum.donate_data(test_wallet.cosmos, test_wallet.ethereum)
        selector = bytes(Web3.keccak(text="donate(address,address,bytes4)"))[:4].hex()
        assert data.startswith("0x" + selector)
        # selector + three 32-byte words
        assert len(data) == 2 + 8 + 3 * 64

    def test_embeds_cosmos_and_return_address(self, test_wallet):
        data = ethereum.donate_data(test_wallet.cosmos, test_wallet.ethereum)
        words = [data[10 + i * 64:10 + (i + 1) * 64] for i in range(3)]
        assert words[0] == "00" * 12 + test_wallet.cosmos
        assert words[1] == "00" * 12 + test_wallet.ethereum[2:].lower()

    def test_checksum_word(self, test_wallet):
        data = ethereum.donate_data(test_wallet.cosmos, test_wallet.ethereum)
        donor = bytes.fromhex(test_wallet.cosmos)
        ret = bytes.fromhex(test_wallet.ethereum[2:])
        checksum = bytes(Web3.keccak(donor + ret))[:4].hex()
        assert data[10 + 128:] == checksum + "00" * 28

    def test_rejects_short_address(self, test_wallet):
        with pytest.raises(ValueError):
            ethereum.donate_data("abcd", test_wallet.ethereum)


class TestBuildInstruction:

    def test_instruction_fields(self, test_wallet):
        instruction = ethereum.build_instruction(
            test_wallet.cosmos, test_wallet.ethereum, CONTRACT, 150000)
        assert instruction.to_dict() == {
            "from": test_wallet.ethereum,
            "to": CONTRACT,
            "gas": 150000,
            "data": ethereum.donate_data(test_wallet.cosmos, test_wallet.ethereum),
        }
        assert test_wallet.cosmos in instruction.to_json()

    def test_instruction_requires_cosmos_address(self):
        with pytest.raises(ValueError):
            DonationInstruction(from_address="0x00", to=CONTRACT, gas=1,
                                data="0x1234", cosmos_address="")

    def test_instruction_requires_cosmos_address_in_data(self):
        with pytest.raises(ValueError):
            DonationInstruction(from_address="0x00", to=CONTRACT, gas=1,
                                data="0x1234", cosmos_address="ab" * 20)


class TestRate:

    def test_atoms_per_eth(self):
        assert ethereum.atoms_per_eth(10 ** 15) == 1000.0

    def test_zero_rate_rejected(self):
        with pytest.raises(ValueError):
            ethereum.atoms_per_eth(0)


class TestEthereumClient:

    def test_fetch_atom_rate(self):
        client = ethereum.EthereumClient("http://localhost:8545")
        client.w3 = mock.Mock()
        contract = client.w3.eth.contract.return_value
        contract.functions.weiPerAtom.return_value.call.return_value = 2 * 10 ** 14
        assert client.fetch_atom_rate(CONTRACT.lower()) == 2 * 10 ** 14
        kwargs = client.w3.eth.contract.call_args.kwargs
        assert kwargs["address"] == Web3.to_checksum_address(CONTRACT)

    def test_fetch_atom_rate_failure(self):
        client = ethereum.EthereumClient("http://localhost:8545")
        client.w3 = mock.Mock()
        call = client.w3.eth.contract.return_value.functions.weiPerAtom.return_value.call
        call.side_effect = requests.exceptions.ConnectionError("node down")
        with pytest.raises(ServiceError) as exc:
            client.fetch_atom_rate(CONTRACT)
        assert exc.value.operation == "fetch_atom_rate"
