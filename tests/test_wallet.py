"""
Tests for mnemonic generation and wallet derivation.
"""
import pytest

from fundraiser.wallet import (
    P2PKH_VERSION, WalletError, base58check_decode, base58check_encode,
    derive_wallet, generate_mnemonic, hash160, public_key,
)

from conftest import TEST_MNEMONIC


class TestDeriveWallet:

    def test_derivation_is_deterministic(self):
        first = derive_wallet(TEST_MNEMONIC)
        second = derive_wallet(TEST_MNEMONIC)
        assert first.addresses == second.addresses
        assert first.private_keys == second.private_keys

    def test_known_ethereum_address(self, test_wallet):
        # m/44'/60'/0'/0/0 of the BIP-39 "abandon ... about" vector
        assert test_wallet.ethereum == "0x9858EfFD232B4033E47d90003D41EC34EcaEda94"

    def test_bitcoin_address_is_p2pkh_of_bitcoin_key(self, test_wallet):
        version, payload = base58check_decode(test_wallet.bitcoin)
        assert version == P2PKH_VERSION
        assert payload == hash160(public_key(test_wallet.private_keys["bitcoin"]))
        assert test_wallet.bitcoin.startswith("1")

    def test_cosmos_address_is_20_byte_hex(self, test_wallet):
        assert len(bytes.fromhex(test_wallet.cosmos)) == 20
        assert test_wallet.cosmos == test_wallet.cosmos.lower()

    def test_each_rail_has_its_own_key(self, test_wallet):
        keys = test_wallet.private_keys
        assert len({keys["cosmos"], keys["bitcoin"], keys["ethereum"]}) == 3

    def test_whitespace_is_normalized(self, test_wallet):
        messy = "  " + TEST_MNEMONIC.replace(" ", "   ") + "\n"
        assert derive_wallet(messy).addresses == test_wallet.addresses

    @pytest.mark.parametrize("phrase", [
        "abandon " * 12,
        "this is not a wallet phrase at all",
        "",
    ])
    def test_invalid_phrase_raises(self, phrase):
        with pytest.raises(WalletError):
            derive_wallet(phrase)

    def test_private_keys_not_in_repr(self, test_wallet):
        text = repr(test_wallet)
        assert test_wallet.private_keys["bitcoin"].hex() not in text
        assert "private_keys" not in text

    def test_wallet_maps_are_read_only(self, test_wallet):
        with pytest.raises(TypeError):
            test_wallet.addresses["cosmos"] = "00" * 20
        with pytest.raises(TypeError):
            test_wallet.private_keys["bitcoin"] = b"\x01" * 32
        assert test_wallet.cosmos != "00" * 20


class TestGenerateMnemonic:

    def test_generates_twelve_valid_words(self):
        phrase = generate_mnemonic()
        assert len(phrase.split()) == 12
        derive_wallet(phrase)

    def test_phrases_differ(self):
        assert generate_mnemonic() != generate_mnemonic()


class TestBase58Check:

    def test_leading_zero_version_encodes_as_one(self):
        assert base58check_encode(0x00, b"\x00" * 20).startswith("11")

    def test_bad_checksum_rejected(self, test_wallet):
        address = test_wallet.bitcoin
        tampered = address[:-1] + ("2" if address[-1] != "2" else "3")
        with pytest.raises(ValueError):
            base58check_decode(tampered)

    def test_invalid_character_rejected(self):
        with pytest.raises(ValueError):
            base58check_decode("1BoatSLRHtKNngkdXEeobR76b53LETtpy0")
