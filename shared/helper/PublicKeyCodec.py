"""NIP-19 bech32 encoding of Nostr public keys (npub)."""

import re

from bech32 import bech32_decode, bech32_encode, convertbits

from shared.errors.exceptions import PublicKeyDecodeError

NPUB_PREFIX = "npub"
_HEX_KEY = re.compile(r"^[0-9a-f]{64}$")


class PublicKeyCodec:
    """Converts between hex public keys and their npub form."""

    @staticmethod
    def is_npub(value: str) -> bool:
        return value.startswith(NPUB_PREFIX)

    @staticmethod
    def decode_npub(value: str) -> str:
        """Decode an npub string to a 64 character hex key.

        Args:
            value (str): The bech32 encoded key, e.g. "npub1...".

        Returns:
            str: The lowercase hex public key.

        Raises:
            PublicKeyDecodeError: If the checksum, prefix or payload length is invalid.
        """
        hrp, data = bech32_decode(value)
        if hrp is None or data is None:
            raise PublicKeyDecodeError(value, "invalid bech32 string")
        if hrp != NPUB_PREFIX:
            raise PublicKeyDecodeError(value, f"unexpected prefix '{hrp}'")
        raw = convertbits(data, 5, 8, False)
        if raw is None or len(raw) != 32:
            raise PublicKeyDecodeError(value, "payload is not a 32 byte key")
        return bytes(raw).hex()

    @staticmethod
    def encode_npub(hex_key: str) -> str:
        """Encode a hex public key as npub.

        Args:
            hex_key (str): 64 character hex public key.

        Returns:
            str: The bech32 encoded key.

        Raises:
            ValueError: If hex_key is not a 32 byte hex string.
        """
        hex_key = hex_key.lower()
        if not _HEX_KEY.match(hex_key):
            raise ValueError(f"Not a 32 byte hex public key: '{hex_key}'")
        data = convertbits(bytes.fromhex(hex_key), 8, 5, True)
        return bech32_encode(NPUB_PREFIX, data)
