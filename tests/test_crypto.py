import types

import pytest

from conftest import TEST_KEY
from matchtrust.core.crypto import (
    CipherConfig, TokenCipher, generate_secret, hash_token, KEY_LENGTH
)
from matchtrust.core.exceptions import DecryptionError, MissingEncryptionKeyError


def test_encrypt_decrypt_roundtrip(cipher):
    envelope = cipher.encrypt("+447700900123")
    assert cipher.decrypt(envelope) == "+447700900123"


def test_envelope_has_three_hex_parts(cipher):
    nonce, tag, ciphertext = cipher.encrypt("12345").split(".")
    assert len(bytes.fromhex(nonce)) == 12
    assert len(bytes.fromhex(tag)) == 16
    assert len(bytes.fromhex(ciphertext)) == 5


def test_same_plaintext_encrypts_differently(cipher):
    # fresh nonce on every call
    assert cipher.encrypt("same") != cipher.encrypt("same")


def test_tampered_ciphertext_is_rejected(cipher):
    nonce, tag, ciphertext = cipher.encrypt("+15550102000").split(".")
    flipped = format(int(ciphertext[:2], 16) ^ 0x01, "02x") + ciphertext[2:]
    with pytest.raises(DecryptionError):
        cipher.decrypt(".".join([nonce, tag, flipped]))


def test_tampered_tag_is_rejected(cipher):
    nonce, tag, ciphertext = cipher.encrypt("+15550102000").split(".")
    bad_tag = "00" * 16 if tag != "00" * 16 else "11" * 16
    with pytest.raises(DecryptionError):
        cipher.decrypt(".".join([nonce, bad_tag, ciphertext]))


def test_wrong_key_is_rejected(cipher):
    other = TokenCipher(CipherConfig(key=bytes(reversed(TEST_KEY))))
    with pytest.raises(DecryptionError):
        other.decrypt(cipher.encrypt("+15550102000"))


@pytest.mark.parametrize("envelope", ["", "not-an-envelope", "zz.zz.zz", "00.11", "00.11.22.33"])
def test_malformed_envelope_is_rejected(cipher, envelope):
    with pytest.raises(DecryptionError):
        cipher.decrypt(envelope)


def test_generate_secret_returns_plaintext_and_hash():
    token, token_hash = generate_secret()
    assert len(token) == 64
    assert token_hash == hash_token(token)
    assert len(token_hash) == 64
    assert token not in token_hash


def test_generated_secrets_are_unique():
    tokens = {generate_secret()[0] for _ in range(50)}
    assert len(tokens) == 50


def test_config_from_hex_secret():
    config = CipherConfig.from_secret("ab" * KEY_LENGTH)
    assert config.key == bytes([0xAB] * KEY_LENGTH)


def test_hex_secret_is_not_read_as_text():
    # 64 個 hex 字元取的是解碼後的 bytes，不是前 32 個字元；換格式等於換金鑰
    secret = "00112233445566778899aabbccddeeff" * 2
    hex_cipher = TokenCipher(CipherConfig.from_secret(secret))
    text_cipher = TokenCipher(CipherConfig(key=secret.encode("utf-8")[:KEY_LENGTH]))

    with pytest.raises(DecryptionError):
        hex_cipher.decrypt(text_cipher.encrypt("+44 20 7946 0958"))


def test_config_from_long_passphrase_uses_first_32_bytes():
    secret = "a-long-passphrase-that-is-more-than-thirty-two-bytes"
    config = CipherConfig.from_secret(secret)
    assert config.key == secret.encode("utf-8")[:KEY_LENGTH]


@pytest.mark.parametrize("secret", [None, "", "too-short"])
def test_missing_or_short_key_fails_at_startup(secret):
    with pytest.raises(MissingEncryptionKeyError):
        CipherConfig.from_settings(types.SimpleNamespace(ENCRYPTION_KEY=secret))


def test_config_repr_hides_key():
    assert TEST_KEY.hex() not in repr(CipherConfig(key=TEST_KEY))
    assert "***" in repr(CipherConfig(key=TEST_KEY))
