"""Portable session state encoding.

The session is turned to a short URL-safe string that can be shared as a link:

- One tag byte telling the record format version

- ABI encoded record: config fingerprint, field values, deposits

- Compressed with brotli

- URL-safe base64

The same session and config always produce the same string.
"""
import base64
import binascii
import logging

import brotli
from eth_abi import decode, encode
from eth_abi.exceptions import DecodingError

from orderdeployer.deployment.config import DeploymentConfig
from orderdeployer.errors import CodecError
from orderdeployer.state.session import DepositEntry, FieldValue, InvalidAmount, SessionState, parse_human_amount


logger = logging.getLogger(__name__)


#: Current record format
FORMAT_VERSION_1 = 0x01

#: ABI types of the version 1 record body
RECORD_V1_TYPES = ["bytes32", "(string,string)[]", "(string,address,string)[]"]

#: Fixed so that the output is reproducible
BROTLI_QUALITY = 11


class VersionUnsupported(CodecError):
    """The serialised state uses a format version we do not know."""


class ConfigMismatch(CodecError):
    """The serialised state was produced with another deployment config."""


class MalformedState(CodecError):
    """The serialised state cannot be decoded."""


def encode_record(state: SessionState, config: DeploymentConfig) -> bytes:
    """Encode the uncompressed version 1 record."""
    fields = [(f.binding, f.value) for f in state.list_field_values()]
    deposits = [(d.token, d.address, d.amount) for d in state.list_deposits()]
    body = encode(RECORD_V1_TYPES, [config.fingerprint(), fields, deposits])
    return bytes([FORMAT_VERSION_1]) + body


def _decode_record_v1(body: bytes, config: DeploymentConfig) -> tuple[list[FieldValue], list[DepositEntry]]:
    try:
        fingerprint, fields, deposits = decode(RECORD_V1_TYPES, body)
    except (DecodingError, ValueError, OverflowError) as e:
        raise MalformedState(f"Could not decode state record: {e}") from e

    if fingerprint != config.fingerprint():
        raise ConfigMismatch(f"Deserialized config mismatch, state is not for deployment {config.deployment_id}")

    field_values = []
    for binding, value in fields:
        if not config.has_field(binding):
            raise MalformedState(f"State refers to unknown field binding: {binding}")
        field_values.append(FieldValue(binding=binding, value=value))

    deposit_entries = []
    for token, _, amount in deposits:
        if not config.has_deposit(token):
            raise MalformedState(f"State refers to unknown deposit token: {token}")
        try:
            parse_human_amount(amount)
        except InvalidAmount as e:
            raise MalformedState(f"State has a bad amount for {token}: {amount!r}") from e
        # The token address always comes from the current config,
        # fingerprint does not cover addresses
        address = config.deposit_spec(token).token.address
        deposit_entries.append(DepositEntry(token=token, address=address, amount=amount))

    return field_values, deposit_entries


#: Record decoders by the format tag byte
DECODERS = {
    FORMAT_VERSION_1: _decode_record_v1,
}


def serialize(state: SessionState, config: DeploymentConfig) -> str:
    """Serialise the session state.

    :return:
        URL-safe base64 string
    """
    record = encode_record(state, config)
    compressed = brotli.compress(record, quality=BROTLI_QUALITY)
    encoded = base64.urlsafe_b64encode(compressed).decode("ascii")
    logger.info("Serialised session state, record %d bytes, encoded %d chars", len(record), len(encoded))
    return encoded


def deserialize(blob: str, config: DeploymentConfig) -> SessionState:
    """Restore a session state.

    Either the whole state is restored or an exception is raised.

    :param blob:
        Output of :py:func:`serialize`

    :param config:
        The deployment config the state must match

    :raise VersionUnsupported:
        Unknown record format

    :raise ConfigMismatch:
        The state was made for another deployment config

    :raise MalformedState:
        Corrupted data
    """
    try:
        compressed = base64.urlsafe_b64decode(blob.strip().encode("ascii"))
    except (binascii.Error, UnicodeEncodeError, ValueError) as e:
        raise MalformedState(f"State is not valid base64: {e}") from e

    try:
        record = brotli.decompress(compressed)
    except brotli.error as e:
        raise MalformedState(f"State could not be decompressed: {e}") from e

    if len(record) == 0:
        raise MalformedState("State record is empty")

    version = record[0]
    decoder = DECODERS.get(version)
    if decoder is None:
        raise VersionUnsupported(f"Unsupported state format version: {version}")

    field_values, deposits = decoder(record[1:], config)

    state = SessionState(config)
    state.restore(field_values, deposits)
    logger.info("Deserialised %s", state)
    return state
