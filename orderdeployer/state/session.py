"""User session state.

Field values and deposits the user has entered for one deployment.
Every mutation is validated against :py:class:`orderdeployer.deployment.config.DeploymentConfig`
before anything is written, so a rejected call leaves the session untouched.

Entries are kept in insertion order. The order is observable:
deposit calldata is generated in the same order.
"""
import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Iterable

from dataclasses_json import dataclass_json

from orderdeployer.deployment.config import DeploymentConfig
from orderdeployer.errors import BindingError, EncodingError
from orderdeployer.state.types import BindingId, HumanAmount, JSONHexAddress, TokenKey


logger = logging.getLogger(__name__)


class FieldValueNotSet(BindingError):
    """The binding is configured, but the user has not given a value."""


class ValueBelowMinimum(BindingError):
    """A deposit or a numeric field value is below the configured minimum."""


class InvalidAmount(EncodingError):
    """Amount is not a non-negative decimal number."""


@dataclass_json
@dataclass(frozen=True)
class FieldValue:
    """A value the user has set for a field binding."""

    binding: BindingId

    #: Raw string: addresses, booleans and decimals are all kept as typed
    value: str


@dataclass_json
@dataclass(frozen=True)
class DepositEntry:
    """A deposit the user intends to make."""

    #: Token key in the order document
    token: TokenKey

    #: Token address on the deployment network, lowercase
    address: JSONHexAddress

    #: Human readable decimal amount, e.g. ``"50.6"``
    amount: HumanAmount

    def get_decimal_amount(self) -> Decimal:
        return Decimal(self.amount)


#: Most significant digit above this never fits in uint256, whatever the token decimals
MAX_AMOUNT_EXPONENT = 77

#: Most significant digit below this cannot be expressed with the maximum of 255 token decimals
MIN_AMOUNT_EXPONENT = -255


def parse_human_amount(amount: str, check_range=True) -> Decimal:
    """Parse a user typed amount.

    :param check_range:
        Refuse amounts whose magnitude no token can express,
        e.g. ``1e-999999999``.

    :raise InvalidAmount:
        Not a finite non-negative decimal, or out of range
    """
    try:
        value = Decimal(str(amount).strip())
    except InvalidOperation as e:
        raise InvalidAmount(f"Not a decimal amount: {amount!r}") from e

    if not value.is_finite():
        raise InvalidAmount(f"Not a finite amount: {amount!r}")

    if value < 0:
        raise InvalidAmount(f"Negative amount: {amount!r}")

    if check_range and value != 0 and not (MIN_AMOUNT_EXPONENT <= value.adjusted() <= MAX_AMOUNT_EXPONENT):
        raise InvalidAmount(f"Amount out of range: {amount!r}")

    return value


class SessionState:
    """Mutable field values and deposits of one deployment session.

    - Owned by a single caller, not thread safe

    - Validated against the deployment config it was created with
    """

    def __init__(self, config: DeploymentConfig):
        assert isinstance(config, DeploymentConfig), f"Expected DeploymentConfig, got {type(config)}"
        self.config = config
        self.field_values: dict[BindingId, FieldValue] = {}
        self.deposits: dict[TokenKey, DepositEntry] = {}

    def __repr__(self):
        return f"<SessionState for {self.config.deployment_id}, {len(self.field_values)} fields, {len(self.deposits)} deposits>"

    def __eq__(self, other):
        if not isinstance(other, SessionState):
            return NotImplemented
        # Order matters, so compare as lists
        return (
            list(self.field_values.values()) == list(other.field_values.values())
            and list(self.deposits.values()) == list(other.deposits.values())
        )

    def set_field_value(self, binding: BindingId, value: str):
        """Set or overwrite a field value.

        Overwriting keeps the original position of the entry.

        :raise UnknownBinding:
            Not a field of this deployment
        """
        self.config.field_spec(binding)
        self.field_values[binding] = FieldValue(binding=binding, value=str(value))
        logger.debug("Field %s set to %s", binding, value)

    def set_field_values(self, values: Iterable[tuple[BindingId, str]]):
        """Set many field values at once.

        All bindings are checked before any value is written.
        """
        values = list(values)
        for binding, _ in values:
            self.config.field_spec(binding)
        for binding, value in values:
            self.set_field_value(binding, value)

    def get_field_value(self, binding: BindingId) -> str:
        """Get a field value.

        :raise UnknownBinding:
            Not a field of this deployment

        :raise FieldValueNotSet:
            The user has not set the field
        """
        self.config.field_spec(binding)
        entry = self.field_values.get(binding)
        if entry is None:
            raise FieldValueNotSet(f"Field value not set: {binding}")
        return entry.value

    def list_field_values(self) -> list[FieldValue]:
        return list(self.field_values.values())

    def set_deposit(self, token: TokenKey, amount: HumanAmount):
        """Set or overwrite a deposit amount.

        :param amount:
            Human readable decimal amount, e.g. ``"50.6"``

        :raise UnknownDepositToken:
            Not a deposit token of this deployment

        :raise InvalidAmount:
            Amount does not parse
        """
        spec = self.config.deposit_spec(token)
        parse_human_amount(amount)
        self.deposits[token] = DepositEntry(
            token=token,
            address=spec.token.address,
            amount=str(amount).strip(),
        )
        logger.debug("Deposit %s set to %s", token, amount)

    def remove_deposit(self, token: TokenKey):
        """Remove a deposit. Removing a missing deposit is not an error."""
        self.deposits.pop(token, None)

    def list_deposits(self) -> list[DepositEntry]:
        return list(self.deposits.values())

    def clear(self):
        """Forget all user input."""
        self.field_values.clear()
        self.deposits.clear()

    def check_minimums(self):
        """Check deposits and numeric field values against their configured minimums.

        Non-numeric field values, such as addresses, are not checked.

        :raise ValueBelowMinimum:
            The first offending entry
        """
        for entry in self.deposits.values():
            spec = self.config.deposit_spec(entry.token)
            if spec.min is not None and entry.get_decimal_amount() < spec.min:
                raise ValueBelowMinimum(f"Deposit {entry.token} amount {entry.amount} is below minimum {spec.min}")

        for entry in self.field_values.values():
            spec = self.config.field_spec(entry.binding)
            if spec.min is None:
                continue
            try:
                value = Decimal(entry.value)
            except InvalidOperation:
                continue
            if value.is_finite() and value < spec.min:
                raise ValueBelowMinimum(f"Field {entry.binding} value {entry.value} is below minimum {spec.min}")

    def get_bindings(self) -> dict[str, str]:
        """Binding values for composing the expression.

        Scenario bindings overridden by the user field values.
        """
        bindings = dict(self.config.scenario_bindings)
        for entry in self.field_values.values():
            bindings[entry.binding] = entry.value
        return bindings

    def restore(self, field_values: Iterable[FieldValue], deposits: Iterable[DepositEntry]):
        """Replace the whole content without validation.

        Only for :py:mod:`orderdeployer.state.codec` after the config fingerprint has been checked.
        """
        self.field_values = {f.binding: f for f in field_values}
        self.deposits = {d.token: d for d in deposits}
