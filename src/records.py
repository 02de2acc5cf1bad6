from decimal import Decimal, InvalidOperation, ROUND_DOWN
from typing import Dict, Optional, Union

from errors import MalformedRecord
from models import Mutation, Record, Transaction, TransactionType

# Four fractional digits, matching the precision of the input and output domain.
AMOUNT_PRECISION = Decimal("0.0001")

MAX_CLIENT_ID = 2**16 - 1
MAX_TRANSACTION_ID = 2**32 - 1

CSV_FIELDS = ("type", "client", "tx", "amount")


def parse_record(
    kind: Union[str, TransactionType],
    client_id: Union[str, int],
    transaction_id: Union[str, int],
    amount: Union[str, Decimal, int, None] = None,
) -> Record:
    """
    Turn raw fields into exactly one of Transaction or Mutation.

    Deposits and withdrawals must carry an amount; disputes, resolves and
    chargebacks must not (a blank amount field counts as absent).

    Raises:
        MalformedRecord: the fields do not describe a valid record.
    """
    transaction_type = _parse_type(kind)
    client = _parse_id(client_id, "client", MAX_CLIENT_ID)
    tx = _parse_id(transaction_id, "tx", MAX_TRANSACTION_ID)
    value = _parse_amount(amount, client, tx)

    if transaction_type.carries_amount:
        if value is None:
            raise MalformedRecord(f"{transaction_type.value} tx {tx} must have an amount", client, tx)
        return Transaction(transaction_type, client_id=client, transaction_id=tx, amount=value)

    if value is not None:
        raise MalformedRecord(f"{transaction_type.value} tx {tx} may not have an amount", client, tx)
    return Mutation(transaction_type, client_id=client, transaction_id=tx)


def parse_csv_row(row: Dict[Optional[str], object]) -> Record:
    """Parse a csv.DictReader row. Header names and values may carry surrounding whitespace."""
    normalized: Dict[str, Optional[str]] = {}
    for key, value in row.items():
        if key is None:
            # DictReader collects surplus columns under the None key
            if any(extra.strip() for extra in value):
                raise MalformedRecord(f"Unexpected extra fields {value} in row {row}")
            continue
        normalized[key.strip().lower()] = value.strip() if isinstance(value, str) else None

    missing = [field for field in CSV_FIELDS[:3] if not normalized.get(field)]
    if missing:
        raise MalformedRecord(f"Row {row} is missing {', '.join(missing)}")

    return parse_record(
        normalized["type"],
        normalized["client"],
        normalized["tx"],
        normalized.get("amount"),
    )


def _parse_type(kind: Union[str, TransactionType]) -> TransactionType:
    if isinstance(kind, TransactionType):
        return kind
    try:
        return TransactionType(str(kind).strip().lower())
    except ValueError:
        raise MalformedRecord(f"Unknown transaction type {kind!r}") from None


def _parse_id(raw: Union[str, int], field: str, upper: int) -> int:
    if isinstance(raw, bool):
        raise MalformedRecord(f"Invalid {field} id {raw!r}")
    try:
        value = int(raw.strip()) if isinstance(raw, str) else int(raw)
    except (TypeError, ValueError):
        raise MalformedRecord(f"Invalid {field} id {raw!r}") from None
    if not 0 <= value <= upper:
        raise MalformedRecord(f"{field} id {value} outside 0..{upper}")
    return value


def _parse_amount(raw: Union[str, Decimal, int, None], client: int, tx: int) -> Optional[Decimal]:
    if raw is None:
        return None
    if isinstance(raw, str):
        raw = raw.strip()
        if not raw:
            return None
    elif isinstance(raw, (float, bool)):
        # binary floats cannot represent four-place amounts exactly
        raise MalformedRecord(f"Amount {raw!r} for tx {tx} must be a decimal string", client, tx)

    try:
        amount = Decimal(raw)
        if not amount.is_finite():
            raise MalformedRecord(f"Amount {raw!r} for tx {tx} is not finite", client, tx)
        if amount < 0:
            raise MalformedRecord(f"Negative amount {amount} for tx {tx}", client, tx)
        # copy_abs drops the sign of "-0"
        return amount.quantize(AMOUNT_PRECISION, rounding=ROUND_DOWN).copy_abs()
    except (InvalidOperation, TypeError, ValueError):
        raise MalformedRecord(f"Invalid amount {raw!r} for tx {tx}", client, tx) from None
