import csv
import sys
from decimal import Decimal
from typing import Iterable, TextIO

from models import AccountSnapshot
from records import AMOUNT_PRECISION

OUTPUT_HEADER = ("client", "available", "held", "total", "locked")


def format_amount(value: Decimal) -> str:
    """Format decimal with exactly 4 decimal places."""
    return f"{value.quantize(AMOUNT_PRECISION):f}"


def write_snapshot(snapshots: Iterable[AccountSnapshot], out: TextIO = sys.stdout) -> int:
    """Write account snapshots as CSV, ordered by client id. Returns the number of rows written."""
    writer = csv.writer(out, lineterminator="\n")
    writer.writerow(OUTPUT_HEADER)

    count = 0
    for snapshot in sorted(snapshots, key=lambda s: s.client_id):
        writer.writerow([
            snapshot.client_id,
            format_amount(snapshot.available),
            format_amount(snapshot.held),
            format_amount(snapshot.total),
            str(snapshot.locked).lower(),
        ])
        count += 1
    return count
