import sys
import logging
from typing import List, Optional

from errors import InputSourceError
from exporter import write_snapshot
from payments_engine import PaymentsEngine


def configure_logging() -> None:
    # stdout is reserved for the account snapshot
    logging.basicConfig(
        level=logging.WARNING,
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )


def main(argv: Optional[List[str]] = None) -> int:
    args = sys.argv[1:] if argv is None else argv
    if len(args) != 1:
        print("Usage: python main.py <input.csv>", file=sys.stderr)
        return 1

    configure_logging()

    engine = PaymentsEngine()
    try:
        ledger = engine.process_file(args[0])
    except InputSourceError as e:
        print(f"The transaction engine failed: {e}", file=sys.stderr)
        return 1

    write_snapshot(ledger.snapshot(), sys.stdout)
    print(engine.stats.summary(), file=sys.stderr)
    return 0


if __name__ == "__main__":
    sys.exit(main())
