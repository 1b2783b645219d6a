import logging
import sys
from typing import List, Optional, Union

from pydantic import ValidationError

from payments_ledger.config import EngineSettings
from payments_ledger.csv_io import write_accounts
from payments_ledger.engine import PaymentsEngine
from payments_ledger.errors import InputFormatError
from payments_ledger.sharded import ShardedPaymentsEngine

logger = logging.getLogger(__name__)


def create_engine(settings: EngineSettings) -> Union[PaymentsEngine, ShardedPaymentsEngine]:
    if settings.num_workers > 1:
        return ShardedPaymentsEngine(settings)
    return PaymentsEngine(settings)


def main(argv: Optional[List[str]] = None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    if len(argv) != 1:
        print("Usage: payments-ledger <input.csv>", file=sys.stderr)
        return 1

    try:
        settings = EngineSettings()
    except ValidationError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 1

    logging.basicConfig(
        level=settings.log_level,
        format=settings.log_format,
        stream=sys.stderr,
    )

    filepath = argv[0]
    engine = create_engine(settings)
    try:
        accounts = engine.process_file(filepath)
    except (OSError, InputFormatError) as e:
        logger.error(f"Cannot process {filepath}: {e}")
        return 1

    write_accounts(accounts, sys.stdout)
    return 0


if __name__ == "__main__":
    sys.exit(main())
