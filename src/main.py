import csv
import sys
import logging

from config import EngineConfig
from csv_codec import write_snapshot
from payments_engine import PaymentsEngine

logger = logging.getLogger(__name__)


def main(argv=None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    config = EngineConfig.from_env()
    logging.basicConfig(
        level=config.log_level,
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )

    if len(argv) != 1:
        print("Usage: python main.py <transactions.csv>", file=sys.stderr)
        return 1

    filepath = argv[0]
    engine = PaymentsEngine()
    try:
        snapshot = engine.process_file(filepath)
    except (OSError, UnicodeDecodeError, csv.Error) as e:
        logger.error(f"Cannot read {filepath}: {e}")
        return 1

    write_snapshot(snapshot, sys.stdout)
    return 0


if __name__ == "__main__":
    sys.exit(main())
