import logging
from typing import List, Optional

from errors import LedgerError, ParseError
from models import AccountSnapshot, ProcessingStats
from csv_codec import read_transactions
from state_manager import StateManager
from transaction_processor import TransactionProcessor

logger = logging.getLogger(__name__)


class PaymentsEngine:
    """
    Replays a CSV file of transactions through the ledger, strictly in file order.
    Rows that fail to parse or are rejected by the ledger are logged and
    skipped; they never stop the run.
    """

    def __init__(self, processor: Optional[TransactionProcessor] = None):
        self._processor = processor if processor is not None else TransactionProcessor(StateManager())
        self._stats = ProcessingStats()

    @property
    def stats(self) -> ProcessingStats:
        return self._stats

    def process_file(self, filepath: str) -> List[AccountSnapshot]:
        """Process CSV file and return final account states."""
        logger.info(f"Processing transactions from {filepath}")

        with open(filepath, "r", newline="", encoding="utf-8") as f:
            for line_number, transaction in read_transactions(f):
                if isinstance(transaction, ParseError):
                    self._stats.record_skipped()
                    logger.warning(f"Line {line_number}: skipping unreadable row: {transaction}")
                    continue

                try:
                    self._processor.process_transaction(transaction)
                except (LedgerError, ArithmeticError, ValueError) as e:
                    self._stats.record_failure()
                    logger.warning(f"Line {line_number}: {transaction} rejected: {e}")
                else:
                    self._stats.record_success()

        logger.info(str(self._stats))
        return self._processor.snapshot()
