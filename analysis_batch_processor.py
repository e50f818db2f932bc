"""
Cash-flow Batch Processor for analysing many Plaid exports at once.
Handles JSON files and ZIP archives with comprehensive error handling.
"""

import json
import logging
import zipfile
import io
import os
from typing import Dict, List, Optional, Tuple, Callable
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
import traceback

import pandas as pd

from cashflow_engine.analysis.aggregator import AnalysisSnapshot, FlowAggregator
from cashflow_engine.classification.engine import ClassificationResult, TransactionClassifier
from cashflow_engine.income.paycheck_detector import DetectionResult, PaycheckDetector
from cashflow_engine.models.account import Account
from cashflow_engine.models.transaction import Transaction

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


class InvalidJsonStructureError(Exception):
    """Raised when JSON structure cannot be normalized to expected format."""
    pass


@dataclass
class ProcessingError:
    """Details of a processing error."""
    file_name: str
    error_type: str
    error_message: str
    timestamp: str = field(default_factory=lambda: datetime.now().isoformat())


@dataclass
class FileAnalysisResult:
    """Analysis of one export file."""
    file_ref: str
    snapshot: AnalysisSnapshot
    summary: Dict
    paycheck: DetectionResult
    classifications: List[ClassificationResult] = field(default_factory=list)

    @property
    def needs_review_count(self) -> int:
        return sum(1 for c in self.classifications if c.needs_validation)


@dataclass
class BatchStats:
    """Statistics for batch processing."""
    total_files: int = 0
    processed: int = 0
    successful: int = 0
    failed: int = 0

    # Outcome counts
    ready_for_plan: int = 0
    paychecks_detected: int = 0
    needs_review: int = 0

    # Discretionary income statistics
    total_discretionary: float = 0.0

    # Timing
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None

    @property
    def average_discretionary(self) -> float:
        if self.successful == 0:
            return 0.0
        return self.total_discretionary / self.successful

    @property
    def processing_time(self) -> float:
        """Calculate total processing time in seconds."""
        if self.start_time and self.end_time:
            return (self.end_time - self.start_time).total_seconds()
        return 0.0

    @property
    def success_rate(self) -> float:
        """Calculate success rate as percentage."""
        if self.total_files == 0:
            return 0.0
        return (self.successful / self.total_files) * 100


@dataclass
class BatchResult:
    """Complete result of batch processing."""
    stats: BatchStats
    results: List[FileAnalysisResult]
    errors: List[ProcessingError]
    error_summary: Dict[str, int] = field(default_factory=dict)


class AnalysisBatchProcessor:
    """Batch processor for cash-flow analysis of Plaid exports."""

    def __init__(
        self,
        lookback_months: Optional[int] = None,
        now: Optional[datetime] = None,
        classifier: Optional[TransactionClassifier] = None
    ):
        """
        Initialize the batch processor.

        Args:
            lookback_months: Months of history to analyse (default from config)
            now: Reference time for every file (default: wall clock)
            classifier: Transaction classifier shared by all files
        """
        self.lookback_months = lookback_months
        self.now = now
        self.classifier = classifier or TransactionClassifier()

        logger.info(
            "Initialized batch processor: lookback=%s months, now=%s",
            lookback_months if lookback_months is not None else "default",
            now.isoformat() if now else "wall clock"
        )

    def process_batch(
        self,
        files: List[Tuple[str, bytes]],
        progress_callback: Optional[Callable[[int, int, str], None]] = None
    ) -> BatchResult:
        """
        Process a batch of export files.

        Args:
            files: List of (filename, content) tuples
            progress_callback: Optional callback(current, total, message)

        Returns:
            BatchResult with all processing results
        """
        stats = BatchStats(
            total_files=len(files),
            start_time=datetime.now()
        )

        results = []
        errors = []
        error_types = {}

        def record_error(filename: str, error_type: str, message: str) -> None:
            errors.append(ProcessingError(
                file_name=filename,
                error_type=error_type,
                error_message=message
            ))
            stats.failed += 1
            stats.processed += 1
            error_types[error_type] = error_types.get(error_type, 0) + 1

        logger.info("Starting batch processing of %d files", len(files))

        for idx, (filename, content) in enumerate(files):
            try:
                if progress_callback:
                    progress_callback(idx + 1, len(files), f"Processing: {filename}")

                logger.debug("Processing file %d/%d: %s", idx + 1, len(files), filename)

                result = self.process_single_file(filename=filename, content=content)

                results.append(result)
                stats.processed += 1
                stats.successful += 1
                stats.total_discretionary += result.snapshot.discretionary_income

                if result.snapshot.is_ready_for_plan:
                    stats.ready_for_plan += 1
                if result.paycheck.was_detected:
                    stats.paychecks_detected += 1
                if result.snapshot.metadata.needs_validation_review:
                    stats.needs_review += 1

            except json.JSONDecodeError as e:
                record_error(filename, "JSON_PARSE_ERROR", f"Invalid JSON: {str(e)}")
                logger.error("JSON parse error in %s: %s", filename, e)

            except KeyError as e:
                record_error(filename, "MISSING_DATA", f"Missing required field: {str(e)}")
                logger.error("Missing data in %s: %s", filename, e)

            except ValueError as e:
                record_error(filename, "DATA_VALIDATION_ERROR", str(e))
                logger.error("Data validation error in %s: %s", filename, e)

            except InvalidJsonStructureError as e:
                record_error(filename, "INVALID_JSON_STRUCTURE", str(e))
                logger.error("Invalid JSON structure in %s: %s", filename, e)

            except Exception as e:
                record_error(filename, "PROCESSING_ERROR", f"{type(e).__name__}: {str(e)}")
                logger.error("Processing error in %s: %s", filename, traceback.format_exc())

        stats.end_time = datetime.now()

        logger.info(
            "Batch processing complete: %d/%d successful, avg discretionary: %.2f, time: %.1fs",
            stats.successful, stats.total_files, stats.average_discretionary, stats.processing_time
        )

        return BatchResult(
            stats=stats,
            results=results,
            errors=errors,
            error_summary=error_types
        )

    def process_single_file(self, filename: str, content: bytes) -> FileAnalysisResult:
        """
        Analyse a single export file.

        Raises:
            json.JSONDecodeError: If the content is not JSON
            InvalidJsonStructureError: If the payload shape is not recognised
            KeyError, ValueError: If a record is malformed or there are no transactions
        """
        data = self.decode_content(content)
        raw_accounts, raw_transactions = self.normalize_json_structure(data, filename)

        if not raw_transactions:
            raise ValueError("No transactions found in file")

        transactions = [Transaction.from_plaid(txn) for txn in raw_transactions]
        item_id = (data.get("item") or {}).get("item_id") if isinstance(data, dict) else None
        accounts = [Account.from_plaid(acct, item_id=item_id) for acct in raw_accounts]

        aggregator = FlowAggregator(
            classifier=self.classifier,
            lookback_months=self.lookback_months,
            now=self.now
        )
        detector_config = (
            {"lookback_months": self.lookback_months} if self.lookback_months is not None else None
        )
        detector = PaycheckDetector(classifier=self.classifier, config=detector_config, now=self.now)

        snapshot = aggregator.analyze(transactions, accounts)
        return FileAnalysisResult(
            file_ref=Path(filename).stem,
            snapshot=snapshot,
            summary=aggregator.summary_dict(snapshot),
            paycheck=detector.detect(transactions),
            classifications=self.classifier.classify_all(transactions),
        )

    @staticmethod
    def decode_content(content: bytes):
        """Parse JSON bytes, falling back from UTF-8 to cp1252 and latin-1."""
        try:
            return json.loads(content.decode("utf-8"))
        except UnicodeDecodeError:
            try:
                return json.loads(content.decode("cp1252"))
            except UnicodeDecodeError:
                return json.loads(content.decode("latin-1"))

    def normalize_json_structure(
        self,
        data,
        filename: str
    ) -> Tuple[List[Dict], List[Dict]]:
        """
        Normalize different Plaid JSON structures to expected format.

        Handles:
        - Dictionary with 'accounts' and 'transactions' keys (/transactions/get)
        - Dictionary with 'added' transactions (/transactions/sync)
        - Root-level list of transactions
        - Root-level list of account objects with nested 'transactions'

        Args:
            data: Parsed JSON data (dict or list)
            filename: Filename for logging purposes

        Returns:
            Tuple of (accounts, transactions) lists

        Raises:
            InvalidJsonStructureError: If structure cannot be normalized
        """
        accounts = []
        transactions = []

        if isinstance(data, dict):
            accounts = data.get("accounts", [])
            transactions = data.get("transactions", []) or data.get("added", [])

            if not transactions and accounts:
                transactions = self._extract_transactions_from_accounts(accounts)

            if not transactions and not accounts:
                for key, value in data.items():
                    if not isinstance(value, list) or not value:
                        continue
                    if self._looks_like_transactions(value):
                        transactions = value
                        logger.info("%s: Found transactions under key '%s'", filename, key)
                        break
                    if self._looks_like_accounts(value):
                        accounts = value
                        transactions = self._extract_transactions_from_accounts(value)

            logger.debug(
                "%s: Dictionary format - found %d accounts, %d transactions",
                filename, len(accounts), len(transactions)
            )

        elif isinstance(data, list):
            if len(data) == 0:
                raise InvalidJsonStructureError(f"Empty array in JSON file: {filename}")

            if self._looks_like_transactions(data):
                transactions = data
                logger.info(
                    "%s: Root-level array detected as transactions list (%d items)",
                    filename, len(data)
                )
            elif self._looks_like_accounts(data):
                accounts = data
                transactions = self._extract_transactions_from_accounts(data)
                logger.info(
                    "%s: Root-level array detected as accounts list (%d accounts, %d transactions)",
                    filename, len(data), len(transactions)
                )
            else:
                raise InvalidJsonStructureError(
                    f"Unrecognized JSON array structure in {filename}. "
                    f"Expected transaction objects (with 'amount', 'date') or "
                    f"account objects (with 'account_id' or 'transactions')."
                )
        else:
            raise InvalidJsonStructureError(
                f"Unexpected JSON root type in {filename}: {type(data).__name__}. "
                f"Expected dict or list."
            )

        return accounts, transactions

    def _looks_like_transactions(self, items: List) -> bool:
        """A majority of the first few items carry an amount plus a date or name."""
        if not items or not isinstance(items[0], dict):
            return False

        sample_size = min(3, len(items))
        indicators = 0
        for item in items[:sample_size]:
            if not isinstance(item, dict):
                continue
            has_amount = "amount" in item
            has_date = "date" in item or "authorized_date" in item
            has_name = "name" in item or "merchant_name" in item
            if has_amount and (has_date or has_name):
                indicators += 1

        return indicators >= sample_size // 2 + 1

    def _looks_like_accounts(self, items: List) -> bool:
        """A majority of the first few items carry account fields."""
        if not items or not isinstance(items[0], dict):
            return False

        sample_size = min(3, len(items))
        indicators = 0
        for item in items[:sample_size]:
            if not isinstance(item, dict):
                continue
            has_balances = "balances" in item
            has_type = "type" in item or "subtype" in item
            if "transactions" in item or (has_balances and has_type) or (
                "account_id" in item and "amount" not in item
            ):
                indicators += 1

        return indicators >= sample_size // 2 + 1

    def _extract_transactions_from_accounts(self, accounts: List[Dict]) -> List[Dict]:
        """Flatten transactions nested under account objects."""
        all_transactions = []
        for account in accounts:
            if not isinstance(account, dict):
                continue
            nested = account.get("transactions", [])
            if not isinstance(nested, list):
                continue
            account_id = account.get("account_id") or account.get("id")
            for txn in nested:
                if isinstance(txn, dict):
                    txn_copy = txn.copy()
                    if account_id and "account_id" not in txn_copy:
                        txn_copy["account_id"] = account_id
                    all_transactions.append(txn_copy)
        return all_transactions

    def load_files(self, paths: List[str]) -> List[Tuple[str, bytes]]:
        """
        Load files from disk. ZIP archives are expanded to their JSON members.

        Args:
            paths: File paths (.json or .zip)

        Returns:
            List of (filename, content) tuples
        """
        all_files = []
        for path in paths:
            filename = os.path.basename(path)
            with open(path, "rb") as fh:
                content = fh.read()
            all_files.extend(self.expand_upload(filename, content))

        logger.info("Total files loaded: %d", len(all_files))
        return all_files

    def expand_upload(self, filename: str, content: bytes) -> List[Tuple[str, bytes]]:
        if filename.lower().endswith(".zip"):
            logger.info("Extracting ZIP archive: %s", filename)
            return self._extract_zip(content)
        if filename.lower().endswith(".json"):
            return [(filename, content)]
        logger.warning("Skipping unsupported file: %s", filename)
        return []

    def _extract_zip(self, content: bytes) -> List[Tuple[str, bytes]]:
        """Extract JSON files from a ZIP archive."""
        files = []
        with zipfile.ZipFile(io.BytesIO(content), "r") as zf:
            for name in zf.namelist():
                if name.endswith("/") or not name.lower().endswith(".json"):
                    continue
                files.append((os.path.basename(name), zf.read(name)))
        return files

    def results_to_dataframe(self, results: List[FileAnalysisResult]) -> pd.DataFrame:
        """
        Convert analysis results to a pandas DataFrame.

        Args:
            results: List of FileAnalysisResult objects

        Returns:
            pandas DataFrame, one row per file
        """
        rows = []
        for result in results:
            summary = result.summary
            schedule = result.paycheck.schedule
            rows.append({
                "File Ref": result.file_ref,
                "Monthly Income": summary["monthly_income"],
                "Monthly Expenses": summary["monthly_expenses"],
                "Debt Minimums": summary["monthly_debt_minimums"],
                "Discretionary Income": summary["discretionary_income"],
                "Liquid Cash": summary["liquid_cash"],
                "Total Debt": summary["total_debt"],
                "Investments": summary["investment_balance"],
                "Net Worth": summary["net_worth"],
                "Months Analyzed": summary["months_analyzed"],
                "Transactions": summary["transactions_analyzed"],
                "Needs Review": result.needs_review_count,
                "Overall Confidence": summary["overall_confidence"],
                "Ready For Plan": summary["is_ready_for_plan"],
                "Paycheck Frequency": schedule.frequency.value if schedule else "",
                "Paycheck Amount": schedule.estimated_amount if schedule else 0.0,
                "Paycheck Confidence": result.paycheck.confidence.value if result.paycheck.confidence else "",
            })
        return pd.DataFrame(rows)

    def errors_to_dataframe(self, errors: List[ProcessingError]) -> pd.DataFrame:
        """
        Convert processing errors to a pandas DataFrame.

        Args:
            errors: List of ProcessingError objects

        Returns:
            pandas DataFrame
        """
        rows = []
        for error in errors:
            rows.append({
                "File Name": error.file_name,
                "Error Type": error.error_type,
                "Error Message": error.error_message,
                "Timestamp": error.timestamp,
            })
        return pd.DataFrame(rows, columns=["File Name", "Error Type", "Error Message", "Timestamp"])
