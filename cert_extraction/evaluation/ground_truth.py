"""
Ground Truth Loader Module.

This module handles loading and managing hand-labelled certificate
fields used to evaluate extraction results and to calibrate the
confidence weights.

Supported Formats:
    - JSON files (a list of records, ``{"records": [...]}``, or a dict
      keyed by source file)
    - CSV files (one row per certificate, header row with field names)

Author: ML Engineering Team
"""

import csv
import json
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Union

from cert_extraction.extraction.extraction_result import FIELD_NAMES, REQUIRED_FIELDS
from cert_extraction.utils.exceptions import ConfigurationError, InputNotFoundError
from cert_extraction.utils.logger import get_logger

# Initialize module logger
logger = get_logger(__name__)


class GroundTruthLoader:
    """
    Loads labelled certificate fields from JSON or CSV.

    Records are keyed by ``source_file`` (``filename`` is accepted as an
    alias). Blank cells are read as missing values.

    Attributes:
        data: Loaded ground truth records
        file_path: Path to ground truth file

    Example:
        >>> loader = GroundTruthLoader("ground_truth.json")
        >>> record = loader.get_by_filename("cert_001.txt")
        >>> record['recipient']
        'John Smith'
    """

    SUPPORTED_FORMATS = ['.json', '.csv']

    def __init__(self, file_path: Optional[Union[str, Path]] = None) -> None:
        """
        Initialize the ground truth loader.

        Args:
            file_path: Path to ground truth file. If None, creates empty loader.
        """
        self.file_path = Path(file_path) if file_path else None
        self.data: List[Dict[str, Any]] = []
        self._file_index: Dict[str, int] = {}

        if self.file_path:
            self.load(self.file_path)

    def load(self, file_path: Union[str, Path]) -> List[Dict[str, Any]]:
        """
        Load ground truth from file.

        Args:
            file_path: Path to ground truth file.

        Returns:
            List of ground truth records.

        Raises:
            InputNotFoundError: If file doesn't exist.
            ConfigurationError: If the format is not supported or the
                                content is not a list of records.
        """
        path = Path(file_path)

        if not path.exists():
            raise InputNotFoundError(str(path))

        extension = path.suffix.lower()

        if extension == '.json':
            records = self._load_json(path)
        elif extension == '.csv':
            records = self._load_csv(path)
        else:
            raise ConfigurationError(
                f"Unsupported ground truth format: {extension}",
                {"supported_formats": self.SUPPORTED_FORMATS}
            )

        self.data = [self._clean_record(r) for r in records]
        self._build_index()

        logger.info(f"Loaded {len(self.data)} ground truth records from {path.name}")
        return self.data

    def _load_json(self, path: Path) -> List[Dict[str, Any]]:
        """Load ground truth from JSON file."""
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)

        if isinstance(data, dict):
            if 'records' in data:
                data = data['records']
            else:
                # Keyed by source file
                data = [{**v, 'source_file': k} for k, v in data.items()]

        if not isinstance(data, list) or not all(isinstance(r, dict) for r in data):
            raise ConfigurationError(
                "Ground truth JSON must hold a list of records",
                {"path": str(path)}
            )
        return data

    def _load_csv(self, path: Path) -> List[Dict[str, Any]]:
        """Load ground truth from CSV file."""
        with open(path, 'r', encoding='utf-8', newline='') as f:
            return [dict(row) for row in csv.DictReader(f)]

    @staticmethod
    def _clean_record(record: Dict[str, Any]) -> Dict[str, Any]:
        cleaned = {}
        for key, value in record.items():
            if isinstance(value, str):
                value = value.strip() or None
            cleaned[key] = value
        if not cleaned.get('source_file') and cleaned.get('filename'):
            cleaned['source_file'] = cleaned['filename']
        return cleaned

    def _build_index(self) -> None:
        """Build an index for faster lookups by filename."""
        self._file_index = {}

        for idx, record in enumerate(self.data):
            filename = record.get('source_file')
            if filename:
                self._file_index[str(filename)] = idx
                self._file_index[Path(str(filename)).name] = idx

    def get_all(self) -> List[Dict[str, Any]]:
        """Get all ground truth records."""
        return self.data

    def get_by_filename(self, filename: Optional[str]) -> Optional[Dict[str, Any]]:
        """
        Get ground truth record by source filename.

        Args:
            filename: Source file name (with or without path).

        Returns:
            Ground truth record or None.
        """
        if not filename:
            return None

        if filename in self._file_index:
            return self.data[self._file_index[filename]]

        normalized = Path(filename).name
        if normalized in self._file_index:
            return self.data[self._file_index[normalized]]

        return None

    def validate(self) -> Dict[str, Any]:
        """
        Validate the loaded ground truth data.

        A record is complete when every required certificate field
        (title, institution, recipient, date_issued) is labelled.

        Returns:
            Dictionary with validation results.
        """
        results = {
            'total_records': len(self.data),
            'valid_records': 0,
            'invalid_records': 0,
            'missing_fields': {},
            'unknown_fields': sorted({
                key for record in self.data for key in record
                if key not in FIELD_NAMES and key not in ('source_file', 'filename')
            }),
        }

        for record in self.data:
            missing = [f for f in REQUIRED_FIELDS if not record.get(f)]
            for field in missing:
                results['missing_fields'][field] = results['missing_fields'].get(field, 0) + 1

            if missing:
                results['invalid_records'] += 1
            else:
                results['valid_records'] += 1

        logger.info(
            f"Ground truth validation: {results['valid_records']}/{results['total_records']} complete"
        )

        return results

    def __len__(self) -> int:
        """Return number of ground truth records."""
        return len(self.data)

    def __iter__(self) -> Iterator[Dict[str, Any]]:
        return iter(self.data)

    def __getitem__(self, index: int) -> Dict[str, Any]:
        return self.data[index]
