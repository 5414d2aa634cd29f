"""
CSV file persistence layer for RBAC Service.

File layout, one rule per line, first column naming the relation::

    p, owner, teamX, repo1, write, allow
    g, alice, owner, teamX

Blank lines and ``#`` comments are skipped on read and not written back.
"""

import csv
import os
import tempfile
from typing import List, Tuple

from shared.logging import get_logger
from shared.errors import StoreError

PolicyRow = Tuple[str, ...]


class CSVPolicyAdapter:
    """Reads and writes policy rows from a CSV file."""

    def __init__(self, path: str):
        self.path = path
        self.logger = get_logger("rbac.persistence.csv")

    def load_rows(self) -> List[PolicyRow]:
        """Load every policy row in file order."""
        try:
            with open(self.path, "r", encoding="utf-8", newline="") as handle:
                return self._parse(handle)
        except FileNotFoundError as e:
            self.logger.error("Policy file not found", path=self.path)
            raise StoreError("Policy file not found", {"path": self.path}) from e
        except (OSError, UnicodeDecodeError, csv.Error) as e:
            self.logger.error("Error reading policy file", path=self.path, error=str(e))
            raise StoreError("Failed to read policy file", {"path": self.path, "error": str(e)}) from e

    def save_rows(self, rows: List[PolicyRow]) -> None:
        """Replace the file contents with ``rows``.

        The new contents are written to a sibling temp file and moved into
        place, so readers see either the old or the new file.
        """
        directory = os.path.dirname(os.path.abspath(self.path))
        tmp_path = None
        try:
            fd, tmp_path = tempfile.mkstemp(prefix=".policy-", suffix=".csv", dir=directory)
            with os.fdopen(fd, "w", encoding="utf-8", newline="") as handle:
                writer = csv.writer(handle, lineterminator="\n")
                for row in rows:
                    writer.writerow(row)
            os.replace(tmp_path, self.path)
        except OSError as e:
            self.logger.error("Error writing policy file", path=self.path, error=str(e))
            if tmp_path is not None and os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise StoreError("Failed to write policy file", {"path": self.path, "error": str(e)}) from e

        self.logger.debug("Policy file saved", path=self.path, rows=len(rows))

    def is_readable(self) -> bool:
        """Check the policy file can be opened."""
        return os.path.isfile(self.path) and os.access(self.path, os.R_OK)

    def _parse(self, handle) -> List[PolicyRow]:
        rows: List[PolicyRow] = []
        reader = csv.reader(handle, skipinitialspace=True)
        for line in reader:
            if not line or not "".join(line).strip():
                continue
            if line[0].lstrip().startswith("#"):
                continue
            rows.append(tuple(field.strip() for field in line))
        return rows
