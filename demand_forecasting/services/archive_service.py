# demand_forecasting/services/archive_service.py
import logging
import time
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from demand_forecasting.config import config
from demand_forecasting.exceptions import DependencyError

logger = logging.getLogger(__name__)

DEFAULT_UPLOAD_NAME = 'sales-data.csv'


class ArchiveStore(ABC):
    """Write-only sink for raw uploads."""

    @abstractmethod
    def archive(self, filename: Optional[str], content: str) -> str:
        """Store content under a timestamp-qualified name and return that name."""
        pass


class LocalArchiveStore(ArchiveStore):
    """Archive raw uploads as files below a local directory."""

    def __init__(self, directory=None, prefix=None, clock=time.time):
        settings = config.archive_config
        self.directory = Path(directory or settings['directory'])
        self.prefix = prefix if prefix is not None else settings['prefix']
        self._clock = clock

    def build_key(self, filename: Optional[str]) -> str:
        """Timestamp-qualified object key for an upload.

        Only the base name of the client-supplied file name is kept.
        """
        base_name = Path(filename).name if filename else ''
        base_name = base_name or DEFAULT_UPLOAD_NAME
        key = f"{int(self._clock() * 1000)}-{base_name}"
        return f"{self.prefix}/{key}" if self.prefix else key

    def archive(self, filename: Optional[str], content: str) -> str:
        key = self.build_key(filename)
        target = self.directory / key

        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            # newline='' keeps the upload byte-for-byte
            with open(target, 'w', encoding='utf-8', newline='') as archive_file:
                archive_file.write(content)
        except OSError as e:
            raise DependencyError(f"Failed to archive upload {key}: {str(e)}")

        logger.info(f"Archived upload as {key}")
        return key
