import logging
from pathlib import Path
from typing import Callable, Optional

from tqdm import tqdm

from .exceptions import (DateParseError, FileHashError, FileOperationError,
                         MetadataExtractionError)
from .metadata.extract import MetadataProvider, build_provider
from .models import Category, ImportConfig, PlacementOutcome, PlacementResult
from .organization.mover import FileMover
from .organization.naming import classify
from .reporting import RunStatistics
from .scanning.dispatch import BoundedDispatcher
from .scanning.filesystem import DirectoryWalker, verify_directory
from .scanning.hasher import FileHasher


class MediaImporter:
    def __init__(self,
                 cfg: ImportConfig,
                 provider: Optional[MetadataProvider] = None,
                 hasher: Optional[Callable[[Path], str]] = None):
        self.cfg = cfg
        self.provider = provider or build_provider(cfg.backend, cfg.exiftool_fallback, cfg.metadata_timeout)
        self.hasher = hasher or FileHasher()
        self.mover = FileMover(cfg)
        self.stats = RunStatistics()
        self._progress = None

    def run(self) -> RunStatistics:
        """
        Imports everything below src_root into dest_root.
        1. Verify roots (the only errors allowed to abort a run)
        2. Walk & dispatch (bounded workers)
        3. Per file: Metadata -> Classify -> Place -> Record
        4. Join & report
        """
        src_root = verify_directory(self.cfg.src_root, "Source")
        dest_root = verify_directory(self.cfg.dest_root, "Destination")

        logging.info(f"Importing {src_root} -> {dest_root} "
                     f"(Move={self.cfg.move}, DryRun={self.cfg.dry_run}, Workers={self.cfg.max_procs})")

        walker = DirectoryWalker()
        with tqdm(desc="Importing", unit="file", disable=None) as progress, \
                BoundedDispatcher(self.cfg.max_procs) as dispatcher:
            self._progress = progress
            try:
                submitted = walker.walk(src_root, dispatcher, self.process_file)
            except KeyboardInterrupt:
                dispatcher.cancel()
                logging.warning(f"Interrupted; waiting for {dispatcher.in_flight} running file(s).")
                dispatcher.join()
                raise
            dispatcher.join()
        self._progress = None

        logging.info(f"Walk complete. Processed {submitted} files.")
        self.stats.log_summary()
        return self.stats

    def process_file(self, path: Path) -> PlacementResult:
        """Runs the whole pipeline for one file. Never raises for per-file problems."""
        try:
            result = self._import(path)
        except Exception as e:
            # Anything unforeseen still ends as one outcome for this file
            logging.exception(f"Unexpected error importing {path}")
            result = PlacementResult(PlacementOutcome.FAILED, path, error=str(e))
        self.stats.record(result)
        if self._progress is not None:
            self._progress.update(1)
        return result

    def _import(self, path: Path) -> PlacementResult:
        try:
            tags = self.provider.extract(path)
        except MetadataExtractionError as e:
            logging.debug(f"No metadata for {path}: {e}")
            return PlacementResult(PlacementOutcome.NO_METADATA, path, error=str(e))

        try:
            classification = classify(tags, path, self.cfg.dest_root, self.hasher)
        except DateParseError as e:
            logging.warning(f"Unusable date in {path}: {e}")
            return PlacementResult(PlacementOutcome.NO_METADATA, path, error=str(e))
        except FileHashError as e:
            logging.error(f"Failed to hash {path}: {e}")
            return PlacementResult(PlacementOutcome.FAILED, path, error=str(e))

        if classification.category is Category.UNCLASSIFIABLE:
            logging.debug(f"No date or audio tags in {path}")
            return PlacementResult(PlacementOutcome.NO_METADATA, path)

        try:
            return self.mover.place(path, classification.destination)
        except FileOperationError as e:
            logging.error(str(e))
            return PlacementResult(PlacementOutcome.FAILED, path, classification.destination, error=str(e))
