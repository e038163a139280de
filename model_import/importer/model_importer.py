"""Top-level import driver.

ModelImporter turns one source file into one asset, or into several when
the options split the source. Split siblings come back from the first
import stage as ExtractionJobs. They are drained from a queue, each one
imported and saved in full, before the primary asset finishes.
"""

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import List, Optional

from ..asset_format import AssetStorage
from .asset_context import CreateAssetContext, CreateAssetResult, ImportDiagnostics
from .import_model import prepare_import, finish_import

_log = logging.getLogger("model_import.importer")


@dataclass
class SiblingResult:
    """Outcome of one split extraction job."""
    output_path: str
    label: str
    result: CreateAssetResult
    diagnostics: ImportDiagnostics


@dataclass
class ImportReport:
    """Outcome of ModelImporter.import_asset().

    Attributes:
        output_path: primary asset path
        result: CreateAssetResult of the primary asset
        diagnostics: ImportDiagnostics of the primary asset
        siblings: SiblingResult per split job, in job order
    """
    output_path: str
    result: CreateAssetResult
    diagnostics: ImportDiagnostics
    siblings: List[SiblingResult] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.result == CreateAssetResult.OK

    @property
    def failed_siblings(self) -> List[SiblingResult]:
        return [s for s in self.siblings if s.result != CreateAssetResult.OK]


class ModelImporter:
    """Imports source files into assets through a scene parser.

    A sibling that fails only loses its own asset; the primary and the
    remaining siblings still import.

    Args:
        parser: callable (source_path, options, output_folder) ->
            (ModelData or None, error_message)
        storage: AssetStorage for restore lookups and saving
    """

    def __init__(self, parser, storage: Optional[AssetStorage] = None):
        self.parser = parser
        self.storage = storage or AssetStorage()

    def import_asset(self, input_path, output_path, options=None) -> ImportReport:
        """Import `input_path` into `output_path` (plus any split siblings).

        Args:
            input_path: source scene file
            output_path: asset file to create
            options: ImportOptions, or None to restore the previous
                import's options (or use defaults)

        Returns:
            ImportReport
        """
        context = CreateAssetContext(input_path, output_path, options, self.storage)
        result, prepared = prepare_import(context, self.parser)
        report = ImportReport(output_path, result, context.diagnostics)
        if result != CreateAssetResult.OK:
            return report

        queue = deque(prepared.jobs)
        while queue:
            job = queue.popleft()
            report.siblings.append(self._run_job(job))

        report.result = self._finish(context, prepared)
        if report.failed_siblings:
            _log.warning("%d of %d split object(s) of '%s' failed to import",
                         len(report.failed_siblings), len(report.siblings), input_path)
        return report

    def _run_job(self, job) -> SiblingResult:
        context = CreateAssetContext(job.input_path, job.output_path, job.options, self.storage)
        result, prepared = prepare_import(context, self.parser)
        if result == CreateAssetResult.OK:
            if prepared.jobs:
                raise RuntimeError(
                    f"Split object '{job.label}' tried to split again "
                    f"({len(prepared.jobs)} job(s))")
            result = self._finish(context, prepared)
        if result != CreateAssetResult.OK:
            _log.warning("Cannot import split object '%s': %s", job.label, result.value)
        return SiblingResult(job.output_path, job.label, result, context.diagnostics)

    def _finish(self, context, prepared) -> CreateAssetResult:
        result = finish_import(context, prepared)
        if result != CreateAssetResult.OK:
            return result
        try:
            self.storage.save(context.writer, context.target_asset_path)
        except OSError as e:
            _log.error("Cannot save asset '%s'. %s", context.target_asset_path, e)
            return CreateAssetResult.ERROR
        return CreateAssetResult.OK
