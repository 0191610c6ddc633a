"""
Batch Session
=============

Session-scoped owner of the BatchState and the latest AnalysisResult.

The presentation layer issues every command through a BatchSession:
    add_files  - ingest candidates (progress streamed via a ProgressChannel)
    remove     - drop an image
    select     - change the selection
    clear      - empty the batch
    set_analysis / view - attach analysis results and build the view model

Concurrency:
    All mutators hold one asyncio.Lock, so two mutations of the same state
    never interleave. A submission holds the lock until its last decode
    finishes; readers only ever see complete states.

Nothing is persisted. The session and its batch live as long as the object.
"""

import asyncio
import logging
from typing import Optional, Sequence

from visionchat.aggregate import AggregationEngine
from visionchat.batch import BatchState
from visionchat.config import Settings, settings as default_settings
from visionchat.ingest import IngestionPipeline, OpenCVImageDecoder, ProgressChannel, SubmitResult
from visionchat.ingest.decoder import ImageDecoder
from visionchat.models.analysis import AnalysisResult
from visionchat.models.image import FileInput
from visionchat.models.view import AggregateViewModel


logger = logging.getLogger(__name__)


class BatchSession:
    """
    Single-writer holder of one user's batch.

    Attributes:
        batch: Current batch (always a complete state)
        analysis: Latest analysis result, if any
        pipeline: Ingestion pipeline used by add_files
        engine: Aggregation engine used by view

    Example:
        session = BatchSession()
        result = await session.add_files(candidates)
        for failure in result.failures:
            print(f"Could not read {failure.name}")
        model = session.view()
    """

    def __init__(
        self,
        config: Optional[Settings] = None,
        decoder: Optional[ImageDecoder] = None,
    ) -> None:
        """
        Initialize session.

        Args:
            config: Settings to use. Defaults to the global settings.
            decoder: Decode backend. Defaults to OpenCVImageDecoder.
        """
        self.config = config or default_settings

        self.pipeline = IngestionPipeline(
            decoder=decoder or OpenCVImageDecoder(read_flags=self.config.decode.read_flags),
            accepted_type_prefix=self.config.batch.accepted_type_prefix,
        )
        self.engine = AggregationEngine(
            placeholder_description=self.config.aggregation.placeholder_description,
            default_processing_time=self.config.aggregation.default_processing_time,
            detail_detection_limit=self.config.aggregation.detail_detection_limit,
            oversize_warning_mb=self.config.batch.oversize_warning_mb,
        )

        self._batch = BatchState(max_images=self.config.batch.max_images)
        self._analysis: Optional[AnalysisResult] = None
        self._lock = asyncio.Lock()

        logger.info(f"BatchSession initialized: max_images={self.config.batch.max_images}")

    @property
    def batch(self) -> BatchState:
        return self._batch

    @property
    def analysis(self) -> Optional[AnalysisResult]:
        return self._analysis

    @property
    def busy(self) -> bool:
        """Whether a mutation (usually a submission) is in progress."""
        return self._lock.locked()

    # -------------------------------------------------------------------------
    # Commands
    # -------------------------------------------------------------------------

    async def add_files(
        self,
        candidates: Sequence[FileInput],
        progress: Optional[ProgressChannel] = None,
    ) -> SubmitResult:
        """
        Ingest candidate files into the batch.

        Args:
            candidates: Files in submission order
            progress: Optional channel for ProgressEvents; closed when the
                submission finishes

        Returns:
            SubmitResult with the new batch, drop count and decode failures
        """
        try:
            async with self._lock:
                result = await self.pipeline.submit(candidates, self._batch, progress=progress)
                self._batch = result.batch
        finally:
            if progress is not None:
                progress.close()
        return result

    async def remove(self, image_id: str) -> BatchState:
        async with self._lock:
            self._batch = self.pipeline.remove(image_id, self._batch)
            return self._batch

    async def select(self, image_id: str) -> BatchState:
        """
        Select an image by id.

        Raises:
            UnknownImageError: If the id is not in the batch (batch unchanged)
        """
        async with self._lock:
            self._batch = self.pipeline.select(image_id, self._batch)
            return self._batch

    async def clear(self) -> BatchState:
        async with self._lock:
            self._batch = self.pipeline.clear(self._batch)
            return self._batch

    def set_analysis(self, analysis: Optional[AnalysisResult]) -> None:
        """Attach (or drop, with None) the latest analysis result."""
        self._analysis = analysis
        if analysis is not None:
            logger.info(
                f"Analysis attached: images={len(analysis.images)}, "
                f"labels={len(analysis.summary.unique_labels)}"
            )

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def view(self) -> AggregateViewModel:
        """Aggregate view model for the current batch and analysis."""
        return self.engine.aggregate(self._batch, self._analysis)
