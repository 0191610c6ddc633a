"""
Ingestion Pipeline
==================

Turns candidate files into admitted ImageDescriptors without exceeding the
batch capacity, reporting progress as each candidate is decoded.

Submission Steps:
    1. Drop candidates whose declared content type is not an image
    2. Keep at most remaining_slots image candidates, in order
    3. Decode every kept candidate concurrently (one task each)
    4. Publish a ProgressEvent as each decode completes
    5. After ALL decodes finish, append the successful descriptors in
       original candidate order and return the new batch

Design Rules:
    - The batch is never touched until every decode has finished
    - Completion order never affects display order
    - A failed decode drops only that candidate
    - Excess candidates are dropped silently (reported as a count)
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple, Union

from visionchat.batch import BatchState
from visionchat.ingest.decoder import ImageDecodeError, ImageDecoder, OpenCVImageDecoder
from visionchat.ingest.progress import ProgressChannel
from visionchat.models.events import DecodeFailure, ProgressEvent
from visionchat.models.image import FileInput, ImageDescriptor


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SubmitResult:
    """
    Terminal value of a submission.

    Attributes:
        batch: Batch after the newly admitted descriptors were appended
        accepted: Candidates that entered decoding (after filtering and capacity)
        dropped: Image candidates discarded for lack of capacity
        progress: Progress events in emission order
        failures: Candidates whose decode failed
    """

    batch: BatchState
    accepted: int = 0
    dropped: int = 0
    progress: Tuple[ProgressEvent, ...] = field(default_factory=tuple)
    failures: Tuple[DecodeFailure, ...] = field(default_factory=tuple)

    @property
    def admitted(self) -> int:
        return self.accepted - len(self.failures)


_Outcome = Tuple[int, Union[ImageDescriptor, DecodeFailure]]


class IngestionPipeline:
    """
    Validates, decodes and admits candidate files into a batch.

    Attributes:
        decoder: Decode capability used for width/height
        accepted_type_prefix: Content type prefix that marks an image

    Example:
        pipeline = IngestionPipeline()
        result = await pipeline.submit(candidates, BatchState())
        batch = result.batch
    """

    def __init__(
        self,
        decoder: Optional[ImageDecoder] = None,
        accepted_type_prefix: str = "image/",
    ) -> None:
        """
        Initialize ingestion pipeline.

        Args:
            decoder: Decode backend. Defaults to OpenCVImageDecoder.
            accepted_type_prefix: Declared type prefix a candidate must carry
        """
        self.decoder: ImageDecoder = decoder or OpenCVImageDecoder()
        self.accepted_type_prefix = accepted_type_prefix.lower()

    # -------------------------------------------------------------------------
    # Submission
    # -------------------------------------------------------------------------

    def plan(self, candidates: Sequence[FileInput], batch: BatchState) -> Tuple[List[FileInput], int]:
        """
        Select the candidates a submission will decode.

        Returns:
            (candidates to decode in original order, image candidates dropped
            for lack of capacity)
        """
        images = [c for c in candidates if c.is_image(self.accepted_type_prefix)]
        slots = max(0, batch.remaining_slots)
        return images[:slots], max(0, len(images) - slots)

    async def submit(
        self,
        candidates: Sequence[FileInput],
        batch: BatchState,
        progress: Optional[ProgressChannel] = None,
    ) -> SubmitResult:
        """
        Decode and admit candidates into the batch.

        Args:
            candidates: Files in submission order
            batch: Batch to admit into
            progress: Optional channel receiving ProgressEvents as decodes
                complete. The channel is not closed by the pipeline.

        Returns:
            SubmitResult carrying the updated batch
        """
        to_process, dropped = self.plan(candidates, batch)

        if dropped:
            logger.debug(f"Capacity reached, dropped {dropped} image candidate(s)")

        if not to_process:
            return SubmitResult(batch=batch, dropped=dropped)

        total = len(to_process)
        tasks = [
            asyncio.create_task(self._decode_one(index, candidate))
            for index, candidate in enumerate(to_process)
        ]

        events: List[ProgressEvent] = []
        outcomes: List[_Outcome] = []
        try:
            for next_done in asyncio.as_completed(tasks):
                outcomes.append(await next_done)
                event = ProgressEvent(completed=len(outcomes), total=total)
                events.append(event)
                if progress is not None:
                    progress.put(event)
        finally:
            # Every decode of this submission settles before submit returns
            await asyncio.gather(*tasks, return_exceptions=True)

        # Display order follows submission order, not completion order
        outcomes.sort(key=lambda outcome: outcome[0])
        admitted = [item for _, item in outcomes if isinstance(item, ImageDescriptor)]
        failures = tuple(item for _, item in outcomes if isinstance(item, DecodeFailure))

        updated = batch.append(admitted)

        logger.info(
            f"Submission complete: admitted={len(admitted)}/{total}, "
            f"failed={len(failures)}, dropped={dropped}, batch_size={len(updated)}"
        )

        return SubmitResult(
            batch=updated,
            accepted=total,
            dropped=dropped,
            progress=tuple(events),
            failures=failures,
        )

    async def _decode_one(self, index: int, candidate: FileInput) -> _Outcome:
        """Decode one candidate, converting any decoder error into a failure record."""
        try:
            dims = await self.decoder.decode(candidate.content, candidate.name)
        except ImageDecodeError as e:
            logger.warning(f"Decode failed for {candidate.name}: {e}")
            return index, DecodeFailure(name=candidate.name, index=index, reason=str(e))
        except Exception as e:
            logger.error(f"Unexpected decoder error for {candidate.name}: {type(e).__name__}: {e}")
            return index, DecodeFailure(
                name=candidate.name,
                index=index,
                reason=f"{type(e).__name__}: {e}",
            )

        descriptor = ImageDescriptor.admit(candidate).with_dimensions(dims.width, dims.height)
        return index, descriptor

    # -------------------------------------------------------------------------
    # Selection commands
    # -------------------------------------------------------------------------

    def remove(self, image_id: str, batch: BatchState) -> BatchState:
        """Remove an image; selection falls back to the first remaining one."""
        return batch.remove(image_id)

    def select(self, image_id: str, batch: BatchState) -> BatchState:
        """
        Select an image.

        Raises:
            UnknownImageError: If the id is not in the batch
        """
        return batch.select(image_id)

    def clear(self, batch: BatchState) -> BatchState:
        """Empty the batch and drop the selection."""
        return batch.clear()
