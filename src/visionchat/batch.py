"""
Batch State
===========

Ordered, capacity-bounded set of admitted images plus the selection pointer.

BatchState is an immutable value. Every mutator returns a new state, so a
reader holding a reference never observes a partially applied change.

Selection Rules:
    - selected_id is either None or the id of a descriptor in the batch
    - with no explicit selection, the first descriptor is the implicit default
    - removing the selected descriptor moves selection to the new first
      descriptor, or clears it when the batch becomes empty
"""

from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

from visionchat.models.image import ImageDescriptor


DEFAULT_MAX_IMAGES = 10


class UnknownImageError(KeyError):
    """Raised when an image id does not match any descriptor in the batch."""

    def __init__(self, image_id: str) -> None:
        super().__init__(image_id)
        self.image_id = image_id

    def __str__(self) -> str:
        return f"Unknown image: {self.image_id}"


@dataclass(frozen=True)
class BatchState:
    """
    Current batch of admitted images.

    Attributes:
        descriptors: Admitted images in display order
        selected_id: Id of the selected descriptor, or None
        max_images: Capacity of the batch
    """

    descriptors: Tuple[ImageDescriptor, ...] = ()
    selected_id: Optional[str] = None
    max_images: int = DEFAULT_MAX_IMAGES

    def __post_init__(self) -> None:
        if self.max_images < 1:
            raise ValueError("max_images must be >= 1")
        if len(self.descriptors) > self.max_images:
            raise ValueError(
                f"Batch holds {len(self.descriptors)} images, "
                f"capacity is {self.max_images}"
            )
        ids = [d.id for d in self.descriptors]
        if len(set(ids)) != len(ids):
            raise ValueError("Descriptor ids must be unique within a batch")
        if self.selected_id is not None and self.selected_id not in ids:
            raise ValueError(f"Selected id {self.selected_id!r} is not in the batch")

    def __len__(self) -> int:
        return len(self.descriptors)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    @property
    def is_empty(self) -> bool:
        return not self.descriptors

    @property
    def remaining_slots(self) -> int:
        """Number of images that can still be admitted."""
        return self.max_images - len(self.descriptors)

    @property
    def is_full(self) -> bool:
        return self.remaining_slots <= 0

    @property
    def total_bytes(self) -> int:
        return sum(d.byte_size for d in self.descriptors)

    def get(self, image_id: str) -> Optional[ImageDescriptor]:
        for descriptor in self.descriptors:
            if descriptor.id == image_id:
                return descriptor
        return None

    def index_of(self, image_id: str) -> int:
        for index, descriptor in enumerate(self.descriptors):
            if descriptor.id == image_id:
                return index
        raise UnknownImageError(image_id)

    @property
    def selected(self) -> Optional[ImageDescriptor]:
        """Explicitly selected descriptor, if any."""
        if self.selected_id is None:
            return None
        return self.get(self.selected_id)

    @property
    def current(self) -> Optional[ImageDescriptor]:
        """Selected descriptor, falling back to the first one."""
        selected = self.selected
        if selected is not None:
            return selected
        return self.descriptors[0] if self.descriptors else None

    # -------------------------------------------------------------------------
    # Mutators (each returns a new BatchState)
    # -------------------------------------------------------------------------

    def append(self, new_descriptors: Iterable[ImageDescriptor]) -> "BatchState":
        """
        Append admitted descriptors in the given order.

        If the batch was empty with no selection, the first appended
        descriptor becomes selected.
        """
        added = tuple(new_descriptors)
        if not added:
            return self
        selected_id = self.selected_id
        if not self.descriptors and selected_id is None:
            selected_id = added[0].id
        return BatchState(
            descriptors=self.descriptors + added,
            selected_id=selected_id,
            max_images=self.max_images,
        )

    def remove(self, image_id: str) -> "BatchState":
        """Remove a descriptor by id. Unknown ids are a no-op."""
        if self.get(image_id) is None:
            return self
        remaining = tuple(d for d in self.descriptors if d.id != image_id)
        selected_id = self.selected_id
        if selected_id == image_id:
            selected_id = remaining[0].id if remaining else None
        return BatchState(
            descriptors=remaining,
            selected_id=selected_id,
            max_images=self.max_images,
        )

    def select(self, image_id: str) -> "BatchState":
        """
        Select a descriptor by id.

        Raises:
            UnknownImageError: If no descriptor has this id
        """
        if self.get(image_id) is None:
            raise UnknownImageError(image_id)
        return BatchState(
            descriptors=self.descriptors,
            selected_id=image_id,
            max_images=self.max_images,
        )

    def clear(self) -> "BatchState":
        """Empty the batch and drop the selection."""
        return BatchState(max_images=self.max_images)
