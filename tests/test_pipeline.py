"""
Ingestion Pipeline Tests
========================

Filtering, capacity, ordering, progress and failure isolation.
"""

import asyncio

import pytest

from conftest import ScriptedDecoder, make_candidate, make_descriptor
from visionchat.batch import BatchState
from visionchat.ingest import IngestionPipeline, ProgressChannel


def _existing(count):
    return BatchState().append([make_descriptor(f"old{i}.jpg") for i in range(count)])


class TestSubmitCapacity:
    """Filtering and capacity truncation."""

    def test_twelve_into_batch_of_two(self, scripted_decoder):
        """12 candidates into a 2-image batch: 8 accepted, 4 dropped."""
        pipeline = IngestionPipeline(decoder=scripted_decoder)
        candidates = [make_candidate(f"img{i}.png") for i in range(12)]

        result = asyncio.run(pipeline.submit(candidates, _existing(2)))

        assert result.accepted == 8
        assert result.dropped == 4
        assert len(result.batch.descriptors) == 10
        assert [d.display_name for d in result.batch.descriptors[2:]] == [
            f"img{i}.png" for i in range(8)
        ]

    def test_non_images_are_filtered(self, scripted_decoder):
        """Non-image content types are dropped silently and not counted."""
        pipeline = IngestionPipeline(decoder=scripted_decoder)
        candidates = [
            make_candidate("notes.txt", content_type="text/plain"),
            make_candidate("a.png"),
            make_candidate("doc.pdf", content_type="application/pdf"),
            make_candidate("b.JPG", content_type="IMAGE/JPEG"),
        ]

        result = asyncio.run(pipeline.submit(candidates, BatchState()))

        assert [d.display_name for d in result.batch.descriptors] == ["a.png", "b.JPG"]
        assert result.dropped == 0

    def test_empty_plan_returns_batch_unchanged(self, scripted_decoder):
        """Nothing to decode: same batch, no progress, decoder never called."""
        pipeline = IngestionPipeline(decoder=scripted_decoder)
        batch = _existing(10)
        channel = ProgressChannel()

        result = asyncio.run(pipeline.submit([make_candidate("a.png")], batch, progress=channel))

        assert result.batch is batch
        assert result.progress == ()
        assert result.dropped == 1
        assert channel.total_put == 0
        assert scripted_decoder.started == []

    def test_length_property(self, scripted_decoder):
        """len(new) == len(old) + min(images, remaining_slots)."""
        pipeline = IngestionPipeline(decoder=scripted_decoder)
        for existing, submitted in [(0, 3), (5, 5), (7, 9), (10, 1)]:
            batch = _existing(existing)
            candidates = [make_candidate(f"n{i}.png") for i in range(submitted)]
            result = asyncio.run(pipeline.submit(candidates, batch))
            expected = existing + min(submitted, 10 - existing)
            assert len(result.batch.descriptors) == expected
            assert len(result.batch.descriptors) <= 10


class TestSubmitOrdering:
    """Concurrency and ordered join."""

    def test_order_independent_of_completion(self):
        """Slowest-first candidates still land in submission order."""
        decoder = ScriptedDecoder(delays={"a.png": 0.05, "b.png": 0.03, "c.png": 0.0})
        pipeline = IngestionPipeline(decoder=decoder)
        candidates = [make_candidate(n) for n in ("a.png", "b.png", "c.png")]

        result = asyncio.run(pipeline.submit(candidates, _existing(1)))

        assert decoder.finished == ["c.png", "b.png", "a.png"]
        assert [d.display_name for d in result.batch.descriptors] == [
            "old0.jpg", "a.png", "b.png", "c.png",
        ]

    def test_decodes_run_concurrently(self):
        """All decodes of one submission are in flight together."""
        decoder = ScriptedDecoder(delays={f"{i}.png": 0.02 for i in range(4)})
        pipeline = IngestionPipeline(decoder=decoder)

        asyncio.run(pipeline.submit([make_candidate(f"{i}.png") for i in range(4)], BatchState()))

        assert decoder.max_in_flight == 4

    def test_progress_events(self):
        """completed runs 1..total with a fixed total."""
        decoder = ScriptedDecoder(delays={"a.png": 0.02})
        pipeline = IngestionPipeline(decoder=decoder)
        channel = ProgressChannel()
        candidates = [make_candidate(n) for n in ("a.png", "b.png", "c.png")]

        result = asyncio.run(pipeline.submit(candidates, BatchState(), progress=channel))

        assert [(e.completed, e.total) for e in result.progress] == [(1, 3), (2, 3), (3, 3)]
        assert channel.total_put == 3
        assert channel.last_event.percent == 100

    def test_dimensions_populated(self):
        decoder = ScriptedDecoder(dims=(800, 600))
        pipeline = IngestionPipeline(decoder=decoder)

        result = asyncio.run(pipeline.submit([make_candidate("a.png", size=4096)], BatchState()))

        descriptor = result.batch.descriptors[0]
        assert (descriptor.width, descriptor.height) == (800, 600)
        assert descriptor.byte_size == 4096

    def test_ids_are_unique(self, scripted_decoder):
        pipeline = IngestionPipeline(decoder=scripted_decoder)
        candidates = [make_candidate("same.png") for _ in range(5)]

        result = asyncio.run(pipeline.submit(candidates, BatchState()))

        ids = [d.id for d in result.batch.descriptors]
        assert len(set(ids)) == 5


class TestSubmitFailures:
    """Per-candidate decode failures."""

    def test_failure_is_isolated(self):
        """A corrupt candidate is reported; siblings are admitted in order."""
        decoder = ScriptedDecoder(failures=("bad.png",), delays={"a.png": 0.02})
        pipeline = IngestionPipeline(decoder=decoder)
        candidates = [make_candidate(n) for n in ("a.png", "bad.png", "c.png")]

        result = asyncio.run(pipeline.submit(candidates, BatchState()))

        assert [d.display_name for d in result.batch.descriptors] == ["a.png", "c.png"]
        assert [f.name for f in result.failures] == ["bad.png"]
        assert result.failures[0].index == 1
        assert result.admitted == 2
        assert len(result.progress) == 3

    def test_all_fail_leaves_batch_empty(self):
        decoder = ScriptedDecoder(failures=("a.png", "b.png"))
        pipeline = IngestionPipeline(decoder=decoder)

        result = asyncio.run(pipeline.submit(
            [make_candidate("a.png"), make_candidate("b.png")], BatchState()
        ))

        assert result.batch.is_empty
        assert result.batch.selected_id is None
        assert len(result.failures) == 2

    def test_unexpected_decoder_error_is_isolated(self):
        """A decoder raising OSError fails only its own candidate."""
        decoder = ScriptedDecoder(
            errors={"bad.png": OSError("truncated file")},
            delays={"a.png": 0.05, "c.png": 0.05},
        )
        pipeline = IngestionPipeline(decoder=decoder)
        candidates = [make_candidate(n) for n in ("a.png", "bad.png", "c.png")]

        result = asyncio.run(pipeline.submit(candidates, BatchState()))

        assert [d.display_name for d in result.batch.descriptors] == ["a.png", "c.png"]
        assert [f.name for f in result.failures] == ["bad.png"]
        assert "truncated file" in result.failures[0].reason
        assert sorted(decoder.finished) == ["a.png", "bad.png", "c.png"]
        assert decoder.in_flight == 0

    def test_closed_channel_leaves_no_decode_running(self):
        """When progress cannot be delivered, siblings still settle before submit raises."""
        async def run():
            decoder = ScriptedDecoder(delays={"b.png": 0.05, "c.png": 0.05})
            pipeline = IngestionPipeline(decoder=decoder)
            channel = ProgressChannel()
            channel.close()
            candidates = [make_candidate(n) for n in ("a.png", "b.png", "c.png")]

            with pytest.raises(RuntimeError):
                await pipeline.submit(candidates, BatchState(), progress=channel)

            leftover = [t for t in asyncio.all_tasks() if t is not asyncio.current_task()]
            return decoder, leftover

        decoder, leftover = asyncio.run(run())
        assert leftover == []
        assert sorted(decoder.finished) == ["a.png", "b.png", "c.png"]


class TestSubmitSelection:
    """Selection after submission."""

    def test_first_admitted_selected_on_empty_batch(self):
        decoder = ScriptedDecoder(failures=("a.png",))
        pipeline = IngestionPipeline(decoder=decoder)

        result = asyncio.run(pipeline.submit(
            [make_candidate("a.png"), make_candidate("b.png")], BatchState()
        ))

        assert result.batch.selected.display_name == "b.png"

    def test_selection_untouched_on_non_empty_batch(self, scripted_decoder):
        pipeline = IngestionPipeline(decoder=scripted_decoder)
        batch = _existing(2).select("id-old1.jpg")

        result = asyncio.run(pipeline.submit([make_candidate("n.png")], batch))

        assert result.batch.selected_id == "id-old1.jpg"

    def test_commands_delegate_to_batch(self, scripted_decoder):
        pipeline = IngestionPipeline(decoder=scripted_decoder)
        batch = _existing(2)

        batch = pipeline.select("id-old1.jpg", batch)
        batch = pipeline.remove("id-old1.jpg", batch)
        assert batch.selected_id == "id-old0.jpg"
        assert pipeline.clear(batch).is_empty
