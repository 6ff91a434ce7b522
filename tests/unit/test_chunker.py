import pytest

from ragloop.config import ChunkingConfig
from ragloop.errors import EmptyDocumentError
from ragloop.ingest.chunker import RecursiveOverlapChunker, reconstruct
from ragloop.types import Document


def _make_long_text() -> str:
    paragraph = (
        "Data governance requires strict access control and encryption. "
        "Every dataset has an owner who approves access requests. "
        "Audit logs are retained for seven years."
    )
    return "\n\n".join(f"Section {i}. {paragraph}" for i in range(12))


def test_sky_and_grass_split_with_overlap() -> None:
    chunker = RecursiveOverlapChunker(ChunkingConfig(chunk_size=20, chunk_overlap=5))
    doc = Document(text="The sky is blue. Grass is green.", filename="colors.txt")

    segments = chunker.split(doc)

    assert len(segments) >= 2
    assert all(segment.length <= 20 for segment in segments)
    for previous, current in zip(segments, segments[1:]):
        assert current.overlap >= 5
        assert previous.text.endswith(current.text[: current.overlap])
    assert reconstruct(segments) == doc.text


def test_segments_respect_size_and_reconstruct_exactly() -> None:
    config = ChunkingConfig(chunk_size=120, chunk_overlap=20)
    chunker = RecursiveOverlapChunker(config)
    doc = Document(text=_make_long_text(), filename="policy.md")

    segments = chunker.split(doc)

    assert len(segments) > 5
    assert all(segment.length <= 120 for segment in segments)
    assert [segment.position for segment in segments] == list(range(len(segments)))
    assert segments[0].overlap == 0
    assert all(segment.overlap == 20 for segment in segments[1:])
    assert reconstruct(segments) == doc.text


def test_segment_offsets_point_into_source_text() -> None:
    chunker = RecursiveOverlapChunker(ChunkingConfig(chunk_size=50, chunk_overlap=10))
    doc = Document(text=_make_long_text(), filename="policy.md")

    for segment in chunker.split(doc):
        assert doc.text[segment.start : segment.end] == segment.text
        assert segment.doc_id == doc.doc_id
        assert segment.filename == "policy.md"


def test_text_without_separators_falls_back_to_character_cuts() -> None:
    chunker = RecursiveOverlapChunker(ChunkingConfig(chunk_size=10, chunk_overlap=3))
    doc = Document(text="x" * 45, filename="blob.txt")

    segments = chunker.split(doc)

    assert all(segment.length <= 10 for segment in segments)
    assert reconstruct(segments) == doc.text


def test_short_document_yields_single_segment_without_overlap() -> None:
    chunker = RecursiveOverlapChunker(ChunkingConfig(chunk_size=300, chunk_overlap=30))
    doc = Document(text="A short note.", filename="note.txt")

    segments = chunker.split(doc)

    assert len(segments) == 1
    assert segments[0].text == "A short note."
    assert segments[0].overlap == 0


def test_split_is_deterministic() -> None:
    chunker = RecursiveOverlapChunker(ChunkingConfig(chunk_size=60, chunk_overlap=12))
    doc = Document(text=_make_long_text(), filename="policy.md", doc_id="doc-1")

    assert chunker.split(doc) == chunker.split(doc)


@pytest.mark.parametrize("text", ["", "   ", "\n\n\t \n"])
def test_blank_document_is_rejected(text: str) -> None:
    chunker = RecursiveOverlapChunker()

    with pytest.raises(EmptyDocumentError):
        chunker.split(Document(text=text, filename="empty.txt"))


def test_overlap_must_be_smaller_than_chunk_size() -> None:
    with pytest.raises(ValueError):
        ChunkingConfig(chunk_size=10, chunk_overlap=10)
