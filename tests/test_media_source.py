import pytest

from core.errors import EmptyCollectionError
from core.models import MediaKind
from infrastructure.media_source import MediaSource, classify


@pytest.mark.parametrize(
    ("path", "expected"),
    [
        ("a.JPG", MediaKind.IMAGE),
        ("b.heic", MediaKind.IMAGE),
        ("c.mp4", MediaKind.VIDEO),
        ("d.MTS", MediaKind.VIDEO),
        ("e.txt", None),
        ("noext", None),
    ],
)
def test_classify(path, expected):
    assert classify(path) is expected


def test_ingest_keeps_order_and_rejects(tmp_path):
    photo = tmp_path / "b.png"
    clip = tmp_path / "a.mov"
    note = tmp_path / "c.txt"
    for p in (photo, clip, note):
        p.write_bytes(b"x")

    result = MediaSource().ingest([str(photo), str(clip), str(note), str(tmp_path / "gone.jpg")])

    assert [it.path for it in result.items] == [str(photo), str(clip)]
    assert [it.order for it in result.items] == [0, 1]
    assert result.items[1].is_video
    assert [r.reason for r in result.rejected] == ["unsupported extension", "file not found"]


def test_ingest_expands_directories_sorted(tmp_path):
    for name in ("2.jpg", "1.jpg", "skip.doc"):
        (tmp_path / name).write_bytes(b"x")

    result = MediaSource().ingest([str(tmp_path)])

    assert [p.split("/")[-1] for p in (it.path for it in result.items)] == ["1.jpg", "2.jpg"]


def test_ingest_directory_recursive(tmp_path):
    nested = tmp_path / "sub"
    nested.mkdir()
    (tmp_path / "top.jpg").write_bytes(b"x")
    (nested / "deep.mp4").write_bytes(b"x")

    flat = MediaSource().ingest_directory(str(tmp_path))
    deep = MediaSource().ingest_directory(str(tmp_path), recursive=True)

    assert len(flat.items) == 1
    assert len(deep.items) == 2


def test_build_ephemeral_collection():
    collection, rejected = MediaSource(require_existing=False).build_ephemeral_collection(
        ["/x/a.jpg", "/x/b.pdf"]
    )

    assert collection.ephemeral
    assert collection.id.startswith("ephemeral-")
    assert collection.item_count == 1
    assert len(rejected) == 1


def test_build_ephemeral_collection_without_media():
    with pytest.raises(EmptyCollectionError):
        MediaSource(require_existing=False).build_ephemeral_collection(["/x/readme.md"])
