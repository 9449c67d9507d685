import logging

from headshot.cli import main
from headshot.core.archive import read_archive, write_archive


def test_extract(tmp_path, capsys):
    archive = tmp_path / "headshots.zip"
    archive.write_bytes(write_archive([("a.png", b"first"), ("readme.txt", b"text"), ("b.png", b"second")]))
    out_dir = tmp_path / "out"

    assert main(["extract", str(archive), "-d", str(out_dir)]) == 0
    assert sorted(p.name for p in out_dir.iterdir()) == ["a.png", "b.png", "readme.txt"]
    assert (out_dir / "b.png").read_bytes() == b"second"
    assert "Extracted 3 file(s)" in capsys.readouterr().out


def test_extract_png_only(tmp_path):
    archive = tmp_path / "headshots.zip"
    archive.write_bytes(write_archive([("a.png", b"first"), ("readme.txt", b"text")]))
    out_dir = tmp_path / "out"

    assert main(["extract", str(archive), "-d", str(out_dir), "--png-only"]) == 0
    assert [p.name for p in out_dir.iterdir()] == ["a.png"]


def test_extract_stays_in_directory(tmp_path):
    archive = tmp_path / "evil.zip"
    archive.write_bytes(write_archive([("../../escape.png", b"x")]))
    out_dir = tmp_path / "out"

    assert main(["extract", str(archive), "-d", str(out_dir)]) == 0
    assert (out_dir / "escape.png").read_bytes() == b"x"
    assert not (tmp_path.parent / "escape.png").exists()


def test_extract_keeps_entries_with_same_basename(tmp_path, caplog):
    archive = tmp_path / "nested.zip"
    archive.write_bytes(write_archive([("x/a.png", b"one"), ("y/a.png", b"two"), ("z/a.png", b"three")]))
    out_dir = tmp_path / "out"

    with caplog.at_level(logging.WARNING, logger="headshot.cli"):
        assert main(["extract", str(archive), "-d", str(out_dir)]) == 0

    assert (out_dir / "a.png").read_bytes() == b"one"
    assert (out_dir / "a-2.png").read_bytes() == b"two"
    assert (out_dir / "a-3.png").read_bytes() == b"three"
    assert "Duplicate file name 'y/a.png'" in caplog.text


def test_extract_corrupt_archive(tmp_path, capsys):
    archive = tmp_path / "broken.zip"
    archive.write_bytes(write_archive([("a.png", b"0123456789")])[:40])

    assert main(["extract", str(archive), "-d", str(tmp_path / "out")]) == 2
    assert "ERROR:" in capsys.readouterr().err


def test_process(tmp_path, make_image, no_faces): # pylint: disable=unused-argument
    image = tmp_path / "portrait.jpg"
    image.write_bytes(make_image(400, 300, ext=".jpg"))
    output = tmp_path / "result.zip"

    assert main(["process", str(image), "-o", str(output), "--size", "1000"]) == 0
    assert [e.name for e in read_archive(output.read_bytes())] == ["portrait.png"]


def test_process_nothing_valid(tmp_path, capsys, no_faces): # pylint: disable=unused-argument
    notes = tmp_path / "notes.txt"
    notes.write_text("hello")

    assert main(["process", str(notes), "-o", str(tmp_path / "out.zip")]) == 2
    err = capsys.readouterr().err
    assert "SKIPPED: notes.txt: unsupported format" in err
    assert "ERROR: No images processed" in err
    assert not (tmp_path / "out.zip").exists()
