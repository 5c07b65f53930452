import pytest

from grounded_qa.errors import IngestionError
from grounded_qa.indexing.loader import EXAMPLE_TEXT, CorpusLoader, clean_text


def test_loads_txt_files_sorted_with_relative_ids(tmp_path):
    (tmp_path / "b.txt").write_text("segundo", encoding="utf-8")
    (tmp_path / "a.txt").write_text("primeiro", encoding="utf-8")
    (tmp_path / "sub").mkdir()
    (tmp_path / "sub" / "c.txt").write_text("terceiro", encoding="utf-8")
    (tmp_path / "ignored.md").write_text("não", encoding="utf-8")

    documents = CorpusLoader(seed_example=False).load(tmp_path)

    assert [d.id for d in documents] == ["a.txt", "b.txt", "sub/c.txt"]
    assert [d.text for d in documents] == ["primeiro", "segundo", "terceiro"]
    assert all(d.metadata == {} for d in documents)
    assert documents[0].source == str(tmp_path / "a.txt")


def test_single_file_location(tmp_path):
    path = tmp_path / "unico.txt"
    path.write_text("conteúdo", encoding="utf-8")
    [document] = CorpusLoader(seed_example=False).load(path)
    assert document.id == "unico.txt"


def test_empty_directory_is_valid(tmp_path):
    assert CorpusLoader(seed_example=False).load(tmp_path) == []


def test_missing_location_raises_without_seeding(tmp_path):
    with pytest.raises(IngestionError):
        CorpusLoader(seed_example=False).load(tmp_path / "nada")


def test_missing_location_is_seeded_with_example(tmp_path):
    location = tmp_path / "novo"
    [document] = CorpusLoader(seed_example=True).load(location)
    assert document.id == "exemplo.txt"
    assert document.text == EXAMPLE_TEXT
    assert (location / "exemplo.txt").exists()


def test_undecodable_file_raises(tmp_path):
    (tmp_path / "bin.txt").write_bytes(b"\xff\xfe\xfa")
    with pytest.raises(IngestionError):
        CorpusLoader(seed_example=False).load(tmp_path)


def test_clean_text_normalizes_newlines_and_bom():
    assert clean_text("\ufeffa\r\nb\rc") == "a\nb\nc"
