import json
from datetime import datetime, timedelta, timezone

import pytest

from promptr.exceptions import RecordNotFoundError, StoreError, ValidationFailedError
from promptr.library import (
    PromptLibrary,
    display_title,
    export_memories,
    extract_variables,
    fill_variables,
    filter_memories,
    library_stats,
    parse_import,
)
from promptr.models import Memory

BASE_TIME = datetime(2024, 1, 1, tzinfo=timezone.utc)


def _memory(mid, text, name=None, tool=None, minutes=0):
    return Memory(
        id=mid,
        user_id="u1",
        text=text,
        name=name,
        tool=tool,
        created_at=BASE_TIME + timedelta(minutes=minutes),
    )


@pytest.fixture
def memories():
    return [
        _memory("a", "Draft a cover letter", name="Cover letter", tool="ChatGPT", minutes=1),
        _memory("b", "Explain SQL joins", name="SQL joins", tool="Claude", minutes=2),
        _memory("c", "Refactor this python module", tool="chatgpt", minutes=3),
    ]


@pytest.fixture
def library(tmp_path):
    return PromptLibrary(tmp_path / "libraries" / "u1.json")


def test_favorites_toggle(library):
    assert library.toggle_favorite("a") is True
    assert library.is_favorite("a")
    assert library.toggle_favorite("a") is False
    assert not library.is_favorite("a")


def test_tags_are_lowercased_and_unique(library):
    library.add_tag("a", " Work ")
    assert library.add_tag("a", "work") == ["work"]
    library.add_tag("b", "sql")
    assert library.all_tags() == ["sql", "work"]
    assert library.remove_tag("a", "work") == []
    assert library.remove_tag("zzz", "work") == []
    assert library.add_tag("a", "   ") == []


def test_folders(library):
    folder = library.create_folder("  Writing ")
    assert folder.name == "Writing"
    assert folder.color == "#6366f1"
    library.assign_folder("a", folder.id)
    assert library.meta("a").folder == folder.id

    library.delete_folder(folder.id)
    assert library.meta("a").folder is None
    with pytest.raises(RecordNotFoundError):
        library.get_folder(folder.id)
    with pytest.raises(RecordNotFoundError):
        library.assign_folder("a", "missing")
    with pytest.raises(ValidationFailedError):
        library.create_folder(" ")


def test_versions_keep_latest_ten(library, memories):
    memory = memories[0]
    for i in range(12):
        library.push_version(memory.model_copy(update={"text": f"v{i}"}))
    versions = library.versions("a")
    assert len(versions) == 10
    assert versions[0].text == "v11"
    assert library.versions("unknown") == []


def test_record_copy(library):
    library.record_copy("a")
    meta = library.record_copy("a")
    assert meta.copy_count == 2
    assert meta.last_used is not None


def test_save_and_load(library):
    library.toggle_favorite("a")
    library.add_tag("a", "work")
    folder = library.create_folder("Writing")
    library.assign_folder("a", folder.id)
    library.save()

    loaded = PromptLibrary(library.path)
    assert loaded.favorites == {"a"}
    assert loaded.meta("a").tags == ["work"]
    assert loaded.get_folder(folder.id).name == "Writing"


@pytest.mark.parametrize(
    "content",
    ["{not json", "[1, 2]", '{"metadata": {"a": {"copy_count": "many"}}}', '{"folders": [{"color": "red"}]}'],
)
def test_load_unreadable_library(tmp_path, content):
    path = tmp_path / "library.json"
    path.write_text(content)
    with pytest.raises(StoreError, match="Could not read library|is not a JSON object"):
        PromptLibrary(path)


def test_forget(library):
    library.toggle_favorite("a")
    library.add_tag("a", "work")
    library.forget(["a"])
    assert not library.is_favorite("a")
    assert "a" not in library.metadata


def test_extract_and_fill_variables():
    text = "Translate {{text}} into {{language}}. Keep {{text}} short."
    assert extract_variables(text) == ["text", "language"]
    assert fill_variables(text, {"text": "hi", "language": "French"}) == (
        "Translate hi into French. Keep hi short."
    )
    assert extract_variables("no placeholders {{ spaced }}") == []


def test_display_title():
    assert display_title(_memory("x", "anything", name=" Named ")) == "Named"
    assert display_title(_memory("x", "one two three")) == "one two three"
    long_text = " ".join(f"w{i}" for i in range(30))
    assert display_title(_memory("x", long_text)) == "w0 w1 w2 w3 w4 w5 w6"
    wide = " ".join(["abcdefghijkl"] * 10)
    title = display_title(_memory("x", wide))
    assert len(title) == 50
    assert title.endswith("...")


def test_filter_views(memories, library):
    library.toggle_favorite("b")
    folder = library.create_folder("Code")
    library.assign_folder("c", folder.id)

    assert [m.id for m in filter_memories(memories, library)] == ["c", "b", "a"]
    assert [m.id for m in filter_memories(memories, library, view="favorites")] == ["b"]
    assert [m.id for m in filter_memories(memories, library, view=f"folder-{folder.id}")] == ["c"]
    assert [m.id for m in filter_memories(memories, library, view="ChatGPT")] == ["c", "a"]


def test_filter_recent_limit():
    many = [_memory(str(i), f"text {i}", minutes=i) for i in range(15)]
    assert len(filter_memories(many, view="recent")) == 10


def test_filter_tags_and_query(memories, library):
    library.add_tag("a", "jobs")
    library.add_tag("a", "writing")
    library.add_tag("b", "writing")

    assert [m.id for m in filter_memories(memories, library, tags=["writing"])] == ["b", "a"]
    assert [m.id for m in filter_memories(memories, library, tags=["writing", "jobs"])] == ["a"]
    assert [m.id for m in filter_memories(memories, library, query="  SQL ")] == ["b"]
    assert [m.id for m in filter_memories(memories, library, query="job")] == ["a"]


def test_filter_sorting(memories, library):
    library.record_copy("a")
    library.record_copy("a")
    library.record_copy("b")

    assert [m.id for m in filter_memories(memories, library, sort="oldest")] == ["a", "b", "c"]
    assert [m.id for m in filter_memories(memories, library, sort="name-asc")] == ["a", "c", "b"]
    assert [m.id for m in filter_memories(memories, library, sort="name-desc")] == ["b", "c", "a"]
    assert [m.id for m in filter_memories(memories, library, sort="most-used")] == ["a", "b", "c"]

    library.meta("a").last_used = BASE_TIME
    library.meta("b").last_used = BASE_TIME + timedelta(days=1)
    assert [m.id for m in filter_memories(memories, library, sort="recently-used")] == ["b", "a", "c"]

    with pytest.raises(ValidationFailedError):
        filter_memories(memories, library, sort="random")


def test_library_stats(memories, library):
    library.toggle_favorite("a")
    library.toggle_favorite("gone")
    stats = library_stats(memories, library)
    assert stats == {
        "total": 3,
        "favorites": 1,
        "by_tool": {"ChatGPT": 1, "Claude": 1, "chatgpt": 1},
    }


def test_export_then_import(memories):
    items = parse_import(export_memories(memories))
    assert [i.text for i in items] == [m.text for m in memories]
    assert items[0].name == "Cover letter"


def test_parse_import_errors():
    with pytest.raises(ValidationFailedError, match="Failed to parse import file"):
        parse_import("{not json")
    with pytest.raises(ValidationFailedError, match="Invalid import file format"):
        parse_import(json.dumps({"text": "x"}))
    with pytest.raises(ValidationFailedError, match="Invalid prompt"):
        parse_import(json.dumps([{"name": "no text"}]))
