import pytest
from pydantic import ValidationError

from promptr.models import Memory, MemoryCreate, MemoryUpdate


def test_memory_create_requires_text():
    with pytest.raises(ValidationError) as excinfo:
        MemoryCreate(text="   ")
    assert "Text is required" in str(excinfo.value)


def test_memory_create_accepts_camel_case_defaults():
    item = MemoryCreate.model_validate(
        {"text": " Hi {{name}} ", "variableDefaults": {"name": "Ada"}, "variables": ["name"]}
    )
    assert item.text == "Hi {{name}}"
    assert item.variable_defaults == {"name": "Ada"}
    assert item.variables == ["name"]


def test_memory_create_discards_malformed_variables():
    item = MemoryCreate.model_validate(
        {"text": "x", "variables": "name", "variable_defaults": ["bad"]}
    )
    assert item.variables is None
    assert item.variable_defaults is None


def test_blank_optional_fields_become_none():
    memory = Memory(user_id="u", text="t", name="  ", tool="")
    assert memory.name is None
    assert memory.tool is None


def test_memory_update_rejects_blank_text():
    with pytest.raises(ValidationError):
        MemoryUpdate(text=" ")
    assert MemoryUpdate(name="New").model_dump(exclude_unset=True) == {"name": "New"}
