import pytest

from lpadapter.model.errors import DuplicateNameError
from lpadapter.model.names import NameIndex


def _index(entries):
    return NameIndex("variable", lambda: [(n, i) for i, n in entries.items()])


def test_lookup_builds_lazily():
    entries = {1: "x", 2: "", 3: "z"}
    index = _index(entries)
    assert not index.built
    assert index.lookup("z") == 3
    assert index.built
    assert index.lookup("") is None
    assert index.lookup("nope") is None


def test_duplicate_names_fail_on_lookup_and_leave_index_unbuilt():
    entries = {1: "x", 2: "x"}
    index = _index(entries)
    with pytest.raises(DuplicateNameError):
        index.lookup("x")
    assert not index.built
    entries[2] = "y"
    assert index.lookup("x") == 1


def test_update_patches_a_built_index():
    entries = {1: "x"}
    index = _index(entries)
    index.lookup("x")
    index.update("x", "w", 1)
    assert index.lookup("w") == 1
    assert index.lookup("x") is None
    index.update("w", "", 1)
    assert index.lookup("w") is None


def test_update_onto_taken_name_drops_the_index():
    entries = {1: "x", 2: "y"}
    index = _index(entries)
    index.lookup("x")
    entries[2] = "x"
    index.update("y", "x", 2)
    assert not index.built
    with pytest.raises(DuplicateNameError):
        index.lookup("x")
