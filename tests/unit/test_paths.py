import os
import pytest
from tfvc_cli.exceptions import ServerPathFormatError, UnrecognizedPathKind
from tfvc_cli.models import LocalPath, ServerPath, canonicalize_server_path, path_item

@pytest.mark.parametrize("raw, expected", [
    ("$", "$/"),
    ("$/", "$/"),
    ("$/Project", "$/Project"),
    ("$/Project/", "$/Project"),
    ("$\\Project\\src", "$/Project/src"),
    ("$/Project//src/./a.txt", "$/Project/src/a.txt"),
    ("$/Project/src/../lib", "$/Project/lib"),
])
def test_canonicalize_server_path(raw, expected):
    assert canonicalize_server_path(raw) == expected

@pytest.mark.parametrize("raw", ["", "Project/src", "/Project", "$/..", "$/a/../../b"])
def test_canonicalize_rejects_invalid(raw):
    with pytest.raises(ServerPathFormatError):
        canonicalize_server_path(raw)

def test_canonicalize_dollar_segments():
    with pytest.raises(ServerPathFormatError) as exc_info:
        canonicalize_server_path("$/test/$path")
    assert exc_info.value.key == "TFS.ServerPath.Invalid"
    assert exc_info.value.params == ("$/test/$path",)

    assert canonicalize_server_path("$/test/$path", validate_dollar=False) == "$/test/$path"

def test_path_item_local_is_absolute(tmp_path):
    assert path_item(LocalPath(path=str(tmp_path / "a" / ".." / "b"))) == str(tmp_path / "b")

def test_path_item_relative_local(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    assert path_item(LocalPath(path="x.txt")) == os.path.join(os.getcwd(), "x.txt")

def test_path_item_server():
    assert path_item(ServerPath(path="$/P/a", workspace="W1")) == "$/P/a"

def test_path_item_unknown_kind():
    with pytest.raises(UnrecognizedPathKind):
        path_item("/not/a/path/model")
