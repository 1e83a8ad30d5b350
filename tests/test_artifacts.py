import pytest

from buildsmith.artifacts import ArtifactSet, normalize_path


@pytest.mark.parametrize(
    "raw, expected",
    [("./src/App.tsx", "src/App.tsx"), ("/index.html", "index.html"), ("src\\main.tsx", "src/main.tsx")],
)
def test_normalize_path(raw: str, expected: str) -> None:
    assert normalize_path(raw) == expected


def test_empty_path_is_rejected() -> None:
    with pytest.raises(ValueError):
        ArtifactSet({"./": "x"})


def test_with_files_returns_new_set() -> None:
    original = ArtifactSet({"src/App.tsx": "old"})

    updated = original.with_files({"./src/App.tsx": "new", "README.md": "# hi"})

    assert original["src/App.tsx"] == "old"
    assert updated["src/App.tsx"] == "new"
    assert updated.paths == ["src/App.tsx", "README.md"]


def test_resolve_maps_tool_paths_onto_artifacts() -> None:
    artifacts = ArtifactSet(
        {
            "src/App.tsx": "",
            "src/components/Hero.tsx": "",
            "src/components/Card.tsx": "",
            "src/ui/Card.tsx": "",
        }
    )

    assert artifacts.resolve("src/App.tsx") == "src/App.tsx"
    assert artifacts.resolve("components/Hero.tsx") == "src/components/Hero.tsx"
    assert artifacts.resolve("/tmp/buildsmith-x1/src/App.tsx") == "src/App.tsx"
    assert artifacts.resolve("Card.tsx") is None
    assert artifacts.resolve("Missing.tsx") is None
    assert artifacts.resolve("") is None


def test_matching_and_under() -> None:
    artifacts = ArtifactSet({"src/a.tsx": "", "src/b.css": "", "index.html": ""})

    assert list(artifacts.matching(".tsx", ".css")) == ["src/a.tsx", "src/b.css"]
    assert list(artifacts.under("src")) == ["src/a.tsx", "src/b.css"]


def test_equality_with_mappings() -> None:
    assert ArtifactSet({"a.ts": "x"}) == {"a.ts": "x"}
    assert ArtifactSet({"a.ts": "x"}) != ArtifactSet({"a.ts": "y"})
    assert "a.ts" in ArtifactSet({"./a.ts": "x"})
    assert 3 not in ArtifactSet({"a.ts": "x"})
