from __future__ import annotations

import json
import zipfile
from pathlib import Path

from trait_lab.export import archive_filename, build_metadata, item_filename, write_archive, write_directory
from trait_lab.items import GeneratedItem, TraitTriple


def _items(make_png) -> list[GeneratedItem]:
    return [
        GeneratedItem(
            image=make_png((255, 0, 0, 255)),
            traits=(TraitTriple("Background", "Red", "red"), TraitTriple("Hat", "Crown", "crown")),
        ),
        GeneratedItem(image=make_png((0, 0, 255, 255)), traits=()),
    ]


def test_metadata_shape(make_png) -> None:
    item = _items(make_png)[0]
    assert build_metadata(item, 3, "Space Cats") == {
        "name": "Space Cats #3",
        "description": "Generated from Space Cats",
        "image": "3.png",
        "attributes": [
            {"trait_type": "Background", "value": "Red"},
            {"trait_type": "Hat", "value": "Crown"},
        ],
    }
    assert build_metadata(item, 1, "Space Cats", "Custom")["description"] == "Custom"


def test_archive_name_replaces_whitespace() -> None:
    assert archive_filename("  My  Cool Collection ") == "My_Cool_Collection.zip"


def test_archive_contains_images_and_metadata(tmp_path: Path, make_png) -> None:
    items = _items(make_png)
    path = write_archive(items, tmp_path / "out", "My Collection")

    assert path == tmp_path / "out" / "My_Collection.zip"
    with zipfile.ZipFile(path) as archive:
        names = set(archive.namelist())
        assert names == {"images/1.png", "images/2.png", "metadata/1.json", "metadata/2.json"}
        assert archive.read("images/1.png") == items[0].image
        second = json.loads(archive.read("metadata/2.json"))
    assert second["name"] == "My Collection #2"
    assert second["image"] == "2.png"
    assert second["attributes"] == []


def test_explicit_zip_path_is_used_verbatim(tmp_path: Path, make_png) -> None:
    target = tmp_path / "nested" / "drop.zip"
    assert write_archive(_items(make_png), target, "X") == target
    assert target.is_file()


def test_directory_export_writes_pairs(tmp_path: Path, make_png) -> None:
    written = write_directory(_items(make_png), tmp_path, "My Collection")
    assert [p.name for p in written] == ["My_Collection_1.png", "My_Collection_2.png"]
    record = json.loads((tmp_path / "My_Collection_1.json").read_text(encoding="utf-8"))
    assert record["attributes"][1] == {"trait_type": "Hat", "value": "Crown"}


def test_file_names_collapse_whitespace() -> None:
    assert item_filename(" Space \t Cats ", 7) == "Space_Cats_7.png"


def test_directory_export_with_spaced_name(tmp_path: Path, make_png) -> None:
    written = write_directory(_items(make_png)[:1], tmp_path, "Night  Sky Club")
    assert [p.name for p in written] == ["Night_Sky_Club_1.png"]
    assert (tmp_path / "Night_Sky_Club_1.json").is_file()
