from __future__ import annotations

import json
from pathlib import Path

import pytest
import yaml

from trait_lab.registry import (
    RegistryError,
    RuleKind,
    TraitRegistry,
    load_from_folders,
    load_from_manifest,
    load_registry,
)
from trait_lab.schema import SchemaValidationError


def test_add_category_defaults_name_and_order() -> None:
    registry = TraitRegistry()
    first = registry.add_category()
    second = registry.add_category("Hat")
    assert (first.name, first.order) == ("Layer 1", 0)
    assert (second.name, second.order) == ("Hat", 1)
    assert len(registry) == 2


def test_move_category_swaps_and_renumbers() -> None:
    registry = TraitRegistry()
    a, b, c = (registry.add_category(name) for name in ("A", "B", "C"))

    registry.move_category(c.id, -1)
    assert [cat.name for cat in registry.ordered_categories()] == ["A", "C", "B"]
    assert [cat.order for cat in registry.ordered_categories()] == [0, 1, 2]

    registry.move_category(a.id, -1)
    assert [cat.name for cat in registry.ordered_categories()] == ["A", "C", "B"]
    registry.move_category(b.id, 1)
    assert [cat.name for cat in registry.ordered_categories()] == ["A", "C", "B"]


def test_rename_and_remove() -> None:
    registry = TraitRegistry()
    category = registry.add_category("Hat")
    variant = registry.add_variant(category.id, "Cap", b"png")
    registry.rename_category(category.id, "Headwear")
    assert registry.category(category.id).name == "Headwear"
    assert registry.category_of(variant.id) is category

    registry.remove_variant(variant.id)
    assert category.variants == []
    registry.remove_category(category.id)
    assert len(registry) == 0
    with pytest.raises(RegistryError):
        registry.category(category.id)


def test_rarity_must_be_positive_integer() -> None:
    registry = TraitRegistry()
    category = registry.add_category("Hat")
    variant = registry.add_variant(category.id, "Cap", b"png")
    assert variant.rarity == 100

    registry.set_rarity(variant.id, 7)
    assert variant.rarity == 7
    with pytest.raises(RegistryError):
        registry.set_rarity(variant.id, 0)
    with pytest.raises(RegistryError):
        registry.add_variant(category.id, "Bad", b"png", rarity="often")


def test_rule_validation_and_removal() -> None:
    registry = TraitRegistry()
    category = registry.add_category("Hat")
    cap = registry.add_variant(category.id, "Cap", b"png")
    crown = registry.add_variant(category.id, "Crown", b"png")

    with pytest.raises(RegistryError):
        registry.add_rule(cap.id, RuleKind.MUTUAL_EXCLUSION, [])
    with pytest.raises(RegistryError):
        registry.add_rule(cap.id, RuleKind.MINIMUM_APPEARANCE, value=0)
    with pytest.raises(ValueError):
        registry.add_rule(cap.id, "sometimes_mix", [crown.id])

    rule = registry.add_rule(cap.id, "appears_at_least", value=3)
    assert rule.value == 3 and rule.targets == ()
    assert RuleKind.MINIMUM_APPEARANCE.label == "Appears At Least"
    registry.remove_rule(cap.id, rule.id)
    assert cap.rules == []


def test_serialised_registry_restores_ids_and_rules() -> None:
    registry = TraitRegistry()
    category = registry.add_category("Hat")
    cap = registry.add_variant(category.id, "Cap", b"\x89PNG\r\n\x1a\nrest", rarity=25)
    registry.add_rule(cap.id, RuleKind.FORCED_PAIRING, ["other"])

    payload = json.loads(json.dumps(registry.as_dict()))
    assert payload[0]["images"][0]["dataUrl"].startswith("data:image/png;base64,")

    restored = TraitRegistry.from_dict(payload)
    restored_cap = restored.variant(cap.id)
    assert restored.category(category.id).name == "Hat"
    assert restored_cap.rarity == 25
    assert restored_cap.rules[0].kind is RuleKind.FORCED_PAIRING
    assert restored_cap.rules[0].targets == ("other",)


def test_duplicate_ids_warn_once(caplog: pytest.LogCaptureFixture) -> None:
    registry = TraitRegistry()
    first = registry.add_category("A")
    second = registry.add_category("B")
    registry.add_variant(first.id, "X", b"", variant_id="dup")
    registry.add_variant(second.id, "X", b"", variant_id="dup")
    with caplog.at_level("WARNING", logger="traitlab.registry"):
        index = registry.build_index()
    assert index.category_of("dup") == first.id
    assert "dup" in caplog.text


def _write_layers(root: Path, make_png) -> None:
    for folder, traits in {
        "2_Hat": ["Cap", "Crown"],
        "1_Background": ["Red", "Blue"],
        "Extras": ["Sparkle"],
    }.items():
        (root / folder).mkdir(parents=True)
        for trait in traits:
            (root / folder / f"{trait}.png").write_bytes(make_png((10, 20, 30, 255)))
    (root / "1_Background" / "notes.txt").write_text("ignored", encoding="utf-8")


def test_folders_become_ordered_categories(tmp_path: Path, make_png) -> None:
    _write_layers(tmp_path, make_png)
    registry = load_from_folders(tmp_path)

    ordered = registry.ordered_categories()
    assert [c.name for c in ordered] == ["Background", "Hat", "Extras"]
    assert [c.order for c in ordered] == [0, 1, 2]
    assert [v.name for v in ordered[0].variants] == ["Blue", "Red"]
    assert all(isinstance(v.image, bytes) and v.rarity == 100 for v in ordered[0].variants)


def test_manifest_declares_rarity_and_rules(tmp_path: Path, make_png, caplog: pytest.LogCaptureFixture) -> None:
    _write_layers(tmp_path, make_png)
    manifest = {
        "categories": [
            {
                "name": "Background",
                "traits": [
                    {"name": "Red", "file": "1_Background/Red.png", "rarity": 50},
                    {"name": "Blue", "file": "1_Background/Blue.png", "rarity": 50},
                ],
            },
            {
                "name": "Hat",
                "traits": [
                    {
                        "name": "Crown",
                        "file": "2_Hat/Crown.png",
                        "rules": [
                            {"type": "doesnt_mix", "targets": ["Background/Red", "Background/Green"]},
                            {"type": "appears_at_least", "value": 2},
                        ],
                    }
                ],
            },
        ]
    }
    (tmp_path / "manifest.yaml").write_text(yaml.safe_dump(manifest), encoding="utf-8")

    with caplog.at_level("WARNING", logger="traitlab.loader"):
        registry = load_registry(tmp_path)

    background, hat = registry.ordered_categories()
    red = background.variants[0]
    crown = hat.variants[0]
    assert red.rarity == 50
    exclusion = next(crown.rules_of(RuleKind.MUTUAL_EXCLUSION))
    assert exclusion.targets == (red.id, "Background/Green")
    assert crown.minimum_appearance() == 2
    assert "Background/Green" in caplog.text


def test_manifest_schema_errors_name_the_field(tmp_path: Path) -> None:
    path = tmp_path / "manifest.json"
    path.write_text(
        json.dumps({"categories": [{"name": "Hat", "traits": [{"name": "Cap", "file": "cap.png", "rarity": 0}]}]}),
        encoding="utf-8",
    )
    with pytest.raises(SchemaValidationError) as exc:
        load_from_manifest(path)
    assert exc.value.path == ["categories", "0", "traits", "0", "rarity"]


def test_missing_directory_raises(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_registry(tmp_path / "nope")


def test_layer_added_after_removals_goes_on_top() -> None:
    registry = TraitRegistry()
    a, b, _, _ = (registry.add_category(name) for name in ("A", "B", "C", "D"))
    registry.remove_category(a.id)
    registry.remove_category(b.id)
    registry.add_category("E")

    ordered = registry.ordered_categories()
    assert [c.name for c in ordered] == ["C", "D", "E"]
    assert [c.order for c in ordered] == [0, 1, 2]


def test_added_layer_follows_sparse_loaded_orders() -> None:
    registry = TraitRegistry.from_dict([{"name": "Back", "order": 5}, {"name": "Front", "order": 9}])
    added = registry.add_category("Top")
    assert added.order == 10
    assert [c.name for c in registry.ordered_categories()] == ["Back", "Front", "Top"]


def test_index_membership() -> None:
    registry = TraitRegistry()
    category = registry.add_category("Hat")
    registry.add_variant(category.id, "Cap", b"", variant_id="cap")
    index = registry.build_index()
    assert "cap" in index
    assert "crown" not in index
