from pathlib import Path
import sys

import pytest

REPO_ROOT = Path(__file__).resolve().parents[2]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from backend.shared.normalize import (
    DEFAULT_SYNONYMS_PATH,
    SynonymIndex,
    default_index,
    load_synonyms,
)


def test_load_bundled_synonyms_flattens_to_surface_forms() -> None:
    mapping = load_synonyms(DEFAULT_SYNONYMS_PATH)
    assert mapping == {
        "signin": "login",
        "signon": "login",
        "sign-in": "login",
        "sign-on": "login",
        "authenticate": "auth",
        "authentication": "auth",
        "signup": "register",
    }


def test_hyphenated_keys_collapse_onto_clean_keys() -> None:
    index = default_index()
    assert index.keys == ("signin", "signon", "authenticate", "authentication", "signup")
    assert len(index) == 5
    assert "sign-in" not in index
    assert index.resolve_exact("signin") == "login"


def test_mapping_is_read_only() -> None:
    index = SynonymIndex.from_mapping({"signin": "login"})
    with pytest.raises(TypeError):
        index.mapping["signup"] = "register"  # type: ignore[index]


def test_conflicting_cleaned_keys_are_rejected() -> None:
    with pytest.raises(ValueError, match="already maps to"):
        SynonymIndex.from_mapping({"signin": "login", "sign-in": "register"})


def test_keys_empty_after_cleaning_are_rejected() -> None:
    with pytest.raises(ValueError, match="empty after cleaning"):
        SynonymIndex.from_mapping({"--": "login"})


def test_empty_canonical_is_rejected() -> None:
    with pytest.raises(ValueError, match="empty canonical"):
        SynonymIndex.from_mapping({"signin": "  "})


@pytest.mark.parametrize("threshold", [-0.1, 1.5])
def test_threshold_out_of_range(threshold: float) -> None:
    with pytest.raises(ValueError, match="threshold"):
        SynonymIndex.from_mapping({"signin": "login"}, threshold=threshold)


def test_resolve_exact_and_fuzzy() -> None:
    index = default_index()
    assert index.resolve_exact("signup") == "register"
    assert index.resolve_exact("signupp") is None
    assert index.resolve_fuzzy("signupp") == "register"
    assert index.resolve_fuzzy("xyzzy") is None
    assert index.resolve("authenticat") == "auth"


def test_fuzzy_tie_takes_first_inserted_key() -> None:
    index = SynonymIndex.from_mapping({"cart": "basket", "card": "payment"})
    # "carx" is one substitution away from both keys
    assert index.resolve_fuzzy("carx") == "basket"
    reversed_index = SynonymIndex.from_mapping({"card": "payment", "cart": "basket"})
    assert reversed_index.resolve_fuzzy("carx") == "payment"


def test_custom_threshold_changes_fuzzy_reach() -> None:
    strict = SynonymIndex.from_mapping({"signin": "login"}, threshold=0.1)
    assert strict.resolve_fuzzy("signiin") is None
    loose = SynonymIndex.from_mapping({"signin": "login"}, threshold=0.6)
    assert loose.resolve_fuzzy("login") == "login"


def test_empty_index_never_matches() -> None:
    index = SynonymIndex.from_mapping({})
    assert len(index) == 0
    assert index.resolve_fuzzy("signin") is None
    assert index.match("signin") is None


def test_match_reports_key_and_score() -> None:
    index = default_index()
    exact = index.match("signon")
    assert exact is not None and exact.exact and exact.score == 0.0
    fuzzy = index.match("signiin")
    assert fuzzy is not None
    assert (fuzzy.key, fuzzy.canonical, fuzzy.exact) == ("signin", "login", False)
    assert fuzzy.score == pytest.approx(1 / 7)


def test_load_synonyms_accepts_scalars_and_empty_values(tmp_path) -> None:
    path = tmp_path / "synonyms.yaml"
    path.write_text("checkout: Pay\ncart:\n  - Basket\n  - ''\nempty:\n", encoding="utf-8")
    assert load_synonyms(path) == {"pay": "checkout", "basket": "cart"}


def test_load_synonyms_rejects_non_mapping(tmp_path) -> None:
    path = tmp_path / "synonyms.yaml"
    path.write_text("- signin\n- signon\n", encoding="utf-8")
    with pytest.raises(ValueError, match="mapping"):
        load_synonyms(path)


def test_load_synonyms_rejects_surface_form_under_two_terms(tmp_path) -> None:
    path = tmp_path / "synonyms.yaml"
    path.write_text("login: [signin]\nregister: [signin]\n", encoding="utf-8")
    with pytest.raises(ValueError, match="listed under both"):
        load_synonyms(path)


def test_from_yaml_logs_key_count(tmp_path, caplog) -> None:
    path = tmp_path / "synonyms.yaml"
    path.write_text("login: [signin, sign-in]\n", encoding="utf-8")
    caplog.set_level("INFO", logger="fuse_extractor.synonyms")
    index = SynonymIndex.from_yaml(path)
    assert index.keys == ("signin",)
    assert any("Loaded 1 synonym keys" in record.getMessage() for record in caplog.records)


@pytest.mark.parametrize("content", ["null:\n  - signin\n", "yes:\n  - signin\n", "42: [signin]\n"])
def test_load_synonyms_rejects_non_string_canonical_terms(tmp_path, content) -> None:
    path = tmp_path / "synonyms.yaml"
    path.write_text(content, encoding="utf-8")
    with pytest.raises(ValueError, match="must be a string"):
        load_synonyms(path)
