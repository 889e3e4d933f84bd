from backend.app.error_messages import (
    INVALID_JSON_BODY,
    TEXT_MUST_BE_STRING,
    error_body,
    invalid_synonym_file_message,
)


def test_error_body_envelope():
    assert error_body(INVALID_JSON_BODY) == {"error": "Invalid JSON body"}
    assert error_body(TEXT_MUST_BE_STRING) == {"error": "Text field must be a string"}


def test_invalid_synonym_file_single_problem():
    msg = invalid_synonym_file_message("synonyms.yaml", ["synonyms YAML must define a mapping"])
    assert msg.startswith("Synonym file synonyms.yaml could not be loaded:")
    assert "- synonyms YAML must define a mapping" in msg


def test_invalid_synonym_file_multiple_problems():
    msg = invalid_synonym_file_message("s.yaml", ["Problem A", "Problem B"])
    assert msg.count("- ") == 2


def test_invalid_synonym_file_without_details():
    msg = invalid_synonym_file_message("s.yaml", ["  "])
    assert msg == "Synonym file s.yaml could not be loaded."
