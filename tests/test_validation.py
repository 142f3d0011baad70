"""Unit tests for sessions/validation.py -- PRG session field rules."""

import pytest

from sessions.validation import normalize_document, validate_document


def _valid(**overrides) -> dict:
    doc = {
        "date": "16-09-24",
        "paperTitle": "Attention Is All You Need",
        "paperLink": "https://arxiv.org/abs/1706.03762",
        "presenter": [{"name": "Ada", "link": "https://ada.example"}],
        "academicYear": "2024-2025",
    }
    doc.update(overrides)
    return doc


def test_valid_document_has_no_errors():
    assert validate_document(normalize_document(_valid())) == []


def test_optional_fields_accepted():
    doc = normalize_document(_valid(slidesLink="https://slides.example", resources="Code on GitHub"))
    assert validate_document(doc) == []
    assert doc["slidesLink"] == "https://slides.example"


@pytest.mark.parametrize(
    "overrides, field",
    [
        ({"date": "2024-09-16"}, "date"),
        ({"date": "16/09/24"}, "date"),
        ({"date": ""}, "date"),
        ({"academicYear": "2024-25"}, "academicYear"),
        ({"academicYear": "24-25"}, "academicYear"),
        ({"paperTitle": "   "}, "paperTitle"),
        ({"paperLink": ""}, "paperLink"),
        ({"presenter": []}, "presenter"),
        ({"presenter": [{"name": "", "link": "x"}]}, "presenter.0.name"),
        ({"presenter": [{"name": "A", "link": " "}]}, "presenter.0.link"),
    ],
)
def test_single_violation_is_reported(overrides, field):
    errors = validate_document(normalize_document(_valid(**overrides)))
    assert len(errors) == 1
    assert errors[0].startswith(f"{field}:")


def test_missing_required_fields_all_reported():
    errors = validate_document(normalize_document({}))
    fields = {e.split(":")[0] for e in errors}
    assert fields == {"date", "paperTitle", "paperLink", "presenter", "academicYear"}


def test_normalize_trims_strings_and_drops_blank_optionals():
    doc = normalize_document(
        _valid(
            paperTitle="  Padded  ",
            slidesLink="   ",
            resources=None,
            presenter=[{"name": " Ada ", "link": " https://ada.example "}],
        )
    )
    assert doc["paperTitle"] == "Padded"
    assert "slidesLink" not in doc
    assert "resources" not in doc
    assert doc["presenter"] == [{"name": "Ada", "link": "https://ada.example"}]


def test_normalize_ignores_store_owned_fields():
    doc = normalize_document(_valid(_id="abc", id="abc", createdAt="x", updatedAt="y"))
    assert not {"_id", "id", "createdAt", "updatedAt"} & set(doc)


def test_presenter_extra_keys_are_dropped():
    doc = normalize_document(_valid(presenter=[{"name": "Ada", "link": "L", "_id": "x"}]))
    assert doc["presenter"] == [{"name": "Ada", "link": "L"}]
