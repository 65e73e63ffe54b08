"""Tests for quiz response validation."""

import pytest

from src.personalization.errors import ValidationError
from src.personalization.schemas import RawPersonalizationResponse
from src.personalization.validation import merge_section, parse_response


class TestParseResponse:
    """Tests for parse_response()."""

    def test_valid_response_is_typed(self, sample_quiz):
        response = parse_response(sample_quiz)

        assert isinstance(response, RawPersonalizationResponse)
        assert response.demographics.age_range == "26_40"
        assert response.demographics.jurisdiction.primary_country == "US"
        assert response.contextual_factors.alert_preferences.alert_frequency_limit == 10
        assert response.digital_behavior.tech_sophistication.preferred_explanation_style is None

    def test_typed_response_passes_through(self, sample_quiz):
        response = parse_response(sample_quiz)
        assert parse_response(response) is response

    def test_missing_field_names_path(self, make_quiz):
        quiz = make_quiz(drop=["demographics.ageRange"])

        with pytest.raises(ValidationError) as exc_info:
            parse_response(quiz)

        err = exc_info.value
        assert err.field == "demographics.ageRange"
        assert err.value is None
        assert "demographics.ageRange" in str(err)

    def test_missing_section(self, make_quiz):
        quiz = make_quiz(drop=["contextualFactors"])

        with pytest.raises(ValidationError) as exc_info:
            parse_response(quiz)
        assert exc_info.value.field == "contextualFactors"

    def test_out_of_domain_names_field_and_value(self, make_quiz):
        quiz = make_quiz({"demographics.occupation": "astronaut"})

        with pytest.raises(ValidationError) as exc_info:
            parse_response(quiz)

        err = exc_info.value
        assert err.field == "demographics.occupation"
        assert err.value == "astronaut"
        assert "astronaut" in str(err)
        assert "demographics.occupation" in str(err)

    @pytest.mark.parametrize("limit", [0, 51])
    def test_alert_frequency_limit_range(self, make_quiz, limit):
        quiz = make_quiz({"contextualFactors.alertPreferences.alertFrequencyLimit": limit})

        with pytest.raises(ValidationError) as exc_info:
            parse_response(quiz)
        assert exc_info.value.field == "contextualFactors.alertPreferences.alertFrequencyLimit"

    def test_invalid_multi_select_value(self, make_quiz):
        quiz = make_quiz({"contextualFactors.specialCircumstances": ["time_traveler"]})

        with pytest.raises(ValidationError) as exc_info:
            parse_response(quiz)
        assert exc_info.value.field.startswith("contextualFactors.specialCircumstances")
        assert exc_info.value.value == "time_traveler"

    def test_empty_primary_activities_rejected(self, make_quiz):
        quiz = make_quiz({"digitalBehavior.usagePatterns.primaryActivities": []})

        with pytest.raises(ValidationError):
            parse_response(quiz)

    def test_lowercase_country_rejected(self, make_quiz):
        quiz = make_quiz({"demographics.jurisdiction.primaryCountry": "us"})

        with pytest.raises(ValidationError) as exc_info:
            parse_response(quiz)
        assert exc_info.value.field == "demographics.jurisdiction.primaryCountry"

    def test_unknown_key_rejected(self, make_quiz):
        quiz = make_quiz({"demographics.favouriteColour": "blue"})

        with pytest.raises(ValidationError) as exc_info:
            parse_response(quiz)
        assert exc_info.value.field == "demographics.favouriteColour"

    def test_collects_every_problem(self, make_quiz):
        quiz = make_quiz(
            {"demographics.occupation": "astronaut"},
            drop=["riskPreferences.legal.arbitrationComfort"],
        )

        with pytest.raises(ValidationError) as exc_info:
            parse_response(quiz)

        fields = {problem.field for problem in exc_info.value.errors}
        assert fields == {"demographics.occupation", "riskPreferences.legal.arbitrationComfort"}

    def test_non_mapping_rejected(self):
        with pytest.raises(ValidationError):
            parse_response(["not", "a", "quiz"])  # type: ignore[arg-type]

    def test_is_value_error(self, make_quiz):
        with pytest.raises(ValueError):
            parse_response(make_quiz(drop=["demographics"]))


class TestMergeSection:
    """Tests for merge_section()."""

    def test_replaces_keys_within_section(self, sample_quiz):
        response = parse_response(sample_quiz)

        merged = merge_section(response, "demographics", {"ageRange": "over_55"})

        assert merged.demographics.age_range == "over_55"
        # untouched keys of the section and other sections survive
        assert merged.demographics.occupation == "technology"
        assert merged.risk_preferences.model_dump() == response.risk_preferences.model_dump()

    def test_does_not_mutate_original(self, sample_quiz):
        response = parse_response(sample_quiz)
        merge_section(response, "demographics", {"ageRange": "over_55"})
        assert response.demographics.age_range == "26_40"

    def test_unknown_section(self, sample_quiz):
        response = parse_response(sample_quiz)

        with pytest.raises(ValidationError) as exc_info:
            merge_section(response, "hobbies", {"fishing": True})
        assert exc_info.value.field == "section"
        assert exc_info.value.value == "hobbies"

    def test_invalid_merged_value(self, sample_quiz):
        response = parse_response(sample_quiz)

        with pytest.raises(ValidationError) as exc_info:
            merge_section(
                response,
                "contextualFactors",
                {"dependentStatus": "pets_only"},
            )
        assert exc_info.value.field == "contextualFactors.dependentStatus"
