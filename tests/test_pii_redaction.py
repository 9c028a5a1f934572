"""Unit tests for the best-effort PII redaction helpers."""

import logging
import re
from collections import namedtuple
from types import SimpleNamespace

import pytest

from lifeguard.core.config import PIISettings
from lifeguard.services.pii import (
    DEFAULT_PII_TERMS,
    PIIRedactor,
    is_health_field,
    mask_account_number,
    mask_card_number,
    mask_ssn,
    parse_terms,
    scrub_identifiers,
    strip_health_data,
)

PLACEHOLDER = re.compile(r"^ANON_[0-9a-f]{16}$")


@pytest.fixture
def redactor() -> PIIRedactor:
    return PIIRedactor()


class TestSanitizeStructure:
    def test_redacts_top_level_and_nested_keys(self, redactor: PIIRedactor) -> None:
        data = {"email": "a@b.com", "nested": {"full_name": "Jane Doe"}, "note": "hello"}

        result = redactor.sanitize_structure(data)

        assert PLACEHOLDER.match(result["email"])
        assert PLACEHOLDER.match(result["nested"]["full_name"])
        assert result["email"] != result["nested"]["full_name"]
        assert result["note"] == "hello"

    def test_input_is_not_mutated(self, redactor: PIIRedactor) -> None:
        data = {"email": "a@b.com", "nested": {"phone": "555"}}

        redactor.sanitize_structure(data)

        assert data == {"email": "a@b.com", "nested": {"phone": "555"}}

    def test_sequences_are_redacted_element_wise(self, redactor: PIIRedactor) -> None:
        rows = [{"user_email": "x@y.com", "amount": 10}, {"amount": 20}, "plain", 3]

        result = redactor.sanitize_structure(rows)

        assert isinstance(result, list)
        assert len(result) == 4
        assert PLACEHOLDER.match(result[0]["user_email"])
        assert result[0]["amount"] == 10
        assert result[1:] == [{"amount": 20}, "plain", 3]

    def test_lists_under_safe_keys_are_walked(self, redactor: PIIRedactor) -> None:
        data = {"contacts": [{"contact_email": "c@d.com"}, {"relation": "sister"}]}

        result = redactor.sanitize_structure(data)

        assert PLACEHOLDER.match(result["contacts"][0]["contact_email"])
        assert result["contacts"][1] == {"relation": "sister"}

    def test_tuples_keep_their_type(self, redactor: PIIRedactor) -> None:
        result = redactor.sanitize_structure(({"ssn": "123"}, "x"))

        assert isinstance(result, tuple)
        assert PLACEHOLDER.match(result[0]["ssn"])

    def test_matching_is_substring_and_case_insensitive(self, redactor: PIIRedactor) -> None:
        data = {"Billing_ADDRESS": "1 Main St", "CardNumber": "4111", "card_number_last4": "1111"}

        result = redactor.sanitize_structure(data)

        assert PLACEHOLDER.match(result["Billing_ADDRESS"])
        # "CardNumber" has no underscore so none of the terms match
        assert result["CardNumber"] == "4111"
        assert PLACEHOLDER.match(result["card_number_last4"])

    def test_key_matching_several_terms_is_redacted_once(self, redactor: PIIRedactor) -> None:
        result = redactor.sanitize_structure({"user_email_address": "a@b.com"})

        assert list(result) == ["user_email_address"]
        assert PLACEHOLDER.match(result["user_email_address"])

    def test_nested_value_under_sensitive_key_is_replaced_whole(self, redactor: PIIRedactor) -> None:
        result = redactor.sanitize_structure({"address": {"street": "1 Main", "zip": "02139"}})

        assert PLACEHOLDER.match(result["address"])

    @pytest.mark.parametrize("value", ["jane@doe.com", 42, 3.5, None, True])
    def test_top_level_scalars_pass_through(self, redactor: PIIRedactor, value) -> None:
        assert redactor.sanitize_structure(value) == value

    def test_placeholders_differ_between_calls(self, redactor: PIIRedactor) -> None:
        data = {"email": "a@b.com"}

        assert redactor.sanitize_structure(data)["email"] != redactor.sanitize_structure(data)["email"]

    def test_custom_terms_and_prefix(self) -> None:
        redactor = PIIRedactor(("vin",), placeholder_prefix="REDACTED-")

        result = redactor.sanitize_structure({"vehicle_vin": "1HGCM", "email": "a@b.com"})

        assert result["vehicle_vin"].startswith("REDACTED-")
        assert result["email"] == "a@b.com"

    def test_from_settings_extends_default_terms(self) -> None:
        redactor = PIIRedactor.from_settings(
            PIISettings(extra_terms="policy_number, VIN", placeholder_prefix="X_")
        )

        assert set(DEFAULT_PII_TERMS) <= set(redactor.sensitive_terms)
        assert "vin" in redactor.sensitive_terms
        assert redactor.sanitize_structure({"policy_number": "P-1"})["policy_number"].startswith("X_")

    def test_empty_term_list_is_rejected(self) -> None:
        with pytest.raises(ValueError):
            PIIRedactor(())

    def test_fails_closed_on_cyclic_structure(self, redactor: PIIRedactor) -> None:
        data: dict = {"note": "loop"}
        data["self"] = data

        result = redactor.sanitize_structure(data)

        assert isinstance(result, str)
        assert PLACEHOLDER.match(result)

    def test_namedtuples_are_rebuilt_field_by_field(self, redactor: PIIRedactor) -> None:
        Row = namedtuple("Row", "label payload")
        data = {"note": "keep", "rows": [Row("home", {"email": "a@b.com", "city": "Oslo"})]}

        result = redactor.sanitize_structure(data)

        assert result["note"] == "keep"
        row = result["rows"][0]
        assert isinstance(row, Row)
        assert row.label == "home"
        assert row.payload["city"] == "Oslo"
        assert PLACEHOLDER.match(row.payload["email"])

    def test_fails_closed_on_unexpected_key_error(self, redactor: PIIRedactor, caplog) -> None:
        class BrokenKey:
            def __str__(self) -> str:
                raise AttributeError("no name")

        with caplog.at_level(logging.WARNING, logger="lifeguard.services.pii"):
            result = redactor.sanitize_structure({"note": "x", BrokenKey(): "a@b.com"})

        assert PLACEHOLDER.match(result)
        messages = [r.getMessage() for r in caplog.records if r.name == "lifeguard.services.pii"]
        assert messages == ["pii.sanitize_failed"]

    def test_sensitive_paths_lists_redacted_locations(self, redactor: PIIRedactor) -> None:
        data = {"email": "a", "nested": {"full_name": "b"}, "rows": [{"phone": "c"}, {"x": 1}]}

        assert redactor.sensitive_paths(data) == ["email", "nested.full_name", "rows[0].phone"]


class TestSanitizePromptText:
    def test_removes_name_and_email(self, redactor: PIIRedactor) -> None:
        identity = {"full_name": "Jane Doe", "email": "jane@doe.com"}

        result = redactor.sanitize_prompt_text("Contact Jane Doe at jane@doe.com", identity)

        assert "Jane Doe" not in result
        assert "jane@doe.com" not in result
        assert "user@anonymized.com" in result

    def test_matching_is_case_insensitive(self, redactor: PIIRedactor) -> None:
        identity = {"full_name": "Jane Doe", "email": "Jane@Doe.com"}

        result = redactor.sanitize_prompt_text("jane doe wrote from JANE@DOE.COM", identity)

        assert result == "User wrote from user@anonymized.com"

    def test_generic_name_pattern_replaces_other_names(self, redactor: PIIRedactor) -> None:
        identity = {"full_name": "Jane Doe", "email": "jane@doe.com"}

        result = redactor.sanitize_prompt_text("my brother Mark Smith pays rent", identity)

        assert result == "my brother User pays rent"

    def test_accepts_object_identity(self, redactor: PIIRedactor) -> None:
        identity = SimpleNamespace(full_name="Li", email="li@example.org")

        result = redactor.sanitize_prompt_text("li asked about li@example.org", identity)

        assert result == "User asked about user@anonymized.com"

    def test_regex_characters_in_identity_are_literal(self, redactor: PIIRedactor) -> None:
        identity = {"full_name": "a.b (c)", "email": "x+y@z.io"}

        result = redactor.sanitize_prompt_text("a.b (c) and axb (c); x+y@z.io", identity)

        assert result == "User and axb (c); user@anonymized.com"

    def test_blank_identity_fields_are_skipped(self, redactor: PIIRedactor) -> None:
        identity = {"full_name": "", "email": None}

        assert redactor.sanitize_prompt_text("budget for march", identity) == "budget for march"

    def test_fails_closed_when_identity_cannot_be_read(self, redactor: PIIRedactor) -> None:
        class LockedIdentity:
            @property
            def email(self) -> str:
                raise LookupError("profile store unavailable")

        assert redactor.sanitize_prompt_text("Contact Jane Doe", LockedIdentity()) == ""

    @pytest.mark.parametrize(
        ("prompt", "identity"),
        [
            (None, {"full_name": "Jane Doe"}),
            ("", {"full_name": "Jane Doe"}),
            ("Contact Jane Doe", None),
            ("Contact Jane Doe", {}),
        ],
    )
    def test_absent_arguments_return_prompt_unchanged(self, redactor, prompt, identity) -> None:
        assert redactor.sanitize_prompt_text(prompt, identity) == prompt


class TestMasking:
    def test_mask_account_number(self) -> None:
        assert mask_account_number("123456789") == "*****6789"
        assert mask_account_number(123456789) == "*****6789"

    def test_mask_card_number(self) -> None:
        assert mask_card_number("4111 1111 1111 1234") == "**** **** **** 1234"
        assert mask_card_number("4111-1111-1111-1234") == "**** **** **** 1234"

    def test_mask_ssn(self) -> None:
        assert mask_ssn("123-45-6789") == "***-**-6789"

    @pytest.mark.parametrize("mask", [mask_account_number, mask_card_number, mask_ssn])
    def test_short_and_empty_values(self, mask) -> None:
        assert mask(None) == ""
        assert mask("") == ""
        assert mask("1234") == "1234"


class TestScrubIdentifiers:
    def test_replaces_known_patterns(self) -> None:
        text = (
            "jane@doe.com paid $12,500.00 with 4111 1111 1111 1234, "
            "ssn 123-45-6789, phone (555) 123-4567"
        )

        result = scrub_identifiers(text)

        assert result == (
            "[EMAIL] paid [AMOUNT] with [CARD], ssn [SSN], phone [PHONE]"
        )

    def test_small_amounts_and_plain_numbers_survive(self) -> None:
        assert scrub_identifiers("paid $950 for 3 items") == "paid $950 for 3 items"

    def test_empty_text(self) -> None:
        assert scrub_identifiers("") == ""


class TestHealthData:
    def test_is_health_field(self) -> None:
        assert is_health_field("current_medication")
        assert is_health_field("Blood_Pressure")
        assert not is_health_field("monthly_budget")

    def test_strip_health_data_drops_keys_recursively(self) -> None:
        data = {
            "user": "u1",
            "diagnosis": "flu",
            "visits": [{"hospital": "General", "date": "2024-01-02"}],
        }

        assert strip_health_data(data) == {"user": "u1", "visits": [{"date": "2024-01-02"}]}


def test_parse_terms() -> None:
    assert parse_terms(" vin , ,Policy_Number") == ("vin", "policy_number")
    assert parse_terms(None) == ()


def test_strip_health_data_keeps_namedtuples() -> None:
    Visit = namedtuple("Visit", "date notes")

    result = strip_health_data([Visit("2024-01-02", {"diagnosis": "flu", "cost": 20})])

    assert result == [Visit("2024-01-02", {"cost": 20})]
    assert isinstance(result[0], Visit)
