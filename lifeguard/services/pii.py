"""Best-effort PII redaction for structured data and free-text prompts.

These helpers reduce leakage of direct identifiers before data crosses a trust
boundary (logs, analytics, third-party model prompts). They are heuristics
based on key names and simple text patterns: they will both over- and
under-redact, are not locale-aware, and must not be treated as a compliance
guarantee or a substitute for proper anonymization.

Failure semantics: nothing here raises. If an unexpected error occurs while
walking a value, the call fails closed (the whole value is replaced) and a
``pii.sanitize_failed`` warning is logged.
"""

from __future__ import annotations

import logging
import re
import secrets
from typing import Any, Iterable, Mapping

from lifeguard.core.config import PIISettings

logger = logging.getLogger(__name__)

DEFAULT_PII_TERMS: tuple[str, ...] = (
    "email",
    "full_name",
    "name",
    "address",
    "phone",
    "ssn",
    "created_by",
    "user_email",
    "contact_email",
    "account_number",
    "routing_number",
    "card_number",
)

HEALTH_TERMS: tuple[str, ...] = (
    "medication",
    "diagnosis",
    "condition",
    "symptom",
    "prescription",
    "doctor",
    "hospital",
    "treatment",
    "medical",
    "health",
    "blood_pressure",
    "heart_rate",
    "weight",
    "height",
    "bmi",
    "allergy",
    "immunization",
    "surgery",
    "procedure",
)

# Two capitalized words in a row; a crude stand-in for a person's name.
GENERIC_NAME_PATTERN = re.compile(r"\b[A-Z][a-z]+ [A-Z][a-z]+\b")

_EMAIL_PATTERN = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")
_CARD_PATTERN = re.compile(r"\b\d{4}[\s-]?\d{4}[\s-]?\d{4}[\s-]?\d{4}\b")
_SSN_PATTERN = re.compile(r"\b\d{3}-\d{2}-\d{4}\b")
_PHONE_PATTERN = re.compile(
    r"(?<!\d)(?:\+\d{1,3}[-.\s]?)?\(?\d{3}\)?[-.\s]?\d{3}[-.\s]?\d{4}(?!\d)"
)
_AMOUNT_PATTERN = re.compile(r"\$\d{1,3}(?:,\d{3})+(?:\.\d{2})?")

# Order matters: card numbers would otherwise be eaten by the phone pattern.
_IDENTIFIER_PATTERNS: tuple[tuple[re.Pattern[str], str], ...] = (
    (_EMAIL_PATTERN, "[EMAIL]"),
    (_CARD_PATTERN, "[CARD]"),
    (_SSN_PATTERN, "[SSN]"),
    (_PHONE_PATTERN, "[PHONE]"),
    (_AMOUNT_PATTERN, "[AMOUNT]"),
)


def parse_terms(terms_string: str | None) -> tuple[str, ...]:
    """Parse a comma-separated list of key fragments.

    Examples:
        >>> parse_terms("vin, Policy_Number")
        ('vin', 'policy_number')
        >>> parse_terms(None)
        ()
    """
    if not terms_string:
        return ()
    return tuple(term.strip().lower() for term in terms_string.split(",") if term.strip())


def _rebuild_sequence(original: list | tuple, items: list[Any]) -> list | tuple:
    """Return ``items`` in the container type of ``original``.

    Namedtuples are rebuilt field by field; other tuple subclasses whose
    constructor does not take an iterable fall back to a plain tuple.
    """
    if isinstance(original, list):
        return items
    if hasattr(original, "_make"):
        return original._make(items)
    if type(original) is tuple:
        return tuple(items)
    try:
        return type(original)(items)
    except TypeError:
        return tuple(items)


def _identity_field(identity: Any, field: str) -> str | None:
    if isinstance(identity, Mapping):
        value = identity.get(field)
    else:
        value = getattr(identity, field, None)
    if value is None:
        return None
    value = str(value).strip()
    return value or None


class PIIRedactor:
    """Key-name based redactor for JSON-like values and prompts.

    Attributes:
        sensitive_terms: Lowercase key fragments; a key matches when its
            lowercased name contains any of them.
        placeholder_prefix: Prefix of generated placeholder tokens.
        anonymized_name: Replacement for names in free text.
        anonymized_email: Replacement for the identity's email in free text.
    """

    def __init__(
        self,
        sensitive_terms: Iterable[str] = DEFAULT_PII_TERMS,
        *,
        placeholder_prefix: str = "ANON_",
        anonymized_name: str = "User",
        anonymized_email: str = "user@anonymized.com",
    ) -> None:
        terms = tuple(dict.fromkeys(t.lower() for t in sensitive_terms if t))
        if not terms:
            raise ValueError("sensitive_terms must contain at least one term")
        self.sensitive_terms = terms
        self.placeholder_prefix = placeholder_prefix
        self.anonymized_name = anonymized_name
        self.anonymized_email = anonymized_email

    @classmethod
    def from_settings(cls, pii_settings: PIISettings) -> "PIIRedactor":
        """Build a redactor from ``PIISettings`` (defaults plus extra terms)."""
        return cls(
            DEFAULT_PII_TERMS + parse_terms(pii_settings.extra_terms),
            placeholder_prefix=pii_settings.placeholder_prefix,
            anonymized_name=pii_settings.anonymized_name,
            anonymized_email=pii_settings.anonymized_email,
        )

    def is_sensitive_key(self, key: Any) -> bool:
        lowered = str(key).lower()
        return any(term in lowered for term in self.sensitive_terms)

    def placeholder(self) -> str:
        """Generate a fresh opaque token, e.g. ``ANON_9f2c41d07ab3e865``."""
        return f"{self.placeholder_prefix}{secrets.token_hex(8)}"

    def _walk(self, value: Any) -> Any:
        if isinstance(value, Mapping):
            sanitized: dict[Any, Any] = {}
            for key, item in value.items():
                if self.is_sensitive_key(key):
                    sanitized[key] = self.placeholder()
                else:
                    sanitized[key] = self._walk(item)
            return sanitized
        if isinstance(value, (list, tuple)):
            return _rebuild_sequence(value, [self._walk(item) for item in value])
        return value

    def sensitive_paths(self, value: Any, _prefix: str = "") -> list[str]:
        """List the paths that :meth:`sanitize_structure` would redact.

        Examples:
            >>> PIIRedactor().sensitive_paths({"items": [{"email": "a@b.com"}]})
            ['items[0].email']
        """
        paths: list[str] = []
        if isinstance(value, Mapping):
            for key, item in value.items():
                path = f"{_prefix}.{key}" if _prefix else str(key)
                if self.is_sensitive_key(key):
                    paths.append(path)
                else:
                    paths.extend(self.sensitive_paths(item, path))
        elif isinstance(value, (list, tuple)):
            for index, item in enumerate(value):
                paths.extend(self.sensitive_paths(item, f"{_prefix}[{index}]"))
        return paths

    def sanitize_structure(self, value: Any) -> Any:
        """Return a copy of ``value`` with values under sensitive keys replaced.

        Mappings keep their keys, sequences keep their order and length, and
        scalars are only replaced when reached through a matching key.

        Args:
            value: Decoded JSON-like value (dicts, lists, tuples, scalars).

        Returns:
            Same-shaped value with fresh placeholders per redacted occurrence.
        """
        try:
            return self._walk(value)
        except Exception as exc:
            logger.warning(
                "pii.sanitize_failed",
                extra={"operation": "structure", "error_type": type(exc).__name__},
            )
            return self.placeholder()

    def sanitize_prompt_text(self, prompt: str | None, identity: Any) -> str | None:
        """Strip the identity's name and email from a free-text prompt.

        Exact (case-insensitive) occurrences of ``identity.full_name`` become
        ``anonymized_name`` and of ``identity.email`` become
        ``anonymized_email``; afterwards any two consecutive capitalized words
        are replaced as a generic name. This is lossy and advisory only.

        Args:
            prompt: Text about to be sent to an external model.
            identity: Mapping or object exposing ``full_name`` and ``email``.

        Returns:
            The sanitized prompt, or ``prompt`` unchanged when either argument
            is absent.
        """
        if not prompt or not identity:
            return prompt

        try:
            text = str(prompt)
            replacements: dict[str, str] = {}
            email = _identity_field(identity, "email")
            if email:
                replacements[email.lower()] = self.anonymized_email
            full_name = _identity_field(identity, "full_name")
            if full_name:
                replacements.setdefault(full_name.lower(), self.anonymized_name)
            if replacements:
                # One pass, longest literal first, so a name inside the email
                # (or inside a replacement) is never rewritten twice.
                literals = sorted(replacements, key=len, reverse=True)
                pattern = re.compile("|".join(map(re.escape, literals)), re.IGNORECASE)
                text = pattern.sub(
                    lambda m: replacements.get(m.group(0).lower(), self.anonymized_name), text
                )
            return GENERIC_NAME_PATTERN.sub(lambda _m: self.anonymized_name, text)
        except Exception as exc:
            logger.warning(
                "pii.sanitize_failed",
                extra={"operation": "prompt", "error_type": type(exc).__name__},
            )
            return ""


def scrub_identifiers(text: str) -> str:
    """Replace emails, card numbers, SSNs, phone numbers and large dollar amounts.

    Pattern based; intended for log lines and crash reports.

    Examples:
        >>> scrub_identifiers("mail jane@doe.com or call 555-123-4567")
        'mail [EMAIL] or call [PHONE]'
    """
    if not text:
        return text
    for pattern, replacement in _IDENTIFIER_PATTERNS:
        text = pattern.sub(replacement, text)
    return text


def _mask(value: Any, *, template: str | None = None, strip: str = "") -> str:
    if value is None or value == "":
        return ""
    digits = str(value)
    for char in strip:
        digits = digits.replace(char, "")
    if len(digits) <= 4:
        return digits
    if template is not None:
        return template + digits[-4:]
    return "*" * (len(digits) - 4) + digits[-4:]


def mask_account_number(account_number: Any) -> str:
    """Show only the last four characters: ``****6789``."""
    return _mask(account_number)


def mask_card_number(card_number: Any) -> str:
    """Mask a card number as ``**** **** **** 1234``."""
    return _mask(card_number, template="**** **** **** ", strip=" \t-")


def mask_ssn(ssn: Any) -> str:
    """Mask an SSN as ``***-**-6789``."""
    return _mask(ssn, template="***-**-", strip="-")


def is_health_field(field_name: Any) -> bool:
    lowered = str(field_name).lower()
    return any(term in lowered for term in HEALTH_TERMS)


def strip_health_data(value: Any) -> Any:
    """Drop keys that look like health data from a nested structure.

    Used before handing records to analytics, where health data must never go.
    """
    if isinstance(value, Mapping):
        return {
            key: strip_health_data(item)
            for key, item in value.items()
            if not is_health_field(key)
        }
    if isinstance(value, (list, tuple)):
        return _rebuild_sequence(value, [strip_health_data(item) for item in value])
    return value
