"""
Name and description normalization for FIX repository records.

This module:
- Cleans free text (typographic quotes, dashes and odd spaces)
- Synthesizes enum value names from their descriptions
- Flags suspicious enum value names (collisions, too short, numeric, too long)
- Tidies field names and flags unexpected characters in them
"""
import logging
import re
from collections import Counter
from typing import Dict, Optional, Set

logger = logging.getLogger(__name__)

DEFAULT_MAX_COMMON_PREFIX = 43

# Characters replaced by clean_text. Anything else above code point 255 is
# passed through with a warning.
TEXT_REPLACEMENTS = {
    "\u201c": '"',
    "\u201d": '"',
    "\u2018": "'",
    "\u2019": "'",
    "\u201a": ",",
    "\u2192": "->",
    "\ufffd": "-",
    "\u2013": "-",
    "\u2014": "-",
    "\u2003": " ",
}

# Left alone for the renderer, which turns a leading bullet into a list item.
PASS_THROUGH = {"\u2022"}

NUMERIC_NAME = re.compile(r"[-+]?\d+")
PLAIN_FIELD_NAME = re.compile(r"[A-Za-z0-9]*")


def clean_text(text: str) -> str:
    """
    Trim text and replace typographic characters by ASCII equivalents.

    Args:
        text: Raw description text

    Returns:
        Cleaned text
    """
    cleaned = []
    for ch in text.strip():
        replacement = TEXT_REPLACEMENTS.get(ch)
        if replacement is not None:
            cleaned.append(replacement)
            continue
        if ord(ch) > 255 and ch not in PASS_THROUGH:
            logger.warning(f"Unhandled non ASCII character {ch!r} ({ord(ch)})")
        cleaned.append(ch)
    return "".join(cleaned)


def camel_case(text: str) -> str:
    """Capitalize the first letter of each whitespace token and join them."""
    return "".join(token[0].upper() + token[1:] for token in text.split())


def compute_enum_name(description: str) -> str:
    """
    Synthesize an enum value name from its description.

    Keeps everything up to the first character that is not a letter, digit,
    space or underscore. A hyphen is kept unless preceded by a space, so
    "Non-Disclosed" survives while " - " ends the name. Junk before the
    first good character is dropped.

    Examples:
        >>> compute_enum_name("Non-Disclosed quantity (optional)")
        'NonDisclosedQuantity'
        >>> compute_enum_name("New order - single")
        'NewOrder'

    Args:
        description: Free-text description of the enum value

    Returns:
        Camel-cased name, empty if the description holds no usable text
    """
    kept = []
    for i, ch in enumerate(description):
        if ch.isalnum() or ch in (" ", "_"):
            kept.append(ch)
        elif kept:
            if ch == "-" and description[i - 1] != " ":
                kept.append(ch)
            else:
                break

    name = "".join(kept).strip()
    name = name.replace("_", " ").replace("-", " ")
    return camel_case(name)


def tidy_field_name(field_name: str) -> str:
    """Replace slashes by spaces and trim."""
    return field_name.replace("/", " ").strip()


def is_funny_field_name(field_name: Optional[str]) -> bool:
    """A field name should start upper case and contain only A-Za-z0-9."""
    if not field_name:
        return True
    if not field_name[0].isupper():
        return True
    return PLAIN_FIELD_NAME.fullmatch(field_name) is None


class EnumNameChecker:
    """
    Checks enum value names of each tag for likely problems.

    Names of a tag must differ within their first max_common_prefix
    characters (case-insensitive), since downstream code generators
    truncate them. Too short, numeric and overlong names are flagged too.
    Every problem is a warning; nothing here stops consolidation.

    One checker is used per consolidation run. It keeps the names seen for
    each tag and a tally of name lengths.
    """

    def __init__(self, max_common_prefix: int = DEFAULT_MAX_COMMON_PREFIX):
        if max_common_prefix < 1:
            raise ValueError(f"max_common_prefix must be positive, got {max_common_prefix}")
        self.max_common_prefix = max_common_prefix
        self.name_lengths: Counter = Counter()
        self.warning_count = 0
        self._seen: Dict[str, Set[str]] = {}

    def _expected_unique(self, name: str) -> str:
        return name[:self.max_common_prefix].lower()

    def check(self, tag: str, enum_value: str, enum_name: str, description: str = "") -> int:
        """
        Check one enum value name and remember it for the tag.

        Args:
            tag: Field tag owning the value
            enum_value: Literal enum value
            enum_name: Name to check
            description: Description, quoted in warnings

        Returns:
            Number of warnings raised for this name
        """
        warnings = 0
        self.name_lengths[len(enum_name)] += 1

        seen = self._seen.setdefault(tag, set())
        expected_unique = self._expected_unique(enum_name)
        for name in seen:
            if self._expected_unique(name) == expected_unique:
                logger.warning(
                    f"Tag {tag} similar value names: {enum_name} and {name} "
                    f"(value {enum_value}: {description!r})"
                )
                warnings += 1
                break
        seen.add(enum_name)

        if NUMERIC_NAME.fullmatch(enum_name):
            logger.warning(f"Tag {tag} numeric enumName: {enum_name}")
            warnings += 1

        if len(enum_name) <= 1:
            logger.warning(f"Tag {tag} short enumName: {enum_name!r} value {enum_value}")
            warnings += 1

        if len(enum_name) > self.max_common_prefix:
            logger.warning(
                f"Tag {tag} long enumName: {enum_name} value {enum_value} "
                f"({len(enum_name)} > {self.max_common_prefix})"
            )
            warnings += 1

        self.warning_count += warnings
        return warnings
