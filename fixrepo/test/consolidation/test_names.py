"""
Tests for name normalization (fixrepo/consolidation/names.py)

Tests cover:
- Free-text cleaning
- Enum name synthesis from descriptions
- Enum name checks (collisions, short, numeric, long names)
- Field name tidying and checks
"""

import logging

import pytest

from fixrepo.consolidation.names import (
    EnumNameChecker,
    camel_case,
    clean_text,
    compute_enum_name,
    is_funny_field_name,
    tidy_field_name,
)


class TestCleanText:
    """Tests for clean_text."""

    def test_trims(self):
        """Test surrounding whitespace is removed."""
        assert clean_text("  Buy  ") == "Buy"

    def test_typographic_quotes(self):
        """Test curly quotes become ASCII quotes."""
        assert clean_text("\u201cquoted\u201d and \u2018single\u2019") == "\"quoted\" and 'single'"

    def test_arrow_and_dashes(self):
        """Test arrows and dashes are replaced."""
        assert clean_text("A\u2192B \u2013 C\u2014D") == "A->B - C-D"

    def test_em_space(self):
        """Test em space becomes a plain space."""
        assert clean_text("Good\u2003Till") == "Good Till"

    def test_unhandled_character_warns(self, caplog):
        """Test an unknown non-ASCII character is kept with a warning."""
        with caplog.at_level(logging.WARNING, logger="fixrepo.consolidation.names"):
            assert clean_text("Price \u20ac") == "Price \u20ac"
        assert "Unhandled non ASCII character" in caplog.text

    def test_bullet_passes_silently(self, caplog):
        """Test bullets are left for the renderer without warning."""
        with caplog.at_level(logging.WARNING, logger="fixrepo.consolidation.names"):
            assert clean_text("\u2022 item") == "\u2022 item"
        assert caplog.text == ""


class TestCamelCase:
    """Tests for camel_case."""

    def test_joins_capitalized_tokens(self):
        assert camel_case("good till  cancel") == "GoodTillCancel"

    def test_keeps_rest_of_token(self):
        """Test only the first letter of each token changes."""
        assert camel_case("iOS eXtra") == "IOSEXtra"

    def test_empty(self):
        assert camel_case("") == ""


class TestComputeEnumName:
    """Tests for compute_enum_name."""

    def test_hyphen_not_after_space_is_kept(self):
        """Test the compound-term example: hyphen kept, parenthesis ends the name."""
        assert compute_enum_name("Non-Disclosed quantity (optional)") == "NonDisclosedQuantity"

    def test_space_hyphen_terminates(self):
        """Test a hyphen preceded by a space ends the name."""
        assert compute_enum_name("New order - single") == "NewOrder"

    def test_leading_junk_discarded(self):
        """Test junk before the first good character is dropped."""
        assert compute_enum_name("**Buy side") == "BuySide"

    def test_leading_hyphen_discarded(self):
        assert compute_enum_name("-Sell") == "Sell"

    def test_underscores_become_word_breaks(self):
        assert compute_enum_name("sell_short exempt") == "SellShortExempt"

    def test_digits_kept(self):
        assert compute_enum_name("2nd leg, if any") == "2ndLeg"

    def test_all_junk_gives_empty_name(self):
        """Test a description with no usable text yields an empty name."""
        assert compute_enum_name("*** ???") == ""
        assert compute_enum_name("") == ""

    @pytest.mark.parametrize("description", [
        "Non-Disclosed quantity (optional)",
        "Good Till Cancel (GTC)",
        "sell_short exempt",
        "Fill or Kill - FOK",
    ])
    def test_idempotent(self, description):
        """Test a synthesized name passes through synthesis unchanged."""
        name = compute_enum_name(description)
        assert compute_enum_name(name) == name


class TestEnumNameChecker:
    """Tests for EnumNameChecker."""

    def test_collision_within_common_prefix(self):
        """Test names equal in their first max_common_prefix characters collide."""
        checker = EnumNameChecker(max_common_prefix=20)
        assert checker.check("1234", "1", "AutomatedExecutionOrderPublic") == 1  # long
        assert checker.check("1234", "2", "AutomatedExecutionOrderPrivate") == 2  # collision + long
        assert checker.warning_count == 3

    def test_collision_ignores_case(self):
        checker = EnumNameChecker()
        checker.check("54", "1", "Buy")
        assert checker.check("54", "2", "BUY") == 1

    def test_distinct_names_pass(self):
        checker = EnumNameChecker()
        assert checker.check("54", "1", "Buy") == 0
        assert checker.check("54", "2", "Sell") == 0
        assert checker.warning_count == 0

    def test_names_compared_per_tag(self):
        """Test the same name under different tags is not a collision."""
        checker = EnumNameChecker()
        checker.check("54", "1", "Buy")
        assert checker.check("624", "1", "Buy") == 0

    def test_short_name(self, caplog):
        checker = EnumNameChecker()
        with caplog.at_level(logging.WARNING, logger="fixrepo.consolidation.names"):
            assert checker.check("54", "1", "B") == 1
        assert "short enumName" in caplog.text

    def test_empty_name_is_short(self):
        checker = EnumNameChecker()
        assert checker.check("54", "1", "") == 1

    def test_numeric_name(self, caplog):
        checker = EnumNameChecker()
        with caplog.at_level(logging.WARNING, logger="fixrepo.consolidation.names"):
            assert checker.check("54", "1", "100") == 1
        assert "numeric enumName" in caplog.text

    def test_long_name(self):
        checker = EnumNameChecker(max_common_prefix=5)
        assert checker.check("54", "1", "Sixchr") == 1

    def test_name_length_tally(self):
        checker = EnumNameChecker()
        checker.check("54", "1", "Buy")
        checker.check("54", "2", "Bid")
        checker.check("54", "3", "Sell")
        assert checker.name_lengths[3] == 2
        assert checker.name_lengths[4] == 1

    def test_invalid_prefix(self):
        with pytest.raises(ValueError, match="max_common_prefix"):
            EnumNameChecker(max_common_prefix=0)


class TestFieldNames:
    """Tests for field name tidying and checks."""

    def test_tidy_replaces_slash(self):
        assert tidy_field_name(" Bid/Offer ") == "Bid Offer"

    @pytest.mark.parametrize("name", ["Account", "Px2", "MDEntryType"])
    def test_plain_names(self, name):
        assert is_funny_field_name(name) is False

    @pytest.mark.parametrize("name", ["account", "Bid Offer", "Price$", "", None])
    def test_funny_names(self, name):
        assert is_funny_field_name(name) is True
