"""Tests for flightcore.core.modstring module."""

import pytest

from flightcore.core.errors import InstallError, ParseError
from flightcore.core.modstring import ParsedModString


class TestParse:
    """Tests for ParsedModString.parse()."""

    def test_parses_simple_mod_string(self):
        """Parses author-name-version."""
        parsed = ParsedModString.parse("northstar-Foo-1.0.0")

        assert parsed == ParsedModString(author="northstar", name="Foo", version="1.0.0")

    def test_name_may_contain_hyphens(self):
        """Everything between the first and last token is the name."""
        parsed = ParsedModString.parse("author-some-mod-name-1.2.3")

        assert parsed.author == "author"
        assert parsed.name == "some-mod-name"
        assert parsed.version == "1.2.3"

    @pytest.mark.parametrize("mod_string", ["onlyonehyphen", "author-name", ""])
    def test_rejects_too_few_hyphens(self, mod_string: str):
        """Fewer than two hyphens is a parse failure."""
        with pytest.raises(ParseError, match="Invalid mod string"):
            ParsedModString.parse(mod_string)

    @pytest.mark.parametrize("mod_string", ["-name-1.0.0", "author--1.0.0", "author-name-"])
    def test_rejects_empty_fields(self, mod_string: str):
        """Empty author, name or version is a parse failure."""
        with pytest.raises(ParseError):
            ParsedModString.parse(mod_string)

    def test_error_names_the_input(self):
        """ParseError carries the malformed input."""
        with pytest.raises(ParseError) as exc_info:
            ParsedModString.parse("onlyonehyphen")

        assert exc_info.value.mod_string == "onlyonehyphen"
        assert "onlyonehyphen" in str(exc_info.value)

    def test_parse_error_is_install_error(self):
        """ParseError is part of the install error taxonomy."""
        assert issubclass(ParseError, InstallError)


class TestTryParse:
    """Tests for ParsedModString.try_parse()."""

    def test_returns_parsed(self):
        """Returns the parsed value for valid input."""
        assert ParsedModString.try_parse("a-b-c") == ParsedModString("a", "b", "c")

    def test_returns_none_for_invalid(self):
        """Returns None instead of raising."""
        assert ParsedModString.try_parse("not_a_mod") is None


class TestFolderName:
    """Tests for folder_name and str()."""

    def test_round_trips_to_folder_name(self):
        """folder_name rebuilds the original mod string."""
        parsed = ParsedModString.parse("author-some-mod-name-1.2.3")

        assert parsed.folder_name == "author-some-mod-name-1.2.3"
        assert str(parsed) == "author-some-mod-name-1.2.3"


class TestUnsafeModStrings:
    """Mod strings become directory names and must not contain separators."""

    @pytest.mark.parametrize(
        "mod_string", ["author-../../evil-1.0.0", "author-name-1.0/..", "a\\b-name-1.0.0"]
    )
    def test_rejects_path_separators(self, mod_string: str):
        """Separators are rejected."""
        with pytest.raises(ParseError, match="path separator"):
            ParsedModString.parse(mod_string)
