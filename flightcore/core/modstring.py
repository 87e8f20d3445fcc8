"""Thunderstore mod string parsing."""

from dataclasses import dataclass

from flightcore.core.errors import ParseError


@dataclass(frozen=True)
class ParsedModString:
    """A parsed ``author-name-version`` package identifier."""

    author: str
    name: str
    version: str

    @classmethod
    def parse(cls, mod_string: str) -> "ParsedModString":
        """Parse a Thunderstore mod string.

        The author and version are taken from the first and last
        hyphen-delimited tokens; everything in between is the package name,
        so names containing hyphens survive intact.

        Args:
            mod_string: Mod string (e.g., "author-some-mod-name-1.2.3")

        Returns:
            ParsedModString instance

        Raises:
            ParseError: If the string has fewer than two hyphens, an empty field,
                or a path separator
        """
        parts = mod_string.split("-")
        if len(parts) < 3:
            raise ParseError(mod_string, "expected author-name-version")
        if any(sep in mod_string for sep in ("/", "\\", "\0")):
            raise ParseError(mod_string, "contains a path separator")

        author, version = parts[0], parts[-1]
        name = "-".join(parts[1:-1])

        if not author:
            raise ParseError(mod_string, "author is empty")
        if not name:
            raise ParseError(mod_string, "package name is empty")
        if not version:
            raise ParseError(mod_string, "version is empty")

        return cls(author=author, name=name, version=version)

    @classmethod
    def try_parse(cls, mod_string: str) -> "ParsedModString | None":
        """Parse a mod string, returning None instead of raising."""
        try:
            return cls.parse(mod_string)
        except ParseError:
            return None

    @property
    def folder_name(self) -> str:
        """Directory name an install of this package lives in."""
        return f"{self.author}-{self.name}-{self.version}"

    def __str__(self) -> str:
        return self.folder_name
