"""Error types raised by the install pipeline.

Every failure surfaces to the caller as a subclass of InstallError so a
front-end can render a single descriptive message without knowing which
step failed.
"""

from pathlib import Path


class InstallError(Exception):
    """Error during plugin installation."""

    def __init__(self, message: str, package: str | None = None):
        self.package = package
        super().__init__(message)


class ParseError(InstallError):
    """A mod string is not of the form author-name-version."""

    def __init__(self, mod_string: str, reason: str = "expected author-name-version"):
        self.mod_string = mod_string
        super().__init__(f"Invalid mod string {mod_string!r}: {reason}", mod_string)


class ArchiveError(InstallError):
    """The archive is unreadable or corrupt."""


class MissingFileError(InstallError):
    """The archive does not carry the expected manifest/plugins layout."""

    def __init__(self, path: Path, package: str | None = None):
        self.path = path
        super().__init__(f"Missing expected file: {path}", package)


class PluginsDisabledError(InstallError):
    """The package contains plugins but plugin installs are disabled."""

    def __init__(self, package: str | None = None):
        super().__init__(
            "Plugin installing is disabled; this mod contains a plugin. "
            "Plugins can be enabled in the settings.",
            package,
        )


class UserDeniedError(InstallError):
    """The user refused to install a plugin."""

    def __init__(self, message: str = "User denied plugin installing", package: str | None = None):
        super().__init__(message, package)


class ConsentTimedOutError(UserDeniedError):
    """No consent decision arrived before the timeout expired."""

    def __init__(self, timeout: float, package: str | None = None):
        self.timeout = timeout
        super().__init__(f"No plugin install decision received within {timeout:g}s", package)


class FilesystemError(InstallError):
    """A filesystem operation (create, copy, move, delete) failed."""


class ChannelError(InstallError):
    """A consent decision could not be delivered."""


class DuplicatePluginError(InstallError):
    """Two plugins in the package would be installed under the same file name."""

    def __init__(self, name: str, package: str | None = None):
        self.name = name
        super().__init__(f"Package contains more than one plugin named {name!r}", package)
