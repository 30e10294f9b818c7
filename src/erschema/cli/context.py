"""CLI context management for connection settings and shared state."""

from dataclasses import dataclass

from sqlalchemy.engine import make_url

from erschema.dialect import Dialect, get_dialect


def resolve_dialect_name(dialect: str | None, url: str | None) -> str:
    """Resolve the dialect from the CLI option or the database URL.

    Priority:
    1. Explicit dialect name (``--dialect`` or ERSCHEMA_DIALECT)
    2. Backend of the database URL, e.g. ``mysql`` for ``mysql+pymysql://...``
    """
    if dialect:
        return dialect
    if url:
        return make_url(url).get_backend_name()
    raise ValueError("No dialect given: pass --dialect or a database --url")


@dataclass
class CLIContext:
    """Shared context for CLI commands.

    Holds connection settings and output preferences.
    """

    url: str | None
    dialect_name: str | None
    user: str | None
    password: str | None
    driver: str | None
    json_output: bool

    def get_dialect(self) -> Dialect:
        """Dialect named on the command line or implied by the URL.

        Raises:
            ElementNotFoundError: If no dialect has that name
        """
        return get_dialect(resolve_dialect_name(self.dialect_name, self.url))

    def require_url(self) -> str:
        """The database URL.

        Raises:
            ValueError: If none was given
        """
        if not self.url:
            raise ValueError("No database URL given: pass --url or set ERSCHEMA_URL")
        return self.url
