"""Template source providers (loaders) for the scimitar Engine.

Loaders map a template key to its text. They implement `get_item(key)`
returning a `SourceItem`; the shared base class derives `get_source(key)`
and hierarchical imports lookup from it.

Provided here: `FileSystemLoader` (directories on disk), `DictLoader`
(a mapping), `ChoiceLoader` (first hit across several loaders) and
`FunctionLoader` (any callable).

Custom Loaders:
Subclass `BaseLoader` and implement `get_item`:
    ```python
    class DatabaseLoader(BaseLoader):
        def get_item(self, key: str) -> SourceItem:
            row = db.query("SELECT body FROM templates WHERE key = ?", key)
            if not row:
                return SourceItem.missing(key)
            return SourceItem.from_text(key, row.body, f"db://{key}")

        def list_templates(self) -> list[str]:
            return [r.key for r in db.query("SELECT key FROM templates")]
    ```

Hierarchical Imports:
For the key ``admin/users/list.html`` and imports file ``_imports.html``,
`find_hierarchical_imports` checks ``_imports.html``,
``admin/_imports.html`` and ``admin/users/_imports.html``, in that order.

The engine calls `get_item()` from many threads at once. None of the loaders
here keep mutable state, and an item's stream is read into memory up front.

"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from io import BytesIO
from pathlib import Path
from typing import BinaryIO, Protocol

from scimitar._types import TemplateSource
from scimitar.environment.exceptions import TemplateNotFoundError


@dataclass(frozen=True, slots=True)
class SourceItem:
    """A template key as seen by one loader.

    Attributes:
        key: Template key
        exists: Whether the loader has text for the key
        physical_location: File path or URI, when there is one
        reader: Returns the raw bytes; the stream from ``read()`` is in
            memory, so nothing stays open
    """

    key: str
    exists: bool
    physical_location: str | None = None
    encoding: str = "utf-8"
    reader: Callable[[], bytes] | None = field(default=None, repr=False, compare=False)

    @classmethod
    def missing(cls, key: str) -> SourceItem:
        return cls(key=key, exists=False)

    @classmethod
    def from_text(
        cls,
        key: str,
        text: str,
        physical_location: str | None = None,
        encoding: str = "utf-8",
    ) -> SourceItem:
        data = text.encode(encoding)
        return cls(key, True, physical_location, encoding, lambda: data)

    def read(self) -> BinaryIO:
        """Open the item's bytes as a binary stream.

        Raises:
            TemplateNotFoundError: If the item does not exist
        """
        if not self.exists or self.reader is None:
            raise TemplateNotFoundError(f"Template '{self.key}' not found")
        return BytesIO(self.reader())

    def read_text(self) -> str:
        with self.read() as stream:
            return stream.read().decode(self.encoding)


class Loader(Protocol):
    """What the Engine needs from a source provider."""

    def get_item(self, key: str) -> SourceItem: ...

    def get_source(self, key: str) -> TemplateSource: ...

    def find_hierarchical_imports(self, key: str, import_file_name: str) -> list[SourceItem]: ...

    def list_templates(self) -> list[str]: ...


def import_candidates(key: str, import_file_name: str) -> list[str]:
    """Keys of the imports files that apply to ``key``, outermost first.

    Example:
        >>> import_candidates("admin/users/list.html", "_imports.html")
        ['_imports.html', 'admin/_imports.html', 'admin/users/_imports.html']
    """
    directories = [part for part in key.replace("\\", "/").split("/")[:-1] if part]
    candidates = []
    for depth in range(len(directories) + 1):
        prefix = "/".join(directories[:depth])
        candidates.append(f"{prefix}/{import_file_name}" if prefix else import_file_name)
    return [candidate for candidate in candidates if candidate != key]


class BaseLoader:
    """Shared behaviour for loaders built on ``get_item``."""

    __slots__ = ()

    def get_item(self, key: str) -> SourceItem:
        raise NotImplementedError

    def list_templates(self) -> list[str]:
        return []

    def get_source(self, key: str) -> TemplateSource:
        """Load and decode the template text.

        Raises:
            TemplateNotFoundError: If the loader has no text for ``key``
        """
        item = self.get_item(key)
        if not item.exists:
            raise TemplateNotFoundError(self._not_found_message(key))
        return TemplateSource(key=key, content=item.read_text(), file_path=item.physical_location)

    def find_hierarchical_imports(self, key: str, import_file_name: str) -> list[SourceItem]:
        """Existing imports files for ``key``, outermost directory first."""
        items = [self.get_item(candidate) for candidate in import_candidates(key, import_file_name)]
        return [item for item in items if item.exists]

    def _not_found_message(self, key: str) -> str:
        return f"Template '{key}' not found"


class FileSystemLoader(BaseLoader):
    """Resolve keys as relative paths under one or more root directories.

    Roots are tried in the order given, so an application can put a folder of
    overrides in front of its stock views:

        >>> views = FileSystemLoader(["site/overrides", "site/views"])
        >>> views.get_item("admin/_imports.html").physical_location
        'site/views/admin/_imports.html'

    Files are decoded with ``encoding``; the engine passes
    ``EngineConfig.file_encoding`` when it builds one from a directory.
    """

    __slots__ = ("_encoding", "_paths")

    def __init__(
        self,
        paths: str | Path | Sequence[str | Path],
        encoding: str = "utf-8",
    ):
        if isinstance(paths, (str, Path)):
            paths = [paths]
        self._paths = [Path(p) for p in paths]
        self._encoding = encoding

    def get_item(self, key: str) -> SourceItem:
        for base in self._paths:
            path = base / key
            if path.is_file():
                return SourceItem(key, True, str(path), self._encoding, path.read_bytes)
        return SourceItem.missing(key)

    def list_templates(self) -> list[str]:
        """Relative keys of the .html, .xml and .txt files under every root."""
        templates = set()
        for base in self._paths:
            if base.is_dir():
                for pattern in ("*.html", "*.xml", "*.txt"):
                    for path in base.rglob(pattern):
                        templates.add(path.relative_to(base).as_posix())
        return sorted(templates)

    def _not_found_message(self, key: str) -> str:
        return f"Template '{key}' not found in: {', '.join(str(p) for p in self._paths)}"


class DictLoader(BaseLoader):
    """Serve template text straight from a mapping of key to source.

    The mapping is read on every lookup, so edits to it show up the next time
    a key is compiled.

    Example:
            >>> loader = DictLoader({
            ...     "_layout.html": "<html>@render_body()</html>",
            ...     "page.html": "@layout '_layout.html'\\nHi",
            ... })
            >>> Engine(loader).run("page.html")
            '<html>Hi</html>'

    """

    __slots__ = ("_encoding", "_mapping")

    def __init__(self, mapping: Mapping[str, str], encoding: str = "utf-8"):
        self._mapping = mapping
        self._encoding = encoding

    def get_item(self, key: str) -> SourceItem:
        text = self._mapping.get(key)
        if text is None:
            return SourceItem.missing(key)
        return SourceItem.from_text(key, text, encoding=self._encoding)

    def list_templates(self) -> list[str]:
        return sorted(self._mapping.keys())

    def _not_found_message(self, key: str) -> str:
        from difflib import get_close_matches

        available = sorted(self._mapping.keys())
        msg = f"Template '{key}' not found"
        matches = get_close_matches(key, available, n=1, cutoff=0.6)
        if matches:
            msg += f". Did you mean '{matches[0]}'?"
        elif available:
            msg += f". Available: {', '.join(available[:10])}"
            if len(available) > 10:
                msg += f" ... ({len(available)} total)"
        return msg


class ChoiceLoader(BaseLoader):
    """Consult several loaders and take the first item that exists.

    The engine puts its in-memory overlay in front of the configured loader
    this way. Imports files are still looked up per directory, so an
    ``_imports.html`` from one loader and a page from another combine.
    """

    __slots__ = ("_loaders",)

    def __init__(self, loaders: Sequence[Loader]):
        self._loaders = list(loaders)

    def get_item(self, key: str) -> SourceItem:
        for loader in self._loaders:
            item = loader.get_item(key)
            if item.exists:
                return item
        return SourceItem.missing(key)

    def list_templates(self) -> list[str]:
        templates: set[str] = set()
        for loader in self._loaders:
            templates.update(loader.list_templates())
        return sorted(templates)

    def _not_found_message(self, key: str) -> str:
        return f"Template '{key}' not found in any of {len(self._loaders)} loaders"


class FunctionLoader(BaseLoader):
    """Adapt a plain callable into a loader.

    ``load_func(key)`` returns the template text, a ``(text, location)`` pair,
    or ``None`` when the key does not exist. Bare text reports ``"<function>"``
    as its location.

    Example:
            >>> def load(key):
            ...     if key == "greeting.html":
            ...         return "Hello, @Model.name!"
            ...     return None
            >>> Engine(FunctionLoader(load)).run("greeting.html", {"name": "World"})
            'Hello, World!'
    """

    __slots__ = ("_load_func",)

    def __init__(
        self,
        load_func: Callable[[str], str | tuple[str, str | None] | None],
    ):
        self._load_func = load_func

    def get_item(self, key: str) -> SourceItem:
        result = self._load_func(key)
        if result is None:
            return SourceItem.missing(key)
        if isinstance(result, str):
            return SourceItem.from_text(key, result, "<function>")
        text, location = result
        return SourceItem.from_text(key, text, location)
