"""Per-render execution state: section frames, body writers, current writer.

One ExecuteContext is created for every top-level render (and for every
include) and is never shared between renders. Layout rendering nests frames:

    child defines Foot            frames: [{Foot}]
    layout rendered nested        frames: [{Foot}, {}]
      layout calls render_section("Foot") → child's action
    layout finished               frames: [{Foot}]

A frame's definitions are removed when the frame is popped, even when the
nested render raises, so the context is left exactly as it was on entry.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING, TextIO, TypeVar

from scimitar.environment.exceptions import (
    BodyWriterStackError,
    SectionDefinitionError,
)

if TYPE_CHECKING:
    from scimitar.template.writer import TemplateWriter

T = TypeVar("T")

SectionAction = Callable[[], None]


@dataclass(frozen=True, slots=True)
class ContextState:
    """Structural copy of an ExecuteContext, for comparisons in tests and debugging.

    Attributes:
        frames: Section names defined in each frame, outermost first
        sections: (name, actions) pairs, actions innermost last
        body_writers: Depth of the body writer stack
    """

    frames: tuple[tuple[str, ...], ...]
    sections: tuple[tuple[str, tuple[SectionAction, ...]], ...]
    body_writers: int


class ExecuteContext:
    """Section and writer bookkeeping for one render.

    Attributes:
        current_writer: Sink that ``write``/``write_literal`` target

    Thread-Safety:
        Not thread-safe; a context belongs to exactly one render.
    """

    __slots__ = ("_body_writers", "_frames", "_sections", "current_writer")

    def __init__(self, writer: TextIO | None = None):
        self._frames: list[dict[str, SectionAction]] = [{}]
        self._sections: dict[str, list[SectionAction]] = {}
        self._body_writers: list[TemplateWriter] = []
        self.current_writer = writer

    # ------------------------------------------------------------------
    # Sections
    # ------------------------------------------------------------------

    def define_section(self, name: str, action: SectionAction) -> None:
        """Register ``action`` for ``name`` in the innermost frame.

        Raises:
            SectionDefinitionError: If ``name`` is empty or already defined
                in the innermost frame
        """
        if not name:
            raise SectionDefinitionError("Section name must not be empty")
        frame = self._frames[-1]
        if name in frame:
            raise SectionDefinitionError(f"Section '{name}' is already defined")
        frame[name] = action
        self._sections.setdefault(name, []).append(action)

    def get_section_renderer(self, name: str) -> SectionAction | None:
        """Innermost visible action for ``name``, or None."""
        stack = self._sections.get(name)
        return stack[-1] if stack else None

    def is_section_defined(self, name: str) -> bool:
        return bool(self._sections.get(name))

    @contextmanager
    def nested_frame(self) -> Iterator[ExecuteContext]:
        """Push a fresh frame; on exit pop exactly that frame and its definitions."""
        frame: dict[str, SectionAction] = {}
        self._frames.append(frame)
        try:
            yield self
        finally:
            for index in range(len(self._frames) - 1, -1, -1):
                if self._frames[index] is frame:
                    del self._frames[index]
                    break
            for name, action in frame.items():
                self._remove_action(name, action)

    def enter_nested_render(self, inner: Callable[[], T]) -> T:
        """Run ``inner`` inside a fresh frame (see ``nested_frame``)."""
        with self.nested_frame():
            return inner()

    def _remove_action(self, name: str, action: SectionAction) -> None:
        stack = self._sections.get(name)
        if not stack:
            return
        for index in range(len(stack) - 1, -1, -1):
            if stack[index] is action:
                del stack[index]
                break
        if not stack:
            del self._sections[name]

    @contextmanager
    def section_scope(self, name: str) -> Iterator[None]:
        """Hide the innermost action of ``name`` while it renders.

        A layout that redefines a section can then call
        ``render_section(name)`` to reach the definition it replaces.
        """
        stack = self._sections.get(name)
        if not stack:
            yield
            return
        action = stack.pop()
        try:
            yield
        finally:
            self._sections.setdefault(name, stack).append(action)

    # ------------------------------------------------------------------
    # Body writers
    # ------------------------------------------------------------------

    def push_body_writer(self, writer: TemplateWriter) -> None:
        self._body_writers.append(writer)

    def pop_body_writer(self) -> TemplateWriter:
        """Pop the body writer pushed by the nearest child render.

        Raises:
            BodyWriterStackError: If no body writer is available
        """
        if not self._body_writers:
            raise BodyWriterStackError(
                "render_body() called with no body to render; "
                "it is only available in a layout, at most once per layout"
            )
        return self._body_writers.pop()

    @property
    def body_writer_depth(self) -> int:
        return len(self._body_writers)

    # ------------------------------------------------------------------
    # Writers
    # ------------------------------------------------------------------

    @contextmanager
    def writer_scope(self, writer: TextIO) -> Iterator[TextIO]:
        """Make ``writer`` current; restore the previous writer on exit."""
        previous = self.current_writer
        self.current_writer = writer
        try:
            yield writer
        finally:
            self.current_writer = previous

    def snapshot(self) -> ContextState:
        """Structural copy of frames, section stacks and body writer depth."""
        return ContextState(
            frames=tuple(tuple(frame) for frame in self._frames),
            sections=tuple((name, tuple(stack)) for name, stack in sorted(self._sections.items())),
            body_writers=len(self._body_writers),
        )
