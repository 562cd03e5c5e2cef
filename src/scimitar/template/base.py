"""TemplateBase: the runtime base class of every generated template.

Generated classes override ``execute()``; everything a template body can
call (``write``, ``render_section``, ``include``, ...) lives here and is
bound to local names at the top of ``execute()``.

Lifecycle of one render:
    ```
    instance = compiled.create()          # fresh instance per render
    instance.bind(model, context, ...)    # model, view bag, execute context
    instance.run(context, buffer)         # execute() with buffer as writer
    instance.layout                       # read by the runner afterwards
    ```

Host applications may subclass TemplateBase (``EngineConfig.template_base_type``
or ``@inherits``) to add helpers; ``required_namespaces`` lists modules the
generated code should import for them.

"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any, ClassVar, TextIO

from scimitar.environment.exceptions import SectionNotDefinedError
from scimitar.template.model import ViewBag
from scimitar.template.writer import EMPTY_WRITER, TemplateWriter
from scimitar.utils.html import RawString, html_escape

if TYPE_CHECKING:
    from scimitar.template.execute_context import ExecuteContext, SectionAction

Includer = Callable[[str, Any], str]


class _Missing:
    __slots__ = ()

    def __repr__(self) -> str:
        return "<same model>"


_SAME_MODEL: Any = _Missing()


class TemplateBase:
    """Base class for generated templates.

    Attributes:
        model: The model bound for this render
        view_bag: Values shared with layouts and includes
        layout: Key of the layout to render around this output, or None
        is_nested: Whether this instance renders as a layout or an include

    Class Attributes:
        required_namespaces: Namespaces imported into every generated module
        declared_model: Type from ``@model``; bound models must be instances
        template_key: Key of the template the class was generated from

    Thread-Safety:
        Instances are per render and never shared; the class itself is
        shared read-only.
    """

    required_namespaces: ClassVar[frozenset[str]] = frozenset()
    declared_model: ClassVar[type | None] = None
    template_key: ClassVar[str] = ""

    __slots__ = ("_context", "_encode", "_includer", "is_nested", "layout", "model", "view_bag")

    def __init__(self) -> None:
        self.model: Any = None
        self.view_bag = ViewBag()
        self.layout: str | None = None
        self.is_nested = False
        self._context: ExecuteContext | None = None
        self._includer: Includer | None = None
        self._encode: Callable[[Any], str] = html_escape

    def bind(
        self,
        model: Any,
        context: ExecuteContext,
        view_bag: ViewBag | None = None,
        *,
        includer: Includer | None = None,
        encoder: Callable[[Any], str] | None = None,
        is_nested: bool = False,
    ) -> None:
        """Attach the model, view bag and execute context for one render.

        Raises:
            TypeError: If ``@model`` declared a type and ``model`` is not an
                instance of it
        """
        declared = type(self).declared_model
        if declared is not None and model is not None and not isinstance(model, declared):
            raise TypeError(
                f"Template '{self.template_key}' expects a model of type "
                f"{declared.__module__}.{declared.__qualname__}, "
                f"got {type(model).__module__}.{type(model).__qualname__}"
            )
        self.model = model
        self._context = context
        if view_bag is not None:
            self.view_bag = view_bag
        self._includer = includer
        self.is_nested = is_nested
        if encoder is not None:
            self._encode = encoder

    def run(self, context: ExecuteContext, writer: TextIO) -> None:
        """Execute the template body with ``writer`` as the current writer."""
        with context.writer_scope(writer):
            self.execute()

    def execute(self) -> None:
        """Template body; overridden by every generated class."""
        raise NotImplementedError(f"{type(self).__name__} does not define execute()")

    @property
    def context(self) -> ExecuteContext:
        if self._context is None:
            raise RuntimeError("Template is not bound to an execute context")
        return self._context

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------

    def write(self, value: Any) -> None:
        """Write an encoded value; None writes nothing."""
        if value is None:
            return
        writer = self.context.current_writer
        if writer is None:
            raise RuntimeError("No writer is active")
        if isinstance(value, TemplateWriter):
            value.write_to(writer)
            return
        writer.write(self._encode(value))

    def write_literal(self, text: str) -> None:
        """Write template text verbatim."""
        if not text:
            return
        writer = self.context.current_writer
        if writer is None:
            raise RuntimeError("No writer is active")
        writer.write(text)

    @staticmethod
    def raw(value: Any) -> RawString:
        """Mark ``value`` as already encoded."""
        return RawString("" if value is None else value)

    # ------------------------------------------------------------------
    # Sections and layouts
    # ------------------------------------------------------------------

    def define_section(self, name: str, action: SectionAction) -> None:
        self.context.define_section(name, action)

    def is_section_defined(self, name: str) -> bool:
        return self.context.is_section_defined(name)

    def render_section(self, name: str, required: bool = False) -> TemplateWriter:
        """Writer for the innermost definition of section ``name``.

        A missing section renders as nothing unless ``required`` is set.

        Raises:
            SectionNotDefinedError: If ``required`` and no template defines it
        """
        context = self.context
        action = context.get_section_renderer(name)
        if action is None:
            if required:
                raise SectionNotDefinedError(
                    f"Section '{name}' is required by '{self.template_key}' but is not defined"
                )
            return EMPTY_WRITER

        def render(writer: TextIO) -> None:
            with context.writer_scope(writer), context.section_scope(name):
                action()

        return TemplateWriter(render)

    def render_body(self) -> TemplateWriter:
        """Writer replaying the output of the template this layout wraps.

        Raises:
            BodyWriterStackError: Outside a layout, or when called twice
        """
        return self.context.pop_body_writer()

    # ------------------------------------------------------------------
    # Includes
    # ------------------------------------------------------------------

    def include(self, key: str, model: Any = _SAME_MODEL) -> RawString:
        """Render another template and return its output.

        The included template shares this render's view bag and gets its own
        execute context; ``model`` defaults to the current model.
        """
        if self._includer is None:
            raise RuntimeError("include() requires a template runner")
        return RawString(self._includer(key, self.model if model is _SAME_MODEL else model))

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.template_key!r}>"
