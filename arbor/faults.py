"""
Arbor faults (errors and warnings) and rendering.

Scope
- FaultCode: canonical, stable numeric identifiers for every user-facing issue
  (parse errors and description warnings).
- ParsingError / DescriptionWarning: base types that carry a message + options
  and know how to render themselves through rich.
- trigger(): central entry point to surface any fault (respecting shell/fancy/colorful).
- getdoc(): optional description lookup for a code from the host application.

Taxonomy
- The parse error set is closed and flat: TooFewArgumentsError, BadTypeError,
  VariantNotFoundError and TooManyArgumentsError. There is no chaining of causes
  and no positional context; the kind of the error is the whole diagnostic.
- Description warnings flag degenerate trees (e.g., a choice without any
  alternative). Trees still render; the warning is informative only.

Integration
- The parsing layer raises faults directly; parse(..., shell=True) hands them
  to trigger() so that they are printed with rich and the process exits.
- Hosts may define __styles__, __codes__, __docs__ and __prog__ in __main__
  to restyle, relabel and document faults.
"""
import copy
import inspect
import sys
import warnings
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset, coalesce

console = Console(stderr=True)


class FaultCode(IntEnum):
    """
    canonical fault codes (stable identifiers).

    grouping
    - parsing (112xx)
      • TOO_FEW_ARGUMENTS, BAD_TYPE, VARIANT_NOT_FOUND, TOO_MANY_ARGUMENTS
    - description warnings (122xx)
      • EMPTY_CHOICES
    """
    # --- parsing errors (11xxx) ---
    TOO_FEW_ARGUMENTS  = 11201
    BAD_TYPE           = 11202
    VARIANT_NOT_FOUND  = 11203
    TOO_MANY_ARGUMENTS = 11204

    # --- warnings (12xxx) ---
    EMPTY_CHOICES      = 12201

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__
        to override numeric ids with friendlier labels. when no mapping
        is present, the numeric value is returned as a string.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


def _render(fault, palette):
    """
    Build the rich renderable shared by errors and warnings.

    Layout
    - header: "[ prog — code | Title ]"
    - body: the message, then an arrow and the hint.
    - fancy=True wraps the body in a Panel titled by the header.
    """
    main = __import__("__main__")
    options = fault.options
    colorful = options.get("colorful", True)
    fancy = options.get("fancy", False)

    styles = defaultdict(str, palette | getattr(main, "__styles__", {}))

    def styler(style):
        return styles[style] if colorful else ""

    def text(fragment, style=""):
        if not fragment:
            return Text("")
        if not colorful:
            return Text(str(fragment))
        if isinstance(fragment, Text):
            return fragment
        return Text(str(fragment), style)

    kind = "error" if isinstance(fault, Exception) else "warning"
    prog = text(getattr(main, "__prog__", options.get("prog", "arbor")), styler("prog-name"))

    header = Text.assemble(
        "[ ",
        prog,
        " — ",
        text(fault.code.normalize(), styler("code")),
        " | ",
        text(options.get("title", fault.title).title(), styler(kind + "-title")),
        " ]"
    )
    message = text(fault.message, styler(kind + "-message"))
    hint = Text.assemble(text(" → ", styler("hint-arrow")), text(options.get("hint", fault.hint), styler("hint")))

    if fancy:
        return Panel(Group(message, hint), title=header, title_align="left")

    return Group(header, message, hint)


class ParsingError(Exception):
    """
    Base of the closed parse error taxonomy.

    Subclasses only fix the class-level metadata (code, title, hint, default
    message). Options (prog, shell, fancy, colorful, title, hint) are attached
    through copy.replace()/trigger() and only affect rendering.
    """
    code = Unset
    title = "parsing error"
    hint = "check the arguments against the usage line"
    default = "the arguments could not be parsed"

    def __init__(self, message=Unset, /, **options):
        message = coalesce(message, type(self).default)
        assert isinstance(message, str)
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(options)

    def __init_subclass__(cls, **options):
        super().__init_subclass__(**options)
        if not isinstance(cls.code, FaultCode):
            raise TypeError(f"{cls.__name__} must declare a fault code")

    def __eq__(self, other):
        if not isinstance(other, ParsingError):
            return NotImplemented
        return type(self) is type(other) and self.message == other.message

    def __hash__(self):
        return hash((type(self), self.message))

    def __rich__(self):
        return _render(self, {
            # header parts
            "prog-name": "bold #E6E6F0",  # near-white program name
            "code": "bold #00E5FF",  # neon cyan fault code
            "error-title": "bold #FF4DA6",  # friendly pinky title

            # body
            "error-message": "#C8C8D0",  # soft light gray message
            "hint-arrow": "#9CE19C dim",  # gentle green arrow
            "hint": "italic #9CE19C",  # gentle green hint text
        })

    def __trigger__(self) -> None:
        if not self.options.get("shell", False):
            raise self from None
        console.print(self)
        sys.exit(1)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class TooFewArgumentsError(ParsingError):
    code = FaultCode.TOO_FEW_ARGUMENTS
    title = "too few arguments"
    hint = "provide every positional argument shown in the usage line"
    default = "an argument was expected but the input ended"


class BadTypeError(ParsingError):
    code = FaultCode.BAD_TYPE
    title = "bad type"
    hint = "check the expected type of each argument"
    default = "an argument could not be converted to its expected type"


class VariantNotFoundError(ParsingError):
    code = FaultCode.VARIANT_NOT_FOUND
    title = "variant not found"
    hint = "use one of the listed choices (case does not matter)"
    default = "no variant matches the given name"


class TooManyArgumentsError(ParsingError):
    code = FaultCode.TOO_MANY_ARGUMENTS
    title = "too many arguments"
    hint = "remove the extra trailing arguments"
    default = "arguments remain after a complete parse"


class DescriptionWarning(Warning):
    """
    Base of description (argument tree) warnings.

    Outside shell mode the warning is emitted through warnings.warn so that
    the usual filters apply; in shell mode it is printed with rich.
    """
    code = Unset
    title = "description warning"
    hint = "review the argument tree"
    default = "the argument tree is degenerate"

    def __init__(self, message=Unset, /, **options):
        message = coalesce(message, type(self).default)
        assert isinstance(message, str)
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(options)

    def __rich__(self):
        return _render(self, {
            # header parts
            "prog-name": "bold #E6E6F0",  # near-white program name
            "code": "bold #FFB400",  # amber fault code for warnings
            "warning-title": "bold #FFC2E0",  # softer pinky title for warnings

            # body
            "warning-message": "#D6D6DE",  # slightly lighter gray body
            "hint-arrow": "#B8EFAF dim",  # softer green arrow
            "hint": "italic #B8EFAF",  # softer green hint text
        })

    def __trigger__(self) -> None:
        if not self.options.get("shell", False):
            return warnings.warn(self, stacklevel=len(inspect.stack()))
        console.print(self)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class EmptyChoicesWarning(DescriptionWarning):
    code = FaultCode.EMPTY_CHOICES
    title = "empty choices"
    hint = "give the choice at least one alternative"
    default = "a choice was built without any alternative"


def trigger(fault, /, **options):
    """
    surface a fault with the given runtime options.

    contract
    - fault must provide __trigger__ and __replace__ methods (see base classes).
    - options are merged into the fault via copy.replace() before triggering.
    - in shell mode, rendering happens via the rich console; otherwise errors
      are raised and warnings are emitted.

    typical options
    - prog, shell, fancy, colorful, title, hint.
    """
    if (
        not hasattr(fault, "__trigger__") or
        not callable(fault.__trigger__) or
        not hasattr(fault, "__replace__") or
        not callable(fault.__replace__)
    ):
        raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    copy.replace(fault, **options).__trigger__()


def getdoc(code, /):
    """
    optional documentation fetch for a fault code.

    the host application may expose a __docs__ mapping in __main__ where keys
    are FaultCode members and values are short documentation strings. when
    not found, returns None.
    """
    if not isinstance(code, FaultCode):
        raise TypeError("getdoc() argument must be a fault-code")
    try:
        return getattr(__import__("__main__"), "__docs__", {})[code]
    except KeyError:
        return None


__all__ = (
    "FaultCode",
    "ParsingError",
    "TooFewArgumentsError",
    "BadTypeError",
    "VariantNotFoundError",
    "TooManyArgumentsError",
    "DescriptionWarning",
    "EmptyChoicesWarning",
    "trigger",
    "getdoc",
)
