"""
Arbor command layer: named, described wrappers around an argument tree.

What this module provides
- Command: a Value (name + description) with
  • arguments: an ArgGroup of the positional arguments, in order;
  • subcommands: None for a leaf command, otherwise a tuple of Commands.
  Commands nest to any depth; rendering only ever looks one level down.
- command(...): factory for hand-authored command trees.
- gethelp(obj): help text of any object exposing __command__().

Rendering
- summarize(): "name <arg> <arg> [COMMAND] .."
- details(): an "Arguments:" block and/or a "Commands:" block, two-space
  indented, separated by a blank line when both are present. Subcommands are
  listed by name and description only.
- help(): description paragraph, "Usage: " line, then details().
- __rich__/print_help(): the same text through rich, with styled labels.
  colorful and fancy only affect rich output, never help().

Quick start
    from arbor import command, value, choices

    cli = command(
        "complexe",
        value("arg1"),
        value("arg2", "Second argument"),
        descr="Complexified cli test",
        subcommands=[command("One"), command("Two", descr="Second command"), command("Three")],
    )
    print(cli.help(), end="")

Customization
- Define a mapping named __styles__ in __main__ to override any palette
  entry used by __rich__ (usage-label, program-name, usage-section,
  description-section, section-label, panel-title).
"""
from collections import defaultdict
from collections.abc import Iterable

from rich.console import Console
from rich.panel import Panel
from rich.text import Text

from .arguments import Arg, ArgGroup, SUMMARY, DETAILS, Value
from .formatter import Formatter, indent, lines
from .utils import *


class Command:
    """
    Named, described wrapper around one argument tree plus optional
    subcommands.

    Parameters
    - name: str
      Program or subcommand name, shown first in the usage line.
    - descr: Unset | str
      Paragraph shown at the top of help() and beside the name when listed
      as a subcommand.
    - arguments: ArgGroup | Iterable[Arg]
      Positional arguments, in order.
    - subcommands: Unset | Iterable[Command]
      Unset for a leaf command. Names must be unique (case-insensitively,
      as the parser matches them).
    - colorful: bool
      Style rich output (help text is unaffected).
    - fancy: bool
      Wrap rich output in a panel (help text is unaffected).

    Notes
    - Commands are immutable; containers are exposed as tuples.
    """

    __introspectable__ = (
        "value",
        "arguments",
        "subcommands",
        "colorful",
        "fancy",
    )

    __displayable__ = (
        "name",
        "descr",
        "arguments",
        "subcommands",
    )

    __slots__ = tuple("_" + name for name in __introspectable__)

    value = mirror("value")
    arguments = mirror("arguments")
    subcommands = mirror("subcommands")
    colorful = mirror("colorful")
    fancy = mirror("fancy")

    def __new__(
            cls,
            name,
            descr=Unset,
            /,
            arguments=(),
            subcommands=Unset,
            *,
            colorful=True,
            fancy=False,
    ):
        self = super().__new__(cls)
        self._value = name if isinstance(name, Value) and descr is Unset else Value(name, descr)

        if isinstance(arguments, ArgGroup):
            self._arguments = arguments
        elif isinstance(arguments, Iterable) and not isinstance(arguments, str):
            # ArgGroup validates the items themselves.
            self._arguments = ArgGroup(*arguments)
        else:
            raise TypeError("command 'arguments' must be an arg-group or an iterable of args")

        if subcommands is Unset:
            self._subcommands = None
        elif isinstance(subcommands, Iterable) and not isinstance(subcommands, str):
            subcommands = tuple(subcommands)
            seen = set()
            for subcommand in subcommands:
                if not isinstance(subcommand, Command):
                    raise TypeError("command 'subcommands' must be commands")
                if (key := subcommand.name.lower()) in seen:
                    raise ValueError(f"command subcommand name {subcommand.name!r} is already in use")
                seen.add(key)
            self._subcommands = subcommands
        else:
            raise TypeError("command 'subcommands' must be an iterable of commands")

        self._colorful = bool(colorful)
        self._fancy = bool(fancy)
        return self

    @property
    def name(self):
        return self._value.name

    @property
    def descr(self):
        return self._value.descr

    def summarize(self, styles=Unset, /):
        """
        One-line usage: name, argument summary, and a "[COMMAND] .." marker
        when subcommands are declared.
        """
        result = self._value.name
        if len(self._arguments):
            result += " " + self._arguments.summarize(coalesce(styles, SUMMARY))
        if self._subcommands is not None:
            result += " [COMMAND] .."
        return result

    def details(self, styles=Unset, /):
        """
        "Arguments:" and "Commands:" blocks, each indented by two spaces.
        """
        result = ""
        if len(self._arguments):
            result += "Arguments:\n" + indent(self._arguments.details(coalesce(styles, DETAILS)), "  ")
            if self._subcommands is not None:
                result += "\n"
        if self._subcommands is not None:
            listing = Formatter().fmt(self._subcommands, lambda subcommand: f"{subcommand.value:#}\n")
            result += "Commands:\n" + indent(listing, "  ")
        return result

    def help(self, /):
        """
        Full help text: description paragraph (if any), usage line, details.
        """
        head = f"{self._value.descr}\n\n" if self._value.descr is not None else ""
        return f"{head}Usage: {self.summarize()}\n\n{self.details()}"

    def __rich__(self):
        """
        Rich protocol hook: the help text with styled labels.

        Palette keys
        - usage-label, program-name, usage-section, description-section,
          section-label, panel-title
        """
        main = __import__("__main__")
        styles = defaultdict(str, {
            "usage-label": "bold #00E6FF",  # CYAN → signature info color
            "program-name": "bold #FF4D94",  # MAGENTA-PINK → brand pop
            "usage-section": "bold #36C5F0",  # SKY-BLUE → softer than cyan
            "description-section": "italic #A3A3A3",  # Neutral gray
            "section-label": "bold #FFFFFF",  # Pure white headers
            "panel-title": "bold #FF4D94",
        } | getattr(main, "__styles__", {}))

        def styler(style):
            return styles[style] if self._colorful else ""

        renderable = Text()
        if self._value.descr is not None:
            renderable.append(self._value.descr, styler("description-section")).append("\n\n")

        usage = self.summarize()
        renderable.append("Usage", styler("usage-label")).append(": ")
        renderable.append(self._value.name, styler("program-name"))
        renderable.append(usage.removeprefix(self._value.name), styler("usage-section")).append("\n\n")

        for line in lines(self.details()):
            renderable.append(line, styler("section-label") if line in ("Arguments:", "Commands:") else "")
            renderable.append("\n")

        renderable.rstrip()

        if self._fancy:
            return Panel(
                renderable,
                title=Text.assemble("[", " ", f"{self._value.name} HELP".upper(), " ", "]", style=styler("panel-title")),
                title_align="left",
            )
        return renderable

    def print_help(self, *, stderr=False):
        """
        Render help through a rich console (stdout by default).
        """
        Console(stderr=stderr).print(self)

    def __str__(self):
        return self.help()

    def __eq__(self, other):
        if not isinstance(other, Command):
            return NotImplemented
        return (self._value, self._arguments, self._subcommands) == (other._value, other._arguments, other._subcommands)

    def __hash__(self):
        return hash((self._value, self._arguments, self._subcommands))

    def __repr__(self):
        return "command(%s)" % ", ".join("%s=%r" % pair for pair in self.__rich_repr__())

    def __rich_repr__(self):
        for name in self.__displayable__:
            yield name, getattr(self, name)


def command(name, /, *arguments, descr=Unset, subcommands=Unset, **options):
    """
    Build a Command from positional args.

    Parameters
    - name: str
    - *arguments: Arg
    - descr: Unset | str
    - subcommands: Unset | Iterable[Command]
    - **options: colorful, fancy

    Example
        command("cli", subcommands=[command("One"), command("Two", descr="Second command")])
    """
    for argument in arguments:
        if not isinstance(argument, Arg):
            raise TypeError("command() positional arguments must be args")
    return Command(name, descr, arguments, subcommands, **options)


def gethelp(object, /):
    """
    Return the help text of an object exposing __command__().

    Raises
    - TypeError: when the hook is missing or does not return a Command.
    """
    if not hasattr(object, "__command__") or not callable(object.__command__):
        raise TypeError("gethelp() argument must implement __command__ method")
    if not isinstance(result := object.__command__(), Command):
        raise TypeError("__command__() must return a command")
    return result.help()


__all__ = (
    "Command",
    "command",
    "gethelp",
)
