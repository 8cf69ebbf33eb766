r"""
Arbor argument trees: description of a positional CLI value's shape.

Overview
- Value: an immutable (name, descr) label pair.
- ArgType: closed sum type of the tree nodes.
  • Leaf: a single positional token, no children.
  • Choices(*args): pick exactly one of the named alternatives (tagged union).
  • ArgGroup(*args): all of these together (record/struct).
- Arg: a Value bound to an ArgType, with its depth cached at construction.

Rendering
- summarize(): one-line usage fragment.
  • leaves and shallow choices (max_depth <= 2) collapse to their name;
  • deeper choices expand inline as <a|b|c>;
  • groups always expand as <a> <b> <c>.
- details(): multi-line listing with descriptions padded to 8 columns.
  • leaves and shallow choices produce a "name    descr" header line, shallow
    choices add their bulleted alternatives indented by two spaces;
  • deeper choices and groups contribute their children's lines directly.

Depth rules
- Leaf → 1
- Choices → 1 + deepest alternative (selecting a variant costs one level)
- ArgGroup → deepest field (a struct lives at the depth of its fields)
- any container without children → 1

Styles
- SUMMARY and DETAILS map container classes to the Formatter used to join
  their children. Every rendering method takes an optional style map that is
  passed down the recursion; a container missing from the map uses Formatter().

Quick example:
    >>> from arbor.arguments import value, choices, group
    >>> number = choices("number", value("One"), value("Two", "Second argument"), value("Three"))
    >>> format(number, "#")
    'number'
    >>> print(number, end="")
    number
      - One
      - Two     Second argument
      - Three

Public API
- Classes: Value, ArgType, Leaf, Choices, ArgGroup, Arg
- Factories: value, choices, group
- Hooks: getarguments (objects exposing __arguments__)
- Style maps: SUMMARY, DETAILS
"""
import functools
import operator
import re
from types import MappingProxyType

from .faults import EmptyChoicesWarning, trigger
from .formatter import Formatter, indent
from .utils import *


class DescriptionType(type):
    """
    Metaclass giving tree nodes a stable, introspectable shape.

    Responsibilities
    - Expose selected fields as read-only properties using mirror() for all
      names listed in __introspectable__.
    - Provide stable, readable __repr__/__rich_repr__ implementations for
      diagnostics.
    - Derive __typename__ from the class name (camel-case split with hyphens)
      for messages.

    Options
    - final: when True, the resulting class cannot be subclassed.
    """
    __introspectable__ = ()
    __displayable__ = Unset

    def __new__(cls, name, bases, namespace, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower(),
            } | {
                name: mirror(name) for name in namespace.get("__introspectable__", ())
            },
        )

        @rename("__repr__")
        def __repr__(self):
            """
            Return a concise, stable representation with key metadata.

            Example
            - arg(name='tutu', descr=None, type=choices(...), max_depth=2)
            """
            return "%s(%s)" % (
                type(self).__typename__,
                ", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__())),
            )
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            """
            Yield (name, object) pairs for pretty printers.
            """
            for name in coalesce(type(self).__displayable__, type(self).__introspectable__):
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        if options.get("final", False):
            @rename("__init_subclass__")
            def __init_subclass__(cls, **options):  # NOQA: F-841
                raise TypeError(f"type {self.__name__!r} is not an acceptable base type")
            self.__init_subclass__ = classmethod(__init_subclass__)

        return self


def _sanitize_metadata(cls, metadata, /):
    """
    Internal: normalize and validate the (name, descr) label pair.

    - name: required string, non-empty after trimming.
    - descr: Unset or a string, non-empty after trimming. Unset becomes None;
      an explicit None is rejected (omit the description instead).

    Raises
    - TypeError: if name or descr has the wrong type.
    - ValueError: if name or descr is empty after trimming.
    """
    if not isinstance(name := metadata["name"], str):
        raise TypeError(f"{cls.__typename__} 'name' must be a string")
    elif not (name := name.strip()):
        raise ValueError(f"{cls.__typename__} 'name' cannot be empty")
    metadata["name"] = name

    if not isinstance(descr := metadata["descr"], str | Unset):
        raise TypeError(f"{cls.__typename__} 'descr' must be a string")
    elif isinstance(descr, str) and not (descr := descr.strip()):
        raise ValueError(f"{cls.__typename__} 'descr' cannot be empty")
    metadata["descr"] = coalesce(descr)


class Value(metaclass=DescriptionType, final=True):
    """
    Immutable label pair: the name shown in usage lines and the optional
    description shown beside it in detailed listings.

    Formatting
    - format(value) / str(value): the bare name.
    - format(value, "#"): "name" padded to 8 columns followed by the
      description, or the bare name when there is no description. Names of
      eight characters or more are not padded.
    """

    __introspectable__ = (
        "name",
        "descr",
    )

    __slots__ = ("_name", "_descr")

    def __new__(cls, name, descr=Unset, /):
        metadata = {
            "name": name,
            "descr": descr,
        }
        _sanitize_metadata(cls, metadata)

        self = super().__new__(cls)
        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        return self

    def __format__(self, spec):
        match spec:
            case "#" if self._descr is not None:
                return f"{self._name:<8}{self._descr}"
            case "" | "#":
                return self._name
            case _:
                raise ValueError(f"invalid format specifier {spec!r} for {type(self).__typename__}")

    def __str__(self):
        return self._name

    def __eq__(self, other):
        if not isinstance(other, Value):
            return NotImplemented
        return (self._name, self._descr) == (other._name, other._descr)

    def __hash__(self):
        return hash((self._name, self._descr))


class ArgType(metaclass=DescriptionType):
    """
    Closed sum type of argument tree nodes: Leaf, Choices or ArgGroup.

    Containers own their children by value (a tuple of Arg); the tree is
    strictly tree-shaped and immutable once built. This class cannot be
    instantiated nor subclassed outside of its three variants.
    """

    __introspectable__ = (
        "arguments",
    )

    __slots__ = ("_arguments",)

    def __new__(cls, *arguments):
        if cls is ArgType:
            raise TypeError("type 'ArgType' cannot be instantiated, use Leaf, Choices or ArgGroup")
        for argument in arguments:
            if not isinstance(argument, Arg):
                raise TypeError(f"{cls.__typename__} arguments must be args")

        self = super().__new__(cls)
        self._arguments = arguments
        return self

    def depth(self):
        """
        Deepest child depth, or 1 when there is no child.
        """
        return max((argument.max_depth for argument in self._arguments), default=1)

    def summarize(self, styles=Unset, /):
        """
        Join children summaries with this container's summary formatter.
        """
        return coalesce(styles, SUMMARY).get(type(self), Formatter()).fmt(
            self._arguments, lambda argument: argument.summarize(styles)
        )

    def details(self, styles=Unset, /):
        """
        Join children details with this container's details formatter.
        """
        return coalesce(styles, DETAILS).get(type(self), Formatter()).fmt(
            self._arguments, lambda argument: argument.details(styles)
        )

    def __len__(self):
        return len(self._arguments)

    def __iter__(self):
        return iter(self._arguments)

    def __eq__(self, other):
        if not isinstance(other, ArgType):
            return NotImplemented
        return type(self) is type(other) and self._arguments == other._arguments

    def __hash__(self):
        return hash((type(self), self._arguments))


class Leaf(ArgType, final=True):
    """
    A single positional token. Leaves have no children and nothing to join:
    summarize() and details() return None.
    """

    __slots__ = ()

    def __new__(cls, *arguments):
        if arguments:
            raise TypeError(f"{cls.__typename__} takes no arguments")
        return super().__new__(cls)

    def summarize(self, styles=Unset, /):
        return None

    def details(self, styles=Unset, /):
        return None


class Choices(ArgType, final=True):
    """
    Exactly one of the given alternatives (a tagged union).

    A choice without alternatives is degenerate; it is still built and still
    renders, but an EmptyChoicesWarning is emitted.
    """

    __slots__ = ()

    def __new__(cls, *arguments):
        self = super().__new__(cls, *arguments)
        if not arguments:
            trigger(EmptyChoicesWarning())
        return self


class ArgGroup(ArgType, final=True):
    """
    All of the given fields, in order (a record/struct).
    """

    __slots__ = ()


@rename("__init_subclass__")
def _sealed(cls, **options):
    raise TypeError("type 'ArgType' is not an acceptable base type")


# Leaf, Choices and ArgGroup are the only variants.
ArgType.__init_subclass__ = classmethod(_sealed)


class Arg(metaclass=DescriptionType, final=True):
    """
    Argument tree node: a labelled ArgType.

    Parameters
    - name: str | Value
      Field or variant name, or an already built Value (then descr must be omitted).
    - descr: Unset | str
      Short description shown in detailed listings.
    - type: Unset | ArgType
      Node variant; defaults to a Leaf.

    Properties
    - value, type, max_depth (read-only), plus name/descr shortcuts.

    Formatting
    - format(arg, "#") is summarize(); str(arg) and format(arg) are details().
    """

    __introspectable__ = (
        "value",
        "type",
        "max_depth",
    )

    __displayable__ = (
        "name",
        "descr",
        "type",
        "max_depth",
    )

    __slots__ = ("_value", "_type", "_max_depth")

    def __new__(cls, name, descr=Unset, /, type=Unset):
        if isinstance(name, Value):
            if descr is not Unset:
                raise TypeError(f"{cls.__typename__} cannot take a 'descr' along with a value")
            value = name
        else:
            value = Value(name, descr)

        if type is Unset:
            type = Leaf()
        elif not isinstance(type, ArgType):
            raise TypeError(f"{cls.__typename__} 'type' must be an arg-type")

        self = super().__new__(cls)
        self._value = value
        self._type = type

        # Computed once; never recomputed during rendering.
        match type:
            case Leaf():
                self._max_depth = 1
            case _ if not len(type):
                self._max_depth = 1
            case Choices():
                self._max_depth = type.depth() + 1
            case ArgGroup():
                self._max_depth = type.depth()
        return self

    @property
    def name(self):
        return self._value.name

    @property
    def descr(self):
        return self._value.descr

    def summarize(self, styles=Unset, /):
        """
        One-line usage fragment of this argument.

        - Leaf → bare name.
        - Choices with max_depth <= 2 → bare name (detailed in details()).
        - deeper Choices → <a|b|...> expanded inline.
        - ArgGroup → <a> <b> ... (groups never collapse).
        """
        match self._type:
            case Leaf():
                return self._value.name
            case Choices() if self._max_depth <= 2:
                return self._value.name
            case _:
                return self._type.summarize(styles)

    def details(self, styles=Unset, /):
        """
        Detailed, newline-terminated listing of this argument.

        - Leaf → "name    descr" line.
        - Choices with max_depth <= 2 → header line, then the bulleted
          alternatives indented by two spaces.
        - deeper Choices → the bulleted alternatives, without header.
        - ArgGroup → the fields' lines, without header.
        """
        match self._type:
            case Leaf():
                return f"{self._value:#}\n"
            case Choices() if self._max_depth <= 2:
                return f"{self._value:#}\n" + indent(self._type.details(styles), "  ")
            case _:
                return self._type.details(styles)

    def __format__(self, spec):
        match spec:
            case "#":
                return self.summarize()
            case "":
                return self.details()
            case _:
                raise ValueError(f"invalid format specifier {spec!r} for {type(self).__typename__}")

    def __str__(self):
        return self.details()

    def __eq__(self, other):
        if not isinstance(other, Arg):
            return NotImplemented
        return (self._value, self._type) == (other._value, other._type)

    def __hash__(self):
        return hash((self._value, self._type))


SUMMARY = MappingProxyType({
    ArgGroup: Formatter(item_prefix="<", item_suffix=">", separator=" "),
    Choices: Formatter(prefix="<", suffix=">", separator="|"),
})
"""Summary style map: space-joined <field> groups and <a|b> choices."""

DETAILS = MappingProxyType({
    ArgGroup: Formatter(),
    Choices: Formatter(item_prefix="- ", indent="  "),
})
"""Details style map: flat groups and "- " bulleted choices with a two-space continuation."""


def value(name, descr=Unset, /):
    """
    Build a leaf Arg.

    Example
        value("titi", "an unsigned integer")
    """
    return Arg(name, descr)


def choices(name, /, *alternatives, descr=Unset):
    """
    Build an Arg over a Choices node.

    Example
        choices("number", value("One"), value("Two", "Second argument"), descr="a number")
    """
    return Arg(name, descr, type=Choices(*alternatives))


def group(name, /, *fields, descr=Unset):
    """
    Build an Arg over an ArgGroup node.

    Example
        group("tata", value("titi"), choices("tutu", value("One")))
    """
    return Arg(name, descr, type=ArgGroup(*fields))


def getarguments(object, /):
    """
    Return the argument tree of an object exposing __arguments__().

    The hook must return an ArgType (usually Choices for a union and ArgGroup
    for a struct).

    Raises
    - TypeError: when the hook is missing or returns something else.
    """
    if not hasattr(object, "__arguments__") or not callable(object.__arguments__):
        raise TypeError("getarguments() argument must implement __arguments__ method")
    if not isinstance(result := object.__arguments__(), ArgType):
        raise TypeError("__arguments__() must return an arg-type")
    return result


__all__ = (
    # Classes
    "Value",
    "ArgType",
    "Leaf",
    "Choices",
    "ArgGroup",
    "Arg",

    # Factories
    "value",
    "choices",
    "group",

    # Hooks
    "getarguments",

    # Style maps
    "SUMMARY",
    "DETAILS",
)

# Remove the internal metaclass from the module namespace to avoid accidental
# exposure in docs, autocompletion, or star-imports.
del DescriptionType
