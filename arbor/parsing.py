"""
Arbor parsing: recursive-descent parsing of positional tokens into values.

Model
- Tokens: an immutable cursor over the input (a tuple plus an offset). Every
  parse step takes a Tokens and hands back a shorter one; nothing is mutated,
  so a failed branch never loses input for its caller.
- Parsed(value, remainder): the result of one parse step.
- try_parse(target, tokens): dispatch on the target's __try_parse__ hook (or
  on an Enum subclass) and return a Parsed.
- parse(target, tokens, callback): run try_parse, require that every token
  was consumed, then hand the value to the callback.

Declaring parseable types
- Struct: fields listed in __fields__ are parsed in order.
  • Field("a", int) converts exactly one token with int(); a ValueError,
    TypeError or ArithmeticError from the converter becomes BadTypeError.
  • Field("b", Other, delegate=True) hands the cursor to try_parse(Other, ...).
- TaggedUnion: variants listed in __variants__. The first token selects the
  variant by name, case-insensitively; the variant's fields are then parsed
  like a struct's.
- Enum subclasses are parseable as they are: one token, matched against the
  member names case-insensitively.
- unit(SomeEnum) gives a converter for plain fields, raising
  ValueError("Unexistant variant X") on a miss (hence BadTypeError).

Errors
- The first error aborts the whole parse (TooFewArgumentsError, BadTypeError,
  VariantNotFoundError, TooManyArgumentsError).
- parse(..., shell=True) prints the error with rich and exits with status 1.

Quick example
    >>> class Tata(TaggedUnion):
    ...     __variants__ = (Variant("One"), Variant("Two"))
    >>> class Example(Struct):
    ...     __fields__ = (Field("tata", Tata, delegate=True), Field("count", int))
    >>> value = parse(Example, ["one", "32"])
    >>> value.tata, value.count
    (Tata.One(), 32)
"""
import enum
import functools
import itertools
import shlex
import sys
from collections import namedtuple
from collections.abc import Iterable, Sequence

from .faults import (
    ParsingError,
    TooFewArgumentsError,
    BadTypeError,
    VariantNotFoundError,
    TooManyArgumentsError,
    trigger,
)
from .utils import *


Parsed = namedtuple("Parsed", ("value", "remainder"))


class Tokens(Sequence):
    """
    Immutable cursor over a sequence of string tokens.

    Behaves like a read-only sequence of the tokens that remain. take() pops
    the first one without mutating the cursor.
    """

    __slots__ = ("_source", "_offset")

    def __new__(cls, source=(), /):
        if isinstance(source, Tokens):
            return source
        if isinstance(source, str) or not isinstance(source, Iterable):
            raise TypeError("tokens must be an iterable of strings")
        source = tuple(source)
        for token in source:
            if not isinstance(token, str):
                raise TypeError("tokens must be an iterable of strings")
        return cls._view(source, 0)

    @classmethod
    def _view(cls, source, offset, /):
        self = super().__new__(cls)
        self._source = source
        self._offset = offset
        return self

    @property
    def offset(self):
        """Number of tokens consumed from the original input."""
        return self._offset

    def take(self):
        """
        Return (first token, remaining tokens).

        Raises
        - TooFewArgumentsError: when no token is left.
        """
        if self._offset >= len(self._source):
            raise TooFewArgumentsError()
        return self._source[self._offset], Tokens._view(self._source, self._offset + 1)

    def __len__(self):
        return len(self._source) - self._offset

    def __getitem__(self, index):
        if isinstance(index, slice):
            return tuple(self._source[self._offset:])[index]
        if index < 0:
            index += len(self)
        if not 0 <= index < len(self):
            raise IndexError("tokens index out of range")
        return self._source[self._offset + index]

    def __iter__(self):
        return itertools.islice(self._source, self._offset, None)

    def __eq__(self, other):
        if isinstance(other, Tokens | tuple | list):
            return tuple(self) == tuple(other)
        return NotImplemented

    def __hash__(self):
        return hash(tuple(self))

    def __repr__(self):
        return "tokens(%r)" % list(self)


class Field:
    """
    One positional slot of a struct or variant.

    Parameters
    - name: str
      Attribute name on the built value.
    - type: Callable[[str], object] | parseable type
      Converter applied to one token (default str), or, with delegate=True,
      a type that try_parse() understands.
    - delegate: bool
      Hand the remaining tokens to try_parse(type, ...) instead of
      converting one token.
    """

    __slots__ = ("_name", "_type", "_delegate")

    name = mirror("name")
    type = mirror("type")
    delegate = mirror("delegate")

    def __init__(self, name, type=str, /, *, delegate=False):
        if not isinstance(name, str):
            raise TypeError("field 'name' must be a string")
        elif not name.isidentifier():
            raise ValueError(f"field 'name' must be an identifier, not {name!r}")
        if delegate:
            if not _parseable(type):
                raise TypeError(f"field {name!r} delegates to a type without __try_parse__")
        elif not callable(type):
            raise TypeError(f"field {name!r} 'type' must be callable")

        self._name = name
        self._type = type
        self._delegate = bool(delegate)

    def parse(self, tokens, /):
        """
        Parse this field from the front of tokens and return a Parsed.
        """
        if self._delegate:
            return try_parse(self._type, tokens)
        token, remainder = Tokens(tokens).take()
        try:
            value = self._type(token)
        except (ValueError, TypeError, ArithmeticError):
            raise BadTypeError(f"{token!r} is not a valid {self._name!r}") from None
        return Parsed(value, remainder)

    def __eq__(self, other):
        if not isinstance(other, Field):
            return NotImplemented
        return (self._name, self._type, self._delegate) == (other._name, other._type, other._delegate)

    def __hash__(self):
        return hash((self._name, self._type, self._delegate))

    def __repr__(self):
        if self._delegate:
            return "field(%r, %r, delegate=True)" % (self._name, self._type)
        return "field(%r, %r)" % (self._name, self._type)


class Variant:
    """
    One alternative of a tagged union: a name followed by fields.

    Parameters
    - name: str
      Matched case-insensitively against the selecting token.
    - *fields: Field
    - factory: Unset | Callable[..., object]
      Builds the value from the parsed field values. When omitted the union
      class is called as cls(name, *values).
    """

    __slots__ = ("_name", "_fields", "_factory")

    name = mirror("name")
    fields = mirror("fields")
    factory = mirror("factory")

    def __init__(self, name, /, *fields, factory=Unset):
        if not isinstance(name, str):
            raise TypeError("variant 'name' must be a string")
        elif not (name := name.strip()):
            raise ValueError("variant 'name' cannot be empty")
        for field in fields:
            if not isinstance(field, Field):
                raise TypeError(f"variant {name!r} fields must be fields")
        if factory is not Unset and not callable(factory):
            raise TypeError(f"variant {name!r} 'factory' must be callable")

        self._name = name
        self._fields = fields
        self._factory = factory

    def matches(self, token, /):
        return token.lower() == self._name.lower()

    def __repr__(self):
        return "variant(%s)" % ", ".join(map(repr, (self._name, *self._fields)))


def _parseable(target):
    return (
        (hasattr(target, "__try_parse__") and callable(target.__try_parse__)) or
        (isinstance(target, type) and issubclass(target, enum.Enum))
    )


def parse_fields(fields, tokens, /):
    """
    Parse fields in order; return Parsed(tuple of values, remainder).
    """
    remainder = Tokens(tokens)
    values = []
    for field in fields:
        value, remainder = field.parse(remainder)
        values.append(value)
    return Parsed(tuple(values), remainder)


def parse_variants(variants, tokens, /):
    """
    Select a variant with the first token and parse its fields.

    Returns
    - Parsed((variant, values), remainder)

    Raises
    - TooFewArgumentsError: when no token is left to select a variant.
    - VariantNotFoundError: when no variant carries that name.
    """
    token, remainder = Tokens(tokens).take()
    for variant in variants:
        if variant.matches(token):
            values, remainder = parse_fields(variant.fields, remainder)
            return Parsed((variant, values), remainder)
    names = ", ".join(variant.name for variant in variants)
    raise VariantNotFoundError(f"{token!r} does not name any of: {names}")


class Struct:
    """
    Base for record types parsed field by field.

    Subclasses declare __fields__ (a sequence of Field). The default
    constructor takes the values positionally, in field order, and stores
    them as attributes; dataclasses may override it as long as cls(*values)
    keeps working.
    """

    __fields__ = ()

    def __init_subclass__(cls, **options):
        super().__init_subclass__(**options)
        cls.__fields__ = tuple(cls.__fields__)
        for field in cls.__fields__:
            if not isinstance(field, Field):
                raise TypeError(f"{cls.__name__}.__fields__ must contain fields")

    def __init__(self, *values):
        if len(values) != len(fields := type(self).__fields__):
            raise TypeError(f"{type(self).__name__}() takes {len(fields)} values but {len(values)} were given")
        for field, value in zip(fields, values):
            setattr(self, field.name, value)

    @classmethod
    def __try_parse__(cls, tokens, /):
        values, remainder = parse_fields(cls.__fields__, tokens)
        return Parsed(cls(*values), remainder)

    def __eq__(self, other):
        if type(self) is not type(other):
            return NotImplemented
        return all(getattr(self, field.name) == getattr(other, field.name) for field in self.__fields__)

    def __hash__(self):
        return hash(tuple(getattr(self, field.name) for field in self.__fields__))

    def __repr__(self):
        return "%s(%s)" % (
            type(self).__name__,
            ", ".join("%s=%r" % (field.name, getattr(self, field.name)) for field in self.__fields__),
        )


class TaggedUnion:
    """
    Base for tagged unions parsed as a variant name followed by its fields.

    Subclasses declare __variants__ (a sequence of Variant, with unique names
    regardless of case). Unless a variant has its own factory, the parsed
    value is cls(variant_name, *values), exposing .variant and .values.
    """

    __variants__ = ()

    __slots__ = ("_variant", "_values")

    variant = mirror("variant")
    values = mirror("values")

    def __init_subclass__(cls, **options):
        super().__init_subclass__(**options)
        cls.__variants__ = tuple(cls.__variants__)
        seen = set()
        for variant in cls.__variants__:
            if not isinstance(variant, Variant):
                raise TypeError(f"{cls.__name__}.__variants__ must contain variants")
            if (key := variant.name.lower()) in seen:
                raise ValueError(f"{cls.__name__} variant name {variant.name!r} is already in use")
            seen.add(key)
            if variant.factory is Unset:
                for field in variant.fields:
                    # Fields are read through __getattr__, which never sees these names.
                    if field.name in ("variant", "values"):
                        raise ValueError(f"{cls.__name__}.{variant.name} field name {field.name!r} is reserved")

    def __init__(self, variant, /, *values):
        for candidate in type(self).__variants__:
            if candidate.name == variant:
                break
        else:
            raise ValueError(f"{type(self).__name__} has no variant {variant!r}")
        if len(values) != len(candidate.fields):
            raise TypeError(f"{type(self).__name__}.{variant} takes {len(candidate.fields)} values but {len(values)} were given")
        self._variant = variant
        self._values = values

    @classmethod
    def __try_parse__(cls, tokens, /):
        (variant, values), remainder = parse_variants(cls.__variants__, tokens)
        factory = coalesce(variant.factory, functools.partial(cls, variant.name))
        return Parsed(factory(*values), remainder)

    def __getattr__(self, name):
        # Field values of the selected variant are reachable by field name.
        if name.startswith("_"):
            raise AttributeError(name)
        for candidate in type(self).__variants__:
            if candidate.name == self._variant:
                for field, value in zip(candidate.fields, self._values):
                    if field.name == name:
                        return value
        raise AttributeError(f"{type(self).__name__}.{self._variant} has no field {name!r}")

    def __eq__(self, other):
        if type(self) is not type(other):
            return NotImplemented
        return (self._variant, self._values) == (other._variant, other._values)

    def __hash__(self):
        return hash((type(self), self._variant, self._values))

    def __repr__(self):
        return "%s.%s(%s)" % (type(self).__name__, self._variant, ", ".join(map(repr, self._values)))


def try_parse(target, tokens=(), /):
    """
    Parse a value of target from the front of tokens.

    Dispatch
    - objects exposing __try_parse__(tokens) -> Parsed;
    - Enum subclasses: one token matched against the member names,
      case-insensitively.

    Raises
    - TypeError: when target is not parseable or its hook misbehaves.
    - ParsingError subclasses on malformed input.
    """
    tokens = Tokens(tokens)
    if hasattr(target, "__try_parse__") and callable(target.__try_parse__):
        if not isinstance(result := target.__try_parse__(tokens), Parsed):
            raise TypeError("__try_parse__() must return a parsed pair")
        if not isinstance(result.remainder, Tokens):
            raise TypeError("__try_parse__() remainder must be tokens")
        return result
    if isinstance(target, type) and issubclass(target, enum.Enum):
        token, remainder = tokens.take()
        for member in target:
            if member.name.lower() == token.lower():
                return Parsed(member, remainder)
        names = ", ".join(member.name for member in target)
        raise VariantNotFoundError(f"{token!r} does not name any of: {names}")
    raise TypeError("try_parse() first argument must implement __try_parse__ method")


@functools.cache
def unit(enumeration, /):
    """
    Return a one-token converter for a plain (fieldless) Enum.

    Names match case-insensitively; a miss raises
    ValueError("Unexistant variant <token>"), which a Field reports as
    BadTypeError.

    Example
        Field("color", unit(Color))
    """
    if not isinstance(enumeration, type) or not issubclass(enumeration, enum.Enum):
        raise TypeError("unit() argument must be an enum")

    @rename(enumeration.__name__.lower())
    def converter(token):
        for member in enumeration:
            if member.name.lower() == token.lower():
                return member
        raise ValueError(f"Unexistant variant {token}")

    return converter


def _tokenize(tokens):
    match tokens:
        case UnsetType():
            return Tokens(sys.argv[1:])
        case str():
            return Tokens(shlex.split(tokens))
        case Iterable():
            return Tokens(tokens)
        case _:
            raise TypeError("parse() tokens must be a string or an iterable of strings")


def parse(target, tokens=Unset, callback=Unset, /, *, shell=False, **options):
    """
    Parse a whole input into a value of target.

    Parameters
    - target: parseable type (see try_parse()).
    - tokens: Unset | str | Iterable[str]
      Unset reads sys.argv[1:]; a string is split like a shell would.
    - callback: Unset | Callable[[value], object]
      Called with the parsed value; its result is returned.
    - shell: bool
      Print faults with rich and exit with status 1 instead of raising.
    - **options: rendering options forwarded to trigger() (prog, fancy,
      colorful, title, hint).

    Raises
    - TooManyArgumentsError: when tokens remain after a complete parse.
    - any other ParsingError raised while parsing.
    """
    if callback is not Unset and not callable(callback):
        raise TypeError("parse() callback must be callable")

    try:
        value, remainder = try_parse(target, _tokenize(tokens))
        if remainder:
            raise TooManyArgumentsError(f"unexpected trailing arguments: {shlex.join(remainder)}")
    except ParsingError as fault:
        if not shell:
            raise
        trigger(fault, shell=True, **options)
        raise

    return value if callback is Unset else callback(value)


__all__ = (
    # Types
    "Parsed",
    "Tokens",
    "Field",
    "Variant",
    "Struct",
    "TaggedUnion",

    # Functions
    "parse_fields",
    "parse_variants",
    "try_parse",
    "unit",
    "parse",
)
