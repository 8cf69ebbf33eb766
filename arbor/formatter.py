"""
Arbor formatter: a generic join/wrap policy for rendered sequences.

A Formatter reduces a sequence of items into one string:

    prefix + item_prefix content item_suffix + separator + ... + suffix

- items whose renderer returns None are skipped (no separator is emitted);
- when an indent is configured, multi-line contents keep their first line
  untouched and every following line is prefixed with the indent, so an item
  may span several lines while staying subordinate to its bullet.

The SUMMARY/DETAILS style maps built on top of it live next to the
containers they style (see arbor.arguments).
"""
from .utils import Unset, coalesce, mirror


def lines(text, /):
    """
    Split text into lines: one trailing empty line is dropped and a trailing
    carriage return is stripped from each line. The empty string has no lines.
    """
    if not isinstance(text, str):
        raise TypeError("lines() argument must be a string")
    if not text:
        return []
    result = text.split("\n")
    if not result[-1]:
        result.pop()
    return [line.removesuffix("\r") for line in result]


def indent(text, chars, /):
    """
    Prefix every line of text with chars; every line ends with a newline.
    """
    return "".join(f"{chars}{line}\n" for line in lines(text))


def indent_following(text, chars, /):
    """
    Like indent(), but the first line is left untouched.
    """
    if not (result := lines(text)):
        return ""
    head, *tail = result
    return f"{head}\n" + "".join(f"{chars}{line}\n" for line in tail)


class Formatter:
    """
    Join/wrap configuration.

    Fields (all optional strings, Unset when not configured)
    - prefix / suffix: wrap the whole result.
    - item_prefix / item_suffix: wrap every rendered item.
    - separator: inserted between two rendered items.
    - indent: continuation indent for the following lines of an item.

    Instances are immutable and compare by configuration.
    """

    __introspectable__ = (
        "prefix",
        "suffix",
        "item_prefix",
        "item_suffix",
        "separator",
        "indent",
    )

    __slots__ = tuple("_" + name for name in __introspectable__)

    prefix = mirror("prefix")
    suffix = mirror("suffix")
    item_prefix = mirror("item_prefix")
    item_suffix = mirror("item_suffix")
    separator = mirror("separator")
    indent = mirror("indent")

    def __init__(
            self,
            *,
            prefix=Unset,
            suffix=Unset,
            item_prefix=Unset,
            item_suffix=Unset,
            separator=Unset,
            indent=Unset,
    ):
        metadata = {
            "prefix": prefix,
            "suffix": suffix,
            "item_prefix": item_prefix,
            "item_suffix": item_suffix,
            "separator": separator,
            "indent": indent,
        }
        for name, object in metadata.items():
            if not isinstance(object, str | Unset):
                raise TypeError(f"formatter {name!r} must be a string")
            setattr(self, "_" + name, object)

    def fmt(self, items, render, /):
        """
        Reduce items into a single string through render.

        Parameters
        - items: Iterable of anything render accepts.
        - render: Callable[[item], str | None]; None skips the item.

        Returns
        - prefix + accumulated + suffix (exactly prefix + suffix when nothing
          was rendered).
        """
        if not callable(render):
            raise TypeError("fmt() second argument must be callable")

        separator = coalesce(self._separator, "")
        start = coalesce(self._item_prefix, "")
        end = coalesce(self._item_suffix, "")

        accumulated = ""
        for item in items:
            if (content := render(item)) is None:
                continue
            if self._indent is not Unset:
                content = indent_following(content, self._indent)
            # The separator depends on the accumulated text, not on the item index.
            accumulated += (separator if accumulated else "") + start + content + end

        return coalesce(self._prefix, "") + accumulated + coalesce(self._suffix, "")

    def __eq__(self, other):
        if not isinstance(other, Formatter):
            return NotImplemented
        return all(getattr(self, name) == getattr(other, name) for name in self.__introspectable__)

    def __hash__(self):
        return hash(tuple(getattr(self, name) for name in self.__introspectable__))

    def __repr__(self):
        return "formatter(%s)" % ", ".join("%s=%r" % pair for pair in self.__rich_repr__())

    def __rich_repr__(self):
        for name in self.__introspectable__:
            if (object := getattr(self, name)) is not Unset:
                yield name, object


__all__ = (
    "Formatter",
    "lines",
    "indent",
    "indent_following",
)
