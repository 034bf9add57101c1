"""
Anoma CLI matched-argument tree.

One ArgMatches per selected command level, holding the raw values given at
that level ("str" for value arguments, True for flags) and the selected
subcommand with its own matches. Global arguments given at any depth are
recorded on the root level.

The matcher is the only writer; command nodes and descriptors only read.
"""
from types import MappingProxyType


class ArgMatches:
    """
    Raw values matched for one command level.

    Reading
    - value_of(key): raw text given for key, or None.
    - is_present(key): whether key was given (value or flag).
    - subcommand: (token, matches) of the selected child, or None.
    - subcommand_matches(token): the child's matches if token was selected.
    - root / path: navigation towards the top-level matches.
    """

    def __init__(self, name, /, parent=None):
        if not isinstance(name, str):
            raise TypeError("ArgMatches() argument must be a string")
        self._name = name
        self._parent = parent
        self._values = {}
        self._subcommand = None

    @property
    def name(self):
        return self._name

    @property
    def parent(self):
        return self._parent

    @property
    def values(self):
        return MappingProxyType(self._values)

    @property
    def root(self):
        matches = self
        while matches._parent is not None:
            matches = matches._parent
        return matches

    @property
    def path(self):
        path = [matches := self]
        while matches._parent is not None:
            path.append(matches := matches._parent)
        return tuple(reversed(path))

    @property
    def subcommand(self):
        return self._subcommand

    @property
    def subcommand_name(self):
        return self._subcommand[0] if self._subcommand else None

    def value_of(self, key, /):
        value = self._values.get(key)
        return value if isinstance(value, str) else None

    def is_present(self, key, /):
        return key in self._values

    def subcommand_matches(self, token, /):
        if self._subcommand and self._subcommand[0] == token:
            return self._subcommand[1]
        return None

    def __contains__(self, key):
        return key in self._values

    def __iter__(self):
        # this level, then each selected subcommand level
        matches = self
        while matches is not None:
            yield matches
            matches = matches._subcommand[1] if matches._subcommand else None

    def __repr__(self):
        return f"ArgMatches({self._name!r}, values={self._values!r}, subcommand={self.subcommand_name!r})"

    def __rich_repr__(self):
        yield "name", self._name
        yield "values", dict(self._values)
        yield "subcommand", self._subcommand

    def _record(self, key, value, /):
        self._values[key] = value

    def _select(self, token, /):
        if self._subcommand is not None:
            raise RuntimeError("a subcommand was already selected for %r" % self._name)
        self._subcommand = (token, matches := ArgMatches(token, parent=self))
        return matches


__all__ = (
    "ArgMatches",
)
