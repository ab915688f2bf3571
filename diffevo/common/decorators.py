# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import typing as tp
import functools
from . import errors


X = tp.TypeVar("X")


# pylint does not understand Dict[str, X],
# so we reimplement the MutableMapping interface
class Registry(tp.MutableMapping[str, X]):
    """Registers classes under a short name, so that they can be
    selected by name (eg: :code:`mutator="rand1"`).
    """

    def __init__(self) -> None:
        super().__init__()
        self.data: tp.Dict[str, X] = {}
        self._information: tp.Dict[str, tp.Dict[tp.Hashable, tp.Any]] = {}

    def register(self, obj: X) -> X:
        """Decorator method for registering classes under their own name"""
        name = getattr(obj, "__name__", obj.__class__.__name__)
        self.register_name(name, obj)
        return obj

    def register_name(self, name: str, obj: X, info: tp.Optional[tp.Dict[tp.Hashable, tp.Any]] = None) -> None:
        """Register an object with a provided name"""
        if name in self:
            raise RuntimeError(f'Encountered a name collision "{name}"')
        self[name] = obj
        if info is not None:
            assert isinstance(info, dict)
            self._information[name] = info

    def register_as(self, name: str, **info: tp.Any) -> tp.Callable[[X], X]:
        """Decorator for registering an object under the provided name,
        with optional information about it
        """

        def _register(obj: X, name: str, info: tp.Dict[tp.Hashable, tp.Any]) -> X:
            self.register_name(name, obj, info)
            return obj

        return functools.partial(_register, name=name, info=info)

    def unregister(self, name: str) -> None:
        """Remove a previously-registered object"""
        if name in self:
            del self[name]

    def get_info(self, name: str) -> tp.Dict[tp.Hashable, tp.Any]:
        if name not in self:
            raise errors.ConfigError(f'"{name}" is not registered.')
        return self._information.setdefault(name, {})

    def lookup(self, name: str) -> X:
        """Same as item access, but raises a ConfigError with the list of
        available names if the name is not registered
        """
        if name not in self:
            raise errors.ConfigError(f'Unknown name "{name}", available: {sorted(self)}')
        return self[name]

    def __getitem__(self, key: str) -> X:
        return self.data[key]

    def __setitem__(self, key: str, value: X) -> None:
        self.data[key] = value

    def __delitem__(self, key: str) -> None:
        del self.data[key]

    def __iter__(self) -> tp.Iterator[str]:
        return iter(self.data)

    def __len__(self) -> int:
        return len(self.data)
