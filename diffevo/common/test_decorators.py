# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import typing as tp
from unittest import TestCase
import numpy as np
from . import decorators
from . import errors


class RegistryTests(TestCase):

    def test_registry(self) -> None:
        classes: decorators.Registry[tp.Type[tp.Any]] = decorators.Registry()
        other: decorators.Registry[tp.Type[tp.Any]] = decorators.Registry()

        @classes.register
        class Dummy:
            pass

        np.testing.assert_array_equal(list(classes.keys()), ["Dummy"])
        np.testing.assert_array_equal(list(other.keys()), [])
        assert classes.lookup("Dummy") is Dummy
        classes.unregister("Dummy")
        classes.unregister("OtherDummyThatDoesNotExist")
        np.testing.assert_array_equal(list(classes.keys()), [])

    def test_register_as(self) -> None:
        classes: decorators.Registry[tp.Type[tp.Any]] = decorators.Registry()

        @classes.register_as("short", tag="info")
        class LongerName:
            pass

        assert classes["short"] is LongerName
        np.testing.assert_equal(classes.get_info("short"), {"tag": "info"})
        np.testing.assert_raises(errors.ConfigError, classes.get_info, "no_dummy")

    def test_registry_errors(self) -> None:
        classes: decorators.Registry[tp.Any] = decorators.Registry()
        classes.register_name("dummy", 12)
        np.testing.assert_raises(RuntimeError, classes.register_name, "dummy", 13)
        with self.assertRaises(errors.ConfigError) as context:
            classes.lookup("missing")
        assert "dummy" in str(context.exception)
        assert isinstance(context.exception, ValueError)
