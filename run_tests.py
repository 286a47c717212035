#!/usr/bin/env python3
# Copyright (C) 2025 The Android Open Source Project
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#      http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

import sys
import unittest

from test import builder_unittest
from test import locations_unittest
from test import mappings_unittest
from test import proto_encoder_unittest
from test import sink_unittest
from test import string_table_unittest


def main():
  loader = unittest.TestLoader()
  suite = unittest.TestSuite()

  # Add all relevant tests to test suite
  suite.addTests(loader.loadTestsFromModule(proto_encoder_unittest))
  suite.addTests(loader.loadTestsFromModule(string_table_unittest))
  suite.addTests(loader.loadTestsFromModule(mappings_unittest))
  suite.addTests(loader.loadTestsFromModule(locations_unittest))
  suite.addTests(loader.loadTestsFromModule(sink_unittest))
  suite.addTests(loader.loadTestsFromModule(builder_unittest))

  # Initialise runner to run all tests in suite
  runner = unittest.TextTestRunner(verbosity=3)
  result = runner.run(suite)

  return 0 if result.wasSuccessful() else 1


if __name__ == '__main__':
  sys.exit(main())
