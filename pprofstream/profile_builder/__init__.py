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

from pprofstream.common.exceptions import PprofException
from pprofstream.common.exceptions import ProfileBuilderStateError
from pprofstream.common.exceptions import ProfileEncodingError
from pprofstream.common.exceptions import ProfileWriteError
from pprofstream.profile_builder.builder import BuilderState
from pprofstream.profile_builder.builder import Label
from pprofstream.profile_builder.builder import ProfileBuilder
from pprofstream.profile_builder.config import ProfileBuilderConfig
from pprofstream.profile_builder.locations import Frame
from pprofstream.profile_builder.locations import SymbolLookup
from pprofstream.profile_builder.locations import symbol_lookup_from_map
