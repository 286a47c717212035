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
"""Field numbers of the perftools.profiles.Profile schema.

These must match profile.proto exactly; consumers such as `pprof` and the
trace processor's pprof importer decode by field number only.
"""

# message Profile
PROFILE_SAMPLE_TYPE = 1  # repeated ValueType
PROFILE_SAMPLE = 2  # repeated Sample
PROFILE_MAPPING = 3  # repeated Mapping
PROFILE_LOCATION = 4  # repeated Location
PROFILE_FUNCTION = 5  # repeated Function
PROFILE_STRING_TABLE = 6  # repeated string
PROFILE_DROP_FRAMES = 7  # int64 (string table index)
PROFILE_KEEP_FRAMES = 8  # int64 (string table index)
PROFILE_TIME_NANOS = 9  # int64
PROFILE_DURATION_NANOS = 10  # int64
PROFILE_PERIOD_TYPE = 11  # ValueType
PROFILE_PERIOD = 12  # int64
PROFILE_COMMENT = 13  # repeated int64 (string table index)
PROFILE_DEFAULT_SAMPLE_TYPE = 14  # int64 (string table index)

# message ValueType
VALUE_TYPE_TYPE = 1  # int64 (string table index)
VALUE_TYPE_UNIT = 2  # int64 (string table index)

# message Sample
SAMPLE_LOCATION = 1  # repeated uint64
SAMPLE_VALUE = 2  # repeated int64
SAMPLE_LABEL = 3  # repeated Label

# message Label
LABEL_KEY = 1  # int64 (string table index)
LABEL_STR = 2  # int64 (string table index)
LABEL_NUM = 3  # int64

# message Mapping
MAPPING_ID = 1  # uint64
MAPPING_START = 2  # uint64
MAPPING_LIMIT = 3  # uint64
MAPPING_OFFSET = 4  # uint64
MAPPING_FILENAME = 5  # int64 (string table index)
MAPPING_BUILD_ID = 6  # int64 (string table index)
MAPPING_HAS_FUNCTIONS = 7  # bool
MAPPING_HAS_FILENAMES = 8  # bool
MAPPING_HAS_LINE_NUMBERS = 9  # bool
MAPPING_HAS_INLINE_FRAMES = 10  # bool

# message Location
LOCATION_ID = 1  # uint64
LOCATION_MAPPING_ID = 2  # uint64
LOCATION_ADDRESS = 3  # uint64
LOCATION_LINE = 4  # repeated Line

# message Line
LINE_FUNCTION_ID = 1  # uint64
LINE_LINE = 2  # int64

# message Function
FUNCTION_ID = 1  # uint64
FUNCTION_NAME = 2  # int64 (string table index)
FUNCTION_SYSTEM_NAME = 3  # int64 (string table index)
FUNCTION_FILENAME = 4  # int64 (string table index)
FUNCTION_START_LINE = 5  # int64
