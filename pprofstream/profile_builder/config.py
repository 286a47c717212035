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

import dataclasses as dc
import time
from typing import Callable, List, Optional, Tuple

from pprofstream.profile_builder.sink import DATA_FLUSH_THRESHOLD
from pprofstream.profile_builder.sink import DEFAULT_COMPRESSION_LEVEL

ValueTypeSpec = Tuple[str, str]


@dc.dataclass
class ProfileBuilderConfig:
  # The sampling period in nanoseconds. If set, the profile is a CPU profile:
  # samples carry ("samples", "count") and ("cpu", "nanoseconds") values and
  # the period, period type and duration are written when finalizing.
  period: Optional[int] = None

  # (type, unit) pairs describing the sample values when no period is set,
  # e.g. [("alloc_space", "bytes")].
  sample_types: List[ValueTypeSpec] = dc.field(default_factory=list)

  # Free-form comments stored in the profile.
  comments: List[str] = dc.field(default_factory=list)

  # The sample type which tools should show by default. Must be one of the
  # type names returned by value_types().
  default_sample_type: Optional[str] = None

  # Buffered bytes above which completed top level messages are pushed
  # through the compressor.
  flush_threshold: int = DATA_FLUSH_THRESHOLD

  # gzip compression level (0-9). Defaults to the fastest level as profiles
  # are usually written while the profiled program is running.
  compression_level: int = DEFAULT_COMPRESSION_LEVEL

  # Returns the current wall time in nanoseconds since the epoch. Used for
  # the profile's start time and duration.
  clock: Callable[[], int] = time.time_ns

  def __init__(
      self,
      period: Optional[int] = None,
      sample_types: Optional[List[ValueTypeSpec]] = None,
      comments: Optional[List[str]] = None,
      default_sample_type: Optional[str] = None,
      flush_threshold: int = DATA_FLUSH_THRESHOLD,
      compression_level: int = DEFAULT_COMPRESSION_LEVEL,
      clock: Callable[[], int] = time.time_ns,
  ):
    if period is not None and period <= 0:
      raise ValueError(f'period must be positive, got {period}')
    if flush_threshold < 0:
      raise ValueError(
          f'flush_threshold must not be negative, got {flush_threshold}')
    if not 0 <= compression_level <= 9:
      raise ValueError(
          f'compression_level must be in [0, 9], got {compression_level}')
    self.period = period
    self.sample_types = list(sample_types or [])
    self.comments = list(comments or [])
    self.default_sample_type = default_sample_type
    self.flush_threshold = flush_threshold
    self.compression_level = compression_level
    self.clock = clock

    for spec in self.sample_types:
      if (len(spec) != 2 or not isinstance(spec[0], str) or
          not isinstance(spec[1], str)):
        raise ValueError(
            f'sample types must be (type, unit) pairs of str, got {spec!r}')
    for comment in self.comments:
      if not isinstance(comment, str):
        raise ValueError(f'comments must be str, got {comment!r}')
    if default_sample_type is not None:
      if not isinstance(default_sample_type, str):
        raise ValueError(
            f'default_sample_type must be a str, got {default_sample_type!r}')
      names = [typ for typ, _ in self.value_types()]
      if default_sample_type not in names:
        raise ValueError(f'default_sample_type {default_sample_type!r} is '
                         f'not one of the sample types {names}')

  @property
  def has_period(self) -> bool:
    return self.period is not None

  def value_types(self) -> List[ValueTypeSpec]:
    if self.has_period:
      return [('samples', 'count'), ('cpu', 'nanoseconds')]
    return list(self.sample_types)
