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
"""Incrementally writes a gzipped pprof profile.

Samples are encoded and streamed to the destination as they are added; only
the string table and the mappings are kept until the profile is finalized.

Example:
  with open('cpu.pb.gz', 'wb') as f:
    builder = ProfileBuilder(
        f, lookup=symbolizer, config=ProfileBuilderConfig(period=1000000))
    for mapping in read_mappings():
      builder.add_mapping(*mapping)
    for count, stack in collector.samples():
      builder.add_cpu_sample(count, stack)
    builder.finalize()
"""

import contextlib
import enum
import logging
from typing import IO, Iterable, List, Mapping, NamedTuple, Optional, Sequence
from typing import Tuple, Union

from pprofstream.common.exceptions import ProfileBuilderStateError
from pprofstream.common.exceptions import ProfileWriteError
from pprofstream.profile_builder import tags
from pprofstream.profile_builder.config import ProfileBuilderConfig
from pprofstream.profile_builder.locations import LocationResolver
from pprofstream.profile_builder.locations import SymbolLookup
from pprofstream.profile_builder.mappings import MappingTable
from pprofstream.profile_builder.proto_encoder import ProtoEncoder
from pprofstream.profile_builder.proto_encoder import check_int64
from pprofstream.profile_builder.sink import StreamingSink
from pprofstream.profile_builder.string_table import StringTable


class Label(NamedTuple):
  key: str
  value: str = ''
  num: int = 0


LabelsArg = Union[None, Mapping[str, str], Iterable[Union[Label, Tuple]]]


class BuilderState(enum.Enum):
  CREATED = 0
  OPEN = 1
  FINALIZED = 2
  # A write to the destination failed; the output is unusable.
  FAILED = 3


def _labels_from_arg(labels: LabelsArg) -> List[Label]:
  if labels is None:
    return []
  if isinstance(labels, Mapping):
    labels = [Label(key, value) for key, value in labels.items()]
  else:
    labels = [Label(*label) for label in labels]
  for label in labels:
    if not isinstance(label.key, str) or not isinstance(label.value, str):
      raise TypeError(f'Label key and value must be str, got {label!r}')
    if not isinstance(label.num, int) or isinstance(label.num, bool):
      raise TypeError(f'Label num must be an int, got {label!r}')
    check_int64(label.num)
  return labels


class ProfileBuilder:
  """Writes a profile incrementally from a stream of samples.

  The builder owns all of the profile's tables. It is not thread safe: all
  calls must come from one logical sequence of calls and the builder must be
  finalized exactly once.
  """

  def __init__(self,
               destination: IO[bytes],
               lookup: Optional[SymbolLookup] = None,
               config: ProfileBuilderConfig = ProfileBuilderConfig()):
    """Creates a builder writing to |destination|.

    Args:
      destination: a file-like object opened in binary write mode. The
        builder does not close it.
      lookup: maps an address to its Frame, or None if the address cannot be
        symbolized. If not given, no address is symbolized.
      config: options for the profile; see ProfileBuilderConfig.

    Raises:
      ProfileWriteError: the gzip stream could not be started.
    """
    self.config = config
    self.state = BuilderState.CREATED
    self.start_nanos = config.clock()
    self.end_nanos: Optional[int] = None
    self.sample_count = 0

    self._value_types = config.value_types()
    self._pb = ProtoEncoder()
    self._strings = StringTable()
    self._mappings = MappingTable()
    self._locations = LocationResolver(self._pb, self._strings,
                                       self._mappings, lookup)
    self._sink = StreamingSink(
        destination,
        self._pb,
        flush_threshold=config.flush_threshold,
        compression_level=config.compression_level)

    # Addresses which match no mapping resolve to this entry.
    self._mappings.add_fake_mapping()
    self.state = BuilderState.OPEN

  def __enter__(self):
    return self

  def __exit__(self, exc_type, exc_value, traceback):
    # A profile interrupted by an exception is left unfinished. The gzip
    # stream is not closed here, but once the builder is garbage collected
    # GzipFile's finalizer may still write a valid trailer, leaving a
    # well-formed archive holding a truncated profile. Callers must not
    # treat the destination as a complete profile unless finalize()
    # returned.
    if exc_type is None and self.state == BuilderState.OPEN:
      self.finalize()
    return False

  @property
  def location_count(self) -> int:
    return self._locations.location_count

  @property
  def function_count(self) -> int:
    return self._locations.function_count

  @property
  def mapping_count(self) -> int:
    return len(self._mappings)

  @property
  def string_count(self) -> int:
    return len(self._strings)

  @property
  def bytes_flushed(self) -> int:
    """Uncompressed bytes handed to the compressor so far."""
    return self._sink.bytes_flushed

  def _check_open(self):
    if self.state == BuilderState.FINALIZED:
      raise ProfileBuilderStateError('Profile was already finalized')
    if self.state != BuilderState.OPEN:
      raise ProfileBuilderStateError(
          f'Profile builder is {self.state.name.lower()}, not open')

  @contextlib.contextmanager
  def _writing(self, fail_on_error: bool = False):
    # Once finalize started writing the summary, any error leaves a
    # half-written profile behind, so the builder cannot be reused.
    try:
      yield
    except ProfileWriteError:
      self.state = BuilderState.FAILED
      raise
    except BaseException:
      if fail_on_error:
        self.state = BuilderState.FAILED
      raise

  def add_mapping(self,
                  lo: int,
                  hi: int,
                  offset: int = 0,
                  file: str = '',
                  build_id: str = '') -> int:
    """Adds the memory mapping [lo, hi) and returns its mapping ID.

    Addresses are matched against mappings in the order they were added, so
    for overlapping mappings the earliest one wins.
    """
    self._check_open()
    return self._mappings.add_mapping(lo, hi, offset, file, build_id)

  def add_sample(self,
                 values: Sequence[int],
                 stack: Sequence[int],
                 labels: LabelsArg = None) -> List[int]:
    """Encodes a sample and returns the location IDs of its stack.

    Args:
      values: one value per sample type.
      stack: return addresses, leaf first. The leaf address must already be
        adjusted to look like a return address (see add_cpu_sample).
      labels: {key: value} or an iterable of Label/(key, value, num) tuples.
    """
    self._check_open()
    if self._value_types and len(values) != len(self._value_types):
      raise ValueError(f'Expected {len(self._value_types)} sample values, '
                       f'got {len(values)}')
    values = list(values)
    for value in values:
      check_int64(value)
    labels = _labels_from_arg(labels)

    with self._writing():
      locs = []
      for addr in stack:
        locs.append(self._locations.resolve(addr))
        self._sink.maybe_flush()

      start = self._pb.start_message()
      self._pb.int64s(tags.SAMPLE_VALUE, values)
      self._pb.uint64s(tags.SAMPLE_LOCATION, locs)
      for label in labels:
        self._write_label(label)
      self._pb.end_message(tags.PROFILE_SAMPLE, start)
      self._sink.maybe_flush()

    self.sample_count += 1
    return locs

  def add_cpu_sample(self,
                     count: int,
                     stack: Sequence[int],
                     labels: LabelsArg = None) -> List[int]:
    """Adds |count| occurrences of a stack captured by a sampling profiler.

    Addresses from stack traces point to the next instruction after each
    call, except for the leaf, which points to where the signal occurred.
    The leaf is incremented to look like a return address before it is
    resolved.
    """
    if not self.config.has_period:
      raise ProfileBuilderStateError(
          'CPU samples need a profile configured with a period')
    stack = list(stack)
    if stack:
      stack[0] += 1
    return self.add_sample([count, count * self.config.period], stack, labels)

  def finalize(self):
    """Writes the profile's summary fields and closes the gzip stream.

    Raises:
      ProfileBuilderStateError: the profile was already finalized.
      ProfileWriteError: the destination or compressor failed.
    """
    self._check_open()
    self.end_nanos = self.config.clock()
    self._mappings.freeze()

    with self._writing(fail_on_error=True):
      self._pb.int64_opt(tags.PROFILE_TIME_NANOS, self.start_nanos)
      for typ, unit in self._value_types:
        self._write_value_type(tags.PROFILE_SAMPLE_TYPE, typ, unit)
      if self.config.has_period:
        self._pb.int64_opt(tags.PROFILE_DURATION_NANOS,
                           self.end_nanos - self.start_nanos)
        self._write_value_type(tags.PROFILE_PERIOD_TYPE, 'cpu', 'nanoseconds')
        self._pb.int64_opt(tags.PROFILE_PERIOD, self.config.period)

      for mapping_id, mem in self._mappings:
        self._write_mapping(mapping_id, mem.start, mem.end, mem.offset,
                            mem.file, mem.build_id, mem.has_functions)
        self._sink.maybe_flush()

      if self.config.comments:
        self._pb.int64s(tags.PROFILE_COMMENT,
                        [self._strings.intern(c) for c in self.config.comments])
      if self.config.default_sample_type:
        self._pb.int64_opt(
            tags.PROFILE_DEFAULT_SAMPLE_TYPE,
            self._strings.intern(self.config.default_sample_type))

      self._pb.strings(tags.PROFILE_STRING_TABLE, self._strings.strings)
      self._sink.close()

    self.state = BuilderState.FINALIZED
    logging.info(
        'Finalized profile: %d samples, %d locations, %d functions, '
        '%d mappings, %d strings', self.sample_count, self.location_count,
        self.function_count, self.mapping_count, self.string_count)

  def _write_value_type(self, tag: int, typ: str, unit: str):
    start = self._pb.start_message()
    self._pb.int64(tags.VALUE_TYPE_TYPE, self._strings.intern(typ))
    self._pb.int64(tags.VALUE_TYPE_UNIT, self._strings.intern(unit))
    self._pb.end_message(tag, start)

  def _write_label(self, label: Label):
    start = self._pb.start_message()
    self._pb.int64_opt(tags.LABEL_KEY, self._strings.intern(label.key))
    self._pb.int64_opt(tags.LABEL_STR, self._strings.intern(label.value))
    self._pb.int64_opt(tags.LABEL_NUM, label.num)
    self._pb.end_message(tags.SAMPLE_LABEL, start)

  def _write_mapping(self, mapping_id: int, base: int, limit: int,
                     offset: int, file: str, build_id: str, has_funcs: bool):
    start = self._pb.start_message()
    self._pb.uint64_opt(tags.MAPPING_ID, mapping_id)
    self._pb.uint64_opt(tags.MAPPING_START, base)
    self._pb.uint64_opt(tags.MAPPING_LIMIT, limit)
    self._pb.uint64_opt(tags.MAPPING_OFFSET, offset)
    self._pb.int64_opt(tags.MAPPING_FILENAME, self._strings.intern(file))
    self._pb.int64_opt(tags.MAPPING_BUILD_ID, self._strings.intern(build_id))
    # Only functions are tracked: HasFilenames, HasLineNumbers and
    # HasInlineFrames are left unset.
    self._pb.boolean_opt(tags.MAPPING_HAS_FUNCTIONS, has_funcs)
    self._pb.end_message(tags.PROFILE_MAPPING, start)
