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
"""Resolves raw instruction addresses to profile Location IDs.

Every distinct address is symbolized once. The first time an address is
seen a Location message is written for it (and a Function message for every
function not seen before); afterwards the memoized ID is returned without
writing anything.
"""

import dataclasses as dc
from typing import Callable, Dict, List, Mapping, NamedTuple, Optional

from pprofstream.common.exceptions import ProfileEncodingError
from pprofstream.profile_builder import tags
from pprofstream.profile_builder.mappings import MappingTable
from pprofstream.profile_builder.mappings import SymbolizeFlag
from pprofstream.profile_builder.proto_encoder import ProtoEncoder
from pprofstream.profile_builder.proto_encoder import check_int64
from pprofstream.profile_builder.proto_encoder import check_uint64
from pprofstream.profile_builder.string_table import StringTable


class Frame(NamedTuple):
  # Package path-qualified function name.
  function: str
  file: str
  line: int


# Maps an address to the frame of its call site, or None if the address
# cannot be symbolized.
SymbolLookup = Callable[[int], Optional[Frame]]


def symbol_lookup_from_map(loc_map: Mapping[int, Frame]) -> SymbolLookup:
  """Adapts a pre-symbolized {address: Frame} table to a SymbolLookup."""
  return loc_map.get


def no_symbols(addr: int) -> Optional[Frame]:
  return None


@dc.dataclass(frozen=True)
class _NewFunction:
  id: int
  name: str
  file: str


class LocationResolver:

  def __init__(self,
               encoder: ProtoEncoder,
               strings: StringTable,
               mappings: MappingTable,
               lookup: Optional[SymbolLookup] = None):
    self._pb = encoder
    self._strings = strings
    self._mappings = mappings
    self._lookup = lookup or no_symbols
    self._locs: Dict[int, int] = {}
    # Package path-qualified function name to Function.id.
    self._funcs: Dict[str, int] = {}

  @property
  def location_count(self) -> int:
    return len(self._locs)

  @property
  def function_count(self) -> int:
    return len(self._funcs)

  def resolve(self, addr: int) -> int:
    """Returns the location ID for |addr|.

    |addr| must be a return PC (or 1 + the PC of the leaf frame); the
    location describes the corresponding call. This may write messages to
    the encoder, so no message may be in progress.
    """
    loc_id = self._locs.get(addr)
    if loc_id is not None:
      return loc_id

    check_uint64(addr)
    if self._pb.nest != 0:
      raise ProfileEncodingError(
          f'Cannot resolve address {addr:#x} inside an open message')

    # Claim the ID before symbolizing so a lookup which re-enters the
    # resolver cannot hand out the same ID twice.
    loc_id = len(self._locs) + 1
    self._locs[addr] = loc_id
    try:
      frame = self._lookup(addr)
      if frame is not None:
        _check_frame(addr, frame)
    except BaseException:
      del self._locs[addr]
      raise

    # Functions cannot be written while the Location message is open, so
    # collect the new ones and write them once it is closed.
    new_funcs: List[_NewFunction] = []

    mark = len(self._pb)
    try:
      start = self._pb.start_message()
      self._pb.uint64_opt(tags.LOCATION_ID, loc_id)
      self._pb.uint64_opt(tags.LOCATION_ADDRESS, addr)
      if frame is not None:
        func_id = self._funcs.get(frame.function)
        if func_id is None:
          func_id = len(self._funcs) + 1
          self._funcs[frame.function] = func_id
          new_funcs.append(_NewFunction(func_id, frame.function, frame.file))
        self._write_line(func_id, frame.line)
        symbolize_result = SymbolizeFlag.LOOKUP_TRIED
      else:
        symbolize_result = (
            SymbolizeFlag.LOOKUP_TRIED | SymbolizeFlag.LOOKUP_FAILED)

      mapping_id, mem = self._mappings.find(addr)
      if mem is not None:
        self._pb.uint64_opt(tags.LOCATION_MAPPING_ID, mapping_id)
      self._pb.end_message(tags.PROFILE_LOCATION, start)

      for fn in new_funcs:
        self._write_function(fn)
    except BaseException:
      # Nothing of this location may remain: drop its bytes and the IDs
      # claimed for it.
      self._pb.rewind(mark, 0)
      del self._locs[addr]
      for fn in new_funcs:
        del self._funcs[fn.name]
      raise

    if mem is not None:
      mem.funcs |= symbolize_result
    return loc_id

  def _write_line(self, func_id: int, line: int):
    start = self._pb.start_message()
    self._pb.uint64_opt(tags.LINE_FUNCTION_ID, func_id)
    self._pb.int64_opt(tags.LINE_LINE, line)
    self._pb.end_message(tags.LOCATION_LINE, start)

  def _write_function(self, fn: _NewFunction):
    start = self._pb.start_message()
    self._pb.uint64_opt(tags.FUNCTION_ID, fn.id)
    self._pb.int64_opt(tags.FUNCTION_NAME, self._strings.intern(fn.name))
    self._pb.int64_opt(tags.FUNCTION_SYSTEM_NAME,
                       self._strings.intern(fn.name))
    self._pb.int64_opt(tags.FUNCTION_FILENAME, self._strings.intern(fn.file))
    self._pb.end_message(tags.PROFILE_FUNCTION, start)


def _check_frame(addr: int, frame: Frame):
  if not isinstance(frame.function, str) or not isinstance(frame.file, str):
    raise ProfileEncodingError(
        f'Frame for {addr:#x} needs str function and file, got {frame!r}')
  if not isinstance(frame.line, int) or isinstance(frame.line, bool):
    raise ProfileEncodingError(
        f'Frame for {addr:#x} needs an int line, got {frame.line!r}')
  check_int64(frame.line)
