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
import enum
from typing import Iterator, List, Optional, Tuple

from pprofstream.common.exceptions import ProfileBuilderStateError
from pprofstream.profile_builder.proto_encoder import check_uint64


class SymbolizeFlag(enum.IntFlag):
  """Result of symbol lookups for the locations attributed to a mapping."""
  # No symbol lookup was performed.
  NONE = 0
  # At least one symbol lookup was performed.
  LOOKUP_TRIED = 1 << 0
  # At least one symbol lookup was performed but found nothing.
  LOOKUP_FAILED = 1 << 1


@dc.dataclass
class MemMap:
  start: int
  end: int
  offset: int = 0
  file: str = ''
  build_id: str = ''
  funcs: SymbolizeFlag = SymbolizeFlag.NONE

  # The entry was faked: it stands for "no known mapping" and owns every
  # address outside of the real mappings.
  fake: bool = False

  def contains(self, addr: int) -> bool:
    return self.start <= addr < self.end

  @property
  def has_functions(self) -> bool:
    # Lookups were tried and none of them failed.
    return self.funcs == SymbolizeFlag.LOOKUP_TRIED


class MappingTable:
  """Ordered memory mappings of the profiled process.

  Mapping IDs are 1-based positions in insertion order. The fake entry must
  be installed before anything is resolved so that every address finds a
  mapping: real mappings are scanned in insertion order, the first one
  containing the address wins and the fake entry takes the rest.
  """

  def __init__(self):
    self._maps: List[MemMap] = []
    self._has_fake = False
    self._frozen = False

  def _append(self, mem: MemMap) -> int:
    if self._frozen:
      raise ProfileBuilderStateError(
          'Cannot add mappings after the profile was finalized')
    self._maps.append(mem)
    return len(self._maps)

  def add_mapping(self,
                  lo: int,
                  hi: int,
                  offset: int = 0,
                  file: str = '',
                  build_id: str = '') -> int:
    for value in (lo, hi, offset):
      check_uint64(value)
    # Mappings come from the OS and are trusted: overlaps are not checked.
    return self._append(
        MemMap(start=lo, end=hi, offset=offset, file=file, build_id=build_id))

  def add_fake_mapping(self) -> int:
    if self._has_fake:
      raise ProfileBuilderStateError('The fake mapping was already added')
    mapping_id = self._append(MemMap(start=0, end=0, fake=True))
    self._has_fake = True
    return mapping_id

  def find(self, addr: int) -> Tuple[int, Optional[MemMap]]:
    """Returns the (id, mapping) of the mapping |addr| belongs to.

    Real mappings are scanned in insertion order and the first one whose
    range contains |addr| wins. Addresses outside of every real mapping
    belong to the fake mapping. Returns (0, None) only if no fake mapping
    was installed.

    This is deliberately not a single scan treating the fake entry as a
    match: the fake entry is installed first, so such a scan would
    attribute every address to it.
    """
    fallback = (0, None)
    for i, mem in enumerate(self._maps):
      if mem.fake:
        if fallback[1] is None:
          fallback = (i + 1, mem)
      elif mem.contains(addr):
        return i + 1, mem
    return fallback

  def freeze(self):
    self._frozen = True

  @property
  def frozen(self) -> bool:
    return self._frozen

  def __getitem__(self, mapping_id: int) -> MemMap:
    if mapping_id < 1:
      raise IndexError(f'Mapping ids start at 1, got {mapping_id}')
    return self._maps[mapping_id - 1]

  def __len__(self):
    return len(self._maps)

  def __iter__(self) -> Iterator[Tuple[int, MemMap]]:
    for i, mem in enumerate(self._maps):
      yield i + 1, mem
