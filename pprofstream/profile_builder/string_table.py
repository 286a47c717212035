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

from typing import Dict, Iterator, List


class StringTable:
  """Interns strings into the profile's string table.

  Index 0 is always the empty string. Indices are assigned in order of first
  use and never change, so they can be written into messages as soon as they
  are returned.
  """

  def __init__(self):
    self._strings: List[str] = ['']
    self._index: Dict[str, int] = {'': 0}

  def intern(self, s: str) -> int:
    index = self._index.get(s)
    if index is None:
      index = len(self._strings)
      self._strings.append(s)
      self._index[s] = index
    return index

  def __contains__(self, s: str) -> bool:
    return s in self._index

  def __getitem__(self, index: int) -> str:
    return self._strings[index]

  def __len__(self):
    return len(self._strings)

  def __iter__(self) -> Iterator[str]:
    return iter(self._strings)

  @property
  def strings(self) -> List[str]:
    return list(self._strings)
