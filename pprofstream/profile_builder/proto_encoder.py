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
"""A minimal protobuf wire format writer for incrementally built messages.

Unlike generated message classes, ProtoEncoder never holds a message tree:
fields are appended to a flat buffer as they are produced and nested
messages are framed in place once they are complete. This lets a profile
with an unbounded number of samples be streamed out while only the current
top-level message is buffered.

Example:
  enc = ProtoEncoder()
  mark = enc.start_message()
  enc.uint64_opt(1, 42)
  enc.string(2, 'foo')
  enc.end_message(5, mark)
  payload = enc.take()
"""

from typing import Iterable, List

from pprofstream.common.exceptions import ProfileEncodingError

WIRE_VARINT = 0
WIRE_LENGTH_DELIMITED = 2

UINT64_MAX = (1 << 64) - 1
INT64_MIN = -(1 << 63)
INT64_MAX = (1 << 63) - 1


def encode_varint(value: int) -> bytes:
  """Returns the base-128 varint encoding of an unsigned 64 bit value."""
  out = bytearray()
  while value >= 0x80:
    out.append((value & 0x7f) | 0x80)
    value >>= 7
  out.append(value)
  return bytes(out)


def check_uint64(value: int) -> int:
  if value < 0 or value > UINT64_MAX:
    raise ProfileEncodingError(f'{value} does not fit in a uint64 field')
  return value


def check_int64(value: int) -> int:
  if value < INT64_MIN or value > INT64_MAX:
    raise ProfileEncodingError(f'{value} does not fit in an int64 field')
  # Negative int64s are sign extended to ten byte varints.
  return value & UINT64_MAX


class ProtoEncoder:
  """Appends protobuf fields to a byte buffer.

  |nest| counts the messages which were started but not yet ended. While it
  is non-zero the buffer holds bytes whose length prefix has not been
  written yet, so nothing may be taken out of the buffer.
  """

  def __init__(self):
    self.data = bytearray()
    self.nest = 0

  def __len__(self):
    return len(self.data)

  def _varint(self, value: int):
    self.data += encode_varint(value)

  def _key(self, tag: int, wire_type: int):
    self._varint(tag << 3 | wire_type)

  def _frame(self, tag: int, start: int):
    # Moves the key and length prefix in front of data[start:].
    prefix = encode_varint(tag << 3 | WIRE_LENGTH_DELIMITED)
    prefix += encode_varint(len(self.data) - start)
    self.data[start:start] = prefix

  def start_message(self) -> int:
    """Starts a nested message; returns the mark to pass to end_message."""
    self.nest += 1
    return len(self.data)

  def end_message(self, tag: int, mark: int):
    """Frames everything written since |mark| as message field |tag|."""
    if self.nest == 0:
      raise ProfileEncodingError('end_message called without start_message')
    if mark < 0 or mark > len(self.data):
      raise ProfileEncodingError(f'Invalid message mark {mark}')
    self._frame(tag, mark)
    self.nest -= 1

  def uint64(self, tag: int, value: int):
    value = check_uint64(value)
    self._key(tag, WIRE_VARINT)
    self._varint(value)

  def uint64_opt(self, tag: int, value: int):
    if value == 0:
      return
    self.uint64(tag, value)

  def uint64s(self, tag: int, values: Iterable[int]):
    values = [check_uint64(v) for v in values]
    if not values:
      return
    start = len(self.data)
    for value in values:
      self._varint(value)
    self._frame(tag, start)

  def int64(self, tag: int, value: int):
    self.uint64(tag, check_int64(value))

  def int64_opt(self, tag: int, value: int):
    if value == 0:
      return
    self.int64(tag, value)

  def int64s(self, tag: int, values: Iterable[int]):
    self.uint64s(tag, [check_int64(v) for v in values])

  def boolean(self, tag: int, value: bool):
    self.uint64(tag, 1 if value else 0)

  def boolean_opt(self, tag: int, value: bool):
    if value:
      self.boolean(tag, value)

  def bytes_(self, tag: int, value: bytes):
    self._key(tag, WIRE_LENGTH_DELIMITED)
    self._varint(len(value))
    self.data += value

  def string(self, tag: int, value: str):
    self.bytes_(tag, value.encode('utf-8'))

  def string_opt(self, tag: int, value: str):
    if value:
      self.string(tag, value)

  def strings(self, tag: int, values: List[str]):
    for value in values:
      self.string(tag, value)

  def rewind(self, length: int, nest: int):
    """Drops everything written after |length| and restores |nest|.

    Used to discard a partially written message when encoding it failed.
    """
    if length < 0 or length > len(self.data) or nest < 0:
      raise ProfileEncodingError(
          f'Cannot rewind to length {length} at depth {nest}')
    del self.data[length:]
    self.nest = nest

  def take(self) -> bytes:
    """Returns and clears the buffered bytes of all completed messages."""
    if self.nest != 0:
      raise ProfileEncodingError(
          f'Cannot take buffered bytes with {self.nest} open message(s)')
    out = bytes(self.data)
    self.data.clear()
    return out
