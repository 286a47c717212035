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

import gzip
import logging
from typing import IO

from pprofstream.common.exceptions import ProfileEncodingError
from pprofstream.common.exceptions import ProfileWriteError
from pprofstream.profile_builder.proto_encoder import ProtoEncoder

# Buffered bytes above which a top level write is pushed through the
# compressor.
DATA_FLUSH_THRESHOLD = 4096

# gzip.BestSpeed
DEFAULT_COMPRESSION_LEVEL = 1


class StreamingSink:
  """Streams completed messages from a ProtoEncoder through gzip.

  The encoder buffer is only handed to the compressor when no message is
  open: a message whose length prefix is not yet known must never be split
  across two writes.
  """

  def __init__(self,
               destination: IO[bytes],
               encoder: ProtoEncoder,
               flush_threshold: int = DATA_FLUSH_THRESHOLD,
               compression_level: int = DEFAULT_COMPRESSION_LEVEL):
    self._destination = destination
    self._pb = encoder
    self._flush_threshold = flush_threshold
    self.bytes_flushed = 0
    self.closed = False
    try:
      self._zw = gzip.GzipFile(
          filename='',
          mode='wb',
          compresslevel=compression_level,
          fileobj=destination)
    except (OSError, ValueError) as ex:
      raise ProfileWriteError(f'Failed to open gzip stream: {ex}') from ex

  def maybe_flush(self) -> bool:
    """Flushes the encoder buffer if it is large enough and not nested."""
    if self._pb.nest != 0 or len(self._pb) <= self._flush_threshold:
      return False
    self._write(self._pb.take())
    return True

  def flush(self):
    """Unconditionally pushes the encoder buffer through the compressor."""
    if self._pb.nest != 0:
      raise ProfileEncodingError(
          f'Cannot flush with {self._pb.nest} open message(s)')
    if len(self._pb):
      self._write(self._pb.take())

  def close(self):
    """Flushes remaining bytes and writes the gzip trailer."""
    if self.closed:
      return
    self.flush()
    self.closed = True
    try:
      self._zw.close()
      if hasattr(self._destination, 'flush'):
        self._destination.flush()
    except (OSError, ValueError) as ex:
      logging.error('Failed to finish profile stream: %s', ex)
      raise ProfileWriteError(f'Failed to finish profile stream: {ex}') from ex

  def _write(self, data: bytes):
    logging.debug('Flushing %d profile bytes', len(data))
    try:
      self._zw.write(data)
    except (OSError, ValueError) as ex:
      logging.error('Failed to write profile data: %s', ex)
      raise ProfileWriteError(f'Failed to write profile data: {ex}') from ex
    self.bytes_flushed += len(data)
