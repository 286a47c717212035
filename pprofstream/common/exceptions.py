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


class PprofException(Exception):

  def __init__(self, message):
    super().__init__(message)


# Raised when the builder is used outside of its contract: mutating or
# finalizing a profile which was already finalized, or installing a second
# fake mapping.
class ProfileBuilderStateError(PprofException):
  pass


# Raised when the incremental encoder is driven into an inconsistent state
# (e.g. unbalanced start/end message calls or flushing an open message).
class ProfileEncodingError(PprofException):
  pass


# Raised when the compression filter or the destination fails to accept
# bytes. The underlying error is always chained as __cause__.
class ProfileWriteError(PprofException):
  pass
