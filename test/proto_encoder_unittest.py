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

import unittest

from pprofstream.common.exceptions import ProfileEncodingError
from pprofstream.profile_builder import tags
from pprofstream.profile_builder.proto_encoder import ProtoEncoder
from pprofstream.profile_builder.proto_encoder import encode_varint

from test.profile_test_utils import PROTO_FACTORY


class TestVarint(unittest.TestCase):

  def test_small_values(self):
    self.assertEqual(encode_varint(0), b'\x00')
    self.assertEqual(encode_varint(1), b'\x01')
    self.assertEqual(encode_varint(127), b'\x7f')

  def test_multi_byte_values(self):
    self.assertEqual(encode_varint(128), b'\x80\x01')
    self.assertEqual(encode_varint(300), b'\xac\x02')
    self.assertEqual(encode_varint((1 << 64) - 1), b'\xff' * 9 + b'\x01')


class TestProtoEncoder(unittest.TestCase):

  def test_uint64(self):
    enc = ProtoEncoder()
    enc.uint64(1, 150)
    self.assertEqual(enc.take(), b'\x08\x96\x01')

  def test_optional_fields_skip_defaults(self):
    enc = ProtoEncoder()
    enc.uint64_opt(1, 0)
    enc.int64_opt(2, 0)
    enc.boolean_opt(3, False)
    enc.string_opt(4, '')
    self.assertEqual(len(enc), 0)

    enc.uint64_opt(1, 1)
    enc.boolean_opt(7, True)
    self.assertEqual(enc.take(), b'\x08\x01\x38\x01')

  def test_negative_int64_is_sign_extended(self):
    enc = ProtoEncoder()
    enc.int64(1, -1)
    self.assertEqual(enc.take(), b'\x08' + b'\xff' * 9 + b'\x01')

  def test_string(self):
    enc = ProtoEncoder()
    enc.string(2, 'testing')
    self.assertEqual(enc.take(), b'\x12\x07testing')

  def test_strings_writes_one_field_per_element(self):
    enc = ProtoEncoder()
    enc.strings(6, ['', 'a'])
    self.assertEqual(enc.take(), b'\x32\x00\x32\x01a')

  def test_packed_uint64s(self):
    enc = ProtoEncoder()
    enc.uint64s(1, [3, 270, 86942])
    self.assertEqual(enc.take(), b'\x0a\x06\x03\x8e\x02\x9e\xa7\x05')

  def test_empty_packed_field_is_omitted(self):
    enc = ProtoEncoder()
    enc.uint64s(1, [])
    enc.int64s(2, [])
    self.assertEqual(len(enc), 0)

  def test_nested_message(self):
    enc = ProtoEncoder()
    mark = enc.start_message()
    self.assertEqual(enc.nest, 1)
    enc.uint64(1, 150)
    enc.end_message(3, mark)
    self.assertEqual(enc.nest, 0)
    self.assertEqual(enc.take(), b'\x1a\x03\x08\x96\x01')

  def test_doubly_nested_message(self):
    enc = ProtoEncoder()
    outer = enc.start_message()
    enc.uint64(1, 1)
    inner = enc.start_message()
    enc.uint64(2, 2)
    enc.end_message(4, inner)
    enc.end_message(5, outer)
    self.assertEqual(enc.take(), b'\x2a\x06\x08\x01\x22\x02\x10\x02')

  def test_nested_message_after_existing_bytes(self):
    enc = ProtoEncoder()
    enc.uint64(9, 5)
    mark = enc.start_message()
    enc.end_message(1, mark)
    self.assertEqual(enc.take(), b'\x48\x05\x0a\x00')

  def test_long_message_gets_multi_byte_length(self):
    enc = ProtoEncoder()
    mark = enc.start_message()
    enc.bytes_(1, b'x' * 200)
    enc.end_message(2, mark)
    data = enc.take()
    # 1 byte key + 2 byte length of the 203 byte body.
    self.assertEqual(data[:3], b'\x12\xcb\x01')
    self.assertEqual(len(data), 3 + 203)

  def test_end_without_start_is_rejected(self):
    enc = ProtoEncoder()
    with self.assertRaises(ProfileEncodingError):
      enc.end_message(1, 0)

  def test_take_with_open_message_is_rejected(self):
    enc = ProtoEncoder()
    enc.start_message()
    enc.uint64(1, 1)
    with self.assertRaises(ProfileEncodingError):
      enc.take()
    self.assertEqual(len(enc), 2)

  def test_rewind_discards_partial_message(self):
    enc = ProtoEncoder()
    enc.uint64(1, 1)
    mark = len(enc)
    enc.start_message()
    enc.start_message()
    enc.uint64(2, 300)
    enc.rewind(mark, 0)
    self.assertEqual(enc.nest, 0)
    self.assertEqual(enc.take(), b'\x08\x01')

  def test_rewind_past_end_is_rejected(self):
    enc = ProtoEncoder()
    with self.assertRaises(ProfileEncodingError):
      enc.rewind(1, 0)

  def test_out_of_range_values_are_rejected(self):
    enc = ProtoEncoder()
    with self.assertRaises(ProfileEncodingError):
      enc.uint64(1, -1)
    with self.assertRaises(ProfileEncodingError):
      enc.uint64(1, 1 << 64)
    with self.assertRaises(ProfileEncodingError):
      enc.int64(1, 1 << 63)
    with self.assertRaises(ProfileEncodingError):
      enc.uint64s(1, [1, 2, -3])
    self.assertEqual(len(enc), 0)

  def test_output_parses_as_profile(self):
    enc = ProtoEncoder()
    mark = enc.start_message()
    enc.uint64_opt(tags.LOCATION_ID, 7)
    enc.uint64_opt(tags.LOCATION_MAPPING_ID, 1)
    line = enc.start_message()
    enc.uint64_opt(tags.LINE_FUNCTION_ID, 3)
    enc.int64_opt(tags.LINE_LINE, 42)
    enc.end_message(tags.LOCATION_LINE, line)
    enc.end_message(tags.PROFILE_LOCATION, mark)
    enc.int64s(tags.PROFILE_COMMENT, [1, 2, 3])
    enc.strings(tags.PROFILE_STRING_TABLE, ['', 'a', 'b', 'c'])

    profile = PROTO_FACTORY.Profile()
    profile.ParseFromString(enc.take())
    self.assertEqual(len(profile.location), 1)
    self.assertEqual(profile.location[0].id, 7)
    self.assertEqual(profile.location[0].mapping_id, 1)
    self.assertEqual(profile.location[0].line[0].function_id, 3)
    self.assertEqual(profile.location[0].line[0].line, 42)
    self.assertEqual(list(profile.comment), [1, 2, 3])
    self.assertEqual(list(profile.string_table), ['', 'a', 'b', 'c'])


class TestProfileTags(unittest.TestCase):

  def assertFieldNumbers(self, message_class, expected):
    fields = message_class.DESCRIPTOR.fields_by_name
    for name, number in expected.items():
      self.assertEqual(fields[name].number, number, name)

  def test_tags_match_schema(self):
    self.assertFieldNumbers(
        PROTO_FACTORY.Profile, {
            'sample_type': tags.PROFILE_SAMPLE_TYPE,
            'sample': tags.PROFILE_SAMPLE,
            'mapping': tags.PROFILE_MAPPING,
            'location': tags.PROFILE_LOCATION,
            'function': tags.PROFILE_FUNCTION,
            'string_table': tags.PROFILE_STRING_TABLE,
            'drop_frames': tags.PROFILE_DROP_FRAMES,
            'keep_frames': tags.PROFILE_KEEP_FRAMES,
            'time_nanos': tags.PROFILE_TIME_NANOS,
            'duration_nanos': tags.PROFILE_DURATION_NANOS,
            'period_type': tags.PROFILE_PERIOD_TYPE,
            'period': tags.PROFILE_PERIOD,
            'comment': tags.PROFILE_COMMENT,
            'default_sample_type': tags.PROFILE_DEFAULT_SAMPLE_TYPE,
        })
    self.assertFieldNumbers(PROTO_FACTORY.ValueType, {
        'type': tags.VALUE_TYPE_TYPE,
        'unit': tags.VALUE_TYPE_UNIT,
    })
    self.assertFieldNumbers(
        PROTO_FACTORY.Sample, {
            'location_id': tags.SAMPLE_LOCATION,
            'value': tags.SAMPLE_VALUE,
            'label': tags.SAMPLE_LABEL,
        })
    self.assertFieldNumbers(PROTO_FACTORY.Label, {
        'key': tags.LABEL_KEY,
        'str': tags.LABEL_STR,
        'num': tags.LABEL_NUM,
    })
    self.assertFieldNumbers(
        PROTO_FACTORY.Mapping, {
            'id': tags.MAPPING_ID,
            'memory_start': tags.MAPPING_START,
            'memory_limit': tags.MAPPING_LIMIT,
            'file_offset': tags.MAPPING_OFFSET,
            'filename': tags.MAPPING_FILENAME,
            'build_id': tags.MAPPING_BUILD_ID,
            'has_functions': tags.MAPPING_HAS_FUNCTIONS,
            'has_filenames': tags.MAPPING_HAS_FILENAMES,
            'has_line_numbers': tags.MAPPING_HAS_LINE_NUMBERS,
            'has_inline_frames': tags.MAPPING_HAS_INLINE_FRAMES,
        })
    self.assertFieldNumbers(
        PROTO_FACTORY.Location, {
            'id': tags.LOCATION_ID,
            'mapping_id': tags.LOCATION_MAPPING_ID,
            'address': tags.LOCATION_ADDRESS,
            'line': tags.LOCATION_LINE,
        })
    self.assertFieldNumbers(PROTO_FACTORY.Line, {
        'function_id': tags.LINE_FUNCTION_ID,
        'line': tags.LINE_LINE,
    })
    self.assertFieldNumbers(
        PROTO_FACTORY.Function, {
            'id': tags.FUNCTION_ID,
            'name': tags.FUNCTION_NAME,
            'system_name': tags.FUNCTION_SYSTEM_NAME,
            'filename': tags.FUNCTION_FILENAME,
            'start_line': tags.FUNCTION_START_LINE,
        })
