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
"""Message classes for the perftools.profiles schema (profile.proto).

The schema is declared in code rather than shipped as a compiled descriptor
so the package has no generated code. The classes describe exactly what
ProfileBuilder writes and let consumers (and tests) parse its output with
the regular protobuf runtime.
"""

from google.protobuf import descriptor_pb2
from google.protobuf import message_factory
from google.protobuf.descriptor_pool import DescriptorPool

PACKAGE = 'perftools.profiles'

_Field = descriptor_pb2.FieldDescriptorProto

_OPTIONAL = _Field.LABEL_OPTIONAL
_REPEATED = _Field.LABEL_REPEATED

# message name -> [(field name, number, label, type, message type name)]
_MESSAGES = {
    'Profile': [
        ('sample_type', 1, _REPEATED, _Field.TYPE_MESSAGE, 'ValueType'),
        ('sample', 2, _REPEATED, _Field.TYPE_MESSAGE, 'Sample'),
        ('mapping', 3, _REPEATED, _Field.TYPE_MESSAGE, 'Mapping'),
        ('location', 4, _REPEATED, _Field.TYPE_MESSAGE, 'Location'),
        ('function', 5, _REPEATED, _Field.TYPE_MESSAGE, 'Function'),
        ('string_table', 6, _REPEATED, _Field.TYPE_STRING, None),
        ('drop_frames', 7, _OPTIONAL, _Field.TYPE_INT64, None),
        ('keep_frames', 8, _OPTIONAL, _Field.TYPE_INT64, None),
        ('time_nanos', 9, _OPTIONAL, _Field.TYPE_INT64, None),
        ('duration_nanos', 10, _OPTIONAL, _Field.TYPE_INT64, None),
        ('period_type', 11, _OPTIONAL, _Field.TYPE_MESSAGE, 'ValueType'),
        ('period', 12, _OPTIONAL, _Field.TYPE_INT64, None),
        ('comment', 13, _REPEATED, _Field.TYPE_INT64, None),
        ('default_sample_type', 14, _OPTIONAL, _Field.TYPE_INT64, None),
    ],
    'ValueType': [
        ('type', 1, _OPTIONAL, _Field.TYPE_INT64, None),
        ('unit', 2, _OPTIONAL, _Field.TYPE_INT64, None),
    ],
    'Sample': [
        ('location_id', 1, _REPEATED, _Field.TYPE_UINT64, None),
        ('value', 2, _REPEATED, _Field.TYPE_INT64, None),
        ('label', 3, _REPEATED, _Field.TYPE_MESSAGE, 'Label'),
    ],
    'Label': [
        ('key', 1, _OPTIONAL, _Field.TYPE_INT64, None),
        ('str', 2, _OPTIONAL, _Field.TYPE_INT64, None),
        ('num', 3, _OPTIONAL, _Field.TYPE_INT64, None),
        ('num_unit', 4, _OPTIONAL, _Field.TYPE_INT64, None),
    ],
    'Mapping': [
        ('id', 1, _OPTIONAL, _Field.TYPE_UINT64, None),
        ('memory_start', 2, _OPTIONAL, _Field.TYPE_UINT64, None),
        ('memory_limit', 3, _OPTIONAL, _Field.TYPE_UINT64, None),
        ('file_offset', 4, _OPTIONAL, _Field.TYPE_UINT64, None),
        ('filename', 5, _OPTIONAL, _Field.TYPE_INT64, None),
        ('build_id', 6, _OPTIONAL, _Field.TYPE_INT64, None),
        ('has_functions', 7, _OPTIONAL, _Field.TYPE_BOOL, None),
        ('has_filenames', 8, _OPTIONAL, _Field.TYPE_BOOL, None),
        ('has_line_numbers', 9, _OPTIONAL, _Field.TYPE_BOOL, None),
        ('has_inline_frames', 10, _OPTIONAL, _Field.TYPE_BOOL, None),
    ],
    'Location': [
        ('id', 1, _OPTIONAL, _Field.TYPE_UINT64, None),
        ('mapping_id', 2, _OPTIONAL, _Field.TYPE_UINT64, None),
        ('address', 3, _OPTIONAL, _Field.TYPE_UINT64, None),
        ('line', 4, _REPEATED, _Field.TYPE_MESSAGE, 'Line'),
    ],
    'Line': [
        ('function_id', 1, _OPTIONAL, _Field.TYPE_UINT64, None),
        ('line', 2, _OPTIONAL, _Field.TYPE_INT64, None),
    ],
    'Function': [
        ('id', 1, _OPTIONAL, _Field.TYPE_UINT64, None),
        ('name', 2, _OPTIONAL, _Field.TYPE_INT64, None),
        ('system_name', 3, _OPTIONAL, _Field.TYPE_INT64, None),
        ('filename', 4, _OPTIONAL, _Field.TYPE_INT64, None),
        ('start_line', 5, _OPTIONAL, _Field.TYPE_INT64, None),
    ],
}


def profile_file_descriptor() -> descriptor_pb2.FileDescriptorProto:
  file_desc = descriptor_pb2.FileDescriptorProto()
  file_desc.name = 'profile.proto'
  file_desc.package = PACKAGE
  file_desc.syntax = 'proto3'
  for message_name, fields in _MESSAGES.items():
    message_desc = file_desc.message_type.add()
    message_desc.name = message_name
    for name, number, label, typ, type_name in fields:
      field_desc = message_desc.field.add()
      field_desc.name = name
      field_desc.number = number
      field_desc.label = label
      field_desc.type = typ
      if type_name:
        field_desc.type_name = f'.{PACKAGE}.{type_name}'
  return file_desc


class ProtoFactory:

  def __init__(self):
    self.descriptor_pool = DescriptorPool()
    self.descriptor_pool.Add(profile_file_descriptor())

    def create_message_factory(message_type):
      message_desc = self.descriptor_pool.FindMessageTypeByName(message_type)
      if hasattr(message_factory, 'GetMessageClass'):
        return message_factory.GetMessageClass(message_desc)
      # Older protobuf releases only have MessageFactory.
      return message_factory.MessageFactory().GetPrototype(message_desc)

    self.Profile = create_message_factory(f'{PACKAGE}.Profile')
    self.ValueType = create_message_factory(f'{PACKAGE}.ValueType')
    self.Sample = create_message_factory(f'{PACKAGE}.Sample')
    self.Label = create_message_factory(f'{PACKAGE}.Label')
    self.Mapping = create_message_factory(f'{PACKAGE}.Mapping')
    self.Location = create_message_factory(f'{PACKAGE}.Location')
    self.Line = create_message_factory(f'{PACKAGE}.Line')
    self.Function = create_message_factory(f'{PACKAGE}.Function')
