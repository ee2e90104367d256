#
# Copyright (c) 2021  StorPool.
# All rights reserved.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
#
""" Typed records and JSON conversion for a cluster-management REST API.

The records themselves live in sfmodels.sftypes; sfmodels.sftype holds
the machinery that validates, decodes and encodes them. """

import logging


VERSION = '1.0.0'

logging.getLogger(__name__).addHandler(logging.NullHandler())
