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
""" Raise conversion errors and tag them with the path of the failing value.

The record, list and map converters evaluate their members one at a time
through sf_catch(); the first failure is kept and, once the container is
done, sf_caught() raises a new FabricException whose message is prefixed
with the container's name. A failure deep inside a response thus reads as
"PagedReplicaInfoList: Items: [ReplicaInfo]: ReplicaStatus: ...". """

from .sferror import FabricErrorCodes, FabricException


def error(fmt, code=FabricErrorCodes.MALFORMED_VALUE, **kwargs):
    """ Raise an error with the specified code and formatted message. """
    raise FabricException(fmt.format(**kwargs), errorCode=code)


def missing(argName):
    """ Raise an error about an absent required value. """
    error('No {argName} specified', FabricErrorCodes.MISSING_REQUIRED_FIELD,
          argName=argName)


def tag(exc, name):
    """ Return a new FabricException with the name prepended. """
    if isinstance(exc, FabricException):
        return FabricException(
            '{name}: {msg}'.format(name=name, msg=exc.message),
            inner=exc, errorCode=exc.errorCode, isTransient=exc.isTransient)

    return FabricException(
        '{name}: {msg}'.format(name=name, msg=exc),
        inner=exc, errorCode=FabricErrorCodes.MALFORMED_VALUE)


def sf_catch(handle, func, exc, name=None):
    """ Invoke a handler, return the first exception raised so far. """
    try:
        handle(func())
    except Exception as err:  # pylint: disable=broad-except
        if exc is None:
            return err if name is None else tag(err, name)

    return exc


def sf_caught(exc, name):
    """ Reraise a caught error with the container's name prepended. """
    if exc is None:
        return

    raise tag(exc, name)
