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
""" The single exception type raised by the sfmodels bindings.

Every failure, whether detected while building a record, while decoding
a response or reported by the cluster itself, is surfaced as
a FabricException carrying a FabricErrorCodes value and a flag telling
the caller whether retrying the operation may help. """

import enum

from .sflog import get_logger


LOG = get_logger(__name__)


class FabricErrorCodes(enum.Enum):
    """ The error codes that a FabricException may carry. """

    UNKNOWN = 'UNKNOWN'

    # Raised locally by the JSON conversion layer.
    MISSING_REQUIRED_FIELD = 'MISSING_REQUIRED_FIELD'
    UNKNOWN_DISCRIMINATOR = 'UNKNOWN_DISCRIMINATOR'
    MALFORMED_VALUE = 'MALFORMED_VALUE'
    DUPLICATE_PROPERTY = 'DUPLICATE_PROPERTY'
    TRANSPORT_ERROR = 'TRANSPORT_ERROR'

    # Returned by the cluster in the "Error" object of a response.
    E_ABORT = 'E_ABORT'
    E_ACCESSDENIED = 'E_ACCESSDENIED'
    E_FAIL = 'E_FAIL'
    E_INVALIDARG = 'E_INVALIDARG'
    E_OUTOFMEMORY = 'E_OUTOFMEMORY'
    FABRIC_E_APPLICATION_ALREADY_EXISTS = \
        'FABRIC_E_APPLICATION_ALREADY_EXISTS'
    FABRIC_E_APPLICATION_NOT_FOUND = 'FABRIC_E_APPLICATION_NOT_FOUND'
    FABRIC_E_APPLICATION_TYPE_NOT_FOUND = \
        'FABRIC_E_APPLICATION_TYPE_NOT_FOUND'
    FABRIC_E_APPLICATION_UPGRADE_IN_PROGRESS = \
        'FABRIC_E_APPLICATION_UPGRADE_IN_PROGRESS'
    FABRIC_E_COMMUNICATION_ERROR = 'FABRIC_E_COMMUNICATION_ERROR'
    FABRIC_E_GATEWAY_NOT_REACHABLE = 'FABRIC_E_GATEWAY_NOT_REACHABLE'
    FABRIC_E_HEALTH_ENTITY_NOT_FOUND = 'FABRIC_E_HEALTH_ENTITY_NOT_FOUND'
    FABRIC_E_HEALTH_STALE_REPORT = 'FABRIC_E_HEALTH_STALE_REPORT'
    FABRIC_E_INVALID_NAME_URI = 'FABRIC_E_INVALID_NAME_URI'
    FABRIC_E_INVALID_PARTITION_KEY = 'FABRIC_E_INVALID_PARTITION_KEY'
    FABRIC_E_NAME_ALREADY_EXISTS = 'FABRIC_E_NAME_ALREADY_EXISTS'
    FABRIC_E_NAME_DOES_NOT_EXIST = 'FABRIC_E_NAME_DOES_NOT_EXIST'
    FABRIC_E_NODE_NOT_FOUND = 'FABRIC_E_NODE_NOT_FOUND'
    FABRIC_E_NOT_PRIMARY = 'FABRIC_E_NOT_PRIMARY'
    FABRIC_E_NO_WRITE_QUORUM = 'FABRIC_E_NO_WRITE_QUORUM'
    FABRIC_E_OPERATION_NOT_COMPLETE = 'FABRIC_E_OPERATION_NOT_COMPLETE'
    FABRIC_E_PARTITION_NOT_FOUND = 'FABRIC_E_PARTITION_NOT_FOUND'
    FABRIC_E_RECONFIGURATION_PENDING = 'FABRIC_E_RECONFIGURATION_PENDING'
    FABRIC_E_REPLICA_DOES_NOT_EXIST = 'FABRIC_E_REPLICA_DOES_NOT_EXIST'
    FABRIC_E_SERVICE_ALREADY_EXISTS = 'FABRIC_E_SERVICE_ALREADY_EXISTS'
    FABRIC_E_SERVICE_DOES_NOT_EXIST = 'FABRIC_E_SERVICE_DOES_NOT_EXIST'
    FABRIC_E_SERVICE_OFFLINE = 'FABRIC_E_SERVICE_OFFLINE'
    FABRIC_E_SERVICE_TOO_BUSY = 'FABRIC_E_SERVICE_TOO_BUSY'
    FABRIC_E_TIMEOUT = 'FABRIC_E_TIMEOUT'


TRANSIENT_ERROR_CODES = frozenset([
    FabricErrorCodes.E_ABORT,
    FabricErrorCodes.FABRIC_E_COMMUNICATION_ERROR,
    FabricErrorCodes.FABRIC_E_GATEWAY_NOT_REACHABLE,
    FabricErrorCodes.FABRIC_E_NOT_PRIMARY,
    FabricErrorCodes.FABRIC_E_NO_WRITE_QUORUM,
    FabricErrorCodes.FABRIC_E_RECONFIGURATION_PENDING,
    FabricErrorCodes.FABRIC_E_SERVICE_OFFLINE,
    FabricErrorCodes.FABRIC_E_SERVICE_TOO_BUSY,
    FabricErrorCodes.FABRIC_E_TIMEOUT,
])

TRANSIENT_HTTP_STATUSES = frozenset([503, 504])


class FabricException(Exception):
    """ An error carrying a stable error code and a transience hint.

    FabricException() is an UNKNOWN, non-transient error;
    FabricException(message) only adds a message; the errorCode and
    isTransient keyword arguments set the code and the retry hint, and
    inner records the exception that caused this one. """

    def __init__(self, message='', inner=None,
                 errorCode=FabricErrorCodes.UNKNOWN, isTransient=False):
        super(FabricException, self).__init__(message)
        self.message = message
        self.inner = inner
        self.errorCode = errorCode
        self.isTransient = bool(isTransient)
        if inner is not None:
            self.__cause__ = inner

    def __str__(self):
        if self.message:
            return "{0}: {1}".format(self.errorCode.value, self.message)
        return self.errorCode.value

    @classmethod
    def fromResponse(cls, status, json):
        """ Build an exception out of an error response body. """
        err = json.get('Error', None) if isinstance(json, dict) else None
        if not isinstance(err, dict):
            err = {}
        name = err.get('Code', None)
        try:
            code = FabricErrorCodes(name)
        except ValueError:
            LOG.debug('Unrecognized error code', code=name, status=status)
            code = FabricErrorCodes.UNKNOWN

        message = err.get('Message', None)
        if message is None:
            message = "HTTP status {0}".format(status)

        return cls(message, errorCode=code,
                   isTransient=code in TRANSIENT_ERROR_CODES
                   or status in TRANSIENT_HTTP_STATUSES)

    @classmethod
    def fromTransportError(cls, err, isTransient=False):
        """ Wrap a failure raised by the transport layer. """
        return cls(str(err), inner=err,
                   errorCode=FabricErrorCodes.TRANSPORT_ERROR,
                   isTransient=isTransient)
