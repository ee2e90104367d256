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
""" Type definition and validation functions. """

import collections
import datetime
import functools
import inspect
import types
import uuid

from . import sfcatch
from . import sfjson as js
from . import sfutils
from .sferror import FabricErrorCodes
from .sflog import get_logger


LOG = get_logger(__name__)

SfType = collections.namedtuple('SfType', [
    'name',
    'handleVal',
    'defaultVal',
    'dumpVal',
    'emitOrder',
])

# Record properties are written in this order, then in declaration order.
EMIT_DISCRIMINATOR = 0
EMIT_REQUIRED = 1
EMIT_OPTIONAL = 2


def _same(val):
    return val


def _noDefault(name):
    return lambda: sfcatch.missing(name)


def sfList(lst):
    assert len(lst) == 1, "SfList :: [subType]"
    subType = sfType(lst[0])
    valT = subType.handleVal
    name = "[{0}]".format(subType.name)

    def buildList(xs):
        if not isinstance(xs, (list, tuple)):
            sfcatch.error("Expected a list, got {xs!r}", xs=xs)

        lst = []
        exc = functools.reduce(
            lambda exc, x: sfcatch.sf_catch(
                lst.append,
                lambda: valT(x),
                exc),
            xs,
            None)
        sfcatch.sf_caught(exc, name)
        return tuple(lst)

    def dumpList(xs):
        return [subType.dumpVal(x) for x in xs]

    return SfType(name, buildList, _noDefault(name), dumpList, EMIT_REQUIRED)


def sfDict(dct):
    assert len(dct) == 1, "SfDict :: {str: valueType}"
    keyT, valT = list(dct.items())[0]
    assert keyT is str, "JSON object keys are always strings"
    valSt = sfType(valT)
    name = "{{string: {0}}}".format(valSt.name)

    def buildDict(xs):
        if not isinstance(xs, (dict, types.MappingProxyType)):
            sfcatch.error("Expected a JSON object, got {xs!r}", xs=xs)

        d = dict()
        exc = None
        for key, val in xs.items():
            # pylint: disable=cell-var-from-loop
            exc = sfcatch.sf_catch(
                lambda tx: d.__setitem__(key, tx),
                lambda: valSt.handleVal(val),
                exc,
                key)
        sfcatch.sf_caught(exc, name)
        return types.MappingProxyType(d)

    def dumpDict(xs):
        return dict((key, valSt.dumpVal(val)) for key, val in xs.items())

    return SfType(name, buildDict, _noDefault(name), dumpDict, EMIT_REQUIRED)


def maybe(val):
    subType = sfType(val)

    def validate(val):
        """Validate the supplied value, possibly absent."""
        if val is None or val is js.UNSET:
            return js.UNSET
        return subType.handleVal(val)

    name = "Optional({0})".format(subType.name)
    return SfType(name, validate, lambda: js.UNSET, subType.dumpVal,
                  EMIT_OPTIONAL)


def withDefault(val, default):
    subType = sfType(val)
    default = subType.handleVal(default)
    name = "{0}, default={1}".format(subType.name, js.dumps(default))
    return SfType(name, subType.handleVal, lambda: default, subType.dumpVal,
                  EMIT_OPTIONAL)


def discriminator(constVal, valueType=None):
    if valueType is not None:
        constVal = sfType(valueType).handleVal(constVal)
    name = js.dumps(constVal)

    def validate(val):
        if val != constVal:
            sfcatch.error("Expected {exp}, got {val!r}", exp=name, val=val)
        return val

    return SfType(name, validate, lambda: constVal, _same, EMIT_DISCRIMINATOR)


def union(propName, shapes):
    """ Select the record shape to decode by a discriminator property. """
    shapes = dict(shapes)
    for value, shape in shapes.items():
        kinds = [
            attr_def.defaultVal()
            for attr, attr_def in shape.__jsonAttrDefs__.items()
            if js.wire_name(attr) == propName
            and attr_def.emitOrder == EMIT_DISCRIMINATOR
        ]
        assert kinds == [value], \
            "{shape} does not have {prop} = {value}".format(
                shape=shape.__name__, prop=propName, value=value)

    members = tuple(shapes.values())
    name = "Union({prop}: {names})".format(
        prop=propName, names=", ".join(sorted(shapes)))

    def handleVal(val):
        if isinstance(val, members):
            return val
        if not isinstance(val, dict):
            sfcatch.error("Expected a JSON object, got {val!r}", val=val)

        kind = val.get(propName, None)
        if kind is None:
            sfcatch.error("No {prop} property",
                          FabricErrorCodes.UNKNOWN_DISCRIMINATOR,
                          prop=propName)
        shape = shapes.get(kind, None) if isinstance(kind, str) else None
        if shape is None:
            sfcatch.error("Unknown {prop} {kind!r}",
                          FabricErrorCodes.UNKNOWN_DISCRIMINATOR,
                          prop=propName, kind=kind)

        LOG.debug('Decoding a union member', discriminator=propName,
                  value=kind, shape=shape.__name__)
        return shape(val)

    def dumpVal(obj):
        return obj.to_json()

    return SfType(name, handleVal, _noDefault(name), dumpVal, EMIT_REQUIRED)


def _scalar(name, accepted, rejected=(), convert=_same):
    def validator(val):
        if not isinstance(val, accepted) or isinstance(val, rejected):
            sfcatch.error("Invalid {name} value {val!r}", name=name, val=val)
        return convert(val)

    return validator


def _timestamp(val):
    if isinstance(val, datetime.datetime):
        return val
    res = sfutils.parse_timestamp(val) if isinstance(val, str) else None
    if res is None:
        sfcatch.error("Invalid ISO-8601 timestamp {val!r}", val=val)
    return res


def _duration(val):
    if isinstance(val, datetime.timedelta):
        res = val
    elif isinstance(val, str):
        res = sfutils.parse_duration(val)
    else:
        res = None

    if res is None:
        sfcatch.error("Invalid ISO-8601 duration {val!r}", val=val)
    if res < datetime.timedelta(0):
        sfcatch.error("Negative duration {val!r}", val=val)
    return res


def _guid(val):
    if isinstance(val, uuid.UUID):
        return val
    try:
        return uuid.UUID(val)
    except (TypeError, ValueError, AttributeError):
        sfcatch.error("Invalid GUID {val!r}", val=val)


sfScalarTypes = {
    bool: ("bool", _scalar("bool", bool), _same),
    int: ("int", _scalar("int", int, bool), _same),
    float: ("float", _scalar("float", (int, float), bool, float), _same),
    str: ("string", _scalar("string", str), _same),
    datetime.datetime: ("Timestamp", _timestamp, sfutils.format_timestamp),
    datetime.timedelta: ("Duration", _duration, sfutils.format_duration),
    uuid.UUID: ("Guid", _guid, str),
}

sfTypes = {
    list: sfList,
    dict: sfDict,
}


def sfTypeFun(argName, validator, dumper=_same):
    return SfType(argName, validator, _noDefault(argName), dumper,
                  EMIT_REQUIRED)


def sfType(tp):
    if isinstance(tp, SfType):
        return tp

    for _type, _sfType in sfTypes.items():
        if isinstance(tp, _type):
            return _sfType(tp)

    if inspect.isclass(tp):
        if tp in sfScalarTypes:
            name, validator, dumper = sfScalarTypes[tp]
            return sfTypeFun(name, validator, dumper)
        elif issubclass(tp, js.JsonObjectImpl):
            return SfType(tp.__name__, tp, _noDefault(tp.__name__),
                          tp.to_json, EMIT_REQUIRED)

    raise TypeError("Cannot build a JSON type out of {0!r}".format(tp))


Timestamp = sfType(datetime.datetime)
Duration = sfType(datetime.timedelta)
Guid = sfType(uuid.UUID)


def decode(tp, data):
    """ Decode a JSON string or a parsed JSON value as the given type. """
    if isinstance(data, (str, bytes)):
        data = js.loads(data)
    return sfType(tp).handleVal(data)


def encode(obj, tp=None):
    """ Serialize a record, or a value of the given type, to JSON text. """
    if tp is not None:
        return js.dumps(sfType(tp).dumpVal(obj))
    return js.dumps(obj)


class JsonObject(object):
    def __init__(self, **kwargs):
        self.attrDefs = dict(
            (argName, sfType(argVal))
            for argName, argVal in kwargs.items())

    def __call__(self, cls):
        if issubclass(cls, js.JsonObjectImpl):
            attrDefs = dict(cls.__jsonAttrDefs__)
            attrDefs.update(self.attrDefs)
        else:
            attrDefs = self.attrDefs

        emitOrder = sorted(attrDefs, key=lambda attr: attrDefs[attr].emitOrder)

        _doc = ""
        if cls.__doc__ is not None:
            _doc += cls.__doc__
        else:
            _doc += "{0}.{1}".format(cls.__module__, cls.__name__)
        _doc += "\n\n"
        _doc += "    JSON attributes:\n"
        for attrName in emitOrder:
            _doc += "        {name} ({wire}): {type}\n".format(
                name=attrName, wire=js.wire_name(attrName),
                type=attrDefs[attrName].name)
        _doc += "\n"

        return type(cls.__name__, (cls, js.JsonObjectImpl),
                    dict(__jsonAttrDefs__=attrDefs,
                         __jsonEmitOrder__=emitOrder,
                         __module__=cls.__module__,
                         __qualname__=cls.__qualname__,
                         __doc__=_doc))
