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
""" Low-level helpers for the sfmodels JsonObject implementation. """


import simplejson as js

from . import sfcatch
from .sferror import FabricErrorCodes, FabricException
from .sflog import get_logger


LOG = get_logger(__name__)

SORT_KEYS = False
INDENT = None
SEPARATORS = (',', ':')

DUPLICATES_LAST = 'last'
DUPLICATES_ERROR = 'error'
DUPLICATES = DUPLICATES_LAST


class _Unset(object):
    """ The value of an optional attribute that was never set. """

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super(_Unset, cls).__new__(cls)
        return cls._instance

    def __bool__(self):
        return False

    def __repr__(self):
        return 'UNSET'

    def __reduce__(self):
        return (_Unset, ())


UNSET = _Unset()


def wire_name(attr):
    """ Return the JSON property name of a record attribute. """
    return attr[:1].upper() + attr[1:]


def _build_object(pairs):
    """ Collect the properties of a parsed JSON object. """
    if DUPLICATES == DUPLICATES_ERROR:
        seen = set()
        for name, _ in pairs:
            if name in seen:
                sfcatch.error('Duplicate property {name}',
                              FabricErrorCodes.DUPLICATE_PROPERTY, name=name)
            seen.add(name)
    return dict(pairs)


def _malformed(exc):
    return FabricException('Invalid JSON: {0}'.format(exc), inner=exc,
                           errorCode=FabricErrorCodes.MALFORMED_VALUE)


def load(filep):
    """ Parse a JSON document, applying the duplicate property policy. """
    try:
        return js.load(filep, object_pairs_hook=_build_object)
    except (js.JSONDecodeError, UnicodeDecodeError) as exc:
        raise _malformed(exc)


def loads(text):
    """ Parse a JSON string, applying the duplicate property policy. """
    try:
        return js.loads(text, object_pairs_hook=_build_object)
    except (js.JSONDecodeError, UnicodeDecodeError) as exc:
        raise _malformed(exc)


def dump(obj, filep):
    """ Serialize an object with reasonable default settings. """
    return js.dump(obj, filep, cls=JsonEncoder, sort_keys=SORT_KEYS,
                   indent=INDENT, separators=SEPARATORS)


def dumps(obj):
    """ Serialize an object to a string with reasonable default settings. """
    return js.dumps(obj, cls=JsonEncoder, sort_keys=SORT_KEYS,
                    indent=INDENT, separators=SEPARATORS)


def configure(cfg):
    """ Apply the SF_JSON_* settings of an SFConfig object. """
    # pylint: disable=global-statement
    global DUPLICATES, INDENT, SORT_KEYS
    from .sfconfig import SFConfigException

    duplicates = cfg.get('SF_JSON_DUPLICATE_PROPERTIES', DUPLICATES_LAST)
    if duplicates not in (DUPLICATES_LAST, DUPLICATES_ERROR):
        raise SFConfigException(
            'Invalid SF_JSON_DUPLICATE_PROPERTIES value {0!r}'
            .format(duplicates))

    indent = cfg.get('SF_JSON_INDENT', '')
    try:
        indent = int(indent) if indent else None
    except ValueError:
        raise SFConfigException(
            'Invalid SF_JSON_INDENT value {0!r}'.format(indent))

    DUPLICATES = duplicates
    INDENT = indent
    SORT_KEYS = cfg.get('SF_JSON_SORT_KEYS', '0') == '1'
    LOG.debug('JSON settings applied', duplicates=DUPLICATES, indent=INDENT,
              sort_keys=SORT_KEYS)


class JsonEncoder(js.JSONEncoder):
    """ Help serialize a JsonObject instance. """

    def default(self, o):
        """ Invoke a suitable serialization function. """
        # pylint: disable=method-hidden
        if isinstance(o, JsonObjectImpl):
            return o.to_json()
        if isinstance(o, set):
            return list(o)
        return super(JsonEncoder, self).default(o)


class JsonObjectImpl(object):
    """ Base class for an immutable value object; see JsonObject. """

    def __new__(cls, json=None, **kwargs):
        """ Construct a value object as per its __jsonAttrDefs__. """

        if isinstance(json, cls):
            assert not kwargs, \
                "Unsupported update on already contructed object"
            return json

        if json is None:
            json = {}
        elif not isinstance(json, dict):
            sfcatch.error('{cls}: Expected a JSON object, got {json!r}',
                          cls=cls.__name__, json=json)

        unknown = set(kwargs) - set(cls.__jsonAttrDefs__)
        if unknown:
            raise TypeError("{cls}() got unexpected arguments: {args}".format(
                cls=cls.__name__, args=", ".join(sorted(unknown))))

        known = set(wire_name(attr) for attr in cls.__jsonAttrDefs__)
        for name in json:
            if name not in known:
                LOG.debug('Skipping an unknown property',
                          record=cls.__name__, property=name)

        self = super(JsonObjectImpl, cls).__new__(cls)
        attrs = {}
        object.__setattr__(self, '__jsonAttrs__', attrs)

        exc = None
        for attr, attr_def in cls.__jsonAttrDefs__.items():
            name = wire_name(attr)
            if attr in kwargs:
                value = kwargs[attr]
            else:
                value = json.get(name, None)

            # pylint: disable=cell-var-from-loop
            # (the "handle" and "func" arguments are always
            #  evaluated immediately, never deferred)
            exc = sfcatch.sf_catch(
                lambda tx: attrs.__setitem__(attr, tx),
                lambda: attr_def.handleVal(value)
                if value is not None and value is not UNSET
                else attr_def.defaultVal(),
                exc,
                name)
        sfcatch.sf_caught(exc, cls.__name__)

        return self

    @classmethod
    def from_json(cls, data):
        """ Decode a JSON string or an already parsed JSON object. """
        if isinstance(data, (str, bytes)):
            data = loads(data)
        return cls(data)

    def __getattr__(self, attr):
        attrs = self.__dict__.get('__jsonAttrs__', {})
        if attr not in attrs:
            error = "'{cls}' has no attribute '{attr}'".format(
                cls=self.__class__.__name__, attr=attr)
            raise AttributeError(error)

        return attrs[attr]

    def __setattr__(self, attr, value):
        raise AttributeError("'{cls}' objects are immutable".format(
            cls=self.__class__.__name__))

    def __delattr__(self, attr):
        raise AttributeError("'{cls}' objects are immutable".format(
            cls=self.__class__.__name__))

    def __eq__(self, other):
        if type(other) is not type(self):
            return NotImplemented
        return self.__jsonAttrs__ == other.__jsonAttrs__

    def __ne__(self, other):
        res = self.__eq__(other)
        if res is NotImplemented:
            return res
        return not res

    __hash__ = None

    def _replace(self, **kwargs):
        """ Return a new object with some of the attributes changed. """
        attrs = dict(self.__jsonAttrs__)
        attrs.update(kwargs)
        return type(self)(**attrs)

    def to_json(self):
        """ Store the set member fields into a dictionary, in wire order. """
        res = {}
        for attr in self.__jsonEmitOrder__:
            value = self.__jsonAttrs__[attr]
            if value is UNSET:
                continue
            res[wire_name(attr)] = self.__jsonAttrDefs__[attr].dumpVal(value)
        return res

    def __iter__(self):
        return iter(self.to_json().items())

    _asdict = to_json

    def __repr__(self):
        return "{cls}({attrs})".format(
            cls=self.__class__.__name__,
            attrs=", ".join(
                "{0}={1!r}".format(attr, self.__jsonAttrs__[attr])
                for attr in self.__jsonAttrDefs__))

    __str__ = lambda self: str(self.to_json())
