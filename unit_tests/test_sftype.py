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
"""
Test some basic functionality of the sfmodels.sftype.sfType() function.

It is the base of all the conversions from JSON to Python objects and
back that take place behind the scenes in the sfmodels bindings.
"""

import datetime
import unittest
import uuid

import ddt
import pytest

from sfmodels import sfjson, sftype, sftypes
from sfmodels.sferror import FabricErrorCodes, FabricException


List = sftype.sfType([int])            # pylint: disable=invalid-name
ListList = sftype.sfType([List])       # pylint: disable=invalid-name
Dict = sftype.sfType({str: float})     # pylint: disable=invalid-name


@sftype.JsonObject(kind=sftype.discriminator('Cat'), lives=int)
class Cat(object):
    """ A pet with several lives. """


@sftype.JsonObject(kind=sftype.discriminator('Dog'), good=sftype.maybe(bool))
class Dog(object):
    """ A pet that may or may not be a good one. """


Pet = sftype.union('Kind', {'Cat': Cat, 'Dog': Dog})  # pylint: disable=invalid-name


TEST_SIMPLE = [
    (
        'list-ok',
        ListList,
        [[6, 5], [4, 3], [2, 1]],
        ((6, 5), (4, 3), (2, 1)),
    ),

    (
        'list-empty',
        List,
        [],
        (),
    ),

    (
        'dict-ok',
        Dict,
        {'one': 1.5, 'two': 2, 'three': 3.5},
        {'one': 1.5, 'two': 2.0, 'three': 3.5},
    ),

    (
        'health-state-list-ok',
        sftype.sfType([sftypes.HealthState]),
        ['Ok', 'Error', 'Ok'],
        ('Ok', 'Error', 'Ok'),
    ),

    (
        'maybe-absent',
        sftype.maybe(int),
        None,
        sfjson.UNSET,
    ),

    (
        'maybe-present',
        sftype.maybe(int),
        0,
        0,
    ),

    (
        'timestamp',
        sftype.Timestamp,
        '2018-04-03T20:21:23Z',
        datetime.datetime(2018, 4, 3, 20, 21, 23,
                          tzinfo=datetime.timezone.utc),
    ),

    (
        'duration',
        sftype.Duration,
        'PT5M',
        datetime.timedelta(minutes=5),
    ),

    (
        'guid',
        sftype.Guid,
        '1bc6a7e7-32b7-4a6b-a3ba-2a0c5c4f3a5a',
        uuid.UUID('1bc6a7e7-32b7-4a6b-a3ba-2a0c5c4f3a5a'),
    ),
]


TEST_FAIL = [
    ('list-fail', ListList, [[1, 2], [3, 'meow', 4], [5, 6]]),
    ('list-not-a-list', List, 'meow'),
    ('dict-fail', Dict, {'one': 1.5, 'two': 'two point five'}),
    ('dict-not-a-dict', Dict, [1.5]),
    ('int-is-not-bool', sftype.sfType(int), True),
    ('bool-is-not-int', sftype.sfType(bool), 1),
    ('str-is-not-int', sftype.sfType(str), 42),
    ('float-is-not-str', sftype.sfType(float), '1.5'),
    ('health-state-list-fail', sftype.sfType([sftypes.HealthState]),
     ['Ok', 'meow', 'Error']),
    ('timestamp-fail', sftype.Timestamp, 'last tuesday'),
    ('timestamp-not-a-string', sftype.Timestamp, 1522786883),
    ('duration-fail', sftype.Duration, 'P1W'),
    ('duration-negative', sftype.Duration, datetime.timedelta(seconds=-1)),
    ('guid-fail', sftype.Guid, 'not-a-guid'),
    ('guid-not-a-string', sftype.Guid, 42),
    ('discriminator-fail', sftype.discriminator('Cat'), 'Dog'),
]


@ddt.ddt
class TestSfType(unittest.TestCase):
    # pylint: disable=no-self-use
    """ Test that sfType.handleVal() converts data or raises errors. """

    @ddt.data(*TEST_SIMPLE)
    @ddt.unpack
    def test_simple(self, _name, dtype, args, exp):
        """ Test with simple types: lists, dictionaries, scalars. """
        res = dtype.handleVal(args) if args is not None \
            else dtype.defaultVal()
        assert res == exp
        assert res is not sfjson.UNSET or exp is sfjson.UNSET

    @ddt.data(*TEST_FAIL)
    @ddt.unpack
    def test_fail(self, _name, dtype, args):
        """ Test that invalid values are reported as malformed. """
        with pytest.raises(FabricException) as err:
            dtype.handleVal(args)
        assert err.value.errorCode == FabricErrorCodes.MALFORMED_VALUE

    def test_error_path(self):
        """ Test that the error message names the failing container. """
        with pytest.raises(FabricException) as err:
            ListList.handleVal([[1], [2, 'x']])
        assert err.value.message.startswith('[[int]]: [int]: ')

        with pytest.raises(FabricException) as err:
            Dict.handleVal({'good': 1.0, 'bad': None})
        assert err.value.message.startswith('{string: float}: bad: ')

    def test_immutable_containers(self):
        """ Decoded lists and maps may not be modified. """
        res = List.handleVal([1, 2])
        assert res == (1, 2)
        with pytest.raises(AttributeError):
            res.append(3)

        res = Dict.handleVal({'one': 1.5})
        with pytest.raises(TypeError):
            res['two'] = 2.0
        assert Dict.handleVal(res) == {'one': 1.5}
        assert Dict.dumpVal(res) == {'one': 1.5}

    def test_required(self):
        """ Test that types without a default report a missing value. """
        for dtype in (List, Dict, sftype.sfType(str), sftype.Timestamp, Pet):
            with pytest.raises(FabricException) as err:
                dtype.defaultVal()
            assert err.value.errorCode == \
                FabricErrorCodes.MISSING_REQUIRED_FIELD

    def test_with_default(self):
        """ Test a value with a default. """
        dtype = sftype.withDefault(int, 0)
        assert dtype.defaultVal() == 0
        assert dtype.handleVal(6) == 6
        assert dtype.emitOrder == sftype.EMIT_OPTIONAL

        with pytest.raises(FabricException):
            sftype.withDefault(int, 'zero')

    def test_unsupported(self):
        """ Test that only known types may be declared. """
        with pytest.raises(TypeError):
            sftype.sfType(object())
        with pytest.raises(TypeError):
            sftype.sfType(set)


class TestUnion(object):
    # pylint: disable=no-self-use
    """ Test the discriminated union resolver. """

    def test_dispatch(self):
        """ The discriminator selects the shape wherever it appears. """
        pet = Pet.handleVal({'Lives': 9, 'Kind': 'Cat'})
        assert isinstance(pet, Cat)
        assert not isinstance(pet, Dog)
        assert pet.lives == 9

        pet = Pet.handleVal({'Kind': 'Dog', 'Good': True})
        assert isinstance(pet, Dog)
        assert pet.good

        assert Pet.handleVal(pet) is pet

    def test_unknown(self):
        """ An unmapped or absent discriminator fails the decoding. """
        for data in ({'Kind': 'Fish'}, {'Lives': 9}, {'Kind': None},
                     {'Kind': ['Cat']}):
            with pytest.raises(FabricException) as err:
                Pet.handleVal(data)
            assert err.value.errorCode == \
                FabricErrorCodes.UNKNOWN_DISCRIMINATOR

        with pytest.raises(FabricException) as err:
            Pet.handleVal('Cat')
        assert err.value.errorCode == FabricErrorCodes.MALFORMED_VALUE

    def test_direct(self):
        """ Decoding a shape directly checks its discriminator. """
        assert Cat({'Lives': 1}) == Cat(lives=1)
        assert Cat(lives=1).kind == 'Cat'

        with pytest.raises(FabricException) as err:
            Cat({'Kind': 'Dog', 'Lives': 1})
        assert err.value.errorCode == FabricErrorCodes.MALFORMED_VALUE

    def test_encode(self):
        """ The discriminator is written first. """
        pet = Pet.handleVal({'Lives': 9, 'Kind': 'Cat'})
        assert list(Pet.dumpVal(pet)) == ['Kind', 'Lives']
        assert sftype.encode(pet) == '{"Kind":"Cat","Lives":9}'
        assert sftype.encode(Dog()) == '{"Kind":"Dog"}'

    def test_list(self):
        """ Unions may be nested in lists. """
        pets = sftype.decode(
            [Pet], '[{"Kind":"Dog"},{"Kind":"Cat","Lives":3}]')
        assert [type(pet) for pet in pets] == [Dog, Cat]
        assert sftype.encode(pets, [Pet]) == \
            '[{"Kind":"Dog"},{"Kind":"Cat","Lives":3}]'

    def test_bad_table(self):
        """ The mapping table must agree with the shapes' discriminators. """
        with pytest.raises(AssertionError):
            sftype.union('Kind', {'Dog': Cat})
        with pytest.raises(AssertionError):
            sftype.union('Type', {'Cat': Cat})

    def test_typed_discriminator(self):
        """ A discriminator value may be checked against an enum. """
        kind = sftype.discriminator('Stateful', sftypes.ServiceKind)
        assert kind.defaultVal() == 'Stateful'
        assert kind.name == '"Stateful"'

        with pytest.raises(FabricException) as err:
            sftype.discriminator('Stateful2', sftypes.ServiceKind)
        assert err.value.errorCode == FabricErrorCodes.MALFORMED_VALUE


def test_decode_encode():
    """ Test the module-level helpers. """
    assert sftype.decode([int], '[1,2,3]') == (1, 2, 3)
    assert sftype.decode(sftype.Duration, '"PT1M"') == \
        datetime.timedelta(minutes=1)
    assert sftype.encode(datetime.timedelta(minutes=1), sftype.Duration) == \
        '"PT1M"'
    assert sftype.encode({'a': [1]}) == '{"a":[1]}'


def test_docstring():
    """ The JsonObject decorator documents the JSON attributes. """
    assert 'kind (Kind): "Cat"' in Cat.__doc__
    assert 'lives (Lives): int' in Cat.__doc__
    assert Cat.__name__ == 'Cat'
