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
""" Wire formats of the scalar values that JSON has no native type for. """

import datetime
import re


MAX_DESCRIPTION_LENGTH = 4096
TRUNCATION_MARKER = '[Truncated]'

# TimeSpan.MaxValue as the cluster spells it; the "infinite" duration.
INFINITE_DURATION = datetime.timedelta.max
INFINITE_DURATION_WIRE = 'P10675199DT2H48M5.4775807S'

RE_TIMESTAMP = re.compile(r'''
    ^
    (?P<base> \d{4} - \d{2} - \d{2} T \d{2} : \d{2} : \d{2} )
    (?: \. (?P<frac> \d+ ) )?
    (?P<tz> Z | [+-] \d{2} : \d{2} )?
    $''', re.X)

RE_DURATION = re.compile(r'''
    ^
    P
    (?: (?P<days> \d+ ) D )?
    (?:
        T
        (?: (?P<hours> \d+ ) H )?
        (?: (?P<minutes> \d+ ) M )?
        (?: (?P<seconds> \d+ ) (?: \. (?P<frac> \d+ ) )? S )?
    )?
    $''', re.X)


def _micro(frac):
    """ Convert a decimal fraction string to microseconds, truncating. """
    if not frac:
        return 0
    return int(frac[:6].ljust(6, '0'))


def parse_timestamp(value):
    """ Parse an ISO-8601 timestamp; return None if it is malformed. """
    match = RE_TIMESTAMP.match(value)
    if not match:
        return None

    text = match.group('base')
    text += '.{0:06d}'.format(_micro(match.group('frac')))
    tz = match.group('tz')
    if tz == 'Z':
        text += '+00:00'
    elif tz is not None:
        text += tz

    try:
        return datetime.datetime.fromisoformat(text)
    except ValueError:
        return None


def format_timestamp(value):
    """ Format a datetime object, using the "Z" suffix for UTC. """
    text = value.isoformat()
    if value.utcoffset() == datetime.timedelta(0):
        text = text[:-len('+00:00')] + 'Z'
    return text


def parse_duration(value):
    """ Parse an ISO-8601 day/time duration; return None if malformed. """
    if value == INFINITE_DURATION_WIRE:
        return INFINITE_DURATION

    match = RE_DURATION.match(value)
    if not match or value in ('P', 'PT') or value.endswith('T'):
        return None

    def num(name):
        return int(match.group(name) or 0)

    try:
        return datetime.timedelta(
            days=num('days'),
            hours=num('hours'),
            minutes=num('minutes'),
            seconds=num('seconds'),
            microseconds=_micro(match.group('frac')))
    except OverflowError:
        return None


def format_duration(value):
    """ Format a non-negative timedelta object as an ISO-8601 duration. """
    if value == INFINITE_DURATION:
        return INFINITE_DURATION_WIRE

    hours, rest = divmod(value.seconds, 3600)
    minutes, seconds = divmod(rest, 60)

    text = 'P'
    if value.days:
        text += '{0}D'.format(value.days)

    time = ''
    if hours:
        time += '{0}H'.format(hours)
    if minutes:
        time += '{0}M'.format(minutes)
    if value.microseconds:
        time += '{0}.{1}S'.format(
            seconds, '{0:06d}'.format(value.microseconds).rstrip('0'))
    elif seconds or (not time and not value.days):
        time += '{0}S'.format(seconds)

    if time:
        text += 'T' + time
    return text


def truncate_text(text, maxLength=MAX_DESCRIPTION_LENGTH,
                  marker=TRUNCATION_MARKER):
    """ Cut a string down to maxLength characters, ending with the marker. """
    if len(text) <= maxLength:
        return text
    return text[:maxLength - len(marker)] + marker
