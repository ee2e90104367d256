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
""" Structured logging for the sfmodels bindings.

The loggers returned by get_logger() render their events as key=value
lines and hand them to the standard library logger of the same name,
so nothing is written unless the application configures a handler for
the "sfmodels" logger hierarchy. structlog.configure() is never called;
the application's own structlog setup is left alone. """

import logging

import structlog


PROCESSORS = [
    structlog.stdlib.filter_by_level,
    structlog.stdlib.add_logger_name,
    structlog.stdlib.PositionalArgumentsFormatter(),
    structlog.processors.KeyValueRenderer(key_order=['event', 'logger']),
]


def get_logger(name):
    """ Get a structured logger writing to the named stdlib logger. """
    return structlog.wrap_logger(
        logging.getLogger(name),
        processors=PROCESSORS,
        wrapper_class=structlog.stdlib.BoundLogger,
    )
