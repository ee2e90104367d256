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
""" sfmodels configuration file parser. """


import os

import confget

from .sflog import get_logger


LOG = get_logger(__name__)

DEFAULTS = {
    "SF_JSON_DUPLICATE_PROPERTIES": "last",
    "SF_JSON_INDENT": "",
    "SF_JSON_SORT_KEYS": "0",
}


class SFConfigException(Exception):
    """ An error that occurred during the sfmodels configuration parsing. """


class SFConfig(object):
    """ A representation of the sfmodels configuration settings.

    When constructed, an object of this class will look for the various
    sfmodels configuration files, parse them, and store the obtained
    variables and values into its internal dictionary.
    The object may later be accessed as a dictionary. """

    PATH_CONFIG = '/etc/sfmodels.conf'
    PATH_CONFIG_DIR = '/etc/sfmodels.conf.d'

    def __init__(self, section=None, missing_ok=False):
        self._dict = dict()
        self._section = section
        self.run_confget(missing_ok=missing_ok)

    @classmethod
    def get_config_files(cls, missing_ok=False):
        """ Return the sfmodels configuration files present on the system. """
        to_check = [cls.PATH_CONFIG]
        if os.path.isdir(cls.PATH_CONFIG_DIR):
            to_check.extend([
                os.path.join(cls.PATH_CONFIG_DIR, fname)
                for fname in sorted(os.listdir(cls.PATH_CONFIG_DIR))
                if fname.endswith(".conf") and not fname.startswith(".")
            ])

        if not missing_ok:
            return to_check
        return [path for path in to_check if os.path.isfile(path)]

    @staticmethod
    def read_file(fname):
        """ Parse a single INI-style configuration file. """
        ini = confget.BACKENDS['ini']
        try:
            cfg = confget.Config([], filename=fname)
            raw = ini(cfg).read_file()
        except Exception as exc:
            raise SFConfigException(
                'Could not parse the {fname} sfmodels configuration '
                'file: {exc}'
                .format(fname=fname, exc=exc))

        LOG.debug('Read the configuration file', path=fname, sections=len(raw))
        return raw

    def run_confget(self, missing_ok=False):
        """ Merge the global and the requested sections over the defaults. """
        sections = ['']
        if self._section is not None:
            sections.append(self._section)
        res = dict(DEFAULTS)

        for fname in self.get_config_files(missing_ok=missing_ok):
            raw = self.read_file(fname)
            for section in sections:
                res.update(raw.get(section, {}))

        self._dict = res

    def __getitem__(self, key):
        return self._dict[key]

    def get(self, key, defval=None):
        """ Return value of the specified configuration variable. """
        return self._dict.get(key, defval)

    def __iter__(self):
        return iter(self._dict)

    def items(self):
        """ Return a list of the configuration var/value pairs. """
        return self._dict.items()

    def keys(self):
        """ Return a list of the configuration variable names. """
        return self._dict.keys()

    @classmethod
    def get_all_sections(cls):
        """ Return all the section names in the sfmodels config files. """
        sections = set()
        for fname in cls.get_config_files():
            sections.update([key for key in cls.read_file(fname) if key])

        return sorted(sections)
