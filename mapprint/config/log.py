# This file is part of the MapPrint project.
# Copyright (C) 2026 MapPrint contributors
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#    http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

import logging
import logging.config
import os
import sys


def init_logging(log_conf=None, base_dir=None, level=logging.INFO):
    """
    Configure the ``mapprint`` loggers.

    Applies the INI `log_conf` with `logging.config.fileConfig` if given,
    otherwise adds a stream handler to the ``mapprint`` logger.
    """
    if log_conf:
        if not os.path.exists(log_conf):
            raise IOError('log configuration %s not found' % log_conf)
        logging.config.fileConfig(log_conf, dict(here=base_dir or os.path.dirname(log_conf)),
                                  disable_existing_loggers=False)
        return

    mapprint_log = logging.getLogger('mapprint')
    mapprint_log.setLevel(level)

    ch = logging.StreamHandler(sys.stdout)
    ch.setLevel(logging.DEBUG)
    formatter = logging.Formatter(
        "[%(asctime)s] %(name)s - %(levelname)s - %(message)s")
    ch.setFormatter(formatter)
    mapprint_log.addHandler(ch)
