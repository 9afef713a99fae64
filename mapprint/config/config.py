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

"""
Print engine configuration.

The configuration is an `Options` tree built from `mapprint.config.defaults`
and an optional YAML file. It is created once at startup and handed to
the `MapPrinter`; there is no process-wide configuration state.
"""
import copy
import os

from mapprint.util.yaml import load_yaml_file, load_yaml, YAMLError

import logging
log = logging.getLogger('mapprint.config')


class ConfigurationError(Exception):
    pass


class Options(dict):
    """
    Dictionary with attribute style access.

    >>> o = Options(bar='foo')
    >>> o.bar
    'foo'
    """
    def __repr__(self):
        return '%s(%s)' % (self.__class__.__name__, dict.__repr__(self))

    def __getattr__(self, name):
        if name in self:
            return self[name]
        else:
            raise AttributeError(name)

    __setattr__ = dict.__setitem__

    def __delattr__(self, name):
        if name in self:
            del self[name]
        else:
            raise AttributeError(name)

    def update(self, other=None, **kw):
        if other is not None:
            if hasattr(other, 'items'):
                it = other.items()
            else:
                it = iter(other)
        else:
            it = kw.items()
        for key, value in it:
            if key in self and isinstance(self[key], Options) and isinstance(value, dict):
                self[key].update(value)
            else:
                self[key] = _to_options_map(value)

    def __deepcopy__(self, memo):
        return Options(copy.deepcopy(list(self.items()), memo))


def _to_options_map(mapping):
    if isinstance(mapping, dict):
        opt = Options()
        for key, value in mapping.items():
            opt[key] = _to_options_map(value)
        return opt
    elif isinstance(mapping, list):
        return [_to_options_map(m) for m in mapping]
    else:
        return mapping


def load_default_config():
    from mapprint.config import defaults
    config_dict = {}
    for k, v in vars(defaults).items():
        if k.startswith('_'):
            continue
        config_dict[k] = copy.deepcopy(v)
    return _to_options_map(config_dict)


def load_base_config(config_file=None, conf=None, clear_existing=False):
    """
    Return the base configuration, defaults updated with the YAML
    `config_file` and/or the `conf` dictionary (`conf` wins).

    :param clear_existing: if ``True``, start with empty options instead
        of the defaults
    """
    if clear_existing:
        config = Options()
    else:
        config = load_default_config()

    if config_file:
        config.conf_base_dir = os.path.abspath(os.path.dirname(config_file))
        try:
            file_conf = load_yaml_file(config_file)
        except (YAMLError, IOError) as ex:
            log.error('unable to load configuration %s: %s', config_file, ex)
            raise ConfigurationError('unable to load configuration %s: %s' % (config_file, ex))
        config.update(file_conf)
    else:
        config.conf_base_dir = os.getcwd()

    if conf is not None:
        if isinstance(conf, str):
            try:
                conf = load_yaml(conf)
            except YAMLError as ex:
                raise ConfigurationError(str(ex))
        config.update(conf)

    _check_config(config)
    return config


def _check_config(config):
    http = config.get('http')
    if http:
        if http.get('retries', 0) < 0:
            raise ConfigurationError('http.retries must not be negative')
        if http.get('client_timeout') is not None and http.client_timeout <= 0:
            raise ConfigurationError('http.client_timeout must be positive')
    image = config.get('image')
    if image and image.get('resampling_method') not in (None, 'nearest', 'bilinear', 'bicubic'):
        raise ConfigurationError('unknown image.resampling_method %r' % image.resampling_method)
    for name, layout in (config.get('layouts') or {}).items():
        map_conf = layout.get('map') or {}
        if not (map_conf.get('width', 0) > 0 and map_conf.get('height', 0) > 0):
            raise ConfigurationError('layout %s needs a positive map width and height' % name)


def abspath(path, base_path=None):
    """
    Convert path to absolute path. Uses ``base_path`` as base, if
    path is relative.
    """
    if base_path:
        return os.path.abspath(os.path.join(base_path, path))
    return os.path.abspath(path)
