"""
Layered configuration files.

A configuration named `arduinolink` is read from up to four files, each overriding
the ones before it:

    arduinolink.default.cfg     defaults for the installation
    arduinolink.<os>.cfg        platform overrides, where <os> is windows, linux or osx
    ~/arduinolink.cfg           the user's overrides
    arduinolink.cfg             local overrides

The merged result is validated against arduinolink.schema.cfg, which converts the values
to their types and supplies every key that no file gives.
"""
import os
import platform

from configobj import ConfigObj, ConfigObjError, Section, flatten_errors
from validate import Validator

config_extension = '.cfg'

os_names = {'darwin': 'osx'}


def config_flavor(name, flavor=None):
    return '%s.%s' % (name, flavor) if flavor else name


def config_filename(name, directory):
    return os.path.join(directory, name + config_extension)


def load_config_file_base(file, must_exist=True) -> ConfigObj:
    """
    Reads one configuration file. An optional file that is missing reads as empty.
    :raises IOError: the file is required and missing
    :raises ConfigObjError: the file cannot be parsed. The message names the file.
    """
    if not must_exist and not os.path.exists(file):
        return ConfigObj()
    try:
        return ConfigObj(file, interpolation='Template', file_error=True)
    except ConfigObjError as e:
        raise type(e)('%s at %s' % (e, file))


def load_config_spec(file) -> ConfigObj:
    """
    Reads a validation schema. Checks such as float(min=0, default=1) contain commas, so
    the schema is read without list parsing.
    """
    try:
        return ConfigObj(file, interpolation=False, list_values=False, _inspec=True, file_error=True)
    except (ConfigObjError, IOError) as e:
        raise ConfigObjError('%s at %s' % (e, file))


def config_flavor_file(name, directory, flavor=None) -> ConfigObj:
    """ reads the optional file `name.flavor.cfg`, or `name.cfg` without a flavor """
    return load_config_file_base(config_filename(config_flavor(name, flavor), directory), must_exist=False)


def map_os_name(name):
    """
    >>> map_os_name('Windows'), map_os_name('Darwin')
    ('windows', 'osx')
    """
    name = name.lower()
    return os_names.get(name, name)


def os_name():
    return map_os_name(platform.system())


def validation_errors(config, result):
    """ describes each failure in a validation result as 'section.key: reason' """
    return ['%s: %s' % ('.'.join(sections + [key or '(section)']), error or 'missing')
            for sections, key, error in flatten_errors(config, result)]


def load_config(name, directory, schema_directory=None, user_directory='~') -> ConfigObj:
    """
    Loads and validates the layered configuration.
    :param name: the base name of the configuration files
    :param directory: the directory holding the default, platform and local files
    :param schema_directory: the directory holding the schema, when not `directory`
    :param user_directory: the directory holding the user's overrides
    :raises ConfigObjError: a file cannot be parsed, or a value fails validation
    """
    layers = [
        config_flavor_file(name, directory, 'default'),
        config_flavor_file(name, directory, os_name()),
        config_flavor_file(name, os.path.expanduser(user_directory)),
        config_flavor_file(name, directory),
    ]
    schema = load_config_spec(config_filename(config_flavor(name, 'schema'), schema_directory or directory))
    config = ConfigObj(configspec=schema)
    for layer in layers:
        config.merge(layer)

    result = config.validate(Validator())
    if result is not True:
        raise ConfigObjError("the config file %s failed validation: %s" %
                             (name, '; '.join(validation_errors(config, result))))
    return config


def fetch_conf_path(conf: Section, path):
    """
    :param path: the names of the nested sections to follow
    :return: the section at the end of the path, or None when a section is missing
    """
    for part in path:
        conf = conf.get(part)
        if conf is None:
            return None
    return conf


def apply_conf_path(conf: Section, path, target):
    """ applies the section at the path to the target, when it exists """
    section = fetch_conf_path(conf, path)
    if section:
        apply_conf(section, target)


def apply_conf(conf: Section, target):
    """ copies each value onto the target attribute of the same name. Keys the target lacks are ignored. """
    for key, value in conf.items():
        if hasattr(target, key):
            setattr(target, key, value)
