import os
import platform

from configobj import ConfigObj, ConfigObjError, Section
from validate import Validator

from serialhost.settings import HostSettings, Parity, StopBits

# The default extension for configuration files
config_extension = '.cfg'

# the configspec shipped with the package that host configurations are validated against
schema_directory = os.path.dirname(__file__)
schema_name = 'serialhost.schema'

# the section holding the host settings
host_section = 'host'

parities = {p.name.lower(): p for p in Parity}

stopbits = {
    '1': StopBits.ONE,
    '1.5': StopBits.ONE_POINT_FIVE,
    '2': StopBits.TWO
}

newlines = {
    'lf': '\n',
    'cr': '\r',
    'crlf': '\r\n'
}


def config_path(directory, name, flavor=None):
    """
    The path of a host config file, `<name>.cfg` or `<name>.<flavor>.cfg` in the given directory.
    """
    if flavor:
        name = '%s.%s' % (name, flavor)
    return os.path.join(os.path.expanduser(directory), name + config_extension)


def read_config_file(path, required=False) -> ConfigObj:
    """
    Reads one layer of the host configuration. An optional file that does not exist
    reads as an empty configuration.
    Syntax errors are raised as ConfigObjError naming the file.
    """
    if not required and not os.path.exists(path):
        return ConfigObj()
    try:
        return ConfigObj(path, interpolation='Template', file_error=True)
    except ConfigObjError as e:
        raise type(e)('%s at %s' % (e, path)) from e


def platform_name(system=None):
    """ the flavor used for platform specific host settings: windows, linux, osx etc. """
    system = (system or platform.system()).lower()
    return 'osx' if system == 'darwin' else system


def load_config(name, directory, user_directory='~'):
    """
    Loads all the host configuration files with the given name and merges them, later files
    overriding earlier ones:
    - `<name>.default.cfg` from the directory
    - `<name>.<platform>.cfg` from the directory
    - `<name>.cfg` from the user directory
    - `<name>.cfg` from the directory
    Any of these may be missing. The result is validated against the configspec shipped with
    the package, which also supplies the defaults and converts the values to their types.
    :param name: the base name of the configuration files
    :param directory: the location of the configuration files
    :return: the validated ConfigObj
    """
    layers = [config_path(directory, name, 'default'),
              config_path(directory, name, platform_name()),
              config_path(user_directory, name),
              config_path(directory, name)]
    configspec = ConfigObj(config_path(schema_directory, schema_name), _inspec=True, file_error=True)
    config = ConfigObj(configspec=configspec)
    for path in layers:
        config.merge(read_config_file(path))

    result = config.validate(Validator(), preserve_errors=True)
    if result is not True:
        raise ConfigObjError("the config file %s failed validation %s" % (name, result))
    return config


def settings_from_config(conf: Section) -> HostSettings:
    """
    Builds host settings from a validated configuration.
    :param conf: the root configuration, containing a host section
    """
    host = conf[host_section]
    return HostSettings(host['port'],
                        baudrate=host['baudrate'],
                        parity=parities[host['parity']],
                        bytesize=host['bytesize'],
                        stopbits=stopbits[host['stopbits']],
                        idle_timeout=host['idle_timeout'],
                        read_timeout=host['read_timeout'],
                        encoding=host['encoding'],
                        newline=newlines[host['newline']])


def load_settings(name, directory, user_directory='~') -> HostSettings:
    """
    Loads the host settings from the configuration files with the given name.
    Raises ConfigObjError if the files are invalid or no port is configured.
    """
    return settings_from_config(load_config(name, directory, user_directory))
