"""
Tunable timing and serial settings, loaded from arduinolink*.cfg files.
"""
import logging
import os

from arduinolink.config.config import apply_conf_path, load_config

logger = logging.getLogger(__name__)

config_name = 'arduinolink'
schema_directory = os.path.dirname(__file__)


class BoardSettings:
    """ Pacing, debounce and timeout values for one board, in seconds. """

    def __init__(self):
        self.digital_read_interval = 0.02   # shortest interval between digital input readings
        self.analog_read_interval = 0.02    # shortest interval between analog input readings
        self.digital_read_timeout = 0.1     # waiting time for a digital sample
        self.analog_read_timeout = 0.1      # waiting time for an analog sample
        self.sending_interval = 0.01        # shortest interval between outbound messages
        self.connect_timeout = 5.0          # deadline for choosing and opening the port
        self.handshake_timeout = 5.0        # deadline for the protocol 'ready' signal


class SerialSettings:

    def __init__(self):
        self.port = 'auto'
        self.baud_rate = 57600      # default baud rate for firmata
        self.filters = []


class Settings:
    def __init__(self, board=None, serial=None):
        self.board = board or BoardSettings()
        self.serial = serial or SerialSettings()


def load_settings(directory=None, user_directory='~') -> Settings:
    """
    Loads the settings from the configuration files in the given directory (the current
    directory by default), falling back to the packaged schema defaults.
    """
    directory = directory or os.getcwd()
    conf = load_config(config_name, directory, schema_directory, user_directory)
    settings = Settings()
    apply_conf_path(conf, ['board'], settings.board)
    apply_conf_path(conf, ['serial'], settings.serial)
    logger.debug("loaded settings from %s", directory)
    return settings
