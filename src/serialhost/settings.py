"""
The fixed configuration of a serial host.
"""
from enum import Enum

import serial

from serialhost.support.mixins import CommonEqualityMixin


class Parity(Enum):
    NONE = serial.PARITY_NONE
    ODD = serial.PARITY_ODD
    EVEN = serial.PARITY_EVEN
    MARK = serial.PARITY_MARK
    SPACE = serial.PARITY_SPACE


class StopBits(Enum):
    ONE = serial.STOPBITS_ONE
    ONE_POINT_FIVE = serial.STOPBITS_ONE_POINT_FIVE
    TWO = serial.STOPBITS_TWO


BYTESIZES = (5, 6, 7, 8)


class HostSettings(CommonEqualityMixin):
    """
    Describes the serial port a host connects to and how the received bytes are handled.
    Values are validated on construction and cannot be changed afterwards.

    :param port: the device name or pyserial URL, e.g. `/dev/ttyUSB0`, `COM3` or `loop://`
    :param baudrate: the line speed
    :param parity: a `Parity` value
    :param bytesize: the number of data bits, 5 to 8
    :param stopbits: a `StopBits` value
    :param idle_timeout: seconds of silence tolerated before an idle condition is reported.
        Zero disables idle detection.
    :param read_timeout: the device-level timeout for a single read, in seconds. Keeps the
        reader responsive to shutdown.
    :param encoding: the codec used to decode received bytes and encode written text.
        Undecodable/unencodable characters are replaced.
    :param newline: the line terminator appended by `write_line`
    """

    def __init__(self, port, baudrate=9600, parity=Parity.NONE, bytesize=8, stopbits=StopBits.ONE,
                 idle_timeout=0, read_timeout=0.1, encoding='ascii', newline='\n'):
        if not port or not isinstance(port, str):
            raise ValueError("port must be a non-empty string: %r" % (port,))
        if isinstance(baudrate, bool) or not isinstance(baudrate, int) or baudrate <= 0:
            raise ValueError("baudrate must be a positive integer: %r" % (baudrate,))
        if not isinstance(parity, Parity):
            raise TypeError("parity must be a Parity: %r" % (parity,))
        if bytesize not in BYTESIZES:
            raise ValueError("bytesize must be one of %s: %r" % (BYTESIZES, bytesize))
        if not isinstance(stopbits, StopBits):
            raise TypeError("stopbits must be a StopBits: %r" % (stopbits,))
        if idle_timeout < 0:
            raise ValueError("idle_timeout must not be negative: %r" % (idle_timeout,))
        if read_timeout < 0:
            raise ValueError("read_timeout must not be negative: %r" % (read_timeout,))
        if not newline:
            raise ValueError("newline must not be empty")
        ''.encode(encoding)     # raises LookupError for an unknown codec

        self._port = port
        self._baudrate = baudrate
        self._parity = parity
        self._bytesize = bytesize
        self._stopbits = stopbits
        self._idle_timeout = idle_timeout
        self._read_timeout = read_timeout
        self._encoding = encoding
        self._newline = newline

    @property
    def port(self):
        return self._port

    @property
    def baudrate(self):
        return self._baudrate

    @property
    def parity(self) -> Parity:
        return self._parity

    @property
    def bytesize(self):
        return self._bytesize

    @property
    def stopbits(self) -> StopBits:
        return self._stopbits

    @property
    def idle_timeout(self):
        return self._idle_timeout

    @property
    def read_timeout(self):
        return self._read_timeout

    @property
    def encoding(self):
        return self._encoding

    @property
    def newline(self):
        return self._newline

    def __repr__(self):
        return "HostSettings(%r, %d, %s, %d, %s, idle_timeout=%s)" % (
            self._port, self._baudrate, self._parity.name, self._bytesize, self._stopbits.name,
            self._idle_timeout)
