"""
Implements a transport over a serial port using pyserial.
"""

import logging

import serial
from serial import SerialException

from serialhost.support.proxy import notify_exception_method_wrapper, wrap_methods
from serialhost.transport.base import SerialErrorKind, Transport, TransportOpenError

logger = logging.getLogger(__name__)

# I/O failures that indicate the device has gone away or the driver has faulted
io_errors = (SerialException, OSError)


class SerialTransport(Transport):
    """
    A transport that provides comms via a pyserial port.
    Read, write and discard failures are posted to the error subscribers before being raised.
    """

    def __init__(self, ser: serial.SerialBase):
        """
        :param ser: the serial instance. It should not be open yet.
        """
        super().__init__()
        self.ser = ser
        # patch flushing since this causes a lockup if the serial is disconnected during
        # the flush.
        ser.flush = self._no_flush
        wrap_methods(self, ('read_into', 'write', 'discard_in_buffer'),
                     notify_exception_method_wrapper(self._io_error, io_errors))

    def _no_flush(self, *args, **kwargs):
        pass

    def _io_error(self, e):
        self._post_error(SerialErrorKind.IO, e)

    @property
    def port(self):
        return self.ser.port

    @property
    def is_open(self) -> bool:
        return self.ser.is_open

    def open(self):
        try:
            self.ser.open()
        except io_errors as e:
            raise TransportOpenError("unable to open serial port %s: %s" % (self.ser.port, e)) from e
        logger.info("opened serial port %s" % self.ser.port)

    def read_into(self, buffer) -> int:
        """
        Reads the bytes already waiting, up to the size of the buffer. When nothing is waiting,
        a single byte is requested so that the read blocks for at most the port timeout.
        """
        ser = self.ser
        size = min(len(buffer), max(1, ser.in_waiting))
        data = ser.read(size)
        count = len(data)
        buffer[:count] = data
        return count

    def write(self, data: bytes):
        self.ser.write(data)

    def discard_in_buffer(self):
        self.ser.reset_input_buffer()

    def close(self):
        self.ser.close()


def serial_transport_factory(settings) -> SerialTransport:
    """
    Creates a closed serial transport from host settings.
    The port may be a device name or any URL understood by `serial.serial_for_url`.
    """
    ser = serial.serial_for_url(settings.port, do_not_open=True,
                                baudrate=settings.baudrate,
                                parity=settings.parity.value,
                                bytesize=settings.bytesize,
                                stopbits=settings.stopbits.value,
                                timeout=settings.read_timeout)
    return SerialTransport(ser)
