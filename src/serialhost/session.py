import logging
import threading

from serialhost.transport.base import Transport
from serialhost.transport.serial_transport import serial_transport_factory

logger = logging.getLogger(__name__)


class Session:
    """
    Owns the single transport handle of a host.

    The handle is created lazily by `ensure_open()` and discarded by `close()`. Every read and
    write through the session must be made while holding `lock`; the same lock guards the
    handle reference itself.

    :param settings: the HostSettings used to create the transport
    :param on_transport_error: subscribed to each transport created, receives TransportErrorEvent
    :param transport_factory: creates a closed transport from the settings
    """

    def __init__(self, settings, on_transport_error=None, transport_factory=serial_transport_factory):
        self.settings = settings
        self.lock = threading.RLock()
        self._transport = None
        self._on_transport_error = on_transport_error
        self._transport_factory = transport_factory

    @property
    def transport(self) -> Transport:
        return self._transport

    @property
    def is_open(self):
        transport = self._transport
        return transport is not None and transport.is_open

    def ensure_open(self) -> Transport:
        """
        Creates the transport if there is none, and opens it if it is not open.
        Raises TransportOpenError when the device cannot be opened. The caller holds the lock.
        """
        with self.lock:
            transport = self._transport
            if transport is None:
                transport = self._transport_factory(self.settings)
                if self._on_transport_error is not None:
                    transport.subscribe(self._on_transport_error)
                self._transport = transport
            if not transport.is_open:
                transport.open()
            return transport

    def read_into(self, buffer) -> int:
        return self._open_transport().read_into(buffer)

    def write(self, data: bytes):
        self._open_transport().write(data)

    def discard_in_buffer(self):
        """ discards unread input if the transport is open, otherwise does nothing. """
        with self.lock:
            if self.is_open:
                self._transport.discard_in_buffer()

    def _open_transport(self):
        transport = self._transport
        if transport is None:
            raise ValueError("session for %s is not open" % self.settings.port)
        return transport

    def close(self, expected=None, force=False):
        """
        Takes the transport out of the session and closes it. The transport reference is
        cleared under the lock, but the close itself happens after the lock is released.
        Failures while closing are ignored.

        :param expected: when given, the session is only closed if this is still its transport.
        :param force: when the lock is held elsewhere, take the transport without waiting for it.
            Used on shutdown when the reader is stuck in a call that holds the lock.
        :return: True if a transport was taken and closed.
        """
        locked = self.lock.acquire(blocking=not force)
        try:
            transport = self._transport
            if transport is None or (expected is not None and transport is not expected):
                return False
            self._transport = None
        finally:
            if locked:
                self.lock.release()

        try:
            transport.close()
            logger.debug("closed serial port %s" % self.settings.port)
        except Exception as e:
            logger.debug("error closing serial port %s: %s" % (self.settings.port, e))
        return True
