"""
The contract between a serial host and the platform transport that moves the bytes.
"""
from abc import abstractmethod
from enum import Enum

from serialhost.support.events import EventSource


class TransportError(IOError):
    """ Indicates an error condition with a transport. """


class TransportOpenError(TransportError):
    """ The transport could not be opened. The underlying cause is chained. """


class ReadTimeoutError(TransportError):
    """ No bytes arrived within the transport's read timeout. """


class SerialErrorKind(Enum):
    FRAME = 'frame'
    OVERRUN = 'overrun'
    RX_OVER = 'rx_over'
    RX_PARITY = 'rx_parity'
    TX_FULL = 'tx_full'
    IO = 'io'


class TransportErrorEvent:
    """ Posted by a transport to its subscribers when the device reports an error. """

    def __init__(self, transport, kind: SerialErrorKind, error=None):
        self.transport = transport
        self.kind = kind
        self.error = error

    def __repr__(self):
        return "TransportErrorEvent(%s, %r)" % (self.kind.name, self.error)


class Transport:
    """
    A byte-stream endpoint. Transports are created closed; `open()` must be called before
    reading or writing. Error notifications are delivered to the handlers added with
    `subscribe()`, possibly on a thread other than the one that subscribed.
    """

    def __init__(self):
        self.errors = EventSource()

    def subscribe(self, handler):
        """
        :param handler: a callable receiving a `TransportErrorEvent`
        """
        self.errors.add(handler)

    def _post_error(self, kind: SerialErrorKind, error=None):
        self.errors.fire(TransportErrorEvent(self, kind, error))

    @property
    @abstractmethod
    def is_open(self) -> bool:
        raise NotImplementedError

    @abstractmethod
    def open(self):
        """
        Opens the device. Raises TransportOpenError if this is not possible.
        """
        raise NotImplementedError

    @abstractmethod
    def read_into(self, buffer) -> int:
        """
        Reads available bytes into the start of the buffer.
        :return: the number of bytes read, zero if none arrived within the read timeout.
            Transports may instead raise ReadTimeoutError.
        """
        raise NotImplementedError

    @abstractmethod
    def write(self, data: bytes):
        raise NotImplementedError

    @abstractmethod
    def discard_in_buffer(self):
        """ drops any received bytes that have not yet been read. """
        raise NotImplementedError

    @abstractmethod
    def close(self):
        raise NotImplementedError
