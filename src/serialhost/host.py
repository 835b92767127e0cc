"""
Hosts a long-lived connection to a serial device.
"""
import logging

from serialhost.conditions import RestartCondition
from serialhost.loop import POLL_INTERVAL, RETRY_DELAY, ReaderLoop
from serialhost.reporter import ErrorReporter
from serialhost.session import Session
from serialhost.settings import HostSettings
from serialhost.transport.serial_transport import serial_transport_factory

logger = logging.getLogger(__name__)

SHUTDOWN_TIMEOUT = 5    # longest wait for the reader thread on dispose


class SerialHost:
    """
    Keeps a serial port open for as long as the host lives, passing received text to a handler.

    The port is opened on a background thread as soon as the host is constructed, and
    reopened automatically after it fails or the transport reports a device error. Failures
    are never raised to the caller; they are passed to the optional error logger.

    Writes share a lock with the reader, so a write and a read cycle never interleave.

    :param process_data: called on the reader thread with each batch of received text
    :param settings: the HostSettings, or just the port name to use the default settings
    :param error_logger: optional callable receiving failures and HostCondition instances
    :param transport_factory: creates a closed transport from the settings
    """

    def __init__(self, process_data, settings, error_logger=None, transport_factory=serial_transport_factory,
                 poll_interval=POLL_INTERVAL, retry_delay=RETRY_DELAY, shutdown_timeout=SHUTDOWN_TIMEOUT):
        if isinstance(settings, str):
            settings = HostSettings(settings)
        if not isinstance(settings, HostSettings):
            raise TypeError("settings must be HostSettings or a port name: %r" % (settings,))
        if not callable(process_data):
            raise TypeError("process_data must be callable")
        if error_logger is not None and not callable(error_logger):
            raise TypeError("error_logger must be callable")

        self.settings = settings
        self.shutdown_timeout = shutdown_timeout
        self.reporter = ErrorReporter(error_logger)
        self.session = Session(settings, self._transport_error, transport_factory)
        self._loop = ReaderLoop(self.session, process_data, self._report,
                                idle_timeout=settings.idle_timeout,
                                encoding=settings.encoding,
                                poll_interval=poll_interval,
                                retry_delay=retry_delay,
                                name="serialhost %s" % settings.port)
        self._loop.start()

    @property
    def running(self):
        return self._loop.running()

    def write(self, text=""):
        """
        Writes text to the port, opening it if needed. Failures are reported, not raised.
        Does nothing once the host is disposed.
        """
        try:
            session = self.session
            with session.lock:
                if self.running:
                    session.ensure_open()
                    session.write(text.encode(self.settings.encoding, 'replace'))
        except Exception as e:
            self._report(e)

    def write_line(self, text=""):
        self.write(text + self.settings.newline)

    def discard_in_buffer(self):
        """ discards received data not yet read. Does nothing if the port is not open. """
        try:
            self.session.discard_in_buffer()
        except Exception as e:
            self._report(e)

    def dispose(self):
        """
        Stops the reader and closes the port. The reader thread is given up to the shutdown
        timeout to finish; after that it is abandoned and the port is closed regardless.
        """
        stopped = self._loop.stop(self.shutdown_timeout)
        if not stopped:
            logger.warning("reader for %s did not stop within %s seconds, abandoning it" %
                           (self.settings.port, self.shutdown_timeout))
        self.session.close(force=not stopped)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.dispose()

    def _report(self, error):
        if self.running:
            self.reporter.report(error)

    def _transport_error(self, event):
        """ the transport reported a device error: close the session so that it is reopened. """
        if self.running:
            self.reporter.report(RestartCondition(event.kind, self.settings.port))
            self.session.close(event.transport)
