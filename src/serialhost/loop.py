"""
The background loop that drains a serial session and hands the received text to a handler.
"""
import codecs
import logging
import threading
import time
from collections.abc import Callable

from serialhost.conditions import IdleTimeoutCondition
from serialhost.support.deadline import IdleDeadline
from serialhost.transport.base import ReadTimeoutError

logger = logging.getLogger(__name__)

SCRATCH_SIZE = 0xFF
POLL_INTERVAL = 0.1     # wait between polls of a quiet link
RETRY_DELAY = 5         # wait after a failure before trying again


class AsyncLoop:
    """ Continually runs a given function on a background thread.
        Exceptions are logged and posted to the exception handler.
        The background thread is registered as a daemon.
    """

    def __init__(self, fn: Callable=None, args=(), log=logger, name=None):
        """
        :param fn the function to run
        :param args arguments to pass to fn
        :param name the name given to the background thread
        """
        self.fn = fn
        self.args = args
        self.name = name
        self.stop_event = threading.Event()
        self.background_thread = None
        self.logger = log
        self._start_lock = threading.Lock()

    def start(self):
        """
        Starts the background thread. A loop can be started only once.
        """
        with self._start_lock:
            if self.background_thread is None and self.running():
                t = threading.Thread(target=self._run, name=self.name)
                t.daemon = True
                self.background_thread = t
                t.start()

    def exception_handler(self, e):
        self.logger.exception(e)

    def _run(self):
        """ The processing loop for the background thread.
             Invokes the callable for as long as the stop signal is not received.
        """
        self._do(self.startup)
        while self.running():
            self._do(self.loop)
        self._do(self.shutdown)
        self.logger.debug("background thread exiting")

    def _do(self, callme):
        """ runs a function and captures any exceptions """
        try:
            callme()
        except Exception as e:
            self.exception_handler(e)

    def startup(self):
        """ template method called when the thread starts"""
        pass

    def loop(self):
        self.fn(*self.args)

    def shutdown(self):
        """ template method called when the thread exits """
        pass

    def running(self):
        return not self.stop_event.is_set()

    def wait(self, seconds):
        """ pauses the loop for the given time, returning early when the loop is stopped. """
        return self.stop_event.wait(seconds)

    def stop(self, timeout=None):
        """
        Signals the loop to stop and waits for the background thread to exit.
        :param timeout: the longest time to wait. When it elapses the thread is abandoned.
        :return: True if the background thread has exited, or will exit without starting
            another cycle because stop was called from the thread itself.
        """
        self.stop_event.set()
        thread = self.background_thread
        if thread is None or thread is threading.current_thread():
            return True
        thread.join(timeout)
        return not thread.is_alive()


class ReaderLoop(AsyncLoop):
    """
    Drains a session on a background thread and delivers each batch of decoded text to a handler.

    Each cycle takes the session lock, opens the session if needed and reads until no more
    bytes are waiting. The lock is released before the handler is called with everything
    received in the cycle. A quiet cycle waits for the poll interval; a failure is reported
    and the loop waits for the retry delay before trying again.

    When an idle timeout is set, an IdleTimeoutCondition is reported once for each
    period of silence.

    :param session: the Session to read from
    :param process_data: called with each batch of received text
    :param report: called with failures and conditions
    :param idle_timeout: seconds of silence before an idle condition is reported, 0 to disable
    :param encoding: the codec used to decode the received bytes
    """

    def __init__(self, session, process_data, report, idle_timeout=0, encoding='ascii',
                 poll_interval=POLL_INTERVAL, retry_delay=RETRY_DELAY, current_time=time.monotonic,
                 log=logger, name=None):
        super().__init__(self.cycle, log=log, name=name)
        self.session = session
        self.process_data = process_data
        self.report = report
        self.poll_interval = poll_interval
        self.retry_delay = retry_delay
        self.idle = IdleDeadline(idle_timeout, current_time)
        self.scratch = bytearray(SCRATCH_SIZE)
        self.decoder = codecs.getincrementaldecoder(encoding)('replace')

    def startup(self):
        self.idle.arm()

    def cycle(self):
        try:
            self._check_idle()
            count, text, failure = self._receive()
            if count:
                self.idle.arm()
                if text and self.running():
                    self.process_data(text)
            if failure is not None:
                raise failure
            if not count and self.running():
                self.wait(self.poll_interval)
        except Exception as e:
            self.decoder.reset()
            if self.running():
                self.report(e)
                self.wait(self.retry_delay)

    def _check_idle(self):
        idle = self.idle
        if idle.expired():
            idle.clear()
            self.report(IdleTimeoutCondition(idle.period))

    def _receive(self):
        """
        Reads everything waiting on the session.
        :return: a tuple of the number of bytes read, the decoded text and the exception
            that ended the drain, if any
        """
        session = self.session
        with session.lock:
            if not self.running():
                return 0, '', None
            transport = session.ensure_open()
            return self._drain(transport)

    def _drain(self, transport):
        """
        Reads until nothing more is waiting. A read that fails ends the drain, and the
        failure is returned along with the text read before it. The drain also ends when
        the session closes the transport during a read, which happens when the transport
        posts an error notification from the reading thread.
        """
        session = self.session
        scratch = self.scratch
        decoder = self.decoder
        total = 0
        received = []
        failure = None
        while session.transport is transport:
            try:
                count = session.read_into(scratch)
            except ReadTimeoutError:
                break
            except Exception as e:
                failure = e
                break
            if not count:
                break
            total += count
            received.append(decoder.decode(bytes(scratch[:count])))
        if session.transport is not transport:
            decoder.reset()
        return total, ''.join(received), failure
