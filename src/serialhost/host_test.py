import threading
import time
import unittest
from unittest.mock import Mock

import timeout_decorator
from hamcrest import assert_that, calling, has_item, instance_of, is_, raises

from serialhost.conditions import IdleTimeoutCondition, RestartCondition
from serialhost.host import SHUTDOWN_TIMEOUT, SerialHost
from serialhost.settings import HostSettings
from serialhost.transport.base import SerialErrorKind, TransportOpenError
from serialhost.transport.base_test import FakeTransport, debug_timeout, wait_for


class BlockingReadTransport(FakeTransport):
    """ a transport whose reads block until released, or until the transport is closed. """

    def __init__(self, settings=None):
        super().__init__(settings)
        self.reading = threading.Event()
        self.release = threading.Event()

    def read_into(self, buffer):
        self.reading.set()
        self.release.wait(5)
        return super().read_into(buffer)

    def close(self):
        super().close()
        self.release.set()


class FrameErrorTransport(FakeTransport):
    """ a transport that posts a frame error from inside the first read that returns data. """

    def __init__(self, settings=None):
        super().__init__(settings)
        self.posted = False

    def read_into(self, buffer):
        count = super().read_into(buffer)
        if count and not self.posted:
            self.posted = True
            self._post_error(SerialErrorKind.FRAME)
        return count


class SerialHostTest(unittest.TestCase):

    def setUp(self):
        self.settings = HostSettings("COM3", 38400)
        self.transports = []
        self.received = []
        self.errors = []
        self.transport_class = FakeTransport
        self.hosts = []

    def tearDown(self):
        for host in self.hosts:
            host.dispose()

    def new_transport(self, settings):
        transport = self.transport_class(settings)
        self.transports.append(transport)
        return transport

    def new_host(self, settings=None, **kwargs):
        kwargs.setdefault('poll_interval', 0.005)
        kwargs.setdefault('retry_delay', 0.01)
        host = SerialHost(self.received.append, settings or self.settings, self.errors.append,
                          self.new_transport, **kwargs)
        self.hosts.append(host)
        return host

    @property
    def transport(self):
        assert_that(wait_for(lambda: self.transports), is_(True))
        return self.transports[-1]

    def test_validates_arguments(self):
        assert_that(calling(SerialHost).with_args("not callable", self.settings), raises(TypeError))
        assert_that(calling(SerialHost).with_args(print, 42), raises(TypeError))
        assert_that(calling(SerialHost).with_args(print, self.settings, "not callable"), raises(TypeError))
        assert_that(calling(SerialHost).with_args(print, ""), raises(ValueError))

    def test_port_name_uses_default_settings(self):
        host = SerialHost(print, "COM8", transport_factory=self.new_transport)
        self.hosts.append(host)
        assert_that(host.settings, is_(HostSettings("COM8")))
        assert_that(host.shutdown_timeout, is_(SHUTDOWN_TIMEOUT))

    @timeout_decorator.timeout(debug_timeout(3))
    def test_construction_starts_reader_and_opens_port(self):
        host = self.new_host()
        assert_that(host.running, is_(True))
        assert_that(wait_for(lambda: self.transport.is_open), is_(True))
        assert_that(self.transport.settings, is_(self.settings))

    @timeout_decorator.timeout(debug_timeout(3))
    def test_received_data_is_delivered_in_order(self):
        self.new_host()
        transport = self.transport
        for chunk in (b"AB", b"CDE", b"F" * 600, b"G"):
            transport.feed(chunk)
            time.sleep(0.002)
        expected = "ABCDE" + "F" * 600 + "G"
        assert_that(wait_for(lambda: "".join(self.received) == expected), is_(True))
        assert_that(self.errors, is_([]))

    @timeout_decorator.timeout(debug_timeout(3))
    def test_write(self):
        host = self.new_host()
        host.write("hello")
        host.write_line("world")
        host.write_line()
        assert_that(bytes(self.transport.written), is_(b"helloworld\n\n"))

    @timeout_decorator.timeout(debug_timeout(3))
    def test_write_uses_configured_encoding_and_newline(self):
        host = self.new_host(HostSettings("COM3", encoding='utf-8', newline='\r\n'))
        host.write_line("é")
        assert_that(bytes(self.transport.written), is_("é\r\n".encode('utf-8')))

    @timeout_decorator.timeout(debug_timeout(3))
    def test_unencodable_characters_are_replaced(self):
        host = self.new_host()
        host.write("é")
        assert_that(bytes(self.transport.written), is_(b"?"))

    @timeout_decorator.timeout(debug_timeout(3))
    def test_write_failure_is_reported_not_raised(self):
        host = self.new_host()
        transport = self.transport
        error = OSError("write failed")
        transport.write = Mock(side_effect=error)
        host.write("x")
        assert_that(self.errors, has_item(error))
        assert_that(host.running, is_(True))
        transport.feed(b"still reading")
        assert_that(wait_for(lambda: "".join(self.received) == "still reading"), is_(True))

    @timeout_decorator.timeout(debug_timeout(3))
    def test_write_opens_closed_session(self):
        self.transport_class = lambda settings: FakeTransport(settings, fail_open=1)
        host = self.new_host(retry_delay=10)
        assert_that(wait_for(lambda: self.errors), is_(True))
        host.write("late")
        assert_that(bytes(self.transport.written), is_(b"late"))

    @timeout_decorator.timeout(debug_timeout(3))
    def test_discard_on_never_opened_session_is_a_no_op(self):
        self.transport_class = lambda settings: FakeTransport(settings, fail_open=1000)
        host = self.new_host()
        assert_that(wait_for(lambda: self.errors), is_(True))
        host.discard_in_buffer()
        assert_that(self.transport.discarded, is_(0))
        assert_that(all(isinstance(e, TransportOpenError) for e in self.errors), is_(True))

    @timeout_decorator.timeout(debug_timeout(3))
    def test_discard_in_buffer(self):
        host = self.new_host()
        assert_that(wait_for(lambda: self.transport.is_open), is_(True))
        host.discard_in_buffer()
        assert_that(self.transport.discarded, is_(1))

    @timeout_decorator.timeout(debug_timeout(3))
    def test_open_failure_is_reported_and_retried(self):
        self.transport_class = lambda settings: FakeTransport(settings, fail_open=1)
        self.new_host()
        transport = self.transport
        assert_that(wait_for(lambda: transport.is_open), is_(True))
        assert_that(len(self.errors), is_(1))
        assert_that(self.errors[0], is_(instance_of(TransportOpenError)))
        transport.feed(b"recovered")
        assert_that(wait_for(lambda: self.received == ["recovered"]), is_(True))

    @timeout_decorator.timeout(debug_timeout(3))
    def test_transport_error_restarts_session(self):
        self.new_host()
        first = self.transport
        assert_that(wait_for(lambda: first.is_open), is_(True))
        first._post_error(SerialErrorKind.FRAME)
        assert_that(self.errors, has_item(RestartCondition(SerialErrorKind.FRAME, "COM3")))
        assert_that(first.close_count, is_(1))
        assert_that(wait_for(lambda: len(self.transports) == 2 and self.transports[1].is_open), is_(True))
        second = self.transports[1]
        assert_that(second.settings, is_(self.settings))
        second.feed(b"again")
        assert_that(wait_for(lambda: self.received == ["again"]), is_(True))

    @timeout_decorator.timeout(debug_timeout(3))
    def test_error_posted_during_read_delivers_data_and_reopens(self):
        self.transport_class = FrameErrorTransport
        self.new_host(retry_delay=5)
        first = self.transport
        assert_that(wait_for(lambda: first.is_open), is_(True))
        first.feed(b"ABC")
        assert_that(wait_for(lambda: len(self.transports) == 2 and self.transports[1].is_open), is_(True))
        assert_that(self.received, is_(["ABC"]))
        assert_that(self.errors, is_([RestartCondition(SerialErrorKind.FRAME, "COM3")]))
        assert_that(first.close_count, is_(1))
        self.transports[1].feed(b"DEF")
        assert_that(wait_for(lambda: self.received == ["ABC", "DEF"]), is_(True))

    @timeout_decorator.timeout(debug_timeout(3))
    def test_error_from_replaced_transport_does_not_close_current(self):
        self.new_host()
        first = self.transport
        assert_that(wait_for(lambda: first.is_open), is_(True))
        first._post_error(SerialErrorKind.OVERRUN)
        assert_that(wait_for(lambda: len(self.transports) == 2 and self.transports[1].is_open), is_(True))
        first._post_error(SerialErrorKind.OVERRUN)
        second = self.transports[1]
        assert_that(second.close_count, is_(0))

    @timeout_decorator.timeout(debug_timeout(3))
    def test_idle_condition_reported_once(self):
        self.new_host(HostSettings("COM3", idle_timeout=0.05))
        assert_that(wait_for(lambda: self.errors), is_(True))
        time.sleep(0.2)
        assert_that(self.errors, is_([IdleTimeoutCondition(0.05)]))
        self.transport.feed(b"wake")
        assert_that(wait_for(lambda: len(self.errors) == 2), is_(True))
        assert_that(self.received, is_(["wake"]))

    @timeout_decorator.timeout(debug_timeout(3))
    def test_idle_disabled_reports_nothing(self):
        self.new_host(HostSettings("COM3", idle_timeout=0))
        time.sleep(0.2)
        assert_that(self.errors, is_([]))

    @timeout_decorator.timeout(debug_timeout(3))
    def test_write_waits_for_read_cycle(self):
        self.transport_class = BlockingReadTransport
        host = self.new_host()
        transport = self.transport
        assert_that(transport.reading.wait(2), is_(True))
        writer = threading.Thread(target=host.write, args=("queued",))
        writer.start()
        time.sleep(0.1)
        assert_that(bytes(transport.written), is_(b""))
        transport.release.set()
        writer.join(2)
        assert_that(bytes(transport.written), is_(b"queued"))

    @timeout_decorator.timeout(debug_timeout(3))
    def test_dispose_stops_reader_and_closes(self):
        host = self.new_host()
        transport = self.transport
        assert_that(wait_for(lambda: transport.is_open), is_(True))
        thread = host._loop.background_thread
        host.dispose()
        assert_that(host.running, is_(False))
        assert_that(thread.is_alive(), is_(False))
        assert_that(transport.close_count, is_(1))
        assert_that(host.session.transport, is_(None))

    @timeout_decorator.timeout(debug_timeout(3))
    def test_nothing_delivered_after_dispose(self):
        host = self.new_host()
        transport = self.transport
        host.dispose()
        transport.feed(b"too late")
        transport._post_error(SerialErrorKind.IO)
        host.write("ignored")
        host.discard_in_buffer()
        time.sleep(0.05)
        assert_that(self.received, is_([]))
        assert_that(self.errors, is_([]))
        assert_that(bytes(transport.written), is_(b""))
        assert_that(len(self.transports), is_(1))

    @timeout_decorator.timeout(debug_timeout(3))
    def test_dispose_is_repeatable(self):
        host = self.new_host()
        host.dispose()
        host.dispose()
        assert_that(host.running, is_(False))

    @timeout_decorator.timeout(debug_timeout(3))
    def test_dispose_abandons_stuck_reader_after_timeout(self):
        self.transport_class = BlockingReadTransport
        host = self.new_host(shutdown_timeout=0.1)
        transport = self.transport
        assert_that(transport.reading.wait(2), is_(True))
        start = time.monotonic()
        host.dispose()
        assert_that(time.monotonic() - start < 1, is_(True))
        assert_that(transport.close_count, is_(1))
        assert_that(host.session.transport, is_(None))
        host._loop.background_thread.join(2)
        assert_that(self.errors, is_([]))

    @timeout_decorator.timeout(debug_timeout(3))
    def test_dispose_from_handler(self):
        host = None

        def process(text):
            host.dispose()
        host = SerialHost(process, self.settings, self.errors.append, self.new_transport, poll_interval=0.005)
        self.hosts.append(host)
        self.transport.feed(b"bye")
        assert_that(wait_for(lambda: not host._loop.background_thread.is_alive()), is_(True))
        assert_that(self.transport.close_count, is_(1))

    @timeout_decorator.timeout(debug_timeout(3))
    def test_context_manager_disposes(self):
        with SerialHost(self.received.append, self.settings, transport_factory=self.new_transport) as host:
            assert_that(host.running, is_(True))
        assert_that(host.running, is_(False))
