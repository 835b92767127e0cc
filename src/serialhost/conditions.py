"""
Conditions reported by a serial host to its error logger. They are exceptions so that they
can be delivered through the same channel as the failures raised by the transport.
"""
from serialhost.support.mixins import CommonEqualityMixin


class HostCondition(Exception):
    """ base class for notable conditions detected by the host itself. """


class IdleTimeoutCondition(HostCondition, CommonEqualityMixin):
    """ No bytes have been received for the configured idle period. """

    def __init__(self, idle_seconds):
        super().__init__(idle_seconds)
        self.idle_seconds = idle_seconds

    def __str__(self):
        return "No data received for %s seconds" % self.idle_seconds


class RestartCondition(HostCondition, CommonEqualityMixin):
    """ The transport reported an error, so the serial port is closed and will be reopened. """

    def __init__(self, kind, port):
        super().__init__(kind, port)
        self.kind = kind
        self.port = port

    def __str__(self):
        return "The serial host on %s will be restarted due to: %s" % (self.port, self.kind.name)
