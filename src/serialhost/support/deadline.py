import time


class IdleDeadline:
    """
    Tracks the time by which more data is expected before the link is considered idle.

    The deadline is armed with `arm()` each time data arrives, and cleared once the idle
    condition has been handled so that it is reported only once per silence window.
    A period of zero disables the deadline: it never arms and never expires.
    """

    def __init__(self, period, current_time=time.monotonic):
        """
        :param period: The idle period in seconds.
        :param current_time: the clock used when no explicit time is given.
        """
        if period < 0:
            raise ValueError("idle period must not be negative: %s" % period)
        self.period = period
        self.current_time = current_time
        self.expires = None

    @property
    def enabled(self):
        return self.period > 0

    @property
    def armed(self):
        return self.expires is not None

    def arm(self, now=None):
        """ starts a new silence window from the given time. """
        if self.enabled:
            self.expires = (self.current_time() if now is None else now) + self.period

    def clear(self):
        self.expires = None

    def expired(self, now=None):
        """
        :return: True if the deadline is armed and the given time is past it.
        """
        if not self.enabled or self.expires is None:
            return False
        return (self.current_time() if now is None else now) > self.expires
