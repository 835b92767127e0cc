"""
Serial Host

Keeps a single serial port open for the lifetime of a host object and hands the received
text to a callback, shielding the caller from adapters that come and go, drivers that
raise spurious errors and links that fall silent.

- Transport: the platform endpoint that moves bytes. SerialTransport adapts a pyserial
  port; any object honouring the Transport contract can be used instead.
- Session: owns the one transport handle. Opens it lazily and closes it by taking the
  reference out under the lock before closing it, so a slow close never holds up readers
  or writers.
- ReaderLoop: a background thread that drains the session every cycle, passes the text
  to the handler, and reports when the link has been idle for too long.
- SerialHost: the public face. Starts the reader on construction, serializes writes
  with the reader, and stops everything within a bounded time on dispose().
- ErrorReporter: passes failures and conditions (IdleTimeoutCondition, RestartCondition)
  to the optional error logger, and to the python log.

## Threading

There are three actors: the reader thread, any thread calling write() or
discard_in_buffer(), and whichever thread the transport uses to post device errors.
All of them go through the session lock. The lock is re-entrant since the pyserial
transport posts its errors on the thread that was doing the failing I/O, which already
holds the lock when the error handler closes the session.

Stopping is cooperative. dispose() clears the run flag and waits a limited time for the
reader; a read blocked in the driver is not interrupted, the port is closed from under it.
"""
