"""
A console monitor that prints the bytes received on a serial port as hex.

    python -m serialhost.console /dev/ttyUSB0 --baudrate 115200

Press Enter to stop.
"""
import argparse
import logging
import sys

from serialhost.config.config import load_settings, newlines, parities, stopbits
from serialhost.host import SerialHost
from serialhost.settings import HostSettings

logger = logging.getLogger(__name__)

config_name = 'serialhost'


def hex_bytes(text, encoding='ascii'):
    """
    >>> hex_bytes("AB\\n")
    '41, 42, 0a, '
    """
    return "".join("%02x, " % b for b in text.encode(encoding, 'replace'))


def argument_parser():
    parser = argparse.ArgumentParser(prog='serialhost.console', description='Prints data received on a serial port.')
    parser.add_argument('port', nargs='?', help='the serial device or pyserial URL, e.g. /dev/ttyUSB0, COM3, loop://')
    parser.add_argument('--baudrate', type=int, default=9600)
    parser.add_argument('--parity', choices=sorted(parities), default='none')
    parser.add_argument('--bytesize', type=int, choices=(5, 6, 7, 8), default=8)
    parser.add_argument('--stopbits', choices=sorted(stopbits), default='1')
    parser.add_argument('--idle-timeout', type=float, default=0,
                        help='report when no data arrives for this many seconds, 0 to disable')
    parser.add_argument('--newline', choices=sorted(newlines), default='lf')
    parser.add_argument('--config', metavar='DIR',
                        help='load the settings from %s.cfg and its flavors in this directory' % config_name)
    parser.add_argument('--verbose', '-v', action='store_true')
    return parser


def settings_from_args(args) -> HostSettings:
    if args.config:
        return load_settings(config_name, args.config)
    return HostSettings(args.port,
                        baudrate=args.baudrate,
                        parity=parities[args.parity],
                        bytesize=args.bytesize,
                        stopbits=stopbits[args.stopbits],
                        idle_timeout=args.idle_timeout,
                        newline=newlines[args.newline])


def log_error(error):
    logger.info("%s: %s" % (type(error).__name__, error))


def monitor(settings, stdin=sys.stdin, stdout=sys.stdout, host_factory=SerialHost):
    """ prints received data until a line (or end of file) is read from stdin. """
    def print_hex(text):
        stdout.write(hex_bytes(text, settings.encoding))
        stdout.flush()

    host = host_factory(print_hex, settings, log_error)
    try:
        stdin.readline()
    finally:
        host.dispose()


def main(argv=None):
    parser = argument_parser()
    args = parser.parse_args(argv)
    if not args.port and not args.config:
        parser.error("a port or --config is required")

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format='%(asctime)s %(levelname)-7s %(name)s: %(message)s')
    settings = settings_from_args(args)
    logger.info("monitoring %s, press Enter to stop" % (settings,))
    monitor(settings)


if __name__ == '__main__':
    main()
