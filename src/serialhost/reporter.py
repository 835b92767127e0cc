import logging

from serialhost.conditions import IdleTimeoutCondition, RestartCondition

logger = logging.getLogger(__name__)


class ErrorReporter:
    """
    Routes failures and notable conditions to an optional error logger callback.

    Every report is also written to the python log: idle conditions at info level,
    restarts at warning, and anything else as an error with its traceback.
    Reporting never raises. An exception from the callback is logged and dropped.

    :param error_logger: a callable taking the exception/condition, or None
    """

    def __init__(self, error_logger=None, log=logger):
        self.error_logger = error_logger
        self.logger = log

    def __call__(self, error: Exception):
        self.report(error)

    def report(self, error: Exception):
        self._log(error)

        error_logger = self.error_logger
        if error_logger is None:
            return
        try:
            error_logger(error)
        except Exception as e:
            self.logger.exception("error logger failed reporting '%s': %s" % (error, e))

    def _log(self, error):
        if isinstance(error, IdleTimeoutCondition):
            self.logger.info(str(error))
        elif isinstance(error, RestartCondition):
            self.logger.warning(str(error))
        else:
            self.logger.error("serial host error: %s" % error, exc_info=error)
