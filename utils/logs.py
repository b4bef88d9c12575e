import logging


MESSAGE_LOG_LEVEL = logging.WARNING - 5


def addLoggingLevel(levelName, levelNum, methodName=None):
    """
    Add a new logging level to the `logging` module and the currently
    configured logging class.

    `levelName` becomes an attribute of the `logging` module with the value
    `levelNum`. `methodName` becomes a convenience method for both `logging`
    itself and the class returned by `logging.getLoggerClass()` (usually just
    `logging.Logger`). If `methodName` is not specified, `levelName.lower()`
    is used.

    Calling it twice with the same name is a no-op, so every entry point can
    install the level without coordinating with the others.
    """
    if not methodName:
        methodName = levelName.lower()

    if getattr(logging, levelName, None) == levelNum:
        return

    def logForLevel(self, message, *args, **kwargs):
        if self.isEnabledFor(levelNum):
            # Yes, logger takes its '*args' as 'args'.
            self._log(levelNum, message, args, **kwargs)

    def logToRoot(message, *args, **kwargs):
        logging.log(levelNum, message, *args, **kwargs)

    logging.addLevelName(levelNum, levelName)
    setattr(logging, levelName, levelNum)
    setattr(logging.getLoggerClass(), methodName, logForLevel)
    setattr(logging, methodName, logToRoot)


def enable_logging(verbose: int = 0):
    addLoggingLevel('MESSAGE', MESSAGE_LOG_LEVEL)
    verbosity = min(int(verbose), 4)
    log_level = [logging.WARNING, MESSAGE_LOG_LEVEL, logging.INFO, logging.DEBUG][verbosity - 1 if verbosity > 0 else 0]

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)-7s] %(name)-22s: %(message)s"
    )
    logger = logging.getLogger(__name__)
    logger.debug(f"Log level set to: {logging.getLevelName(log_level)}")
    return log_level


addLoggingLevel('MESSAGE', MESSAGE_LOG_LEVEL)
