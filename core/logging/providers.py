import logging
import sys
from typing import Annotated
from dishka import Provider, provide, Scope, FromComponent
from core.environment.config import Settings

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


class LoggerProvider(Provider):
    """
    Provider for the application logger.

    Console (stdout) output, level taken from ``Settings.log_level``.
    """
    component = "logger"

    @provide(scope=Scope.APP)
    def get_logger(
        self,
        settings: Annotated[Settings, FromComponent("environment")]
    ) -> logging.Logger:
        """
        Provide configured logger instance.

        Parameters
        ----------
        settings : Settings
            Application settings

        Returns
        -------
        logging.Logger
            Logger for ledger queries
        """
        if not logging.getLogger().handlers:
            logging.basicConfig(
                level=settings.log_level,
                format=LOG_FORMAT,
                handlers=[logging.StreamHandler(sys.stdout)]
            )

        logger = logging.getLogger("account_activity_api")
        logger.setLevel(settings.log_level)
        return logger
