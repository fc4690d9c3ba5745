from dishka import Provider, Scope, provide
from core.environment.config import Settings


class EnvironmentProvider(Provider):
    """
    Provider for environment configuration.

    Settings are read once per application from the process
    environment and the ``.env`` file named by ``ENV_FILE``.
    """

    component = "environment"
    scope = Scope.APP

    @provide
    def get_settings(self) -> Settings:
        """
        Provide application settings.

        Returns
        -------
        Settings
            Application settings instance
        """
        return Settings()
