"""Read access to the share settings shared by client and server."""

from shareserver import config


class ConfigService:
    """
    Resolves named settings at call time from shareserver.config.
    """

    def get(self, name: str) -> int:
        """
        Look up a numeric share setting.

        Args:
            name: Setting name ("share.chunkSize" or "share.maxSize")

        Returns:
            Setting value in bytes

        Raises:
            KeyError: If the setting name is unknown
        """
        if name == "share.chunkSize":
            return config.CHUNK_SIZE
        if name == "share.maxSize":
            return config.MAX_SHARE_SIZE
        raise KeyError(name)
