"""Server configuration."""

from pydantic import BaseModel


class ServerConfig(BaseModel, frozen=True):
    """Bind address for the uvicorn server."""

    host: str
    port: int

    @property
    def url(self) -> str:
        """Base URL the form page is served on."""
        return f"http://{self.host}:{self.port}"
