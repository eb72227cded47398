from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    DATABASE_URL: str
    SQL_ECHO: bool = False
    POOL_PRE_PING: bool = True
    LOG_LEVEL: str = "INFO"

    # Name announced to MCP clients
    SERVER_NAME: str = "mssql-readonly-mcp"

    HTTP_HOST: str = "127.0.0.1"
    HTTP_PORT: int = 5000

    # This tells Pydantic to read from the .env file
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


# Create a single instance of the settings to use everywhere
settings = Settings()
