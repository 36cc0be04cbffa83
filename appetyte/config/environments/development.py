from ..settings import Settings


class DevelopmentSettings(Settings):
    debug: bool = True
    log_level: str = "DEBUG"
    mock_auth_enabled: bool = True
    database_url: str = "duckdb://./data/appetyte_dev.duckdb"
