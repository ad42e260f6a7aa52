from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    database_url: str
    redis_url: str = "redis://localhost:6379/0"
    jwt_secret: str
    jwt_algorithm: str = "HS256"

    # Пул соединений и таймауты хранилища
    db_echo: bool = False
    db_pool_size: int = 20
    db_pool_timeout: float = 5.0
    db_command_timeout: float = 30.0

    # Кэш опубликованных постов (секунды)
    cache_post_ttl: int = 300
    cache_list_ttl: int = 60
    cache_socket_timeout: float = 1.0

    pagination_default_limit: int = 20
    pagination_max_limit: int = 100

    # Воркер отложенной публикации
    worker_enabled: bool = True
    worker_interval_seconds: float = 60.0
    worker_item_timeout: float = 30.0

    log_level: str = "INFO"

    model_config = {"env_file": ".env", "extra": "ignore"}


settings = Settings()
