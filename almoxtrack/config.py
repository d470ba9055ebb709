from typing import Literal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    APP_NAME: str = "AlmoxTrack"
    DATABASE_URL: str = "sqlite:///./almoxtrack.db"
    LOG_LEVEL: str = "INFO"

    # Auth
    SECRET_KEY: str = "change-me"
    ACCESS_TOKEN_EXPIRE_HOURS: int = 72
    DEFAULT_ADMIN_USERNAME: str = "admin"
    DEFAULT_ADMIN_PASSWORD: str = "admin"

    # Image uploads (served under /uploads)
    UPLOAD_DIR: str = "./uploads"
    DEFAULT_IMAGE_URL: str = "https://placehold.co/40x40.png"

    # Product listing cap when no search term is given
    PRODUCT_PAGE_SIZE: int = 50
    LOW_STOCK_THRESHOLD: int = 5

    # "retain" keeps movement history of deleted products, "cascade" removes it
    PRODUCT_DELETE_POLICY: Literal["retain", "cascade"] = "retain"
    ENFORCE_UNIQUE_CODE: bool = False

    model_config = {"env_file": ".env"}


settings = Settings()
