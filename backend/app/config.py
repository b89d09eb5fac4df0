from pathlib import Path
from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    # Database
    database_url: str = "sqlite:///./data/catalog.db"

    # Application
    api_prefix: str = "/api"
    log_level: str = "INFO"
    items_per_page: int = 9

    # Public asset root; uploads/images and uploads/files live beneath it
    public_dir: Path = Path("./public")

    # Upload limits (enforced when staging multipart uploads)
    max_upload_size: int = 100 * 1024 * 1024  # 100MB per file
    max_new_images: int = 10

    # Categories
    default_category_icon: str = "fa-solid fa-folder"

    # Admin session
    admin_username: str = "admin"
    admin_password: str = "change-this-in-production"
    session_secret_key: str = "session-secret-change-in-production"
    session_cookie_name: str = "catalog_admin"
    session_expire_minutes: int = 60 * 12

    # Screenshot generation (Playwright)
    screenshot_width: int = 1280
    screenshot_height: int = 800
    screenshot_timeout_ms: int = 30000

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False

    @property
    def uploads_dir(self) -> Path:
        return self.public_dir / "uploads"

    @property
    def images_dir(self) -> Path:
        return self.uploads_dir / "images"

    @property
    def files_dir(self) -> Path:
        return self.uploads_dir / "files"


@lru_cache()
def get_settings() -> Settings:
    return Settings()
