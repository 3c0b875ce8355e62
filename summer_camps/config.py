"""Application configuration loaded from environment variables."""

from pathlib import Path

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Central configuration – values are read from `.env` or the environment."""

    # LLM (any OpenAI-compatible endpoint with vision support)
    llm_base_url: str = "http://localhost:11434/v1"
    llm_api_key: str = "unused"
    llm_model: str = "llama3.2-vision"
    llm_max_tokens: int = 4096

    # Paths
    base_dir: Path = Path(__file__).resolve().parent.parent
    data_dir: Path = base_dir / "data"
    workbook_path: Path = data_dir / "fcpa-camps.xlsx"
    dataset_path: Path = data_dir / "fcpa-camps.json"
    enriched_dataset_path: Path = data_dir / "fcpa-camps-enriched.json"
    markdown_path: Path = data_dir / "summer-camps-pages" / "summer-camps-combined.md"
    geocode_cache_path: Path = data_dir / ".geocode-cache.json"
    address_overrides_path: Path = data_dir / "location-addresses.json"

    # API
    default_sheet: str | None = None

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


settings = Settings()
