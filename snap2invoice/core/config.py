
from pydantic import Field
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    app_name: str = Field("snap2invoice", alias="APP_NAME")
    app_env: str = Field("dev", alias="APP_ENV")

    # Logging
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_json: bool = Field(False, alias="LOG_JSON")

    # CORS allowed origins (comma-separated list for production deployment)
    cors_origins: str = Field("http://localhost:3000,http://127.0.0.1:3000", alias="CORS_ORIGINS")

    # Line reconstruction for run-on OCR output
    single_line_threshold: int = Field(100, alias="SINGLE_LINE_THRESHOLD")

    # Merchant name is only searched in the receipt header
    merchant_scan_lines: int = Field(8, alias="MERCHANT_SCAN_LINES")

    # Line item validation (combination search)
    item_tolerance_ratio: float = Field(0.1, alias="ITEM_TOLERANCE_RATIO")
    item_tolerance_floor: float = Field(10.0, alias="ITEM_TOLERANCE_FLOOR")
    item_max_combination: int = Field(6, alias="ITEM_MAX_COMBINATION")
    item_match_ratio: float = Field(0.05, alias="ITEM_MATCH_RATIO")

    # Receipt review
    review_min_confidence: float = Field(60.0, alias="REVIEW_MIN_CONFIDENCE")

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "populate_by_name": True}

settings = Settings()
