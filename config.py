"""
Runtime configuration for the insurance portal

Values come from environment variables (a .env file is loaded if present).
Static reference values live in constants.py.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Tuple

from dotenv import load_dotenv

from constants import RATE_TABLE_PATH, PLAN_BENEFITS_PATH, BLOB_NAMESPACE

# Load environment variables
load_dotenv()


@dataclass
class PortalConfig:
    """Configuration for the Streamlit app, cloud client and API service."""
    api_base_url: str = "http://localhost:8000"
    cloud_timeout_seconds: float = 10.0
    local_store_dir: str = str(Path.home() / ".insurance_portal")
    blob_data_dir: str = "./data/blobs"
    rate_table_path: str = str(RATE_TABLE_PATH)
    plan_benefits_path: str = str(PLAN_BENEFITS_PATH)
    r2_account_id: str = ""
    r2_access_key_id: str = ""
    r2_secret_access_key: str = ""
    r2_bucket: str = BLOB_NAMESPACE
    port: int = 8000

    @classmethod
    def from_environment(cls) -> "PortalConfig":
        """Load configuration from environment variables."""
        return cls(
            api_base_url=os.getenv("PORTAL_API_BASE_URL", "http://localhost:8000").rstrip("/"),
            cloud_timeout_seconds=float(os.getenv("CLOUD_TIMEOUT_SECONDS", "10")),
            local_store_dir=os.getenv("LOCAL_STORE_DIR", str(Path.home() / ".insurance_portal")),
            blob_data_dir=os.getenv("BLOB_DATA_DIR", "./data/blobs"),
            rate_table_path=os.getenv("RATE_TABLE_PATH", str(RATE_TABLE_PATH)),
            plan_benefits_path=os.getenv("PLAN_BENEFITS_PATH", str(PLAN_BENEFITS_PATH)),
            r2_account_id=os.getenv("R2_ACCOUNT_ID", ""),
            r2_access_key_id=os.getenv("R2_ACCESS_KEY_ID", ""),
            r2_secret_access_key=os.getenv("R2_SECRET_ACCESS_KEY", ""),
            r2_bucket=os.getenv("R2_BUCKET", BLOB_NAMESPACE),
            port=int(os.getenv("PORT", "8000")),
        )

    @property
    def r2_configured(self) -> bool:
        return bool(self.r2_account_id and self.r2_access_key_id and self.r2_secret_access_key)

    def validate(self) -> Tuple[bool, str]:
        """Validate configuration. Returns (is_valid, error_message)."""
        if not self.api_base_url.startswith(("http://", "https://")):
            return False, "PORTAL_API_BASE_URL must start with http:// or https://"
        if self.cloud_timeout_seconds <= 0:
            return False, "CLOUD_TIMEOUT_SECONDS must be positive"
        if not Path(self.rate_table_path).exists():
            return False, f"Rate table not found: {self.rate_table_path}"
        if not Path(self.plan_benefits_path).exists():
            return False, f"Benefit templates not found: {self.plan_benefits_path}"
        if self.r2_account_id and not self.r2_configured:
            return False, "R2_ACCOUNT_ID is set but R2_ACCESS_KEY_ID or R2_SECRET_ACCESS_KEY is missing"
        return True, ""
