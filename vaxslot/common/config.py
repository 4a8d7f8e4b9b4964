"""
Configuration management for the vaccination slot bot
"""
import os
import yaml
from pathlib import Path
from typing import Optional, List, Dict, Tuple
from pydantic import BaseModel, Field, field_validator

from .models import AgeTier, FeeFilter, SearchCriteria


class ConfigError(Exception):
    """Raised for configuration problems that should abort the run"""
    pass


class CredentialsConfig(BaseModel):
    mobile: Optional[str] = None


class SearchConfig(BaseModel):
    pincodes: List[int] = Field(default_factory=list)
    district_id: Optional[int] = None
    fee: FeeFilter = FeeFilter.ANY
    vaccine: Optional[str] = None
    age_tier: AgeTier = AgeTier.ANY
    dose: int = 1
    beneficiary_ids: List[str] = Field(default_factory=list)

    @field_validator("dose")
    @classmethod
    def check_dose(cls, value: int) -> int:
        if value not in (1, 2):
            raise ValueError("dose must be 1 or 2")
        return value

    def to_criteria(self) -> SearchCriteria:
        """Build the immutable search criteria used for the whole run"""
        return SearchCriteria(
            pincodes=frozenset(self.pincodes),
            district_id=self.district_id,
            fee=self.fee,
            vaccine=self.vaccine,
            age_tier=self.age_tier,
            dose=self.dose,
        )


class ScheduleConfig(BaseModel):
    start_time: Optional[str] = None
    timezone: str = "Asia/Kolkata"
    otp_buffer_seconds: int = 300


class TimingConfig(BaseModel):
    search_window_seconds: float = 420
    booking_window_seconds: float = 180
    search_delay_ms: Tuple[int, int] = (1500, 2500)
    booking_delay_ms: Tuple[int, int] = (50, 100)

    @field_validator("search_delay_ms", "booking_delay_ms")
    @classmethod
    def check_bounds(cls, value: Tuple[int, int]) -> Tuple[int, int]:
        low, high = value
        if low < 0 or low > high:
            raise ValueError(f"invalid delay bounds {value}")
        return value


class APIConfig(BaseModel):
    base_url: str = "https://cdn-api.co-vin.in/api"
    timeout: float = 10
    # Found in the web client's bundle; the service may rotate them
    otp_secret_key: str = "CoWIN@$#&*(!@%^&"
    otp_secret_text: str = "b5cab167-7977-4df1-8027-a63aa144f04e"
    headers: Dict[str, str] = Field(default_factory=dict)


class CaptchaConfig(BaseModel):
    output_dir: str = "."


class LoggingConfig(BaseModel):
    level: str = "INFO"
    file: Optional[str] = "vaxslot.log"


class Config(BaseModel):
    """Main configuration class"""
    credentials: CredentialsConfig = Field(default_factory=CredentialsConfig)
    search: SearchConfig = Field(default_factory=SearchConfig)
    schedule: ScheduleConfig = Field(default_factory=ScheduleConfig)
    timing: TimingConfig = Field(default_factory=TimingConfig)
    api: APIConfig = Field(default_factory=APIConfig)
    captcha: CaptchaConfig = Field(default_factory=CaptchaConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def from_yaml(cls, path: str | Path) -> "Config":
        """Load configuration from YAML file"""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        with open(path) as f:
            data = yaml.safe_load(f) or {}

        return cls(**data)

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from environment variables"""
        pincodes = [
            int(p) for p in os.environ.get("VAXSLOT_PINCODES", "").split(",") if p.strip()
        ]
        district = os.environ.get("VAXSLOT_DISTRICT_ID")
        return cls(
            credentials=CredentialsConfig(mobile=os.environ["VAXSLOT_MOBILE"]),
            search=SearchConfig(
                pincodes=pincodes,
                district_id=int(district) if district else None,
                fee=os.environ.get("VAXSLOT_FEE", "any"),
                vaccine=os.environ.get("VAXSLOT_VACCINE"),
                age_tier=os.environ.get("VAXSLOT_AGE_TIER", "any"),
                dose=int(os.environ.get("VAXSLOT_DOSE", "1")),
            ),
            schedule=ScheduleConfig(
                start_time=os.environ.get("VAXSLOT_START_TIME"),
            )
        )

    def to_yaml(self, path: str | Path):
        """Save configuration to YAML file"""
        path = Path(path)
        with open(path, 'w') as f:
            yaml.dump(self.model_dump(mode="json"), f, default_flow_style=False)


def load_config(path: Optional[str] = None) -> Config:
    """Load configuration from file or environment"""
    if path:
        return Config.from_yaml(path)

    # Try default locations
    default_paths = [
        Path("config/config.yaml"),
        Path("config.yaml"),
        Path.home() / ".vaxslot" / "config.yaml",
    ]

    for p in default_paths:
        if p.exists():
            return Config.from_yaml(p)

    # Fall back to environment variables
    try:
        return Config.from_env()
    except KeyError as e:
        raise RuntimeError(
            f"No config file found and missing environment variable: {e}. "
            f"Create config/config.yaml or set VAXSLOT_* environment variables."
        )
