from functools import lru_cache
from typing import Any

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    # solr_service is the docstore's own index, used for holdings and item
    # lookups; search_service is the discovery index.
    circulation_service: str = "http://localhost:8080/olefs/circulation"
    solr_service: str = "http://localhost:8080/oledocstore/bib/select"
    search_service: str = "http://localhost:8080/solr/biblio"

    # Seconds. Applies to every upstream call.
    http_timeout: float = 30.0

    db_vendor: str = "mysql"
    db_host: str = "localhost"
    db_port: int = 3306
    db_user: str = ""
    db_password: str = ""
    db_name: str = "ole"
    login_field: str = "LAST_NM"

    operator_id: str = "API"
    # The API operator is not allowed to renew or look up users.
    privileged_operator_id: str = "dev2"

    bib_prefix: str = "wbm-"
    holdings_prefix: str = "who-"
    item_prefix: str = "wio-"

    default_pickup_location: str = ""
    pickup_locations: list[dict[str, str]] = Field(
        default_factory=lambda: [{"location_id": "1", "location_display": "Location 1"}]
    )
    check_renewals_up_front: bool = True

    # Extra per-feature sections (Holds, Renewals, ...), returned verbatim by
    # the driver's get_config.
    features: dict[str, dict[str, Any]] = Field(default_factory=dict)

    search_backend_id: str = "Solr"
    spellcheck_dictionaries: list[str] = Field(default_factory=list)
    search_invariants: dict[str, list[str]] = Field(default_factory=dict)

    log_level: str = "INFO"

    @model_validator(mode="after")
    def validate_runtime(self) -> "Settings":
        if self.http_timeout <= 0:
            raise ValueError("HTTP_TIMEOUT must be > 0")
        for name in ("circulation_service", "solr_service", "search_service"):
            if not getattr(self, name).strip():
                raise ValueError(f"{name.upper()} is required")
        return self


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
