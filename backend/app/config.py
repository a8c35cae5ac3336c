from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    model_config = {"env_prefix": "GRIDBALANCE_", "case_sensitive": False}

    # App
    environment: str = "development"
    debug: bool = False
    app_name: str = "GridBalance"

    # Logging
    log_json: bool = False
    log_level: str = "INFO"

    # DC solver
    pivot_tolerance: float = 1e-12
    hvdc_ghost_reactance: float = 1e-4
    hvdc_ghost_limit_mw: float = 1e9


settings = Settings()
