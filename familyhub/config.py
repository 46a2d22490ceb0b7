"""FamilyHub Server Configuration."""

import secrets
import string
from pathlib import Path

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Server
    server_name: str = "FamilyHub"
    host: str = "0.0.0.0"
    port: int = 8080
    debug: bool = False
    log_level: str = "INFO"

    # Public URL of the web app, used to build invite and confirmation links
    app_url: str = "http://localhost:3000"

    # Paths
    data_dir: Path = Path.home() / "familyhub" / "data"

    # Database
    db_path: Path = Path.home() / "familyhub" / "data" / "familyhub.db"

    # JWT
    jwt_secret: str = ""
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 60
    refresh_token_expire_days: int = 30
    confirm_token_expire_hours: int = 48

    # Invites
    invite_code_length: int = 6
    invite_code_alphabet: str = string.ascii_uppercase + string.digits
    invite_code_max_attempts: int = 10
    invite_expire_days: int = 14

    model_config = {"env_prefix": "FAMILYHUB_"}

    def ensure_dirs(self) -> None:
        """Create all required directories."""
        for d in [self.data_dir, self.db_path.parent]:
            d.mkdir(parents=True, exist_ok=True)

    def ensure_secrets(self) -> None:
        """Generate secrets if not set, persist to file so they survive restarts."""
        secrets_file = self.data_dir / ".secrets"
        saved = {}
        if secrets_file.exists():
            for line in secrets_file.read_text().strip().splitlines():
                if "=" in line:
                    k, v = line.split("=", 1)
                    saved[k.strip()] = v.strip()

        if not self.jwt_secret:
            self.jwt_secret = saved.get("jwt_secret", "") or secrets.token_urlsafe(32)

        # Persist for next restart
        secrets_file.write_text(f"jwt_secret={self.jwt_secret}\n")


settings = Settings()
settings.ensure_dirs()
settings.ensure_secrets()
