from pydantic_settings import BaseSettings, SettingsConfigDict


class GeneratorConfig(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="BASELINE_GENERATOR__",
        env_file=".env",
        extra="ignore",
    )

    api_key: str = ""
    # Empty means the public OpenAI API; set it to target an Azure OpenAI resource.
    endpoint: str = ""
    api_version: str = "2024-12-01-preview"
    model: str = "gpt-4o-mini"
    temperature: float = 0.2
    use_schema: bool = True
    max_tokens: int = 4096

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    @property
    def is_azure(self) -> bool:
        return bool(self.endpoint)


class ClientConfig(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="BASELINE_CLIENT__",
        env_file=".env",
        extra="ignore",
    )

    base_url: str = "http://localhost:8000"
    generate_path: str = "/api/generate"
    timeout_s: float | None = None

    @property
    def generate_url(self) -> str:
        return self.base_url.rstrip("/") + "/" + self.generate_path.lstrip("/")


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    generator: GeneratorConfig = GeneratorConfig()
    client: ClientConfig = ClientConfig()


settings = Settings()
