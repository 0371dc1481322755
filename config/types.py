from typing import Dict, Optional
from pydantic import BaseModel, ConfigDict, Field


# Provider family -> environment variable holding its API key
CREDENTIAL_ENV_VARS: Dict[str, str] = {
    "gemini": "GOOGLE_API_KEY",
    "claude": "ANTHROPIC_API_KEY",
    "openai": "OPENAI_API_KEY",
}


class FlowkitSettings(BaseModel):
    """Immutable snapshot of the configuration consumed by the engine"""

    flow_file_path: str = "flow.yaml"
    llm_provider: Optional[str] = None
    allow_external_commands: bool = True
    external_command_timeout: float = 30.0
    backend_request_timeout: float = 60.0
    credentials: Dict[str, str] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True)

    def credential_for(self, family: str) -> str:
        """Get the API key for a provider family, or an empty string"""
        return self.credentials.get(family, "") or ""
