from pydantic import BaseModel, Field
from typing import Dict, Any, List, Optional


class ComponentConfig(BaseModel):
    """A single component's configuration (source, sink or state backend)."""

    type: str
    config: Dict[str, Any] = {}


class ValidationConfig(BaseModel):
    """Integrity checks run on the corpus before it is written."""

    fail_on_error: bool = True
    min_quality_score: float = Field(default=0.5, ge=0.0, le=1.0)
    min_confidence: float = Field(default=0.4, ge=0.0, le=1.0)
    min_content_length: int = Field(default=200, ge=0)
    known_platforms: Optional[List[str]] = None
    known_categories: Optional[List[str]] = None


class PipelineConfig(BaseModel):
    """The top-level model for a pipeline.yaml configuration."""

    source: ComponentConfig
    sink: ComponentConfig
    state: Optional[ComponentConfig] = None
    validation: ValidationConfig = ValidationConfig()
