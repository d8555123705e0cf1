"""
Response contracts for every LLM stage.

Each model mirrors the JSON object a stage asks the model to return. Missing
or empty required fields raise pydantic.ValidationError, which parse_response
turns into ResponseValidationError so a drifting model output fails the item
instead of writing half-filled rows. Extra keys are ignored.
"""

import json
from typing import Annotated, Any, ClassVar, List, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, ValidationError, field_validator

from videoscripts.utils import strip_code_fences

RequiredText = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]

T = TypeVar("T", bound="StageContract")


class ResponseValidationError(Exception):
    """Model output was not valid JSON or did not match the stage contract."""
    pass


class StageContract(BaseModel):
    model_config = ConfigDict(extra="ignore")

    schema_version: ClassVar[str] = "1"


def _string_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value] if value.strip() else []
    return [str(v) for v in value if v is not None and str(v).strip()]


# ============== Topic Discovery ==============

class DiscoveredTopic(StageContract):
    starttime: RequiredText
    title: RequiredText
    summary: RequiredText
    content: str = ""
    blueprint_elements: List[str] = Field(default_factory=list)

    @field_validator("starttime", mode="before")
    @classmethod
    def _numeric_seconds(cls, value):
        # Bare seconds may arrive as a JSON number
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(int(value))
        return value

    @field_validator("blueprint_elements", mode="before")
    @classmethod
    def _blueprint_list(cls, value):
        return _string_list(value)

    @field_validator("content", mode="before")
    @classmethod
    def _content_text(cls, value):
        return "" if value is None else str(value)


class TopicDiscoveryResponse(StageContract):
    """Envelope only; topics are validated one by one so bad entries can be skipped."""
    schema_version: ClassVar[str] = "topic-discovery/1"

    topics: List[dict]


# ============== Summary ==============

class SummaryResponse(StageContract):
    schema_version: ClassVar[str] = "summary/1"

    video_topic: RequiredText
    main_summary: RequiredText
    structured_content: Optional[str] = None


# ============== Clustering ==============

class ClusterTopicAssignment(StageContract):
    topic_index: Optional[int] = None
    assignment_reason: str = ""

    @field_validator("topic_index", mode="before")
    @classmethod
    def _index_or_none(cls, value):
        try:
            return int(value)
        except (TypeError, ValueError):
            return None

    @field_validator("assignment_reason", mode="before")
    @classmethod
    def _reason_text(cls, value):
        return "" if value is None else str(value)


class ClusterProposal(StageContract):
    cluster_name: RequiredText
    cluster_description: str = ""
    display_order: int = 0
    topics: List[ClusterTopicAssignment] = Field(default_factory=list)


class ClusteringResponse(StageContract):
    """Envelope only; each cluster is validated on its own."""
    schema_version: ClassVar[str] = "clustering/1"

    clusters: List[dict]


# ============== Cluster Analysis ==============

class ReadinessAnalysis(StageContract):
    schema_version: ClassVar[str] = "cluster-readiness/1"

    overall_readiness_score: int = Field(gt=0)
    narrative_completeness_score: int = Field(gt=0)
    structural_coherence_score: int = Field(gt=0)
    cluster_type: RequiredText
    key_strengths: List[str] = Field(default_factory=list)
    critical_gaps: List[str] = Field(default_factory=list)
    missing_elements: List[str] = Field(default_factory=list)
    script_usage_recommendation: str = ""


class TopicDensityRating(StageContract):
    topic_title: str = ""
    density_level: str = ""
    information_type: str = ""


class DensityAnalysis(StageContract):
    schema_version: ClassVar[str] = "cluster-density/1"

    overall_density: RequiredText
    depth_breadth_ratio: RequiredText
    cognitive_load: RequiredText
    recommended_script_pacing: str = ""
    topic_density_ratings: List[TopicDensityRating] = Field(default_factory=list)
    simplification_opportunities: List[str] = Field(default_factory=list)
    pacing_implications: List[str] = Field(default_factory=list)


class FrameworkElement(StageContract):
    name: str = ""
    completeness_score: int = 0
    instructional_value: str = ""
    description: str = ""


class ProcessElement(StageContract):
    name: str = ""
    step_count: int = 0
    clarity_score: int = 0
    actionability_score: int = 0
    missing_steps: List[str] = Field(default_factory=list)


class ListElement(StageContract):
    name: str = ""
    item_count: int = 0
    organization_quality: str = ""
    memorability_score: int = 0


class BlueprintElement(StageContract):
    name: str = ""
    practical_application: str = ""
    uniqueness_score: int = 0
    value_score: int = 0


class StructuralAnalysis(StageContract):
    schema_version: ClassVar[str] = "cluster-structure/1"

    total_structural_elements: int = Field(ge=0)
    primary_anchor_element: RequiredText
    frameworks_and_models: List[FrameworkElement] = Field(default_factory=list)
    step_by_step_processes: List[ProcessElement] = Field(default_factory=list)
    lists_and_enumerations: List[ListElement] = Field(default_factory=list)
    blueprint_elements: List[BlueprintElement] = Field(default_factory=list)
    hook_potential_elements: List[str] = Field(default_factory=list)
    script_structure_suggestion: str = ""
    missing_structural_pieces: List[str] = Field(default_factory=list)


def parse_json(content: str) -> Any:
    """
    Strip Markdown fences and decode model output.

    Raises:
        ResponseValidationError: If the content is not valid JSON
    """
    cleaned = strip_code_fences(content or "")
    if not cleaned:
        raise ResponseValidationError("AI returned an empty response")
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise ResponseValidationError(f"AI returned invalid JSON: {e}") from e


def validate_payload(payload: Any, contract: Type[T]) -> T:
    """
    Validate decoded JSON against a contract.

    Raises:
        ResponseValidationError: Naming the contract version and the failing fields
    """
    try:
        return contract.model_validate(payload)
    except ValidationError as e:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) or "<root>" for err in e.errors())
        raise ResponseValidationError(
            f"Response does not match {contract.schema_version} ({fields})"
        ) from e


def parse_response(content: str, contract: Type[T]) -> T:
    """Decode and validate in one step."""
    return validate_payload(parse_json(content), contract)
