from datetime import datetime
from typing import Any, Optional, List
from pydantic import BaseModel, Field

from videoscripts.stages.contracts import (
    DensityAnalysis,
    ReadinessAnalysis,
    StructuralAnalysis,
)


# ============== Stage Schemas ==============

class StageStatus(BaseModel):
    stage: str
    project_name: str
    project_exists: bool = True
    total_items: int = 0
    completed_items: int = 0
    pending_items: int = 0
    details: dict[str, Any] = Field(default_factory=dict)

    @property
    def is_complete(self) -> bool:
        return self.pending_items == 0


class ItemOutcome(BaseModel):
    item_id: Optional[int] = None
    title: str
    success: bool
    message: str
    metrics: dict[str, Any] = Field(default_factory=dict)


class StageResult(BaseModel):
    stage: str
    project_name: str
    project_exists: bool = True
    success: bool = False
    message: Optional[str] = None
    items: List[ItemOutcome] = Field(default_factory=list)

    @property
    def successful_count(self) -> int:
        return sum(1 for item in self.items if item.success)

    @property
    def failed_count(self) -> int:
        return sum(1 for item in self.items if not item.success)

    def add(self, outcome: ItemOutcome) -> None:
        self.items.append(outcome)
        self.success = self.successful_count > 0


# ============== Cluster Analysis Schemas ==============

class ClusterAnalysisResult(BaseModel):
    cluster_id: Optional[int] = None
    cluster_name: str = ""
    project_name: str = ""
    found: bool = True
    topic_count: int = 0
    readiness_analysis: Optional[ReadinessAnalysis] = None
    density_analysis: Optional[DensityAnalysis] = None
    structural_analysis: Optional[StructuralAnalysis] = None
    errors: dict[str, str] = Field(default_factory=dict)

    @property
    def success(self) -> bool:
        return any([self.readiness_analysis, self.density_analysis, self.structural_analysis])


class ClusterAnalysisStageResult(StageResult):
    analyses: List[ClusterAnalysisResult] = Field(default_factory=list)


# ============== Cluster View Schemas ==============

class ClusterTopicView(BaseModel):
    topic_id: int
    title: str
    start_time: str
    video_title: str
    summary: str
    assignment_reason: Optional[str] = None


class ClusterView(BaseModel):
    cluster_id: int
    cluster_name: str
    cluster_description: Optional[str] = None
    display_order: int
    topics: List[ClusterTopicView] = Field(default_factory=list)


class ProjectClustersView(BaseModel):
    project_name: str
    project_exists: bool = True
    clusters: List[ClusterView] = Field(default_factory=list)

    @property
    def total_topics(self) -> int:
        return sum(len(cluster.topics) for cluster in self.clusters)


# ============== Script Schemas ==============

class ScriptResponse(BaseModel):
    id: int
    title: str
    version: int
    content: str
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0
    created_at: datetime

    class Config:
        from_attributes = True

    @property
    def word_count(self) -> int:
        return len(self.content.split())
