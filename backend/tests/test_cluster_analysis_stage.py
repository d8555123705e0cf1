"""
Tests for Cluster Analysis: concurrent sub-analyses with independent failure.
"""
import json

import pytest

from conftest import FakeLLM, make_channel, make_cluster, make_project, make_topic, make_video
from videoscripts.stages.cluster_analysis import ClusterAnalysisStage, build_cluster_data

READINESS = {
    "overall_readiness_score": 8,
    "narrative_completeness_score": 7,
    "structural_coherence_score": 9,
    "cluster_type": "framework",
    "key_strengths": ["Clear steps"],
    "script_usage_recommendation": "Use as the main segment",
}
DENSITY = {
    "overall_density": "Medium",
    "depth_breadth_ratio": "Deep",
    "cognitive_load": "Moderate",
}
STRUCTURAL = {
    "total_structural_elements": 2,
    "primary_anchor_element": "The referral loop",
    "frameworks_and_models": [{"name": "Loop", "completeness_score": 8}],
}


def responder(readiness=READINESS, density=DENSITY, structural=STRUCTURAL):
    def respond(prompt, config):
        if "overall_readiness_score" in prompt:
            payload = readiness
        elif "overall_density" in prompt:
            payload = density
        else:
            payload = structural
        if isinstance(payload, Exception):
            raise payload
        return json.dumps(payload)
    return respond


@pytest.fixture
def cluster(db):
    project = make_project(db, name="Demo")
    video = make_video(db, project, make_channel(db), "aaaaaaaaaaa", title="Growth talk", transcript="t")
    topics = [
        make_topic(db, video, "Referral loop", seconds=90, blueprint=["Ask", "Reward"]),
        make_topic(db, video, "Hook", seconds=5),
    ]
    return make_cluster(db, project, "Growth engines", topics)


class TestClusterAnalysis:

    def test_cluster_data_lists_topics_in_time_order(self, db, cluster):
        data = build_cluster_data(cluster)

        assert data.startswith("CLUSTER: Growth engines")
        assert "TOTAL TOPICS: 2" in data
        assert data.index("TOPIC: Hook") < data.index("TOPIC: Referral loop")
        assert "START TIME: 00:01:30" in data
        assert "VIDEO: Growth talk" in data
        assert "BLUEPRINT ELEMENTS: Ask, Reward" in data

    def test_all_three_analyses(self, db, cluster):
        llm = FakeLLM(responder())

        analysis = ClusterAnalysisStage(db, llm).analyze_cluster(cluster.id)

        assert analysis.success
        assert len(llm.calls) == 3
        assert analysis.readiness_analysis.overall_readiness_score == 8
        assert analysis.density_analysis.overall_density == "Medium"
        assert analysis.structural_analysis.frameworks_and_models[0].name == "Loop"
        assert analysis.errors == {}

    def test_density_failure_keeps_other_results(self, db, cluster):
        llm = FakeLLM(responder(density={"overall_density": "Heavy"}))

        analysis = ClusterAnalysisStage(db, llm).analyze_cluster(cluster.id)

        assert analysis.success is True
        assert analysis.density_analysis is None
        assert analysis.readiness_analysis is not None
        assert analysis.structural_analysis is not None
        assert "density" in analysis.errors

    def test_all_failures(self, db, cluster):
        error = RuntimeError("down")
        llm = FakeLLM(responder(readiness=error, density=error, structural=error))

        result = ClusterAnalysisStage(db, llm).process_project("Demo")

        assert not result.success
        assert result.items[0].message.startswith("All analyses failed")
        assert set(result.analyses[0].errors) == {"readiness", "density", "structural"}

    def test_project_run_reports_per_cluster(self, db, cluster):
        result = ClusterAnalysisStage(db, FakeLLM(responder())).process_project("Demo")

        assert result.success
        assert len(result.analyses) == 1
        assert result.items[0].metrics["readiness_score"] == 8

    def test_status_and_empty_project(self, db, cluster):
        stage = ClusterAnalysisStage(db, FakeLLM(responder()))
        status = stage.get_status("Demo")
        assert status.pending_items == 1
        assert status.details["total_topics"] == 2

        make_project(db, name="Bare")
        result = stage.process_project("Bare")
        assert not result.success
        assert result.message == "No clusters with topics found; run clustering first"

    def test_unknown_cluster(self, db):
        analysis = ClusterAnalysisStage(db, FakeLLM(responder())).analyze_cluster(999)

        assert analysis.found is False
        assert not analysis.success
