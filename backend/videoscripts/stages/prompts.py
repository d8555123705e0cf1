"""
Prompt templates and model settings for each LLM stage.
"""

from videoscripts.services.llm_gateway import ModelConfig

# ============== Topic Discovery ==============

TOPIC_DISCOVERY_CONFIG = ModelConfig(
    model="gpt-4o-mini",
    max_tokens=3000,
    temperature=0.2,
    system_message=(
        "You are a content strategist specializing in breaking down educational videos into "
        "structured learning modules. Follow the provided framework exactly and identify "
        "distinct topics with precise timing information."
    ),
)

TOPIC_DISCOVERY_TEMPLATE = """Analyze the YouTube transcript and identify distinct topics, sections, and key learning points. Focus on main content - skip intros, promotions, and conclusions.

Key Requirements:
- Identify natural topic transitions and thematic changes
- Extract frameworks, blueprints, or step-by-step processes
- Capture actionable insights and key takeaways
- Use clear timestamps for each section
- Focus on valuable, educational content

Output as JSON with this exact structure:

{{
  "topics": [
    {{
      "starttime": "HH:MM:SS",
      "title": "Clear, descriptive section title",
      "summary": "1-2 sentence overview of what's covered",
      "content": "Detailed breakdown including key points, steps, or concepts",
      "blueprint_elements": ["step 1", "step 2"]
    }}
  ]
}}

Guidelines:
- Use HH:MM:SS format for timestamps (00:00:00 if unclear)
- blueprint_elements is an empty array when the section has no steps or framework
- Maintain speaker's original terminology for technical concepts
- Ensure each topic has clear value for learners

Transcript to analyze:

{transcript}
"""

# ============== Summary ==============

SUMMARY_CONFIG = ModelConfig(
    model="gpt-4o-mini",
    max_tokens=1500,
    temperature=0.3,
    system_message=(
        "Act as an expert content analyst who specializes in distilling complex video content "
        "into clear, actionable summaries."
    ),
)

SUMMARY_TEMPLATE = """Analyze the provided YouTube video transcript and create a summary that captures the key insights and structural elements.

Length: 2-3 paragraphs, more only if the content is particularly important or complex.

Content focus:
- The main topic, key arguments, and primary takeaways
- The overall value proposition or purpose of the video

When present, mention whether the video includes blueprints, frameworks, numbered lists, checklists, templates, methodologies, case studies, or before/after scenarios. Mention their presence without reproducing every step.

Keep the tone professional yet accessible. If the video lacks substantial content, say so.

Return your summary as a JSON object with this exact structure:

{{
  "video_topic": "Main topic/subject of the video (1-2 sentences)",
  "main_summary": "2-3 paragraph summary of the video content",
  "structured_content": "Brief description of what structured elements are present"
}}

Please analyze the following YouTube video transcript:

{transcript}
"""

# ============== Clustering ==============

CLUSTERING_CONFIG = ModelConfig(
    model="gpt-4o-mini",
    max_tokens=3000,
    temperature=0.2,
    system_message=(
        "You are an expert content strategist specializing in organizing educational content "
        "into logical learning modules."
    ),
)

CLUSTERING_TEMPLATE = """Your task is to analyze a list of video transcript topics and group them into meaningful clusters that would make sense for script generation and content organization.

Guidelines:
- Group related topics by theme, complexity level, or learning progression
- Create clusters that tell a cohesive story or learning path
- Prioritize logical flow and content coherence over perfect balance
- Look for natural groupings like: Introduction/Basics, Core Concepts, Advanced Techniques, Implementation

For each cluster:
- Choose a clear, descriptive name (2-8 words)
- Provide a brief description of what the cluster covers
- Assign a display order (1, 2, 3...) for logical presentation sequence
- For each topic assignment, briefly explain why it fits in that cluster

Output as JSON with this exact structure:

{{
  "clusters": [
    {{
      "cluster_name": "Introduction & Basics",
      "cluster_description": "Foundational concepts and getting started",
      "display_order": 1,
      "topics": [
        {{"topic_index": 0, "assignment_reason": "Foundational concept that others build upon"}},
        {{"topic_index": 3, "assignment_reason": "Basic setup information"}}
      ]
    }}
  ]
}}

Important:
- Use topic_index to reference topics (0-based index from the provided list)
- Ensure every topic is assigned to exactly one cluster
- Keep cluster names concise but descriptive

Project: {project_name}

Total Topics to Cluster: {topic_count}

Topics to analyze and cluster:
{topic_list}
"""

# ============== Cluster Analysis ==============

CLUSTER_ANALYSIS_CONFIG = ModelConfig(
    model="gpt-4o-mini",
    max_tokens=4000,
    temperature=0.1,
)

CLUSTER_DATA_PLACEHOLDER = "[INSERT CLUSTER DATA HERE]"

_JSON_ONLY = (
    "CRITICAL: You must respond with ONLY valid JSON in the exact format specified below. "
    "No additional text, explanations, or markdown formatting."
)

READINESS_TEMPLATE = """You are an expert content strategist analyzing video transcript clusters for script development potential.

I will provide you with a cluster of related topics from YouTube video transcripts. Each topic includes its title, summary, content details, blueprint elements (if any), and start time in the original video.

Evaluate this cluster's "script readiness" by analyzing narrative completeness, structural coherence, and missing elements.

""" + _JSON_ONLY + """

{
  "overall_readiness_score": 1-10 integer,
  "narrative_completeness_score": 1-10 integer,
  "structural_coherence_score": 1-10 integer,
  "cluster_type": "Introductory|Implementation|Deep Dive|Case Study|Mixed",
  "key_strengths": ["Strength 1", "Strength 2"],
  "critical_gaps": ["Gap 1", "Gap 2"],
  "missing_elements": ["Missing element 1"],
  "script_usage_recommendation": "How to best use this cluster in a script"
}

Scoring:
- Narrative Completeness: does this tell a complete story with beginning, middle, end?
- Structural Coherence: how well do topics flow together logically?
- Overall Readiness: would this work as a standalone video script section?

Cluster data:
[INSERT CLUSTER DATA HERE]"""

DENSITY_TEMPLATE = """You are a content analyst specializing in educational video scripts.

Analyze the following cluster of video topics for content density and depth. Evaluate information density, pacing implications, and cognitive load.

""" + _JSON_ONLY + """

{
  "overall_density": "Light|Medium|Heavy",
  "depth_breadth_ratio": "Descriptive ratio like '70% depth, 30% breadth'",
  "recommended_script_pacing": "Specific pacing recommendation with timing",
  "cognitive_load": "Low|Medium|High",
  "topic_density_ratings": [
    {"topic_title": "Topic name from cluster", "density_level": "Light|Medium|Heavy", "information_type": "Conceptual|Actionable|Mixed"}
  ],
  "simplification_opportunities": ["Opportunity 1"],
  "pacing_implications": ["Pacing consideration 1"]
}

Consider how much new information viewers must process, and the need for examples, breaks and repetition.

Cluster data:
[INSERT CLUSTER DATA HERE]"""

STRUCTURAL_TEMPLATE = """You are a script development specialist focusing on instructional design.

Examine this cluster for structural elements that could anchor a video script. Identify frameworks, processes, lists, and blueprint elements.

""" + _JSON_ONLY + """

{
  "total_structural_elements": integer count,
  "primary_anchor_element": "Name of the strongest framework/blueprint for script focus",
  "frameworks_and_models": [
    {"name": "Framework name", "completeness_score": 1-10 integer, "instructional_value": "Teaching value", "description": "Brief description"}
  ],
  "step_by_step_processes": [
    {"name": "Process name", "step_count": integer, "clarity_score": 1-10 integer, "actionability_score": 1-10 integer, "missing_steps": ["Missing step 1"]}
  ],
  "lists_and_enumerations": [
    {"name": "List name", "item_count": integer, "organization_quality": "Excellent|Good|Fair|Poor", "memorability_score": 1-10 integer}
  ],
  "blueprint_elements": [
    {"name": "Blueprint name", "practical_application": "How it can be applied", "uniqueness_score": 1-10 integer, "value_score": 1-10 integer}
  ],
  "hook_potential_elements": ["Element that could serve as a compelling video opening"],
  "script_structure_suggestion": "How to organize these elements in a script",
  "missing_structural_pieces": ["Missing piece that would complete the instructional value"]
}

Cluster data:
[INSERT CLUSTER DATA HERE]"""

# ============== Script Synthesis ==============

SCRIPT_CONFIG = ModelConfig(
    model="gpt-4o",
    max_tokens=4000,
    temperature=0.7,
    system_message=(
        "You are an expert YouTube scriptwriter who creates engaging, retention-focused video "
        "scripts. You excel at synthesizing information from multiple sources into compelling "
        "narratives that keep viewers watching."
    ),
    expect_json=False,
)

TOPIC_PLACEHOLDER = "[INSERT TOPIC]"

SCRIPT_FRAMEWORK = """Your Task: Write a compelling YouTube video script on [INSERT TOPIC] that maximizes viewer retention and engagement using proven scriptwriting techniques.

Pre-Script Requirements:
Working Title: create 5-10 title variations and pick the most compelling.
Thumbnail Concept: describe what viewers will see.
Three Key Questions: the 3 main questions viewers clicking this title/thumbnail want answered.

Script Structure Framework:

1. HOOK (first 15-30 seconds)
Use a question hook, a context hook (drop viewers into the highest-stakes moment), or a statement hook (a bold claim you can back up). Match the title and thumbnail, promise clear value, create immediate curiosity, and skip "Hey guys, welcome back".

2. INTRO (15-45 seconds)
Preview the answers to the three key questions, add something beyond expectations, briefly establish credibility, and include a soft call to like or comment.

3. MAIN CONTENT (build to climax)
For each main point: open with a mini-hook, tell a story that builds to the answer, and put the payout at the END of the point. Open loops that close later, vary the emotional tone, and mix facts, feelings and fun. Cut 10-20%; every sentence must build toward the climax.

4. OUTRO & CTA (15-30 seconds max)
Keep the energy high and hook viewers into a related next video so it feels essential.

Writing Guidelines:
Write conversational prose, not lists. Be a guide sharing a journey, not a guru preaching. Show personality.

Script Stats Requirements:
At the end of your script include SCRIPT STATS: total word count, estimated speaking time at 150 words/minute, hook type used, number of open loops, story delays, emotional peaks, three-act percentages, CTA type, and cuts made."""

SCRIPT_INSTRUCTIONS = """SCRIPT CREATION INSTRUCTIONS:
Using the above video transcripts as your source material:
1. Extract the most compelling stories, insights, and examples from these videos
2. Synthesize this content into a cohesive narrative around the topic: {topic}
3. Follow the script structure framework provided above exactly
4. Reference specific examples and stories from the source videos when relevant
5. Create a script that feels fresh and engaging, not just a summary of the existing content
6. Include the required script stats at the end

Begin writing the script now:"""
