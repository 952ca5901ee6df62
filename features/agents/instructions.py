"""
Role instructions — what each kind of agent must hand back.

Each template asks for files in the same shape: a `### filename` heading
followed by a fenced block. features.artifacts parses that shape back out.
"""

from __future__ import annotations

from features.agents.models import AgentProfile, Deliverable

BUILDER_INSTRUCTION = (
    "You are a **Builder Agent**.\n"
    "Goal: Write WORKING CODE based on the architecture and database schema.\n\n"
    "RULES:\n"
    "1. Output actual code files, one or more.\n"
    "2. Format each file as: ### filename.ext, then a fenced block tagged with its language.\n"
    "3. React: functional components and hooks.\n"
    "4. HTML/JS: clean ES6+.\n"
    "5. APIs: Python FastAPI or Node Express."
)

INSTRUCTIONS: dict[Deliverable, str] = {
    Deliverable.REQUIREMENTS: (
        "You are the **Product Owner**.\n"
        "Goal: Define the Product Requirements and Sitemap.\n\n"
        "REQUIRED OUTPUT:\n"
        "Create two file sections:\n\n"
        "### PRD.md\n"
        "```markdown\n"
        "# Product Requirements Document\n"
        "## Features\n...\n"
        "## User Flow\n...\n"
        "```\n\n"
        "### sitemap.md\n"
        "```markdown\n"
        "- /home\n- /dashboard\n  - /settings\n"
        "```"
    ),
    Deliverable.CONTEXT: (
        "You are the **Context Engineer**.\n"
        "Goal: Design the system prompt and knowledge context for the application.\n\n"
        "REQUIRED OUTPUT:\n"
        "### context.md\n"
        "```markdown\n"
        "# System Prompt / Context\n"
        "Role: ...\nPersonality: ...\nKnowledge Base: ...\nConstraints: ...\n"
        "```"
    ),
    Deliverable.SCHEMA: (
        "You are the **Database Architect**.\n"
        "Goal: Design the database schema.\n\n"
        "REQUIRED OUTPUT:\n"
        "### schema.sql\n"
        "```sql\n"
        "CREATE TABLE users (...);\n"
        "CREATE TABLE data (...);\n"
        "-- Add relationships and indexes\n"
        "```"
    ),
    Deliverable.STYLING: (
        "You are the **UI Designer**.\n"
        "Goal: Define the styling strategy and CSS.\n\n"
        "REQUIRED OUTPUT:\n"
        "### styles.css\n"
        "```css\n"
        "/* Modern CSS or Bootstrap overrides */\n"
        "body { ... }\n"
        ".dashboard { ... }\n"
        "```\n\n"
        "OR, if the vision names Tailwind or Bootstrap:\n"
        "### theme-config.js\n"
        "```javascript\n"
        "// Theme settings\n"
        "```"
    ),
    Deliverable.CREATIVE: (
        "You are the **Creative Coder**.\n"
        "Goal: Create interactive visuals using p5.js or the Canvas API.\n\n"
        "REQUIRED OUTPUT:\n"
        "### sketch.js\n"
        "```javascript\n"
        "function setup() {\n  createCanvas(400, 400);\n}\n"
        "function draw() {\n  background(220);\n  // ... generative logic ...\n}\n"
        "```"
    ),
    Deliverable.ARCHITECTURE: (
        "You are the **Architect Agent**.\n"
        "Goal: Convert the user goal and PRD into a technical architecture.\n\n"
        "REQUIRED OUTPUT:\n"
        "### ARCHITECTURE.md\n"
        "```markdown\n"
        "1. Tech Stack\n"
        "2. File Structure Tree\n"
        "3. API Endpoints List\n"
        "```"
    ),
    # Both builders share one template
    Deliverable.FRONTEND: BUILDER_INSTRUCTION,
    Deliverable.BACKEND: BUILDER_INSTRUCTION,
    Deliverable.REVIEW: (
        "You are the **Janitor Agent** (code quality).\n"
        "Goal: Review, refactor and verify the work so far.\n\n"
        "REQUIRED OUTPUT:\n"
        "### CODE_REVIEW.md\n"
        "```markdown\n"
        "- Code Quality Score: A/B/C\n"
        "- Issues Found: ...\n"
        "- Suggested Refactors: ...\n"
        "```"
    ),
    Deliverable.DOCUMENTATION: (
        "You are the **Documenter Agent**.\n"
        "Goal: Write the project README.\n\n"
        "REQUIRED OUTPUT:\n"
        "### README.md\n"
        "```markdown\n"
        "# Project Name\n## Installation\n## Features\n"
        "```"
    ),
}

ARTIFACT_PURPOSES: dict[Deliverable, str] = {
    Deliverable.REQUIREMENTS: (
        "📄 Artifact: PRD.md & sitemap.md\n"
        "Purpose: blueprint of scope and user flow for the builders."
    ),
    Deliverable.ARCHITECTURE: (
        "📐 Artifact: ARCHITECTURE.md\n"
        "Purpose: pins down the tech stack, folder layout and API surface."
    ),
    Deliverable.SCHEMA: (
        "🗄️ Artifact: SQL schema\n"
        "Purpose: tables and relations for storing the product's data."
    ),
    Deliverable.CONTEXT: (
        "🧠 Artifact: context / system prompts\n"
        "Purpose: gives the product's AI its role, personality and limits."
    ),
    Deliverable.STYLING: (
        "🎨 Artifact: UI styles / CSS system\n"
        "Purpose: design tokens, colours and theme for the application."
    ),
    Deliverable.CREATIVE: (
        "✨ Artifact: generative art scripts (p5.js)\n"
        "Purpose: an interactive visual experience that sets the product apart."
    ),
    Deliverable.FRONTEND: (
        "⚛️ Artifact: frontend components (React/Next.js)\n"
        "Purpose: turns the design and logic into screens users can actually work with."
    ),
    Deliverable.BACKEND: (
        "🐍 Artifact: backend logic (API/services)\n"
        "Purpose: server-side processing and the connection to the database."
    ),
    Deliverable.REVIEW: (
        "🧹 Artifact: CODE_REVIEW.md\n"
        "Purpose: audit of code quality with concrete refactors."
    ),
    Deliverable.DOCUMENTATION: (
        "📝 Artifact: README.md\n"
        "Purpose: installation and usage guide for other developers."
    ),
}


def build_instruction(agent: AgentProfile, task_title: str) -> str:
    """Return the instruction block for *agent*, falling back to a generic one."""
    template = INSTRUCTIONS.get(agent.deliverable)
    if template is not None:
        return template
    return (
        f"You are {agent.name} ({agent.specialty}). Execute: {task_title}.\n"
        "Return your output as labeled file blocks: ### filename.ext followed by a fenced block."
    )


def artifact_purpose(agent: AgentProfile) -> str | None:
    """Static note describing what the agent's output is for, if it has one."""
    return ARTIFACT_PURPOSES.get(agent.deliverable)
