"""PagePilot-AI.

This package contains the orchestration core of a browser automation agent:
it turns a natural-language goal into a bounded sequence of structured actions,
using a language model as the decision oracle.

Core subpackages
----------------

- ``pagepilot_ai.core``: settings and logging configuration.
- ``pagepilot_ai.agent_core``:

  - The action registry and the built-in browser capabilities.
  - The model invocation layer (structured output, manual JSON recovery,
    vision gating).
  - The error taxonomy.
  - A LangGraph-based execution driver and a periodic planner.

The page itself (navigation, element lookup, scrolling, tabs) is an external
collaborator reached through ``pagepilot_ai.agent_core.environment.Environment``.
"""
