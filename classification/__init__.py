"""
Problem Classification Pipeline
classification/

Steps:
1. Prompt Builder     — taxonomy snapshot → system prompt (light | full)
2. GPT Client         — single JSON-mode chat completion per problem
3. Result Validator   — unknown codes flagged, difficulty clamped, rubric recomputed
4. Persistence        — database/crud.py replaces the problem's classification
"""
