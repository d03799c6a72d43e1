"""
agent - Conversational agent orchestration layer.

Contains tools, memory, the request cache, the dispatcher, prompts, and the
executor that runs the decide/dispatch loop.
Depends on domain/ and application/. Never imports from infrastructure/.
"""
