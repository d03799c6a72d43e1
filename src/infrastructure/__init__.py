"""
infrastructure - Concrete implementations of domain ports.

Contains all vendor-specific code: LangChain chat models, the Ghostfolio
HTTP client, the JSON fixture back-end, configuration.
Depends on domain/ (implements ports) and on the agent's transcript types.
Never imported by application/ or agent/.
"""
